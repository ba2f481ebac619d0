from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import login_user, logout_user, current_user
from urllib.parse import urlparse
import logging

from todoapp.forms import (
    RegistrationForm,
    LoginForm,
    FindAccountForm,
    ResetPasswordForm,
    normalize_email,
)
from todoapp.core.i18n import get_locale, translate
from todoapp.services import identity
from todoapp.utils.logging import log_activity

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


def _is_safe_next(target):
    """Only follow 'next' to a path on this site."""
    if not target:
        return False
    parsed = urlparse(target)
    return not parsed.scheme and not parsed.netloc and target.startswith("/")


@auth_bp.route("/register", methods=["GET", "POST"])
def register():
    # Redirect if already logged in
    if current_user.is_authenticated:
        return redirect(url_for("todo.index"))

    locale = get_locale()
    form = RegistrationForm()
    result = None

    if request.method == "POST":
        if not form.validate_on_submit():
            flash(translate(locale, "errors.invalid_form"), "error")
        else:
            result = identity.register_user(
                form.email.data,
                form.username.data,
                form.display_name.data,
                form.password.data,
                form.confirm_password.data,
                locale=locale,
            )
            if result.ok:
                log_activity(
                    "auth",
                    "Register",
                    f"Email: {normalize_email(form.email.data)}",
                    actor_id=result["user_id"],
                )
                flash(translate(locale, "auth.flash.registered"), "success")
                return redirect(url_for("auth.login", registered=1))

    status = 400 if result is not None and not result.ok else 200
    return render_template("auth/register.html", form=form, result=result), status


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    # Redirect if already logged in
    if current_user.is_authenticated:
        return redirect(url_for("todo.index"))

    locale = get_locale()
    form = LoginForm()
    form_error = None

    if request.method == "POST":
        if not form.validate_on_submit():
            form_error = translate(locale, "errors.invalid_form")
        else:
            user = identity.authenticate(form.identifier.data, form.password.data)
            if user:
                login_user(user)
                identity.store_session_identity(user)

                log_activity(
                    "auth",
                    "Login",
                    f"Successful login for {user.email}",
                    actor_id=user.id,
                )

                next_page = request.args.get("next")
                if not _is_safe_next(next_page):
                    next_page = None
                return redirect(next_page or url_for("todo.index"))

            log_activity(
                "auth",
                "Failed Login",
                f"Failed login attempt for identifier: {(form.identifier.data or '').strip()}",
            )
            form_error = translate(locale, "auth.errors.invalid_credentials")

    return render_template("auth/login.html", form=form, form_error=form_error)


@auth_bp.route("/logout")
def logout():
    if current_user.is_authenticated:
        log_activity(
            "auth",
            "Logout",
            f"User {current_user.email} logged out",
            actor_id=current_user.id,
        )

    logout_user()
    identity.clear_session_identity()
    flash(translate(get_locale(), "auth.flash.logged_out"), "success")
    return redirect(url_for("auth.login"))


@auth_bp.route("/forgot-password", methods=["GET", "POST"])
def forgot_password():
    """
    Two-step password reset. Step 1 confirms an account exists for the
    identifier, step 2 sets the new password. The hidden 'step' field says
    which step a POST belongs to.
    """
    locale = get_locale()
    step = request.form.get("step", "find") if request.method == "POST" else "find"

    if step == "reset":
        form = ResetPasswordForm()
        if not form.validate_on_submit():
            flash(translate(locale, "errors.invalid_form"), "error")
            return redirect(url_for("auth.forgot_password"))

        result = identity.reset_password(
            form.identifier.data,
            form.password.data,
            form.confirm_password.data,
            locale=locale,
        )
        if result.ok:
            log_activity(
                "auth",
                "Password Reset",
                f"Password reset for user {result['user_id']}",
                actor_id=result["user_id"],
            )
            flash(translate(locale, "auth.flash.password_reset"), "success")
            return redirect(url_for("auth.login", passwordReset=1))

        return render_template("auth/reset_password.html", form=form, result=result), 400

    form = FindAccountForm()
    result = None
    if request.method == "POST":
        if not form.validate_on_submit():
            flash(translate(locale, "errors.invalid_form"), "error")
        else:
            result = identity.find_user_for_reset(form.identifier.data, locale=locale)
            identifier = (form.identifier.data or "").strip()
            log_activity(
                "auth",
                "Password Reset Lookup",
                f"Reset lookup for '{identifier}': {'found' if result.ok else 'not found'}",
            )
            if result.ok:
                reset_form = ResetPasswordForm(formdata=None, identifier=identifier)
                return render_template("auth/reset_password.html", form=reset_form, result=None)

    status = 400 if result is not None and not result.ok else 200
    return render_template("auth/forgot_password.html", form=form, result=result), status
