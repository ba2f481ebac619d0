from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import login_required, current_user

from todoapp.forms import ProfileForm
from todoapp.core.i18n import get_locale, translate
from todoapp.services import identity
from todoapp.services.profile import update_profile
from todoapp.utils.logging import log_activity

profile_bp = Blueprint("profile", __name__)


@profile_bp.route("/profile", methods=["GET", "POST"])
@login_required
def index():
    locale = get_locale()
    form = ProfileForm()
    result = None

    if request.method == "POST":
        if not form.validate_on_submit():
            flash(translate(locale, "errors.invalid_form"), "error")
            return redirect(url_for("profile.index"))

        upload = form.avatar_file.data
        avatar_data = upload.read() if upload and upload.filename else None

        result = update_profile(
            current_user.id,
            display_name=form.display_name.data,
            avatar_data=avatar_data,
            avatar_mimetype=upload.mimetype if avatar_data else None,
            avatar_filename=upload.filename if avatar_data else None,
            avatar_url=form.avatar_url.data,
            remove_avatar=form.remove_avatar.data,
            locale=locale,
        )

        if result.ok:
            # Keep the session payload in step with the stored profile
            identity.store_session_identity(current_user)
            if result["changed"]:
                log_activity(
                    "profile",
                    "Update Profile",
                    f"{current_user.email} updated their profile",
                    actor_id=current_user.id,
                )
                flash(translate(locale, "profile.flash.updated"), "success")
            else:
                flash(translate(locale, "profile.flash.no_changes"), "info")
            return redirect(url_for("profile.index"))

    status = 400 if result is not None and not result.ok else 200
    return render_template("profile/index.html", form=form, result=result), status
