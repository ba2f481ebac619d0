"""
Tests for registration, credential checks and the password reset flow.
"""
import unittest

from todoapp import create_app, db
from todoapp.models import User
from todoapp.services import identity


def _create_test_app():
    return create_app({
        "TESTING": True,
        "WTF_CSRF_ENABLED": False,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    })


class IdentityTestCase(unittest.TestCase):
    def setUp(self):
        self.app = _create_test_app()
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def _register(self, email="alice@x.com", username="alice", display_name="Alice",
                  password="secret123", confirm_password=None, locale="en"):
        if confirm_password is None:
            confirm_password = password
        return identity.register_user(email, username, display_name, password,
                                      confirm_password, locale=locale)


class TestRegistration(IdentityTestCase):
    def test_register_creates_user(self):
        result = self._register(email="  Alice@X.com ")

        self.assertTrue(result.ok)
        user = db.session.get(User, result["user_id"])
        self.assertEqual(user.email, "alice@x.com")
        self.assertEqual(user.username, "alice")
        self.assertEqual(user.display_name, "Alice")
        self.assertNotEqual(user.password_hash, "secret123")
        self.assertTrue(user.check_password("secret123"))

    def test_invalid_fields_are_reported_per_field(self):
        result = self._register(email="not-an-email", username="al", display_name="   ",
                                password="12345", confirm_password="54321")

        self.assertFalse(result.ok)
        self.assertEqual(result.errors_for("email"), ["Enter a valid email address."])
        self.assertEqual(result.errors_for("username"),
                         ["Username must be at least 3 characters."])
        self.assertEqual(result.errors_for("display_name"), ["Display name is required."])
        self.assertEqual(result.errors_for("password"),
                         ["Password must be at least 6 characters."])
        self.assertEqual(result.errors_for("confirm_password"), ["Passwords do not match."])
        self.assertEqual(User.query.count(), 0)

    def test_length_limits(self):
        result = self._register(username="u" * 51, display_name="d" * 51)

        self.assertEqual(result.errors_for("username"),
                         ["Username must be 50 characters or less."])
        self.assertEqual(result.errors_for("display_name"),
                         ["Display name must be 50 characters or less."])

    def test_email_longer_than_column_is_rejected(self):
        email = "a" * 60 + "@" + "b" * 60 + ".com"
        result = self._register(email=email)

        self.assertFalse(result.ok)
        self.assertEqual(result.errors_for("email"), ["Email must be 120 characters or less."])
        self.assertEqual(User.query.count(), 0)

    def test_boundary_lengths_accepted(self):
        result = self._register(username="abc", display_name="d" * 50, password="123456")
        self.assertTrue(result.ok)

    def test_email_uniqueness_is_case_insensitive(self):
        self._register()
        result = self._register(email="ALICE@x.com", username="alice2")

        self.assertFalse(result.ok)
        self.assertEqual(result.form_error, "An account with this email already exists.")
        self.assertEqual(User.query.count(), 1)

    def test_username_uniqueness(self):
        self._register()
        result = self._register(email="other@x.com")

        self.assertFalse(result.ok)
        self.assertEqual(result.form_error, "This username is already taken.")

    def test_email_conflict_reported_before_username(self):
        self._register()
        result = self._register()
        self.assertEqual(result.form_error, "An account with this email already exists.")

    def test_messages_in_russian(self):
        result = self._register(username="al", locale="ru")
        self.assertEqual(result.errors_for("username"),
                         ["Имя пользователя должно содержать не менее 3 символов."])


class TestAuthenticate(IdentityTestCase):
    def setUp(self):
        super().setUp()
        self._register()

    def test_by_email_any_case(self):
        user = identity.authenticate("ALICE@x.com", "secret123")
        self.assertIsNotNone(user)
        self.assertEqual(user.username, "alice")

    def test_by_username(self):
        self.assertIsNotNone(identity.authenticate(" alice ", "secret123"))

    def test_username_is_case_sensitive(self):
        self.assertIsNone(identity.authenticate("ALICE", "secret123"))

    def test_wrong_password(self):
        self.assertIsNone(identity.authenticate("alice", "wrong-password"))

    def test_unknown_identifier(self):
        self.assertIsNone(identity.authenticate("nobody", "secret123"))

    def test_short_password_rejected_without_lookup(self):
        self.assertIsNone(identity.authenticate("alice", "123"))

    def test_blank_identifier(self):
        self.assertIsNone(identity.authenticate("   ", "secret123"))


class TestPasswordReset(IdentityTestCase):
    def setUp(self):
        super().setUp()
        self._register()

    def test_find_existing_account(self):
        for identifier in ("alice", "Alice@X.com"):
            result = identity.find_user_for_reset(identifier)
            self.assertTrue(result.ok)
            self.assertEqual(result["step"], "user_found")

    def test_find_unknown_account_is_generic(self):
        result = identity.find_user_for_reset("nobody@x.com")

        self.assertFalse(result.ok)
        self.assertEqual(result.form_error, "No account found.")
        self.assertEqual(result.field_errors, {})

    def test_find_requires_identifier(self):
        result = identity.find_user_for_reset("  ")
        self.assertEqual(result.errors_for("identifier"), ["Enter your email or username."])

    def test_reset_password(self):
        result = identity.reset_password("alice@x.com", "newpass1", "newpass1")

        self.assertTrue(result.ok)
        self.assertEqual(result["step"], "password_changed")
        self.assertIsNone(identity.authenticate("alice", "secret123"))
        self.assertIsNotNone(identity.authenticate("alice", "newpass1"))

    def test_reset_validates_new_password(self):
        result = identity.reset_password("alice", "new", "other")

        self.assertFalse(result.ok)
        self.assertIn("password", result.field_errors)
        self.assertIn("confirm_password", result.field_errors)
        self.assertIsNotNone(identity.authenticate("alice", "secret123"))

    def test_reset_unknown_account(self):
        result = identity.reset_password("nobody", "newpass1", "newpass1")
        self.assertEqual(result.form_error, "No account found.")


class TestSessionIdentity(IdentityTestCase):
    def test_store_and_clear(self):
        user = db.session.get(User, self._register()["user_id"])

        with self.app.test_request_context("/"):
            stored = identity.store_session_identity(user)
            self.assertEqual(stored, {
                "id": user.id,
                "email": "alice@x.com",
                "username": "alice",
                "display_name": "Alice",
                "avatar_url": None,
            })
            self.assertEqual(identity.get_session_identity(), stored)

            identity.clear_session_identity()
            self.assertIsNone(identity.get_session_identity())


if __name__ == "__main__":
    unittest.main()
