"""
Tests for the login, registration, logout and password reset pages.
"""
import unittest

from todoapp import create_app, db
from todoapp.models import User, LogEntry


def _create_test_app():
    return create_app({
        "TESTING": True,
        "WTF_CSRF_ENABLED": False,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    })


class AuthRoutesTestCase(unittest.TestCase):
    def setUp(self):
        self.app = _create_test_app()
        self.client = self.app.test_client()
        with self.app.app_context():
            db.create_all()
            user = User(email="alice@x.com", username="alice", display_name="Alice")
            user.set_password("secret123")
            db.session.add(user)
            db.session.commit()
            self.user_id = user.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()

    def _login(self, identifier="alice", password="secret123", **kwargs):
        return self.client.post("/login", data={"identifier": identifier, "password": password},
                                **kwargs)


class TestRegister(AuthRoutesTestCase):
    def test_register_redirects_to_login(self):
        r = self.client.post("/register", data={
            "email": "bob@y.com",
            "username": "bob",
            "display_name": "Bob",
            "password": "secret123",
            "confirm_password": "secret123",
        })

        self.assertEqual(r.status_code, 302)
        self.assertIn("/login?registered=1", r.headers["Location"])
        with self.app.app_context():
            self.assertIsNotNone(User.query.filter_by(username="bob").first())

    def test_register_does_not_sign_in(self):
        self.client.post("/register", data={
            "email": "bob@y.com",
            "username": "bob",
            "display_name": "Bob",
            "password": "secret123",
            "confirm_password": "secret123",
        })
        r = self.client.get("/todo/")
        self.assertEqual(r.status_code, 302)

    def test_register_duplicate_email_shows_error(self):
        r = self.client.post("/register", data={
            "email": "ALICE@x.com",
            "username": "alice2",
            "display_name": "Alice",
            "password": "secret123",
            "confirm_password": "secret123",
        })

        self.assertEqual(r.status_code, 400)
        self.assertIn("An account with this email already exists.", r.get_data(as_text=True))

    def test_register_field_errors(self):
        r = self.client.post("/register", data={
            "email": "bob@y.com",
            "username": "bo",
            "display_name": "Bob",
            "password": "secret123",
            "confirm_password": "different",
        })

        self.assertEqual(r.status_code, 400)
        body = r.get_data(as_text=True)
        self.assertIn("Username must be at least 3 characters.", body)
        self.assertIn("Passwords do not match.", body)


class TestLogin(AuthRoutesTestCase):
    def test_login_by_username(self):
        r = self._login()
        self.assertEqual(r.status_code, 302)
        self.assertTrue(r.headers["Location"].endswith("/todo/"))

        with self.client.session_transaction() as sess:
            self.assertEqual(sess["identity"]["username"], "alice")
            self.assertEqual(sess["identity"]["email"], "alice@x.com")

    def test_login_by_email(self):
        r = self._login(identifier="Alice@X.com")
        self.assertEqual(r.status_code, 302)

    def test_login_failure_is_generic(self):
        r = self._login(password="wrong-password")

        self.assertEqual(r.status_code, 200)
        self.assertIn("Invalid email/username or password.", r.get_data(as_text=True))
        with self.client.session_transaction() as sess:
            self.assertNotIn("identity", sess)
        with self.app.app_context():
            self.assertEqual(LogEntry.query.filter_by(category="Failed Login").count(), 1)

    def test_login_follows_local_next(self):
        r = self.client.post("/login?next=/profile",
                             data={"identifier": "alice", "password": "secret123"})
        self.assertTrue(r.headers["Location"].endswith("/profile"))

    def test_login_ignores_external_next(self):
        r = self.client.post("/login?next=http://evil.example/",
                             data={"identifier": "alice", "password": "secret123"})
        self.assertTrue(r.headers["Location"].endswith("/todo/"))

    def test_logged_in_user_skips_login_page(self):
        self._login()
        r = self.client.get("/login")
        self.assertEqual(r.status_code, 302)

    def test_logout_clears_identity(self):
        self._login()
        r = self.client.get("/logout", follow_redirects=True)

        self.assertIn("You have been logged out.", r.get_data(as_text=True))
        with self.client.session_transaction() as sess:
            self.assertNotIn("identity", sess)
        self.assertEqual(self.client.get("/todo/").status_code, 302)


class TestUnauthenticated(AuthRoutesTestCase):
    def test_page_redirects_to_login_with_next(self):
        r = self.client.get("/profile")
        self.assertEqual(r.status_code, 302)
        self.assertIn("/login?next=", r.headers["Location"])
        self.assertIn("profile", r.headers["Location"])

    def test_json_request_gets_401(self):
        r = self.client.post("/todo/api/1/toggle", json={"completed": True})

        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.get_json(), {"ok": False, "form_error": "Please log in to continue."})

    def test_root_redirects(self):
        r = self.client.get("/")
        self.assertIn("/login", r.headers["Location"])

        self._login()
        r = self.client.get("/")
        self.assertIn("/todo/", r.headers["Location"])


class TestForgotPassword(AuthRoutesTestCase):
    def test_find_step_shows_reset_form(self):
        r = self.client.post("/forgot-password", data={"step": "find", "identifier": "alice"})

        self.assertEqual(r.status_code, 200)
        body = r.get_data(as_text=True)
        self.assertIn('name="step"', body)
        self.assertIn('value="reset"', body)
        self.assertIn('value="alice"', body)

    def test_find_unknown_account(self):
        r = self.client.post("/forgot-password", data={"step": "find", "identifier": "nobody"})

        self.assertEqual(r.status_code, 400)
        self.assertIn("No account found.", r.get_data(as_text=True))

    def test_reset_step_changes_password(self):
        r = self.client.post("/forgot-password", data={
            "step": "reset",
            "identifier": "alice",
            "password": "newpass1",
            "confirm_password": "newpass1",
        })

        self.assertEqual(r.status_code, 302)
        self.assertIn("/login?passwordReset=1", r.headers["Location"])
        self.assertEqual(self._login(password="secret123").status_code, 200)
        self.assertEqual(self._login(password="newpass1").status_code, 302)

    def test_reset_step_validation(self):
        r = self.client.post("/forgot-password", data={
            "step": "reset",
            "identifier": "alice",
            "password": "newpass1",
            "confirm_password": "newpass2",
        })

        self.assertEqual(r.status_code, 400)
        self.assertIn("Passwords do not match.", r.get_data(as_text=True))


class TestLanguage(AuthRoutesTestCase):
    def test_switch_to_russian(self):
        self.client.get("/language/ru")
        r = self.client.get("/login")
        self.assertIn("Вход", r.get_data(as_text=True))

        with self.client.session_transaction() as sess:
            self.assertEqual(sess["locale"], "ru")

    def test_unsupported_language_ignored(self):
        self.client.get("/language/de")
        with self.client.session_transaction() as sess:
            self.assertNotIn("locale", sess)

    def test_accept_language_header(self):
        r = self.client.get("/login", headers={"Accept-Language": "ru-RU,ru;q=0.9"})
        self.assertIn("Вход", r.get_data(as_text=True))

    def test_login_error_in_russian(self):
        self.client.get("/language/ru")
        r = self._login(password="wrong-password")
        self.assertIn("Неверный email/имя пользователя или пароль.", r.get_data(as_text=True))


if __name__ == "__main__":
    unittest.main()
