"""
Tests for avatar file naming and storage, and the prune-avatars command.
"""
import os
import shutil
import tempfile
import time
import unittest

from todoapp import create_app, db
from todoapp.models import User
from todoapp.utils import avatar_storage
from todoapp.core.commands import find_orphaned_avatars


def _create_test_app(upload_folder):
    return create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "AVATAR_UPLOAD_FOLDER": upload_folder,
    })


class TestFileNaming(unittest.TestCase):
    def test_extension_from_filename(self):
        self.assertEqual(avatar_storage.get_file_extension("Me.PNG", "image/jpeg"), "png")
        self.assertEqual(avatar_storage.get_file_extension("photo.webp"), "webp")

    def test_extension_from_mimetype(self):
        self.assertEqual(avatar_storage.get_file_extension("avatar", "image/gif"), "gif")
        self.assertEqual(avatar_storage.get_file_extension("archive.tar", "image/svg+xml"), "svg")

    def test_extension_default(self):
        self.assertEqual(avatar_storage.get_file_extension(None), "jpg")
        self.assertEqual(avatar_storage.get_file_extension("x.bmp", "image/bmp"), "jpg")

    def test_build_filename(self):
        self.assertEqual(avatar_storage.build_avatar_filename(7, "png", 1700000000000),
                         "7-1700000000000.png")
        self.assertRegex(avatar_storage.build_avatar_filename(7, "jpg"), r"^7-\d+\.jpg$")


class AvatarFolderTestCase(unittest.TestCase):
    def setUp(self):
        self.upload_folder = tempfile.mkdtemp()
        self.app = _create_test_app(self.upload_folder)
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()
        shutil.rmtree(self.upload_folder, ignore_errors=True)

    def _touch(self, name, age_seconds=0):
        with open(os.path.join(self.upload_folder, name), "wb") as f:
            f.write(b"img")
        if age_seconds:
            then = time.time() - age_seconds
            os.utime(os.path.join(self.upload_folder, name), (then, then))


class TestStorage(AvatarFolderTestCase):
    def test_is_local_avatar(self):
        self.assertTrue(avatar_storage.is_local_avatar("/static/avatars/1-1.png"))
        self.assertFalse(avatar_storage.is_local_avatar("https://cdn.x.com/1.png"))
        self.assertFalse(avatar_storage.is_local_avatar(None))

    def test_avatar_path_stays_in_folder(self):
        path = avatar_storage.avatar_path("/static/avatars/../../config.py")
        self.assertEqual(path, os.path.join(self.upload_folder, "config.py"))
        self.assertIsNone(avatar_storage.avatar_path("https://cdn.x.com/1.png"))

    def test_save_and_delete(self):
        url = avatar_storage.save_avatar(3, b"img", "me.gif", "image/gif")

        self.assertTrue(url.startswith("/static/avatars/3-"))
        self.assertTrue(url.endswith(".gif"))
        self.assertEqual(avatar_storage.list_avatar_files(), [url.rsplit("/", 1)[1]])

        self.assertTrue(avatar_storage.delete_avatar(url))
        self.assertEqual(avatar_storage.list_avatar_files(), [])
        self.assertFalse(avatar_storage.delete_avatar(url))

    def test_delete_external_is_noop(self):
        self.assertFalse(avatar_storage.delete_avatar("https://cdn.x.com/1.png"))


class TestPruneAvatars(AvatarFolderTestCase):
    def setUp(self):
        super().setUp()
        user = User(email="alice@x.com", username="alice", display_name="Alice",
                    avatar_url="/static/avatars/1-200.png")
        user.set_password("secret123")
        db.session.add(user)
        db.session.commit()

        self._touch("1-100.png", age_seconds=3600)
        self._touch("1-200.png", age_seconds=3600)
        self._touch(".gitkeep")

    def test_find_orphaned(self):
        self.assertEqual(find_orphaned_avatars(), ["1-100.png"])

    def test_dry_run_keeps_files(self):
        result = self.app.test_cli_runner().invoke(args=["prune-avatars", "--dry-run"])

        self.assertEqual(result.exit_code, 0)
        self.assertIn("1-100.png", result.output)
        self.assertIn("1 orphaned avatar file(s) would be deleted.", result.output)
        self.assertIn("1-100.png", os.listdir(self.upload_folder))

    def test_prune_deletes_orphans(self):
        result = self.app.test_cli_runner().invoke(args=["prune-avatars"])

        self.assertEqual(result.exit_code, 0)
        self.assertIn("Deleted 1 of 1 orphaned avatar file(s).", result.output)
        remaining = os.listdir(self.upload_folder)
        self.assertNotIn("1-100.png", remaining)
        self.assertIn("1-200.png", remaining)

    def test_recent_files_are_kept(self):
        self._touch("1-300.png")

        self.assertEqual(find_orphaned_avatars(), ["1-100.png"])
        self.assertEqual(find_orphaned_avatars(min_age_seconds=0), ["1-100.png", "1-300.png"])

        result = self.app.test_cli_runner().invoke(args=["prune-avatars"])
        self.assertIn("Deleted 1 of 1 orphaned avatar file(s).", result.output)
        self.assertIn("1-300.png", os.listdir(self.upload_folder))

    def test_min_age_option(self):
        self._touch("1-300.png")
        result = self.app.test_cli_runner().invoke(args=["prune-avatars", "--min-age", "0"])

        self.assertEqual(result.exit_code, 0)
        self.assertNotIn("1-300.png", os.listdir(self.upload_folder))


if __name__ == "__main__":
    unittest.main()
