import unittest
from unittest.mock import MagicMock

from modelshare.types import FilePayload
from modelshare.validation import (
    file_extension,
    parse_tags,
    validate_model_file,
    validate_signup,
    validate_thumbnail,
    validate_upload,
)

CUBE = FilePayload("cube.obj", b"\0" * 10240, "model/obj")
THUMB = FilePayload("cube.png", b"\0" * 5120, "image/png")


def _sized(name, content_type, size):
    """Stand-in payload reporting a size without allocating it."""
    payload = MagicMock(content_type=content_type, size=size)
    payload.name = name
    return payload


class UploadValidationTests(unittest.TestCase):
    def test_valid_upload(self):
        self.assertIsNone(validate_upload("u1", "Test Cube", CUBE, THUMB))

    def test_checks_run_in_form_order(self):
        self.assertEqual(
            validate_upload(None, "", None, None),
            "You must be logged in to upload models",
        )
        self.assertEqual(
            validate_upload("u1", "", None, None), "Please select a 3D model file"
        )
        self.assertEqual(
            validate_upload("u1", "", CUBE, None), "Please select a thumbnail image"
        )
        self.assertEqual(
            validate_upload("u1", "   ", CUBE, THUMB),
            "Please enter a title for your model",
        )

    def test_model_extension_is_case_insensitive(self):
        self.assertEqual(file_extension("Ship.FBX"), ".fbx")
        self.assertIsNone(validate_model_file(FilePayload("Ship.FBX", b"x")))

    def test_rejects_unknown_model_type(self):
        self.assertEqual(
            validate_model_file(FilePayload("cube.zip", b"x")),
            "Invalid file type. Please select a 3D model file.",
        )
        self.assertEqual(
            validate_model_file(FilePayload("README", b"x")),
            "Invalid file type. Please select a 3D model file.",
        )

    def test_model_size_limit(self):
        self.assertIsNone(
            validate_model_file(_sized("big.stl", "model/stl", 100 * 1024 * 1024))
        )
        self.assertEqual(
            validate_model_file(_sized("big.stl", "model/stl", 100 * 1024 * 1024 + 1)),
            "File size too large. Maximum size is 100MB.",
        )

    def test_thumbnail_must_be_image(self):
        self.assertEqual(
            validate_thumbnail(FilePayload("cube.txt", b"x", "text/plain")),
            "Please select an image file for the thumbnail.",
        )

    def test_thumbnail_size_limit(self):
        self.assertEqual(
            validate_thumbnail(_sized("big.png", "image/png", 10 * 1024 * 1024 + 1)),
            "Thumbnail size too large. Maximum size is 10MB.",
        )

    def test_file_errors_after_form_errors(self):
        bad = FilePayload("cube.zip", b"x")
        self.assertEqual(
            validate_upload("u1", "Cube", bad, THUMB),
            "Invalid file type. Please select a 3D model file.",
        )


class SignupValidationTests(unittest.TestCase):
    def test_valid(self):
        self.assertIsNone(validate_signup("secret1", "secret1", "ada"))
        self.assertIsNone(validate_signup("secret1", None, "ada"))

    def test_password_mismatch(self):
        self.assertEqual(
            validate_signup("secret1", "secret2", "ada"), "Passwords do not match"
        )

    def test_short_password(self):
        self.assertEqual(
            validate_signup("12345", "12345", "ada"),
            "Password must be at least 6 characters long",
        )

    def test_short_username(self):
        self.assertEqual(
            validate_signup("secret1", "secret1", "ad"),
            "Username must be at least 3 characters long",
        )


class ParseTagsTests(unittest.TestCase):
    def test_splits_and_trims(self):
        self.assertEqual(parse_tags("a, b ,c"), ["a", "b", "c"])

    def test_drops_blanks(self):
        self.assertEqual(parse_tags(" , a,,"), ["a"])
        self.assertEqual(parse_tags(""), [])
        self.assertEqual(parse_tags(None), [])


if __name__ == "__main__":
    unittest.main()
