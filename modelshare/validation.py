"""
Input checks that run before any backend call.

Each check returns the message shown inline in the form, or None when the
input is acceptable.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Optional

from modelshare.types import FilePayload

MODEL_FILE_EXTENSIONS = (
    ".obj",
    ".fbx",
    ".dae",
    ".blend",
    ".3ds",
    ".max",
    ".c4d",
    ".ma",
    ".mb",
    ".lwo",
    ".lws",
    ".ply",
    ".stl",
    ".wrl",
    ".x3d",
)
MAX_MODEL_FILE_BYTES = 100 * 1024 * 1024
MAX_THUMBNAIL_BYTES = 10 * 1024 * 1024
MIN_PASSWORD_LENGTH = 6
MIN_USERNAME_LENGTH = 3


def file_extension(filename: str) -> str:
    return PurePosixPath(filename or "").suffix.lower()


def validate_model_file(file: FilePayload) -> Optional[str]:
    if file_extension(file.name) not in MODEL_FILE_EXTENSIONS:
        return "Invalid file type. Please select a 3D model file."
    if file.size > MAX_MODEL_FILE_BYTES:
        return "File size too large. Maximum size is 100MB."
    return None


def validate_thumbnail(file: FilePayload) -> Optional[str]:
    if not (file.content_type or "").startswith("image/"):
        return "Please select an image file for the thumbnail."
    if file.size > MAX_THUMBNAIL_BYTES:
        return "Thumbnail size too large. Maximum size is 10MB."
    return None


def validate_upload(
    user_id: Optional[str],
    title: str,
    file: Optional[FilePayload],
    thumbnail: Optional[FilePayload],
) -> Optional[str]:
    """Checks in the order the upload form reports them."""
    if not user_id:
        return "You must be logged in to upload models"
    if file is None:
        return "Please select a 3D model file"
    if thumbnail is None:
        return "Please select a thumbnail image"
    if not (title or "").strip():
        return "Please enter a title for your model"
    return validate_model_file(file) or validate_thumbnail(thumbnail)


def validate_signup(
    password: str, confirm_password: Optional[str], username: str
) -> Optional[str]:
    if confirm_password is not None and password != confirm_password:
        return "Passwords do not match"
    if len(password or "") < MIN_PASSWORD_LENGTH:
        return "Password must be at least 6 characters long"
    if len(username or "") < MIN_USERNAME_LENGTH:
        return "Username must be at least 3 characters long"
    return None


def parse_tags(raw: Optional[str]) -> list[str]:
    """Split a comma-separated tag string, dropping blanks."""
    return [tag.strip() for tag in (raw or "").split(",") if tag.strip()]
