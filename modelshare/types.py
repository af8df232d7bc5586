"""
Domain records and helper result types.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

PROFILES_COLLECTION = "profiles"
MODELS_COLLECTION = "models"
DOWNLOADS_COLLECTION = "downloads"

SOCIAL_LINK_FIELDS = ("website", "twitter", "instagram", "github", "linkedin")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Account:
    """Identity issued by the auth service."""

    uid: str
    email: Optional[str] = None
    id_token: Optional[str] = field(default=None, repr=False, compare=False)
    refresh_token: Optional[str] = field(default=None, repr=False, compare=False)

    def as_dict(self) -> dict:
        return {"uid": self.uid, "email": self.email}


@dataclass
class Profile:
    id: str
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    github: Optional[str] = None
    linkedin: Optional[str] = None
    created_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def from_document(cls, doc_id: str, data: dict) -> "Profile":
        known = {k: data.get(k) for k in cls.__dataclass_fields__ if k in data}
        known.pop("id", None)
        if not known.get("created_at"):
            known.pop("created_at", None)
        return cls(id=doc_id, **known)

    def to_document(self) -> dict:
        data = asdict(self)
        data.pop("id")
        return data

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class NewModel:
    """Metadata supplied by the uploader."""

    title: str
    user_id: str
    description: str = ""
    category: str = "other"
    tags: list[str] = field(default_factory=list)
    is_public: bool = True


@dataclass
class Model:
    id: str
    title: str
    user_id: str
    description: str = ""
    category: str = "other"
    tags: list[str] = field(default_factory=list)
    is_public: bool = True
    file_path: Optional[str] = None
    thumbnail_path: Optional[str] = None
    file_size: int = 0
    file_type: Optional[str] = None
    downloads_count: int = 0
    view_count: int = 0
    likes_count: int = 0
    created_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def from_document(cls, doc_id: str, data: dict) -> "Model":
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        known.pop("id", None)
        for counter in ("downloads_count", "view_count", "likes_count", "file_size"):
            if known.get(counter) is None:
                known.pop(counter, None)
        if known.get("tags") is None:
            known.pop("tags", None)
        return cls(id=doc_id, **known)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class DownloadEvent:
    user_id: str
    model_id: str
    created_at: str = field(default_factory=utc_now_iso)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class FilePayload:
    """A file handed over by the UI: original name, bytes and MIME type."""

    name: str
    data: bytes = field(repr=False)
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)


# Helper results. `error` is None on success.


@dataclass
class AccountResult:
    user: Optional[Account] = None
    error: Optional[str] = None


@dataclass
class ProfileResult:
    profile: Optional[Profile] = None
    error: Optional[str] = None


@dataclass
class ModelResult:
    model: Optional[Model] = None
    error: Optional[str] = None


@dataclass
class ModelListResult:
    models: list[Model] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class UploadResult:
    model_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class OperationResult:
    error: Optional[str] = None
