"""
Data access helpers.

Each helper wraps one backend interaction and reduces the outcome to a result
dataclass whose `error` is None on success. Helpers never raise: backend
exceptions are caught here, logged, and returned as a message.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict
from typing import Optional

from modelshare.auth import AuthClient
from modelshare.db import DocumentNotFoundError, DocumentStore
from modelshare.storage import StorageClient
from modelshare.types import (
    DOWNLOADS_COLLECTION,
    MODELS_COLLECTION,
    PROFILES_COLLECTION,
    SOCIAL_LINK_FIELDS,
    AccountResult,
    DownloadEvent,
    FilePayload,
    Model,
    ModelListResult,
    ModelResult,
    NewModel,
    OperationResult,
    Profile,
    ProfileResult,
    UploadResult,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

PROFILE_NOT_FOUND = "Profile not found"
MODEL_NOT_FOUND = "Model not found"
USERNAME_TAKEN = "Username already taken"

DEFAULT_MODELS_COUNT = 20
EDITABLE_PROFILE_FIELDS = frozenset(
    ("username", "display_name", "avatar_url", "bio") + SOCIAL_LINK_FIELDS
)


def _new_profile_document(username: str) -> dict:
    return {"username": username, "avatar_url": None, "created_at": utc_now_iso()}


class DataHelpers:
    """Helpers over the auth, document and blob backends."""

    def __init__(
        self,
        auth: AuthClient,
        db: DocumentStore,
        storage: StorageClient,
        *,
        atomic_download_counter: bool = True,
        unique_blob_paths: bool = False,
    ):
        self.auth = auth
        self.db = db
        self.storage = storage
        self.atomic_download_counter = atomic_download_counter
        self.unique_blob_paths = unique_blob_paths

    # Auth helpers

    def sign_up(self, email: str, password: str, username: str) -> AccountResult:
        try:
            user = self.auth.sign_up(email, password)
            self.db.set(PROFILES_COLLECTION, user.uid, _new_profile_document(username))
            return AccountResult(user=user)
        except Exception as e:
            logger.error("Sign up failed for %s: %s", email, e)
            return AccountResult(error=str(e))

    def sign_in(self, email: str, password: str) -> AccountResult:
        try:
            return AccountResult(user=self.auth.sign_in(email, password))
        except Exception as e:
            logger.error("Sign in failed for %s: %s", email, e)
            return AccountResult(error=str(e))

    def sign_out(self) -> OperationResult:
        try:
            self.auth.sign_out()
            return OperationResult()
        except Exception as e:
            logger.error("Sign out failed: %s", e)
            return OperationResult(error=str(e))

    # Profile helpers

    def get_profile(self, user_id: str) -> ProfileResult:
        try:
            data = self.db.get(PROFILES_COLLECTION, user_id)
            if data is None:
                return ProfileResult(error=PROFILE_NOT_FOUND)
            return ProfileResult(profile=Profile.from_document(user_id, data))
        except Exception as e:
            logger.error("Failed to load profile %s: %s", user_id, e)
            return ProfileResult(error=str(e))

    def get_profile_by_username(self, username: str) -> ProfileResult:
        try:
            matches = self.db.query(
                PROFILES_COLLECTION, where=[("username", username)], limit=1
            )
            if not matches:
                return ProfileResult(error=PROFILE_NOT_FOUND)
            doc_id, data = matches[0]
            return ProfileResult(profile=Profile.from_document(doc_id, data))
        except Exception as e:
            logger.error("Failed to look up username %r: %s", username, e)
            return ProfileResult(error=str(e))

    def ensure_profile(self, user_id: str, username: str) -> ProfileResult:
        """
        Return the profile for `user_id`, writing a default one if absent.

        Read then write, not transactional: concurrent first logins both
        write the same document and the last writer wins.
        """
        try:
            data = self.db.get(PROFILES_COLLECTION, user_id)
            if data is None:
                data = _new_profile_document(username)
                self.db.set(PROFILES_COLLECTION, user_id, data)
            return ProfileResult(profile=Profile.from_document(user_id, data))
        except Exception as e:
            logger.error("Failed to ensure profile %s: %s", user_id, e)
            return ProfileResult(error=str(e))

    def update_profile(self, user_id: str, changes: dict) -> ProfileResult:
        unknown = set(changes) - EDITABLE_PROFILE_FIELDS
        if unknown:
            return ProfileResult(
                error=f"Cannot edit profile fields: {', '.join(sorted(unknown))}"
            )
        try:
            if "username" in changes:
                username = changes["username"]
                if not username or not username.strip():
                    return ProfileResult(error="Username cannot be empty")
                taken = self.db.query(
                    PROFILES_COLLECTION, where=[("username", username)], limit=1
                )
                if taken and taken[0][0] != user_id:
                    return ProfileResult(error=USERNAME_TAKEN)
            self.db.update(PROFILES_COLLECTION, user_id, dict(changes))
        except DocumentNotFoundError:
            return ProfileResult(error=PROFILE_NOT_FOUND)
        except Exception as e:
            logger.error("Failed to update profile %s: %s", user_id, e)
            return ProfileResult(error=str(e))
        return self.get_profile(user_id)

    # Model helpers

    def get_models(self, count: int = DEFAULT_MODELS_COUNT) -> ModelListResult:
        """
        Public models among the `count` most recent uploads.

        Visibility is filtered after the fetch to avoid a composite index, so
        fewer than `count` models may come back.
        """
        try:
            docs = self.db.query(
                MODELS_COLLECTION, order_by="created_at", descending=True, limit=count
            )
            models = [
                Model.from_document(doc_id, data)
                for doc_id, data in docs
                if data.get("is_public") is True
            ]
            return ModelListResult(models=models)
        except Exception as e:
            logger.error("Failed to list models: %s", e)
            return ModelListResult(error=str(e))

    def get_model_by_id(self, model_id: str) -> ModelResult:
        try:
            data = self.db.get(MODELS_COLLECTION, model_id)
            if data is None:
                return ModelResult(error=MODEL_NOT_FOUND)
            return ModelResult(model=Model.from_document(model_id, data))
        except Exception as e:
            logger.error("Failed to load model %s: %s", model_id, e)
            return ModelResult(error=str(e))

    def get_user_models(self, user_id: str) -> ModelListResult:
        try:
            docs = self.db.query(
                MODELS_COLLECTION,
                where=[("user_id", user_id)],
                order_by="created_at",
                descending=True,
            )
            return ModelListResult(
                models=[Model.from_document(doc_id, data) for doc_id, data in docs]
            )
        except Exception as e:
            logger.error("Failed to list models for %s: %s", user_id, e)
            return ModelListResult(error=str(e))

    def _blob_path(self, namespace: str, filename: str) -> str:
        if self.unique_blob_paths:
            return f"{namespace}/{uuid.uuid4().hex}_{filename}"
        return f"{namespace}/{filename}"

    def upload_model(
        self, new_model: NewModel, file: FilePayload, thumbnail: FilePayload
    ) -> UploadResult:
        """
        Store the model file, then the thumbnail, then the model document.

        The steps are not transactional; a failed document write leaves the
        uploaded blobs behind.
        """
        try:
            file_url = self.storage.upload_bytes(
                self._blob_path("models", file.name), file.data, file.content_type
            )
            thumbnail_url = self.storage.upload_bytes(
                self._blob_path("thumbnails", thumbnail.name),
                thumbnail.data,
                thumbnail.content_type,
            )
            document = {
                **asdict(new_model),
                "file_path": file_url,
                "thumbnail_path": thumbnail_url,
                "file_size": file.size,
                "file_type": file.content_type,
                "downloads_count": 0,
                "created_at": utc_now_iso(),
            }
            model_id = self.db.add(MODELS_COLLECTION, document)
            logger.info("Uploaded model %s (%s)", model_id, new_model.title)
            return UploadResult(model_id=model_id)
        except Exception as e:
            logger.error("Failed to upload model %r: %s", new_model.title, e)
            return UploadResult(error=str(e))

    # Download helpers

    def record_download(self, user_id: Optional[str], model_id: str) -> OperationResult:
        """
        Append a download event and bump the model's download counter.

        With `atomic_download_counter` disabled the counter is read and
        written back, so concurrent downloads can lose increments.
        """
        try:
            self.db.add(DOWNLOADS_COLLECTION, DownloadEvent(user_id, model_id).as_dict())
            if self.atomic_download_counter:
                try:
                    self.db.increment(MODELS_COLLECTION, model_id, "downloads_count")
                except DocumentNotFoundError:
                    logger.warning("Download recorded for missing model %s", model_id)
            else:
                data = self.db.get(MODELS_COLLECTION, model_id)
                if data is not None:
                    current = data.get("downloads_count") or 0
                    self.db.update(
                        MODELS_COLLECTION, model_id, {"downloads_count": current + 1}
                    )
            return OperationResult()
        except Exception as e:
            logger.error("Failed to record download of %s: %s", model_id, e)
            return OperationResult(error=str(e))
