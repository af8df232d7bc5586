"""
Storage abstraction for Firebase Cloud Storage, S3-compatible buckets and in-memory testing.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Protocol
from urllib.parse import quote

import boto3
from botocore.config import Config
from firebase_admin import storage as firebase_storage

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class StorageClient(Protocol):
    """Defines the operations the helpers need from object storage."""

    def upload_bytes(
        self, path: str, data: bytes, content_type: Optional[str] = None
    ) -> str:
        """Store `data` at `path` and return a retrieval URL."""
        ...

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = None
    content_types: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}
        if self.content_types is None:
            self.content_types = {}

    def upload_bytes(
        self, path: str, data: bytes, content_type: Optional[str] = None
    ) -> str:
        self.stored_objects[path] = bytes(data)
        self.content_types[path] = content_type or DEFAULT_CONTENT_TYPE
        return f"{self.base_url}/{path}"

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        return f"{self.base_url}/{path}?op=get&expires={expires_in}"


class FirebaseStorageClient:
    """
    Cloud Storage bucket of a Firebase project.

    Uploaded objects get a Firebase download token so the returned URL works
    the same way as one produced by the web SDK's getDownloadURL().
    """

    DOWNLOAD_URL_TEMPLATE = (
        "https://firebasestorage.googleapis.com/v0/b/{bucket}/o/{path}"
        "?alt=media&token={token}"
    )

    def __init__(self, bucket_name: Optional[str] = None, bucket=None):
        # Lazily created bucket handle (reused across uploads)
        self.bucket_name = bucket_name
        self._bucket = bucket

    @property
    def bucket(self):
        if self._bucket is None:
            self._bucket = firebase_storage.bucket(self.bucket_name)
        return self._bucket

    def upload_bytes(
        self, path: str, data: bytes, content_type: Optional[str] = None
    ) -> str:
        token = uuid.uuid4().hex
        blob = self.bucket.blob(path)
        blob.metadata = {"firebaseStorageDownloadTokens": token}
        blob.upload_from_string(data, content_type=content_type or DEFAULT_CONTENT_TYPE)
        return self.DOWNLOAD_URL_TEMPLATE.format(
            bucket=self.bucket.name, path=quote(path, safe=""), token=token
        )

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        blob = self.bucket.blob(path)
        return blob.generate_signed_url(expiration=timedelta(seconds=expires_in))


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client. Retrieval references are presigned GET URLs.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    url_expires_in: int = 7 * 24 * 3600

    def __post_init__(self):
        # Use virtual-hosted style addressing for S3-compatible providers.
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def upload_bytes(
        self, path: str, data: bytes, content_type: Optional[str] = None
    ) -> str:
        self._client.put_object(
            Bucket=self.bucket,
            Key=path,
            Body=data,
            ContentType=content_type or DEFAULT_CONTENT_TYPE,
        )
        return self.presign_get(path, expires_in=self.url_expires_in)

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": path},
            ExpiresIn=expires_in,
        )
