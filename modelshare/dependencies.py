"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials

from modelshare.auth import AuthClient, FirebaseAuthClient, InMemoryAuthClient
from modelshare.config import get_settings
from modelshare.db import (
    DocumentStore,
    FirestoreDocumentStore,
    InMemoryDocumentStore,
    SqlDocumentStore,
)
from modelshare.helpers import DataHelpers
from modelshare.session import SessionManager
from modelshare.storage import (
    FirebaseStorageClient,
    InMemoryStorageClient,
    S3StorageClient,
    StorageClient,
)

logger = logging.getLogger(__name__)

_db_client: DocumentStore | None = None
_storage_client: StorageClient | None = None
_auth_client: AuthClient | None = None
_helpers: DataHelpers | None = None
_session_manager: SessionManager | None = None


def get_firebase_app() -> firebase_admin.App:
    """Return the default firebase_admin app, initializing it once."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    settings = get_settings()
    credential = (
        credentials.Certificate(settings.firebase_credentials_path)
        if settings.firebase_credentials_path
        else None
    )
    options = {}
    if settings.firebase_project_id:
        options["projectId"] = settings.firebase_project_id
    if settings.firebase_storage_bucket:
        options["storageBucket"] = settings.firebase_storage_bucket
    return firebase_admin.initialize_app(credential, options)


def get_db_client() -> DocumentStore:
    """
    Return a singleton document store so state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _db_client = InMemoryDocumentStore()
    elif settings.firebase_project_id:
        get_firebase_app()
        _db_client = FirestoreDocumentStore()
    elif settings.database_url:
        _db_client = SqlDocumentStore(settings.database_url)
    else:
        _db_client = InMemoryDocumentStore()
    logger.info("Document store: %s", type(_db_client).__name__)
    return _db_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _storage_client = InMemoryStorageClient()
    elif settings.firebase_storage_bucket:
        get_firebase_app()
        _storage_client = FirebaseStorageClient(settings.firebase_storage_bucket)
    elif settings.s3_bucket:
        _storage_client = S3StorageClient(
            bucket=settings.s3_bucket,
            region=settings.s3_region or "",
            endpoint=settings.s3_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            url_expires_in=settings.signed_url_expires_in,
        )
    else:
        _storage_client = InMemoryStorageClient()
    logger.info("Storage client: %s", type(_storage_client).__name__)
    return _storage_client


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.firebase_api_key:
        _auth_client = InMemoryAuthClient()
    else:
        _auth_client = FirebaseAuthClient(
            settings.firebase_api_key,
            refresh_token=settings.firebase_refresh_token,
        )
    return _auth_client


def get_helpers() -> DataHelpers:
    global _helpers
    if _helpers:
        return _helpers

    settings = get_settings()
    _helpers = DataHelpers(
        get_auth_client(),
        get_db_client(),
        get_storage_client(),
        atomic_download_counter=settings.atomic_download_counter,
        unique_blob_paths=settings.unique_blob_paths,
    )
    return _helpers


def get_session_manager() -> SessionManager:
    """
    Return the process-wide session, started on first use.
    """
    global _session_manager
    if _session_manager:
        return _session_manager

    settings = get_settings()
    _session_manager = SessionManager(
        get_auth_client(),
        get_helpers(),
        init_timeout_seconds=settings.session_init_timeout_seconds,
    )
    _session_manager.start()
    return _session_manager


def shutdown() -> None:
    """Stop the session and drop all singletons."""
    global _db_client, _storage_client, _auth_client, _helpers, _session_manager
    if _session_manager:
        _session_manager.close()
    _db_client = None
    _storage_client = None
    _auth_client = None
    _helpers = None
    _session_manager = None
