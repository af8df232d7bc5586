"""
HTTP routes the single-page UI calls.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from modelshare import catalog
from modelshare.dependencies import get_helpers, get_session_manager, get_storage_client
from modelshare.helpers import MODEL_NOT_FOUND, PROFILE_NOT_FOUND, USERNAME_TAKEN, DataHelpers
from modelshare.schemas import (
    AuthStatusResponse,
    DashboardResponse,
    DownloadResponse,
    LoginRequest,
    ModelDetailResponse,
    ModelListResponse,
    ModelSchema,
    ProfilePageResponse,
    ProfileSchema,
    ProfileUpdateRequest,
    SessionResponse,
    SignupRequest,
    SignUrlResponse,
    UploadResponse,
)
from modelshare.session import SessionManager, SessionResult
from modelshare.storage import StorageClient
from modelshare.types import Account, FilePayload, Model, NewModel
from modelshare.validation import parse_tags, validate_signup, validate_upload

logger = logging.getLogger(__name__)

router = APIRouter()

EXPLORE_FETCH_COUNT = 50
RELATED_FETCH_COUNT = 4


def _model_schemas(models: list[Model]) -> list[ModelSchema]:
    return [ModelSchema(**m.as_dict()) for m in models]


def _raise_for_error(error: str) -> None:
    if error in (MODEL_NOT_FOUND, PROFILE_NOT_FOUND):
        raise HTTPException(status_code=404, detail=error)
    raise HTTPException(status_code=502, detail=error)


def _require_user(session: SessionManager) -> Account:
    user = session.user
    if user is None:
        raise HTTPException(status_code=401, detail="You must be logged in")
    return user


def _session_response(result: SessionResult) -> SessionResponse:
    profile = ProfileSchema(**result.profile.as_dict()) if result.profile else None
    return SessionResponse(success=result.success, error=result.error, profile=profile)


# Models


@router.get("/models", response_model=ModelListResponse)
def list_models(
    count: int = Query(20, ge=1, le=100),
    helpers: DataHelpers = Depends(get_helpers),
):
    result = helpers.get_models(count)
    if result.error:
        _raise_for_error(result.error)
    return ModelListResponse(models=_model_schemas(result.models))


@router.get("/models/explore", response_model=ModelListResponse)
def explore_models(
    query: str = Query(""),
    category: str = Query(catalog.ALL_CATEGORIES),
    sort_by: str = Query("newest"),
    helpers: DataHelpers = Depends(get_helpers),
):
    result = helpers.get_models(EXPLORE_FETCH_COUNT)
    if result.error:
        _raise_for_error(result.error)
    models = catalog.explore(result.models, query, category, sort_by)
    return ModelListResponse(models=_model_schemas(models))


@router.get("/models/{model_id}", response_model=ModelDetailResponse)
def model_detail(model_id: str, helpers: DataHelpers = Depends(get_helpers)):
    result = helpers.get_model_by_id(model_id)
    if result.error:
        _raise_for_error(result.error)
    related: list[Model] = []
    if result.model.category:
        recent = helpers.get_models(RELATED_FETCH_COUNT)
        related = catalog.related_models(recent.models, result.model)
    return ModelDetailResponse(
        model=ModelSchema(**result.model.as_dict()),
        file_size_label=catalog.format_file_size(result.model.file_size),
        related=_model_schemas(related),
    )


@router.post("/models", response_model=UploadResponse, status_code=201)
async def upload_model(
    title: str = Form(""),
    description: str = Form(""),
    category: str = Form("other"),
    tags: str = Form(""),
    is_public: bool = Form(True),
    file: UploadFile | None = File(None),
    thumbnail: UploadFile | None = File(None),
    session: SessionManager = Depends(get_session_manager),
    helpers: DataHelpers = Depends(get_helpers),
):
    user = session.user
    file_payload = None
    if file is not None and file.filename:
        file_payload = FilePayload(
            name=file.filename,
            data=await file.read(),
            content_type=file.content_type or "application/octet-stream",
        )
    thumbnail_payload = None
    if thumbnail is not None and thumbnail.filename:
        thumbnail_payload = FilePayload(
            name=thumbnail.filename,
            data=await thumbnail.read(),
            content_type=thumbnail.content_type or "application/octet-stream",
        )

    error = validate_upload(
        user.uid if user else None, title, file_payload, thumbnail_payload
    )
    if error:
        status_code = 401 if user is None else 400
        raise HTTPException(status_code=status_code, detail=error)

    new_model = NewModel(
        title=title.strip(),
        description=description.strip(),
        category=category,
        tags=parse_tags(tags),
        user_id=user.uid,
        is_public=is_public,
    )
    result = helpers.upload_model(new_model, file_payload, thumbnail_payload)
    if result.error:
        _raise_for_error(result.error)
    return UploadResponse(model_id=result.model_id)


@router.post("/models/{model_id}/download", response_model=DownloadResponse)
def download_model(
    model_id: str,
    session: SessionManager = Depends(get_session_manager),
    helpers: DataHelpers = Depends(get_helpers),
):
    user = _require_user(session)
    found = helpers.get_model_by_id(model_id)
    if found.error:
        _raise_for_error(found.error)
    recorded = helpers.record_download(user.uid, model_id)
    if recorded.error:
        _raise_for_error(recorded.error)
    refreshed = helpers.get_model_by_id(model_id)
    model = refreshed.model or found.model
    return DownloadResponse(
        model_id=model_id,
        file_path=model.file_path,
        downloads_count=model.downloads_count,
    )


@router.get("/users/{user_id}/models", response_model=ModelListResponse)
def user_models(user_id: str, helpers: DataHelpers = Depends(get_helpers)):
    result = helpers.get_user_models(user_id)
    if result.error:
        _raise_for_error(result.error)
    return ModelListResponse(models=_model_schemas(result.models))


# Profiles


@router.get("/profiles/{username}", response_model=ProfilePageResponse)
def profile_page(username: str, helpers: DataHelpers = Depends(get_helpers)):
    found = helpers.get_profile_by_username(username)
    if found.error:
        _raise_for_error(found.error)
    models = helpers.get_user_models(found.profile.id)
    if models.error:
        logger.error("Error fetching user models: %s", models.error)
    stats = catalog.profile_stats(models.models)
    return ProfilePageResponse(
        profile=ProfileSchema(**found.profile.as_dict()),
        models=_model_schemas(models.models),
        stats=stats.as_dict(),
    )


@router.patch("/profile", response_model=ProfileSchema)
def edit_profile(
    payload: ProfileUpdateRequest,
    session: SessionManager = Depends(get_session_manager),
    helpers: DataHelpers = Depends(get_helpers),
):
    user = _require_user(session)
    changes = payload.model_dump(exclude_unset=True)
    result = helpers.update_profile(user.uid, changes)
    if result.error == USERNAME_TAKEN:
        raise HTTPException(status_code=409, detail=result.error)
    if result.error:
        _raise_for_error(result.error)
    session.refresh_profile()
    return ProfileSchema(**result.profile.as_dict())


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    search: str = Query(""),
    session: SessionManager = Depends(get_session_manager),
    helpers: DataHelpers = Depends(get_helpers),
):
    user = _require_user(session)
    result = helpers.get_user_models(user.uid)
    if result.error:
        raise HTTPException(status_code=502, detail="Failed to load your models")
    models = catalog.search_models(result.models, search) if search else result.models
    return DashboardResponse(
        models=_model_schemas(models),
        stats=catalog.dashboard_stats(result.models).as_dict(),
        recent_activity=catalog.recent_activity(result.models),
    )


# Session


@router.post("/auth/login", response_model=SessionResponse)
def login(payload: LoginRequest, session: SessionManager = Depends(get_session_manager)):
    result = session.login(payload.email, payload.password)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error or "Login failed")
    return _session_response(result)


@router.post("/auth/signup", response_model=SessionResponse, status_code=201)
def signup(
    payload: SignupRequest, session: SessionManager = Depends(get_session_manager)
):
    error = validate_signup(payload.password, payload.confirm_password, payload.username)
    if error:
        raise HTTPException(status_code=400, detail=error)
    result = session.signup(payload.email, payload.password, payload.username)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error or "Signup failed")
    return _session_response(result)


@router.post("/auth/logout", response_model=SessionResponse)
def logout(session: SessionManager = Depends(get_session_manager)):
    result = session.logout()
    if not result.success:
        raise HTTPException(status_code=502, detail=result.error)
    return _session_response(result)


@router.post("/auth/refresh", response_model=SessionResponse)
def refresh(session: SessionManager = Depends(get_session_manager)):
    return _session_response(session.refresh_auth())


@router.post("/auth/profile", response_model=SessionResponse)
def create_profile(session: SessionManager = Depends(get_session_manager)):
    result = session.create_profile()
    if not result.success:
        status_code = 401 if session.user is None else 502
        raise HTTPException(status_code=status_code, detail=result.error)
    return _session_response(result)


@router.get("/auth/status", response_model=AuthStatusResponse)
def auth_status(session: SessionManager = Depends(get_session_manager)):
    return AuthStatusResponse(**session.status())


# Files


@router.get("/sign-url", response_model=SignUrlResponse)
def sign_url(
    path: str = Query(..., description="Object path in storage"),
    expires_in: int = Query(3600, ge=60, le=7 * 24 * 3600),
    storage: StorageClient = Depends(get_storage_client),
):
    try:
        url = storage.presign_get(path, expires_in=expires_in)
    except Exception as e:
        logger.error("Failed to sign %s: %s", path, e)
        raise HTTPException(status_code=502, detail=str(e))
    return SignUrlResponse(url=url)
