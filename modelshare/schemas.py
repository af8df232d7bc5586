"""
Pydantic schemas for the FastAPI surface.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProfileSchema(BaseModel):
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
    created_at: Optional[str] = None


class ModelSchema(BaseModel):
    id: str
    title: str
    user_id: str
    description: str = ""
    category: str = "other"
    tags: list[str] = Field(default_factory=list)
    is_public: bool = True
    file_path: Optional[str] = None
    thumbnail_path: Optional[str] = None
    file_size: int = 0
    file_type: Optional[str] = None
    downloads_count: int = 0
    view_count: int = 0
    likes_count: int = 0
    created_at: Optional[str] = None


class ModelListResponse(BaseModel):
    models: list[ModelSchema]


class ModelDetailResponse(BaseModel):
    model: ModelSchema
    file_size_label: str
    related: list[ModelSchema]


class UploadResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str


class DownloadResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    file_path: Optional[str] = None
    downloads_count: int


class ProfileStatsSchema(BaseModel):
    downloads: int
    views: int
    models: int


class ProfilePageResponse(BaseModel):
    profile: ProfileSchema
    models: list[ModelSchema]
    stats: ProfileStatsSchema


class ProfileUpdateRequest(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3)
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=1024)
    website: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    github: Optional[str] = None
    linkedin: Optional[str] = None


class ModelStatsSchema(BaseModel):
    downloads: int
    views: int
    likes: int


class ActivitySchema(BaseModel):
    id: str
    type: str
    title: str
    date: Optional[str] = None


class DashboardResponse(BaseModel):
    models: list[ModelSchema]
    stats: ModelStatsSchema
    recent_activity: list[ActivitySchema]


class LoginRequest(BaseModel):
    email: str
    password: str


class SignupRequest(BaseModel):
    email: str
    password: str
    confirm_password: Optional[str] = None
    username: str


class SessionResponse(BaseModel):
    success: bool
    error: Optional[str] = None
    profile: Optional[ProfileSchema] = None


class AuthStatusResponse(BaseModel):
    user: bool
    profile: bool
    loading: bool
    user_id: Optional[str] = None
    state: str


class SignUrlResponse(BaseModel):
    url: str
