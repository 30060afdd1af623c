"""Pydantic request/response models for REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from blogkit_service.auth.passwords import MIN_PASSWORD_LENGTH

PostFormat = Literal["standard", "video", "gallery", "audio"]
AdPlacement = Literal["sidebar", "header", "in_content", "footer"]


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    name: str
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def name_min_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Name must be at least 3 characters")
        return v

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserSchema(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None
    image: str | None = None


class SessionResponse(BaseModel):
    user: UserSchema | None = None
    roles: list[str] = Field(default_factory=list)
    expires_at: datetime | None = None
    token: str | None = None


class MeRolesResponse(BaseModel):
    roles: list[str] = Field(default_factory=list)
    is_admin: bool = Field(default=False, serialization_alias="isAdmin")


class ProfileSchema(BaseModel):
    user_id: str
    email: str | None = None
    name: str | None = None
    image: str | None = None
    bio: str | None = None
    location: str | None = None
    website: str | None = None
    avatar_url: str | None = None


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    image: str | None = None
    bio: str | None = Field(default=None, max_length=2000)
    location: str | None = Field(default=None, max_length=255)
    website: str | None = Field(default=None, max_length=512)
    avatar_url: str | None = None


class BookmarkSchema(BaseModel):
    post_id: int
    title: str
    slug: str
    created_at: datetime | None = None


class AccountOverview(BaseModel):
    user: UserSchema
    roles: list[str]
    is_admin: bool = Field(serialization_alias="isAdmin")
    comment_count: int
    bookmarks: list[BookmarkSchema]


# ---------------------------------------------------------------------------
# Blog
# ---------------------------------------------------------------------------


class PostSchema(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: str | None = None
    content: str
    image_url: str | None = None
    format: PostFormat = "standard"
    video_url: str | None = None
    audio_url: str | None = None
    gallery_images: list[str] | None = None
    published: bool
    allow_comments: bool = True
    seo_title: str | None = None
    seo_description: str | None = None
    author_id: str
    author_name: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    tags: list[str] = Field(default_factory=list)
    comment_count: int = 0
    view_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PostListResponse(BaseModel):
    posts: list[PostSchema]
    total: int


class PostWriteRequest(BaseModel):
    """Create and update payload. Create-time required fields are checked by the route."""

    title: str | None = Field(default=None, max_length=255)
    slug: str | None = Field(default=None, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    content: str | None = None
    excerpt: str | None = None
    image_url: str | None = None
    category_id: int | None = None
    published: bool | None = None
    allow_comments: bool | None = None
    seo_title: str | None = Field(default=None, max_length=70)
    seo_description: str | None = Field(default=None, max_length=160)
    format: PostFormat | None = None
    video_url: str | None = None
    audio_url: str | None = None
    gallery_images: list[str] | None = None
    tags: list[str] | None = None


class CategorySchema(BaseModel):
    id: int
    name: str
    description: str | None = None


class SearchResponse(BaseModel):
    query: str
    results: list[PostSchema]


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


class CommentCreateRequest(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    rating: int | None = Field(default=None, ge=1, le=5)


class CommentSchema(BaseModel):
    id: int
    post_id: int
    author_id: str
    author_name: str | None = None
    content: str
    rating: int | None = None
    created_at: datetime | None = None


class AccountCommentSchema(BaseModel):
    id: int
    content: str
    rating: int | None = None
    post_id: int
    post_title: str | None = None
    post_slug: str | None = None
    created_at: datetime | None = None


class BookmarkRequest(BaseModel):
    post_id: int


# ---------------------------------------------------------------------------
# Reactions and reviews
# ---------------------------------------------------------------------------


class ReactionToggleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    post_id: int | None = Field(default=None, alias="postId")
    type: str | None = None


class ReactionsResponse(BaseModel):
    counts: dict[str, int]
    user_types: list[str] = Field(default_factory=list, serialization_alias="userTypes")


class ReviewCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    post_id: int | None = Field(default=None, alias="postId")
    title: str | None = Field(default=None, max_length=120)
    body: str | None = None
    rating: int | None = None
    # Honeypot field; real clients leave it empty
    hp: str | None = None


class ReviewSchema(BaseModel):
    id: int
    post_id: int
    author_id: str
    author_name: str | None = None
    title: str | None = None
    body: str | None = None
    rating: int | None = None
    status: str
    is_owner: bool = Field(default=False, serialization_alias="isOwner")
    created_at: datetime | None = None


class ReviewListResponse(BaseModel):
    items: list[ReviewSchema]
    total: int
    page: int
    page_size: int = Field(serialization_alias="pageSize")


class ReviewModerationRequest(BaseModel):
    action: str | None = None


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class DashboardStats(BaseModel):
    posts: int
    published_posts: int
    comments: int
    users: int
    views: int


class AdminUserSchema(BaseModel):
    id: str
    email: str
    name: str | None = None
    image: str | None = None
    roles: list[str] = Field(default_factory=list)
    created_at: datetime | None = None


class AdminUserListResponse(BaseModel):
    users: list[AdminUserSchema]


class RoleSchema(BaseModel):
    id: int
    slug: str
    name: str
    description: str | None = None


class RoleChangeRequest(BaseModel):
    role: str | None = None


class RoleChangeResponse(BaseModel):
    user_id: str
    role: str
    changed: bool


# ---------------------------------------------------------------------------
# Monetization
# ---------------------------------------------------------------------------


class AdvertisementSchema(BaseModel):
    id: int
    name: str
    placement: AdPlacement
    content: str
    is_active: bool
    start_date: datetime | None = None
    end_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AdvertisementWriteRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    placement: AdPlacement | None = None
    content: str | None = None
    is_active: bool | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class AffiliateLinkSchema(BaseModel):
    id: int
    name: str
    url: str
    description: str | None = None
    clicks: int = 0
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AffiliateLinkWriteRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    url: str | None = None
    description: str | None = None
    is_active: bool | None = None


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


class AnalyticsEventRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=128)
    path: str = Field(min_length=1, max_length=512)
    referrer: str | None = Field(default=None, max_length=512)
    user_id: str | None = Field(default=None, alias="userId")
    session_id: str | None = Field(default=None, alias="sessionId", max_length=128)
    properties: dict[str, Any] | None = None


class RumMetric(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    id: str
    value: float
    label: Literal["web-vital", "custom"] = "web-vital"
    path: str | None = None
    url: str | None = None
    connection: str | None = None
    viewport: str | None = None
    ua: str | None = None
    sample_rate: float | None = Field(default=None, alias="sampleRate")
