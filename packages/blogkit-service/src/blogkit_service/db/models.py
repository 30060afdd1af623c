"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


REACTION_TYPES = ("like", "love", "insightful", "curious", "clap")
REVIEW_STATUSES = ("pending", "approved", "rejected")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Identity models
# ---------------------------------------------------------------------------


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(Text, nullable=True)
    email = Column(String(320), unique=True, nullable=False)
    email_verified = Column(Boolean, nullable=False, default=False)
    image = Column(Text, nullable=True)
    password_hash = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    profile = relationship(
        "UserProfileModel", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    sessions = relationship("SessionModel", back_populates="user", cascade="all, delete-orphan")
    user_roles = relationship("UserRoleModel", back_populates="user", cascade="all, delete-orphan")


class SessionModel(Base):
    __tablename__ = "sessions"

    id = Column(String(64), primary_key=True, default=_new_id)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    user = relationship("UserModel", back_populates="sessions")


class UserProfileModel(Base):
    __tablename__ = "user_profiles"

    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    bio = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    website = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    user = relationship("UserModel", back_populates="profile")


class RoleModel(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(64), unique=True, nullable=False)
    name = Column(String(128), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class UserRoleModel(Base):
    __tablename__ = "user_roles"

    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    user = relationship("UserModel", back_populates="user_roles")
    role = relationship("RoleModel")


# ---------------------------------------------------------------------------
# Blog models
# ---------------------------------------------------------------------------


class CategoryModel(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256), unique=True, nullable=False)
    description = Column(Text, nullable=True)


class PostTagModel(Base):
    __tablename__ = "posts_to_tags"

    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)


class TagModel(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256), unique=True, nullable=False)


class PostModel(Base):
    __tablename__ = "posts"
    __table_args__ = (Index("idx_posts_published_created_at", "published", "created_at"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    image_url = Column(Text, nullable=True)
    excerpt = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    format = Column(
        Enum("standard", "video", "gallery", "audio", name="post_format"),
        nullable=False,
        default="standard",
    )
    video_url = Column(Text, nullable=True)
    audio_url = Column(Text, nullable=True)
    gallery_images = Column(JSON, nullable=True)
    author_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    published = Column(Boolean, nullable=False, default=False)
    allow_comments = Column(Boolean, nullable=False, default=True)
    seo_title = Column(String(70), nullable=True)
    seo_description = Column(String(160), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    author = relationship("UserModel")
    category = relationship("CategoryModel")
    tags = relationship(
        "TagModel", secondary="posts_to_tags", order_by="TagModel.name", viewonly=True
    )
    comments = relationship(
        "CommentModel", back_populates="post", cascade="all, delete-orphan", passive_deletes=True
    )


class CommentModel(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    rating = Column(Integer, nullable=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    post = relationship("PostModel", back_populates="comments")
    author = relationship("UserModel")


class BookmarkModel(Base):
    __tablename__ = "bookmarks"

    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    post = relationship("PostModel")


class ReviewModel(Base):
    """One review per user per post, shown publicly once approved."""

    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("post_id", "author_id", name="uq_reviews_user_post"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(120), nullable=True)
    body = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)
    status = Column(
        Enum(*REVIEW_STATUSES, name="review_status"), nullable=False, default="pending"
    )
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    author = relationship("UserModel")


class PostReactionModel(Base):
    __tablename__ = "post_reactions"

    # One reaction of each type per user per post
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    type = Column(Enum(*REACTION_TYPES, name="reaction_type"), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


# ---------------------------------------------------------------------------
# Monetization models
# ---------------------------------------------------------------------------


class AffiliateLinkModel(Base):
    __tablename__ = "affiliate_links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    url = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    clicks = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class AdvertisementModel(Base):
    __tablename__ = "advertisements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    placement = Column(
        Enum("sidebar", "header", "in_content", "footer", name="ad_placement"), nullable=False
    )
    content = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


class AnalyticsEventModel(Base):
    __tablename__ = "analytics_events"
    __table_args__ = (Index("idx_analytics_events_path", "path"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False)
    path = Column(String(512), nullable=False)
    referrer = Column(String(512), nullable=True)
    user_id = Column(Text, nullable=True)
    session_id = Column(String(128), nullable=True)
    properties = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
