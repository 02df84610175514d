"""
Request and response models for the HTTP API.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from bulletin.auth.roles import Role, parse_user_role
from bulletin.core.models import Position, Post, PostStatus, User


# =============================================================================
# Users
# =============================================================================


class UserCreate(BaseModel):
    """User registration data (Administrator only)."""
    email: EmailStr = Field(max_length=256)
    password: str | None = Field(default=None, max_length=256)
    first_name: str = Field(default="", max_length=32)
    last_name: str = Field(default="", max_length=32)
    role: Role = Role.SUBSCRIBER
    is_associate: bool = False
    position: Position | None = None
    biography: str = ""
    is_public: bool = False

    @field_validator("role", mode="before")
    @classmethod
    def _assignable_role(cls, value):
        return parse_user_role(value)


class UserUpdate(BaseModel):
    """Partial user update. Unset fields keep their value."""
    email: EmailStr | None = Field(default=None, max_length=256)
    password: str | None = Field(default=None, max_length=256)
    new_password: str | None = Field(default=None, max_length=256)
    first_name: str | None = Field(default=None, max_length=32)
    last_name: str | None = Field(default=None, max_length=32)
    role: Role | None = None
    is_associate: bool | None = None
    position: Position | None = None
    biography: str | None = None
    is_public: bool | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _assignable_role(cls, value):
        return None if value is None else parse_user_role(value)

    def profile_changes(self) -> dict:
        """Changes to apply, without the password fields."""
        return self.model_dump(exclude={"password", "new_password"}, exclude_none=True)


class UserResponse(BaseModel):
    """User data returned to client (no sensitive fields)."""
    id: str
    email: str
    first_name: str
    last_name: str
    avatar: str
    role: Role
    is_associate: bool

    # Associates only
    position: Position | None = None
    biography: str | None = None
    is_public: bool | None = None

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        response = cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            avatar=user.avatar,
            role=user.role,
            is_associate=user.is_associate,
        )
        if user.is_associate:
            response.position = user.position or Position.MEMBER
            response.biography = user.biography
            response.is_public = user.is_public
        return response


# =============================================================================
# Posts
# =============================================================================


class PostPayload(BaseModel):
    """Post data for create and update."""
    title: str = Field(min_length=1, max_length=256)
    body: str = Field(min_length=1)
    slug: str | None = Field(default=None, max_length=256)
    status: PostStatus | None = None
    visibility: Role | None = None


class PostResponse(BaseModel):
    id: str
    title: str
    slug: str
    body: str
    status: PostStatus
    visibility: Role
    published_on: datetime | None = None
    author: UserResponse | None = None

    @classmethod
    def from_post(cls, post: Post, author: User | None = None) -> PostResponse:
        return cls(
            id=post.id,
            title=post.title,
            slug=post.slug,
            body=post.body,
            status=post.status,
            visibility=post.visibility,
            published_on=post.published_on,
            author=UserResponse.from_user(author) if author else None,
        )


# =============================================================================
# Auth
# =============================================================================


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResult(BaseModel):
    token: str
    user: UserResponse
