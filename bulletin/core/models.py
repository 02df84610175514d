"""
Core domain models.

Users author posts; posts carry a visibility level from the role hierarchy.
Both are stored through the metadata storage as plain documents.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from bulletin.auth.roles import Role, parse_user_role
from bulletin.core.utils import utc_now


class PostStatus(str, Enum):
    """Publication status of a post."""

    DRAFT = "Draft"
    PENDING_REVIEW = "Pending Review"
    PUBLISHED = "Published"


class Position(str, Enum):
    """Position an associate holds in the association."""

    PRESIDENT = "President"
    VICE_PRESIDENT = "Vice-President"
    SECRETARY = "Secretary"
    SUB_SECRETARY = "Sub-Secretary"
    TREASURER = "Treasurer"
    SUB_TREASURER = "Sub-Treasurer"
    AUDITOR = "Auditor"
    VOCAL = "Vocal"
    MEMBER = "Member"


class User(BaseModel):
    """A user account."""

    id: str
    email: str
    password_hash: str = ""
    first_name: str = ""
    last_name: str = ""
    avatar: str = ""
    role: Role = Role.SUBSCRIBER

    # Associate profile
    is_associate: bool = False
    position: Position | None = None
    biography: str = ""
    is_public: bool = False

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("role", mode="before")
    @classmethod
    def _assignable_role(cls, value):
        return parse_user_role(value)

    @property
    def is_administrator(self) -> bool:
        return self.role == Role.ADMINISTRATOR


class Post(BaseModel):
    """
    A piece of content owned by its author.

    `visibility` is a ranking threshold, not an identity: a viewer whose
    role ranks at least as high may read the post. `Private` is reachable
    only by the author.
    """

    id: str
    author_id: str
    title: str = Field(max_length=256)
    slug: str = Field(max_length=256)
    body: str
    status: PostStatus = PostStatus.DRAFT
    visibility: Role = Role.PUBLIC
    published_on: datetime | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_published(self) -> bool:
        return self.status == PostStatus.PUBLISHED

    @property
    def is_private(self) -> bool:
        return self.visibility == Role.PRIVATE
