"""Services - what the API does with posts and users."""

from bulletin.services.posts import PostService
from bulletin.services.users import UserService

__all__ = [
    "PostService",
    "UserService",
]
