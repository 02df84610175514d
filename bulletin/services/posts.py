"""
Post service.

Reads and writes posts through the metadata storage, and applies the
per-post visibility and modification rules before anything is returned
or changed.
"""

from __future__ import annotations

import logging
from typing import Iterable

from bulletin.auth.identity import Identity
from bulletin.auth.registry import PolicyRule
from bulletin.auth.roles import Role
from bulletin.auth.visibility import can_publish, check_modify, check_view, filter_visible
from bulletin.core.models import Post, PostStatus, User
from bulletin.core.result import Ok, Result, forbidden, not_found
from bulletin.core.utils import generate_id, slugify, utc_now
from bulletin.storage.base import Collections, StorageProvider

logger = logging.getLogger(__name__)


class PostService:
    """
    Everything the API does with posts.

    Operations that involve a caller take its Identity and return a
    Result; plain lookups return the model or None.
    """

    def __init__(self, storage: StorageProvider):
        self.metadata = storage.metadata

    # =========================================================================
    # Lookups
    # =========================================================================

    async def get_post(self, post_id: str) -> Post | None:
        doc = await self.metadata.get(Collections.POSTS, post_id)
        return Post.model_validate(doc) if doc else None

    async def all_posts(self) -> list[Post]:
        docs = await self.metadata.query(Collections.POSTS)
        return [Post.model_validate(doc) for doc in docs]

    async def authors_of(self, posts: Iterable[Post]) -> dict[str, User]:
        """Load the author of every post, keyed by user id."""
        authors: dict[str, User] = {}
        for author_id in {post.author_id for post in posts}:
            doc = await self.metadata.get(Collections.USERS, author_id)
            if doc:
                authors[author_id] = User.model_validate(doc)
        return authors

    # =========================================================================
    # Reading
    # =========================================================================

    async def list_posts(self, identity: Identity) -> list[Post]:
        """Posts visible to this identity, ordered by slug."""
        return filter_visible(identity, await self.all_posts())

    async def view_post(self, identity: Identity, post_id: str) -> Result[Post]:
        post = await self.get_post(post_id)
        if post is None:
            return not_found("Post not found")
        return check_view(identity, post)

    # =========================================================================
    # Writing
    # =========================================================================

    async def create_post(
        self,
        identity: Identity,
        *,
        title: str,
        body: str,
        slug: str | None = None,
        status: PostStatus | None = None,
        visibility: Role | None = None,
    ) -> Result[Post]:
        """
        Create a post authored by the caller.

        Forbidden when the caller's account no longer exists, or when a
        non-publishing role asks for Published.
        """
        author = await self.metadata.get(Collections.USERS, identity.subject_id or "")
        if author is None:
            return forbidden()

        status = status or PostStatus.DRAFT
        if not can_publish(identity, status):
            return forbidden()

        # Titles without letters or digits slugify to nothing
        post_id = generate_id()
        post = Post(
            id=post_id,
            author_id=identity.subject_id,
            title=title,
            slug=await self._unique_slug(slug or slugify(title) or post_id),
            body=body,
            status=status,
            visibility=visibility or Role.PUBLIC,
            published_on=utc_now() if status == PostStatus.PUBLISHED else None,
        )

        await self._save(post)
        logger.info("Post %s created by %s", post.id, identity.subject_id)
        return Ok(post)

    async def update_post(
        self,
        identity: Identity,
        post_id: str,
        rule: PolicyRule | None,
        *,
        title: str,
        body: str,
        slug: str | None = None,
        status: PostStatus | None = None,
        visibility: Role | None = None,
    ) -> Result[Post]:
        """
        Update a post. `rule` is the registered update rule, used to decide
        which roles may change posts they do not own.

        Unset optional fields keep their current value.
        """
        post = await self.get_post(post_id)
        if post is None:
            return not_found("Post not found")

        decision = check_modify(identity, post, rule, status)
        if not decision.ok:
            return decision

        changes: dict = {"title": title, "body": body, "updated_at": utc_now()}

        if slug and slug != post.slug:
            changes["slug"] = await self._unique_slug(slug, exclude_id=post.id)

        if visibility is not None:
            changes["visibility"] = visibility

        if status is not None and status != post.status:
            changes["status"] = status
            changes["published_on"] = utc_now() if status == PostStatus.PUBLISHED else None

        updated = post.model_copy(update=changes)
        await self._save(updated)
        logger.info("Post %s updated by %s", post.id, identity.subject_id)
        return Ok(updated)

    # =========================================================================
    # Internal
    # =========================================================================

    async def _save(self, post: Post) -> None:
        await self.metadata.save(Collections.POSTS, post.id, post.model_dump(mode="json"))

    async def _unique_slug(self, slug: str, exclude_id: str | None = None) -> str:
        """
        When `slug` is taken, suffix it with the number of posts starting with it.

        "my-post" with "my-post" and "my-post-1" taken -> "my-post-2"
        """
        taken = {
            post.slug
            for post in await self.all_posts()
            if post.id != exclude_id and post.slug.startswith(slug)
        }
        if slug not in taken:
            return slug

        count = len(taken)
        candidate = f"{slug}-{count}"
        while candidate in taken:
            count += 1
            candidate = f"{slug}-{count}"
        return candidate
