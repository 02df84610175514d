"""
Content visibility - per-post decisions.

The route enforcer decides whether a caller may use an endpoint at all.
Whether they may see or change a *specific* post is decided here, from the
post's author and visibility level and the caller's role:

- view: the author always; anyone else whose role ranks at least as high
  as the post's visibility. Anonymous callers only see Public posts.
- list: the ranked set plus the caller's own Private posts, by slug.
  Anonymous callers only get Published posts.
- modify: the author, or a role named in the update rule's allow list and
  not in its deny list that can also view the post. On top of that a
  Contributor may never move a post into Published.

All functions are pure.
"""

from __future__ import annotations

from typing import Iterable

from bulletin.auth.identity import Identity
from bulletin.auth.registry import PolicyRule
from bulletin.auth.roles import Role, outranks_or_equals, roles_at_or_below
from bulletin.core.models import Post, PostStatus
from bulletin.core.result import Ok, Result, forbidden


# Roles that may author content but not publish it
NON_PUBLISHING_ROLES: frozenset[Role] = frozenset({Role.CONTRIBUTOR})


def can_view(identity: Identity, post: Post) -> bool:
    """Can this identity view this post?"""
    if identity.is_anonymous:
        return post.visibility == Role.PUBLIC

    if identity.owns(post.author_id):
        return True

    return outranks_or_equals(identity.role, post.visibility)


def check_view(identity: Identity, post: Post) -> Result[Post]:
    if can_view(identity, post):
        return Ok(post)
    return forbidden()


def visible_levels(identity: Identity) -> frozenset[Role]:
    """Visibility levels an identity reaches by rank alone."""
    if identity.is_anonymous:
        return frozenset({Role.PUBLIC})
    return roles_at_or_below(identity.role) - {Role.PRIVATE}


def filter_visible(identity: Identity, posts: Iterable[Post]) -> list[Post]:
    """
    The posts an identity gets when listing.

    Ranked posts (published only, for anonymous callers) merged with the
    caller's own Private posts, ordered by slug.
    """
    levels = visible_levels(identity)
    visible: list[Post] = []

    for post in posts:
        if identity.is_anonymous:
            if post.visibility in levels and post.is_published:
                visible.append(post)
        elif post.visibility in levels:
            visible.append(post)
        elif post.is_private and identity.owns(post.author_id):
            visible.append(post)

    return sorted(visible, key=lambda p: p.slug)


def can_modify(identity: Identity, post: Post, rule: PolicyRule | None) -> bool:
    """
    Can this identity change this post (publishing aside)?

    `rule` is the registered update rule. Without one, only the author
    may modify. Non-authors must also reach the post's visibility, so a
    Private post is only ever modified by its author.
    """
    if identity.is_anonymous:
        return False

    if identity.owns(post.author_id):
        return True

    if rule is None or not can_view(identity, post):
        return False

    return identity.role in rule.allowed_roles and identity.role not in rule.deny


def can_publish(
    identity: Identity,
    requested: PostStatus | None,
    current: PostStatus | None = None,
) -> bool:
    """
    Is a move from `current` to `requested` status allowed for this role?

    Only a transition *into* Published is gated; `current=None` means the
    post is being created.
    """
    if requested != PostStatus.PUBLISHED or current == PostStatus.PUBLISHED:
        return True
    return identity.role not in NON_PUBLISHING_ROLES


def check_modify(
    identity: Identity,
    post: Post,
    rule: PolicyRule | None,
    requested: PostStatus | None = None,
) -> Result[Post]:
    """Full per-post update decision: ownership/role, then the publish gate."""
    if not can_modify(identity, post, rule):
        return forbidden()
    if not can_publish(identity, requested, post.status):
        return forbidden()
    return Ok(post)
