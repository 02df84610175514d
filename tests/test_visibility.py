"""
Tests for per-post visibility and modification decisions.
"""

import pytest

from bulletin.auth.identity import Identity
from bulletin.auth.registry import PolicyRegistry
from bulletin.auth.roles import USER_ROLES, Role, rank
from bulletin.auth.visibility import (
    can_modify,
    can_publish,
    can_view,
    check_modify,
    check_view,
    filter_visible,
)
from bulletin.core.models import Post, PostStatus
from bulletin.core.result import ErrorKind


def make_post(
    slug: str,
    author_id: str = "author-1",
    visibility: Role = Role.PUBLIC,
    status: PostStatus = PostStatus.PUBLISHED,
) -> Post:
    return Post(
        id=f"id-{slug}",
        author_id=author_id,
        title=slug.replace("-", " ").title(),
        slug=slug,
        body="...",
        status=status,
        visibility=visibility,
    )


@pytest.fixture
def update_rule():
    registry = PolicyRegistry()
    return registry.register(
        "posts",
        "update",
        allow=["Administrator", "Editor", "self"],
        deny="Subscriber",
    )


# =============================================================================
# Viewing
# =============================================================================


class TestCanView:
    def test_anonymous_sees_public_only(self):
        assert can_view(Identity.anonymous(), make_post("a"))
        assert not can_view(Identity.anonymous(), make_post("b", visibility=Role.SUBSCRIBER))

    @pytest.mark.parametrize("role", USER_ROLES)
    def test_private_only_for_author(self, role):
        post = make_post("secret", author_id="owner", visibility=Role.PRIVATE)

        assert can_view(Identity(subject_id="owner", role=role), post)
        assert not can_view(Identity(subject_id="someone-else", role=role), post)

    @pytest.mark.parametrize("viewer", USER_ROLES)
    @pytest.mark.parametrize("level", USER_ROLES)
    def test_rank_decides_for_non_authors(self, viewer, level):
        post = make_post("ranked", visibility=level)
        identity = Identity(subject_id="reader", role=viewer)

        assert can_view(identity, post) == (rank(viewer) >= rank(level))

    def test_author_sees_own_post_above_rank(self):
        post = make_post("mine", author_id="u1", visibility=Role.EDITOR)
        assert can_view(Identity(subject_id="u1", role=Role.CONTRIBUTOR), post)

    def test_check_view_result(self):
        post = make_post("members", visibility=Role.SUBSCRIBER)

        assert check_view(Identity(subject_id="u1", role=Role.SUBSCRIBER), post).value == post
        assert check_view(Identity.anonymous(), post).kind is ErrorKind.FORBIDDEN


# =============================================================================
# Listing
# =============================================================================


class TestFilterVisible:
    @pytest.fixture
    def posts(self):
        return [
            make_post("public-post", author_id="u"),
            make_post("private-post", author_id="u", visibility=Role.PRIVATE),
        ]

    def test_anonymous_gets_public_post_only(self, posts):
        assert [p.slug for p in filter_visible(Identity.anonymous(), posts)] == ["public-post"]

    def test_author_gets_both_sorted_by_slug(self, posts):
        identity = Identity(subject_id="u", role=Role.SUBSCRIBER)
        assert [p.slug for p in filter_visible(identity, posts)] == ["private-post", "public-post"]

    def test_anonymous_never_sees_drafts(self):
        posts = [make_post("draft", status=PostStatus.DRAFT), make_post("live")]
        assert [p.slug for p in filter_visible(Identity.anonymous(), posts)] == ["live"]

    def test_authenticated_sees_all_statuses_within_rank(self):
        posts = [
            make_post("draft", status=PostStatus.DRAFT),
            make_post("review", status=PostStatus.PENDING_REVIEW, visibility=Role.AUTHOR),
            make_post("editors", visibility=Role.EDITOR),
        ]
        identity = Identity(subject_id="reader", role=Role.AUTHOR)

        assert [p.slug for p in filter_visible(identity, posts)] == ["draft", "review"]

    def test_others_private_posts_hidden_from_administrator(self):
        posts = [make_post("theirs", author_id="u", visibility=Role.PRIVATE)]
        identity = Identity(subject_id="admin", role=Role.ADMINISTRATOR)

        assert filter_visible(identity, posts) == []


# =============================================================================
# Modifying
# =============================================================================


class TestCanModify:
    def test_author_may_modify_own_post(self, update_rule):
        post = make_post("mine", author_id="u1")
        assert can_modify(Identity(subject_id="u1", role=Role.AUTHOR), post, update_rule)

    def test_author_may_not_modify_others(self, update_rule):
        post = make_post("theirs", author_id="u2")
        assert not can_modify(Identity(subject_id="u1", role=Role.AUTHOR), post, update_rule)

    @pytest.mark.parametrize("role", [Role.ADMINISTRATOR, Role.EDITOR])
    def test_allowed_roles_modify_any_post(self, update_rule, role):
        post = make_post("theirs", author_id="u2")
        assert can_modify(Identity(subject_id="u1", role=role), post, update_rule)

    @pytest.mark.parametrize("role", [Role.ADMINISTRATOR, Role.EDITOR])
    def test_private_post_only_modified_by_author(self, update_rule, role):
        post = make_post("secret", author_id="u2", visibility=Role.PRIVATE)

        assert not can_modify(Identity(subject_id="u1", role=role), post, update_rule)
        assert can_modify(Identity(subject_id="u2", role=Role.SUBSCRIBER), post, update_rule)

    def test_editor_cannot_modify_post_above_rank(self):
        rule = PolicyRegistry().register("posts", "update", allow=["Editor", "Author"])
        post = make_post("admins", author_id="u2", visibility=Role.ADMINISTRATOR)

        assert not can_modify(Identity(subject_id="u1", role=Role.EDITOR), post, rule)
        assert can_modify(Identity(subject_id="u1", role=Role.EDITOR), make_post("editors", visibility=Role.EDITOR), rule)

    def test_without_rule_only_author(self):
        post = make_post("p", author_id="u2")
        assert not can_modify(Identity(subject_id="u1", role=Role.EDITOR), post, None)
        assert can_modify(Identity(subject_id="u2", role=Role.SUBSCRIBER), post, None)

    def test_anonymous_never(self, update_rule):
        assert not can_modify(Identity.anonymous(), make_post("p"), update_rule)


class TestPublishGate:
    def test_contributor_cannot_publish(self):
        contributor = Identity(subject_id="u1", role=Role.CONTRIBUTOR)

        assert not can_publish(contributor, PostStatus.PUBLISHED)
        assert not can_publish(contributor, PostStatus.PUBLISHED, PostStatus.DRAFT)
        assert can_publish(contributor, PostStatus.PENDING_REVIEW, PostStatus.DRAFT)

    def test_editing_published_post_is_not_a_transition(self):
        contributor = Identity(subject_id="u1", role=Role.CONTRIBUTOR)
        assert can_publish(contributor, PostStatus.PUBLISHED, PostStatus.PUBLISHED)

    @pytest.mark.parametrize("role", [Role.AUTHOR, Role.EDITOR, Role.ADMINISTRATOR])
    def test_other_roles_publish(self, role):
        assert can_publish(Identity(subject_id="u1", role=role), PostStatus.PUBLISHED)

    def test_contributor_own_post_publish_denied(self, update_rule):
        post = make_post("mine", author_id="u1", status=PostStatus.DRAFT)
        contributor = Identity(subject_id="u1", role=Role.CONTRIBUTOR)

        assert check_modify(contributor, post, update_rule, PostStatus.DRAFT).ok
        assert not check_modify(contributor, post, update_rule, PostStatus.PUBLISHED).ok
