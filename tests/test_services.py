"""
Tests for the post and user services.
"""

import pytest

from bulletin.auth.identity import Identity
from bulletin.auth.registry import PolicyRegistry
from bulletin.auth.roles import Role
from bulletin.core.models import Position, PostStatus
from bulletin.core.result import ErrorKind
from bulletin.services import PostService, UserService
from bulletin.storage import create_local_storage


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def storage():
    return create_local_storage()


@pytest.fixture
def users(storage):
    return UserService(storage)


@pytest.fixture
def posts(storage):
    return PostService(storage)


@pytest.fixture
def update_rule():
    return PolicyRegistry().register(
        "posts",
        "update",
        allow=["Administrator", "Editor", "self"],
        deny="Subscriber",
    )


async def make_user(users: UserService, email: str, role: Role = Role.SUBSCRIBER, **profile):
    result = await users.create_user(email=email, password="password", role=role, **profile)
    return result.value


def as_identity(user) -> Identity:
    return Identity(subject_id=user.id, role=user.role)


# =============================================================================
# PostService Tests
# =============================================================================


class TestPostService:
    @pytest.mark.asyncio
    async def test_create_defaults(self, users, posts):
        author = await make_user(users, "author@example.com", Role.AUTHOR)

        result = await posts.create_post(as_identity(author), title="Hello World", body="Hi")

        assert result.ok
        post = result.value
        assert post.slug == "hello-world"
        assert post.status == PostStatus.DRAFT
        assert post.visibility == Role.PUBLIC
        assert post.author_id == author.id
        assert post.published_on is None

    @pytest.mark.asyncio
    async def test_symbol_only_title_slugs_to_id(self, users, posts):
        author = await make_user(users, "author@example.com", Role.AUTHOR)
        identity = as_identity(author)

        first = await posts.create_post(identity, title="!!!", body="...")
        second = await posts.create_post(identity, title="???", body="...")

        assert first.value.slug == first.value.id
        assert second.value.slug == second.value.id

    @pytest.mark.asyncio
    async def test_slugs_stay_unique(self, users, posts):
        author = await make_user(users, "author@example.com", Role.AUTHOR)
        identity = as_identity(author)

        slugs = []
        for _ in range(3):
            result = await posts.create_post(identity, title="My Post", body="...")
            slugs.append(result.value.slug)

        assert slugs == ["my-post", "my-post-1", "my-post-2"]

    @pytest.mark.asyncio
    async def test_publishing_stamps_date(self, users, posts):
        author = await make_user(users, "author@example.com", Role.AUTHOR)

        result = await posts.create_post(
            as_identity(author), title="News", body="...", status=PostStatus.PUBLISHED
        )

        assert result.value.published_on is not None

    @pytest.mark.asyncio
    async def test_unknown_author_forbidden(self, posts):
        ghost = Identity(subject_id="deleted-user", role=Role.AUTHOR)
        result = await posts.create_post(ghost, title="Boo", body="...")

        assert result.kind is ErrorKind.FORBIDDEN

    @pytest.mark.asyncio
    async def test_contributor_cannot_create_published(self, users, posts):
        contributor = await make_user(users, "c@example.com", Role.CONTRIBUTOR)

        result = await posts.create_post(
            as_identity(contributor), title="Mine", body="...", status=PostStatus.PUBLISHED
        )

        assert result.kind is ErrorKind.FORBIDDEN
        assert await posts.all_posts() == []

    @pytest.mark.asyncio
    async def test_update_missing_is_not_found(self, users, posts, update_rule):
        editor = await make_user(users, "e@example.com", Role.EDITOR)

        result = await posts.update_post(as_identity(editor), "nope", update_rule, title="x", body="y")

        assert result.kind is ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_retracting_clears_date(self, users, posts, update_rule):
        editor = await make_user(users, "e@example.com", Role.EDITOR)
        identity = as_identity(editor)
        created = await posts.create_post(identity, title="Live", body="...", status=PostStatus.PUBLISHED)

        result = await posts.update_post(
            identity, created.value.id, update_rule, title="Live", body="...", status=PostStatus.DRAFT
        )

        assert result.value.status == PostStatus.DRAFT
        assert result.value.published_on is None

    @pytest.mark.asyncio
    async def test_update_keeps_own_slug(self, users, posts, update_rule):
        author = await make_user(users, "a@example.com", Role.AUTHOR)
        identity = as_identity(author)
        created = await posts.create_post(identity, title="Keep", body="...")

        result = await posts.update_post(
            identity, created.value.id, update_rule, title="Keep", body="new", slug="keep"
        )

        assert result.value.slug == "keep"
        assert result.value.body == "new"

    @pytest.mark.asyncio
    async def test_list_for_anonymous_and_author(self, users, posts):
        author = await make_user(users, "u@example.com", Role.SUBSCRIBER)
        identity = as_identity(author)
        await posts.create_post(identity, title="Public Post", body="...", status=PostStatus.PUBLISHED)
        await posts.create_post(identity, title="Private Post", body="...", visibility=Role.PRIVATE)

        anonymous = await posts.list_posts(Identity.anonymous())
        own = await posts.list_posts(identity)

        assert [p.slug for p in anonymous] == ["public-post"]
        assert [p.slug for p in own] == ["private-post", "public-post"]


# =============================================================================
# UserService Tests
# =============================================================================


class TestUserService:
    @pytest.mark.asyncio
    async def test_create_and_authenticate(self, users):
        user = await make_user(users, "Someone@Example.com")

        assert user.email == "someone@example.com"
        assert user.role == Role.SUBSCRIBER
        assert (await users.authenticate("someone@example.com", "password")).id == user.id
        assert await users.authenticate("someone@example.com", "wrong") is None

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, users):
        await make_user(users, "dup@example.com")
        result = await users.create_user(email="DUP@example.com", password="x")

        assert result.kind is ErrorKind.CONFLICT

    @pytest.mark.asyncio
    async def test_list_users_per_caller(self, users):
        admin = await make_user(users, "admin@example.com", Role.ADMINISTRATOR)
        public = await make_user(users, "public@example.com", is_associate=True, is_public=True)
        hidden = await make_user(users, "hidden@example.com")

        anonymous = await users.list_users(Identity.anonymous())
        self_only = await users.list_users(as_identity(hidden))
        everyone = await users.list_users(as_identity(admin))

        assert [u.email for u in anonymous] == [public.email]
        assert [u.email for u in self_only] == [hidden.email]
        assert [u.email for u in everyone] == [
            "admin@example.com",
            "hidden@example.com",
            "public@example.com",
        ]

    @pytest.mark.asyncio
    async def test_non_admin_cannot_change_role(self, users):
        user = await make_user(users, "u@example.com")

        result = await users.update_user(as_identity(user), user.id, {"role": Role.ADMINISTRATOR})

        assert result.kind is ErrorKind.FORBIDDEN

    @pytest.mark.asyncio
    async def test_admin_changes_role(self, users):
        admin = await make_user(users, "admin@example.com", Role.ADMINISTRATOR)
        user = await make_user(users, "u@example.com")

        result = await users.update_user(as_identity(admin), user.id, {"role": Role.EDITOR})

        assert result.value.role == Role.EDITOR

    @pytest.mark.asyncio
    async def test_password_change_needs_current_password(self, users):
        user = await make_user(users, "u@example.com")
        identity = as_identity(user)

        wrong = await users.update_user(identity, user.id, {}, password="nope", new_password="next")
        right = await users.update_user(identity, user.id, {}, password="password", new_password="next")

        assert wrong.kind is ErrorKind.BAD_REQUEST
        assert right.ok
        assert await users.authenticate("u@example.com", "next") is not None

    @pytest.mark.asyncio
    async def test_email_taken_by_other_conflicts(self, users):
        await make_user(users, "taken@example.com")
        user = await make_user(users, "u@example.com")

        result = await users.update_user(as_identity(user), user.id, {"email": "taken@example.com"})

        assert result.kind is ErrorKind.CONFLICT

    @pytest.mark.asyncio
    async def test_profile_update(self, users):
        user = await make_user(users, "u@example.com")

        result = await users.update_user(
            as_identity(user),
            user.id,
            {"first_name": "Ada", "is_associate": True, "position": Position.TREASURER},
        )

        assert result.value.first_name == "Ada"
        assert result.value.position == Position.TREASURER

    @pytest.mark.asyncio
    async def test_ensure_user_is_idempotent(self, users):
        first = await users.ensure_user("root@example.com", "pw", Role.ADMINISTRATOR)
        second = await users.ensure_user("root@example.com", "other", Role.ADMINISTRATOR)

        assert first.id == second.id
