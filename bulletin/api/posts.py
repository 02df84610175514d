# =============================================================================
# Post API Routes
# =============================================================================
#
# Endpoints:
#   GET  /posts            - List visible posts (open)
#   POST /posts            - Create a post (posts:create)
#   GET  /posts/{post_id}  - Get a visible post (open)
#   PUT  /posts/{post_id}  - Update a post (posts:update)
#
# =============================================================================

from uuid import UUID

from fastapi import APIRouter, Depends, Request

from bulletin.api.errors import http_error
from bulletin.api.schemas import PostPayload, PostResponse
from bulletin.auth.identity import Identity
from bulletin.auth.policies import get_identity, get_policy_registry, policy
from bulletin.auth.registry import PolicyRegistry
from bulletin.auth.roles import Role
from bulletin.services.posts import PostService

router = APIRouter(prefix="/posts", tags=["posts"])


CREATE_POLICY = policy(
    "posts",
    "create",
    allow=[Role.ADMINISTRATOR, Role.EDITOR, Role.AUTHOR, Role.CONTRIBUTOR],
)

UPDATE_POLICY = policy(
    "posts",
    "update",
    allow=[Role.ADMINISTRATOR, Role.EDITOR, "self"],
    deny=Role.SUBSCRIBER,
)


def get_post_service(request: Request) -> PostService:
    return PostService(request.app.state.storage)


async def _respond(posts: PostService, post) -> PostResponse:
    authors = await posts.authors_of([post])
    return PostResponse.from_post(post, authors.get(post.author_id))


@router.get("", response_model=list[PostResponse])
async def list_posts(
    identity: Identity = Depends(get_identity),
    posts: PostService = Depends(get_post_service),
):
    """
    List the posts visible to the caller, ordered by slug.
    """
    visible = await posts.list_posts(identity)
    authors = await posts.authors_of(visible)
    return [PostResponse.from_post(post, authors.get(post.author_id)) for post in visible]


@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    data: PostPayload,
    identity: Identity = Depends(CREATE_POLICY),
    posts: PostService = Depends(get_post_service),
):
    """
    Create a post authored by the caller.

    Contributors may not create posts as Published.
    """
    result = await posts.create_post(identity, **data.model_dump())
    if not result.ok:
        raise http_error(result)

    return await _respond(posts, result.value)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: UUID,
    identity: Identity = Depends(get_identity),
    posts: PostService = Depends(get_post_service),
):
    """
    Get a post, if the caller may view it.
    """
    result = await posts.view_post(identity, str(post_id))
    if not result.ok:
        raise http_error(result)

    return await _respond(posts, result.value)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: UUID,
    data: PostPayload,
    identity: Identity = Depends(UPDATE_POLICY),
    registry: PolicyRegistry = Depends(get_policy_registry),
    posts: PostService = Depends(get_post_service),
):
    """
    Update a post.

    Authors (and Contributors) may update their own posts; Editors and
    Administrators may update anyone's. Contributors may never publish.
    """
    rule = registry.lookup(UPDATE_POLICY.resource, UPDATE_POLICY.action)

    result = await posts.update_post(identity, str(post_id), rule, **data.model_dump())
    if not result.ok:
        raise http_error(result)

    return await _respond(posts, result.value)
