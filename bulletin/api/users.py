# =============================================================================
# User API Routes
# =============================================================================
#
# Endpoints:
#   GET  /users            - List users visible to the caller (open)
#   POST /users            - Create a user (users:create)
#   GET  /users/{user_id}  - Get a user (users:view)
#   PUT  /users/{user_id}  - Update a user (users:update)
#
# =============================================================================

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request

from bulletin.api.errors import http_error
from bulletin.api.schemas import UserCreate, UserResponse, UserUpdate
from bulletin.auth.identity import Identity
from bulletin.auth.policies import ensure_self, get_identity, policy
from bulletin.auth.roles import Role
from bulletin.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(request: Request) -> UserService:
    return UserService(request.app.state.storage)


@router.get("", response_model=list[UserResponse], response_model_exclude_none=True)
async def list_users(
    identity: Identity = Depends(get_identity),
    users: UserService = Depends(get_user_service),
):
    """
    List users.

    Anonymous callers see public associate profiles, other users see only
    themselves, administrators see everyone.
    """
    return [UserResponse.from_user(user) for user in await users.list_users(identity)]


@router.post("", response_model=UserResponse, response_model_exclude_none=True, status_code=201)
async def create_user(
    data: UserCreate,
    identity: Identity = Depends(policy("users", "create", allow=Role.ADMINISTRATOR)),
    users: UserService = Depends(get_user_service),
):
    """
    Create a user account.
    """
    result = await users.create_user(**data.model_dump())
    if not result.ok:
        raise http_error(result)

    return UserResponse.from_user(result.value)


@router.get("/{user_id}", response_model=UserResponse, response_model_exclude_none=True)
async def get_user(
    user_id: UUID,
    identity: Identity = Depends(policy("users", "view", allow=[Role.ADMINISTRATOR, "self"])),
    users: UserService = Depends(get_user_service),
):
    """
    Get a user. Non-administrators may only get themselves.
    """
    ensure_self(identity, str(user_id))

    user = await users.get_user(str(user_id))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return UserResponse.from_user(user)


@router.put("/{user_id}", response_model=UserResponse, response_model_exclude_none=True)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    identity: Identity = Depends(policy("users", "update", allow=[Role.ADMINISTRATOR, "self"])),
    users: UserService = Depends(get_user_service),
):
    """
    Update a user. Non-administrators may only update themselves and may
    not change their role.
    """
    ensure_self(identity, str(user_id))

    result = await users.update_user(
        identity,
        str(user_id),
        data.profile_changes(),
        password=data.password,
        new_password=data.new_password,
    )
    if not result.ok:
        raise http_error(result)

    return UserResponse.from_user(result.value)
