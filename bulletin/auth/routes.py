# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints:
#   POST /auth/login  - Exchange email + password for a bearer token
#   GET  /auth/scope  - What the current caller is allowed to do
#
# =============================================================================

from fastapi import APIRouter, Depends, HTTPException, Request

from bulletin.api.schemas import LoginRequest, LoginResult, UserResponse
from bulletin.auth.identity import Identity
from bulletin.auth.jwt import issue_bearer
from bulletin.auth.policies import authenticated, get_policy_registry, get_settings_from_app
from bulletin.auth.registry import PolicyRegistry
from bulletin.auth.scope import report_scope
from bulletin.services.users import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


# =============================================================================
# Public Endpoints
# =============================================================================

@router.post("/login", response_model=LoginResult, response_model_exclude_none=True)
async def login(data: LoginRequest, request: Request):
    """
    Authenticate and get a bearer token.
    """
    settings = get_settings_from_app(request)
    user = await UserService(request.app.state.storage).authenticate(data.email, data.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    return LoginResult(
        token=issue_bearer(user.id, user.role, settings),
        user=UserResponse.from_user(user),
    )


# =============================================================================
# Protected Endpoints
# =============================================================================

@router.get("/scope", response_model=dict[str, list[str]])
async def get_scope(
    identity: Identity = Depends(authenticated()),
    registry: PolicyRegistry = Depends(get_policy_registry),
):
    """
    List, per resource, the actions the caller may invoke.

    Actions only permitted on the caller's own resources end in ":self".
    """
    return report_scope(identity, registry)
