"""
Authentication API endpoints.

This module provides endpoints for:
- Registration (auto-login)
- Login (access + refresh token)
- Token refresh (with rotation)
- Logout (revokes every token of the user)
- Profile of the authenticated user
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from authbase.api.dependencies import SessionManagerDep
from authbase.core.auth import CurrentIdentity, get_current_identity
from authbase.core.responses import success_response
from authbase.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, UserResponse
from authbase.services.rate_limit import rate_limit

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", dependencies=[Depends(rate_limit("auth"))])
async def register(
    payload: RegisterRequest,
    request: Request,
    sessions: SessionManagerDep,
) -> JSONResponse:
    """Create an account and return the user with a fresh token pair."""
    result = await sessions.register(payload)
    return success_response(
        request,
        "Registration successful",
        result.model_dump(by_alias=True, mode="json"),
        status.HTTP_201_CREATED,
    )


@router.post("/login", dependencies=[Depends(rate_limit("auth"))])
async def login(
    payload: LoginRequest,
    request: Request,
    sessions: SessionManagerDep,
) -> JSONResponse:
    """
    Authenticate with email and password.

    Flow:
    1. Verify email/password (one error for both failures)
    2. Delete every stored refresh token of the user
    3. Issue access (1 day) and refresh (7 days) tokens
    4. Store the refresh token and cache both tokens
    """
    result = await sessions.login(payload.email, payload.password)
    return success_response(
        request, "Login successful", result.model_dump(by_alias=True, mode="json")
    )


@router.post("/refresh-token", dependencies=[Depends(rate_limit("auth"))])
async def refresh_token(
    payload: RefreshRequest,
    request: Request,
    sessions: SessionManagerDep,
) -> JSONResponse:
    """
    Exchange ``refreshToken`` for a new token pair.

    The presented token must be the user's current one; tokens from any
    earlier login or refresh are rejected.
    """
    result = await sessions.refresh(payload.refresh_token)
    return success_response(
        request, "Token refreshed", result.model_dump(by_alias=True, mode="json")
    )


@router.post("/logout")
async def logout(
    identity: CurrentIdentity,
    request: Request,
    sessions: SessionManagerDep,
) -> JSONResponse:
    """
    Revoke the user's session.

    The access token used for this call stops working immediately.
    """
    await sessions.logout(identity.id)
    return success_response(request, "Logout successful")


@router.get(
    "/profile",
    dependencies=[Depends(get_current_identity), Depends(rate_limit("default"))],
)
async def profile(
    identity: CurrentIdentity,
    request: Request,
    sessions: SessionManagerDep,
) -> JSONResponse:
    """Return the authenticated user's profile."""
    user = await sessions.profile(identity.id)
    return success_response(
        request, "Profile loaded", UserResponse.model_validate(user).model_dump(mode="json")
    )
