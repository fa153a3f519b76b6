"""
Example endpoints showing the API-key gate next to a public route.
"""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from authbase.core.responses import success_response
from authbase.core.signature import verify_api_key

router = APIRouter(prefix="/example", tags=["Example"])


@router.get("/protected")
async def protected(
    request: Request,
    user_key: Annotated[str, Depends(verify_api_key)],
) -> JSONResponse:
    """Requires a valid ``x-api-key`` header."""
    return success_response(
        request,
        "Access granted",
        {
            "message": "This endpoint is protected by an API signature",
            "timestamp": datetime.now(UTC).isoformat(),
            "userKey": user_key,
        },
    )


@router.get("/public")
async def public(request: Request) -> JSONResponse:
    """No credentials needed."""
    return success_response(
        request,
        "Public access",
        {
            "message": "This endpoint is public",
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )
