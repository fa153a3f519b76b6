"""
Shared dependencies for API routes.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from authbase.config import Settings
from authbase.core.auth import get_token_issuer, get_token_store
from authbase.core.database import get_db
from authbase.core.security import TokenIssuer
from authbase.services.session import SessionManager
from authbase.services.token_store import TokenStore


def get_settings_from_app(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def get_session_manager(
    db: Annotated[AsyncSession, Depends(get_db)],
    token_store: Annotated[TokenStore, Depends(get_token_store)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    settings: Annotated[Settings, Depends(get_settings_from_app)],
) -> SessionManager:
    return SessionManager(db, token_store, issuer, bcrypt_rounds=settings.BCRYPT_ROUNDS)


SessionManagerDep = Annotated[SessionManager, Depends(get_session_manager)]
