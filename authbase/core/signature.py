"""
HMAC API-key verification for machine clients.

An API key is ``base64("{user_key}:{timestamp_ms}:{signature}")`` where the
signature is the hex HMAC-SHA256 of ``"{user_key}:{timestamp_ms}"`` under the
shared secret. Keys are valid for ``API_KEY_MAX_AGE_SECONDS`` around the
server clock.
"""

import base64
import binascii
import hashlib
import hmac
import time
from typing import Annotated

from fastapi import Header, Request

from authbase.config import Settings
from authbase.core.errors import TokenConfigurationError, Unauthorized
from authbase.core.logging import get_logger

logger = get_logger(__name__)


def _sign(user_key: str, timestamp: str, secret_key: str) -> str:
    data = f"{user_key}:{timestamp}".encode()
    return hmac.new(secret_key.encode(), data, hashlib.sha256).hexdigest()


def generate_api_key(user_key: str, secret_key: str, timestamp_ms: int | None = None) -> str:
    """
    Build an API key for ``user_key``.

    Args:
        user_key: Client identity, must equal the server's USER_KEY
        secret_key: Shared HMAC secret
        timestamp_ms: Milliseconds since the epoch (defaults to now)
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    timestamp = str(timestamp_ms)
    payload = f"{user_key}:{timestamp}:{_sign(user_key, timestamp, secret_key)}"
    return base64.b64encode(payload.encode()).decode("ascii")


def check_api_key(api_key: str | None, settings: Settings, now_ms: int | None = None) -> str:
    """
    Validate an API key against configuration.

    Returns:
        The user key carried by the API key

    Raises:
        Unauthorized: key missing, malformed, for another user, expired, or badly signed
        TokenConfigurationError: USER_KEY or SECRET_KEY not configured
    """
    if not settings.USER_KEY or not settings.SECRET_KEY:
        raise TokenConfigurationError("API key verification is not configured")

    if not api_key:
        raise Unauthorized("API key not found")

    try:
        decoded = base64.b64decode(api_key, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise Unauthorized("Invalid API key format") from None

    parts = decoded.split(":")
    if len(parts) != 3 or not all(parts):
        raise Unauthorized("Invalid API key format")
    user_key, timestamp, signature = parts

    if not hmac.compare_digest(user_key.encode(), settings.USER_KEY.encode()):
        raise Unauthorized("Invalid identity")

    try:
        request_time = int(timestamp)
    except ValueError:
        raise Unauthorized("Invalid API key format") from None

    if now_ms is None:
        now_ms = int(time.time() * 1000)
    if abs(now_ms - request_time) > settings.API_KEY_MAX_AGE_SECONDS * 1000:
        raise Unauthorized("Request expired")

    expected = _sign(user_key, timestamp, settings.SECRET_KEY)
    if not hmac.compare_digest(signature.lower().encode(), expected.encode()):
        logger.warning("api_key_signature_mismatch", user_key=user_key)
        raise Unauthorized("Invalid signature")

    return user_key


async def verify_api_key(
    request: Request,
    x_api_key: Annotated[str | None, Header()] = None,
) -> str:
    """Dependency guarding routes that require the ``x-api-key`` header."""
    settings: Settings = request.app.state.settings
    return check_api_key(x_api_key, settings)
