"""
Bearer tokens from the identity provider.

The portal never authenticates users itself. It only checks the token
signature and reads ``sub`` (and ``email`` when present). Roles are looked
up from stored assignments, never taken from token claims.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from certportal.infrastructure.config.settings import get_settings

settings = get_settings()


def _decode_options() -> dict[str, Any]:
    kwargs: dict[str, Any] = {"algorithms": [settings.algorithm]}
    if settings.token_audience:
        kwargs["audience"] = settings.token_audience
    else:
        kwargs["options"] = {"verify_aud": False}
    if settings.token_issuer:
        kwargs["issuer"] = settings.token_issuer
    return kwargs


def create_access_token(
    user_id: str,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Mint a token shaped like the identity provider's, for development and tests"""
    issued_at = datetime.now(UTC)
    claims: dict[str, Any] = {
        "sub": user_id,
        "iat": issued_at,
        "exp": issued_at + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes)),
    }
    if email:
        claims["email"] = email
    if settings.token_issuer:
        claims["iss"] = settings.token_issuer
    if settings.token_audience:
        claims["aud"] = settings.token_audience

    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """
    Check signature, expiry and (when configured) issuer and audience.

    Raises:
        ValueError: Token is malformed, expired or signed with another key
    """
    try:
        payload = jwt.decode(token, settings.secret_key, **_decode_options())
    except JWTError as e:
        raise ValueError(f"Invalid token: {e}") from e

    if not payload.get("sub"):
        raise ValueError("Token has no subject")
    return payload
