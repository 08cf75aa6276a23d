"""JWT verification for tokens minted by the identity service.

``create_access_token`` exists for service-to-service calls and tests; the
public login flow lives outside this API.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from learnhub.config.settings import get_settings


REQUIRED_CLAIMS = ("sub", "role")


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token.

    Args:
        data: Claims, typically ``{"sub": user_id, "email": email, "role": role}``
        expires_delta: Token lifetime (default from settings)

    Returns:
        Encoded JWT with ``exp``, ``iat`` and ``type="access"`` added
    """
    settings = get_settings()
    now = datetime.now(UTC)

    to_encode = data.copy()
    to_encode.update(
        {
            "exp": now
            + (
                expires_delta
                or timedelta(minutes=settings.auth_access_token_expire_minutes)
            ),
            "iat": now,
            "type": "access",
        }
    )
    return jwt.encode(
        to_encode,
        settings.auth_secret_key,
        algorithm=settings.auth_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Checks signature, expiry, ``type == "access"`` and required claims.

    Raises:
        JWTError: If the token is invalid, expired, of the wrong type or
            missing a required claim
    """
    settings = get_settings()

    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )

    if payload.get("type") != "access":
        msg = "Invalid token type: expected 'access'"
        raise JWTError(msg)

    missing = [claim for claim in REQUIRED_CLAIMS if not payload.get(claim)]
    if missing:
        msg = f"Token missing claims: {', '.join(missing)}"
        raise JWTError(msg)

    return payload
