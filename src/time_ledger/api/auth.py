"""Authentication for the API.

Callers present a JWT bearer token whose ``sub`` claim is their user id.
Tokens are signed and verified with the secret key from configuration.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status  # type: ignore[import-untyped]
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer  # type: ignore[import-untyped]
from jose import JWTError, jwt  # type: ignore[import-untyped]

from time_ledger.api.dependencies import get_config
from time_ledger.core.config import ConfigManager

ALGORITHM = "HS256"

# Missing credentials are reported by verify_token so that disabled
# authentication does not require a header.
security = HTTPBearer(auto_error=False)


def create_access_token(
    data: dict[str, Any], secret_key: str, expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token.

    Args:
        data: Claims to encode in the token
        secret_key: Secret key for signing
        expires_delta: Token lifetime. Defaults to 24 hours

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    to_encode.update({"exp": now + (expires_delta or timedelta(hours=24)), "iat": now})

    encoded_jwt: str = jwt.encode(to_encode, secret_key, algorithm=ALGORITHM)
    return encoded_jwt


def verify_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict[str, Any]:
    """Verify the bearer token of a request.

    Returns:
        Decoded token payload. With authentication disabled, a payload for
        the configured default user.

    Raises:
        HTTPException: If the token is missing, invalid or expired
    """
    config = get_config(request)

    if not config.get("api.authentication.enabled", True):
        return {"sub": str(config.get("defaults.user_id", 1))}

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    secret_key = config.get("api.authentication.secret_key")
    if not secret_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API secret key not configured",
        )

    try:
        payload: dict[str, Any] = jwt.decode(
            credentials.credentials, secret_key, algorithms=[ALGORITHM]
        )
        return payload
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_user(payload: dict[str, Any] = Depends(verify_token)) -> int:
    """User id carried in the ``sub`` claim.

    Raises:
        HTTPException: If the claim is missing or not an integer
    """
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token subject is not a user id",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_token_expiry_seconds(config: ConfigManager) -> int:
    """Token lifetime in seconds from ``api.authentication.token_expiry_hours``."""
    hours: int = config.get("api.authentication.token_expiry_hours", 24)
    return hours * 3600


def create_token_for_user(
    config: ConfigManager, user_id: int, expires_delta: Optional[timedelta] = None
) -> dict[str, Any]:
    """Create a complete token response.

    Args:
        config: Configuration manager
        user_id: User the token authenticates
        expires_delta: Token lifetime. Defaults to the configured expiry

    Returns:
        Dictionary with access_token, token_type, and expires_in

    Example:
        >>> token_data = create_token_for_user(config, user_id=1)
        >>> print(token_data["access_token"])
    """
    secret_key = config.ensure_api_secret_key()

    if expires_delta is None:
        expires_delta = timedelta(seconds=get_token_expiry_seconds(config))

    access_token = create_access_token(
        data={"sub": str(user_id)}, secret_key=secret_key, expires_delta=expires_delta
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": int(expires_delta.total_seconds()),
    }
