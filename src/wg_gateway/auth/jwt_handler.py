"""JWT access-token verification.

Tokens are issued by the surrounding identity service; the engine only needs
to read who the caller is. Claims:
  sub  — user id
  adm  — true when the identity holds the administrative capability
  type — always "access"

HS256 with a shared JWT_SECRET. create_access_token exists for local tooling
and tests; production tokens come from the identity service.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.wg_common.errors import AppError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


class InvalidTokenError(AppError):
    kind = "Unauthenticated"

    def __init__(self) -> None:
        super().__init__(6002, "Invalid or expired token", 401)


def create_access_token(user_id: str, is_admin: bool = False) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "adm": is_admin,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token. Raises InvalidTokenError."""
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidTokenError() from None

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidTokenError()
    return payload
