"""FastAPI dependency: get_caller.

Usage in any router:
    from src.wg_gateway.auth.dependencies import get_caller

    @router.post("/bets/{bet_id}/stakes")
    async def place_stake(caller: Caller = Depends(get_caller)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.wg_common.identity import Caller
from src.wg_gateway.auth.jwt_handler import InvalidTokenError, decode_token

# auto_error=False so a missing header yields our own 401 with WWW-Authenticate
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_caller(token: str | None = Depends(oauth2_scheme)) -> Caller:
    """Build the Caller identity from the bearer token. HTTP 401 if absent/invalid."""
    if not token:
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = decode_token(token)
    except InvalidTokenError:
        raise _CREDENTIALS_EXCEPTION from None
    return Caller(user_id=str(payload["sub"]), is_admin=payload.get("adm") is True)
