"""Fixed-window rate limiting for mutating endpoints.

Redis INCR + EXPIRE per (client, minute). Read-only requests (GET/HEAD)
are never limited. The client key is the bearer token's subject when one
is present, else the first X-Forwarded-For hop, else the socket peer.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from config.settings import settings
from src.wg_common.errors import RateLimitError
from src.wg_common.redis_client import get_redis
from src.wg_common.response import error_response
from src.wg_gateway.auth.jwt_handler import InvalidTokenError, decode_token

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60
_EXEMPT_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def client_key(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        try:
            return f"user:{decode_token(auth[7:])['sub']}"
        except InvalidTokenError:
            pass
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: object, limit: int | None = None) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._limit = settings.RATE_LIMIT_PER_MINUTE if limit is None else limit

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self._limit <= 0 or request.method in _EXEMPT_METHODS:
            return await call_next(request)

        window = int(time.time()) // _WINDOW_SECONDS
        key = f"ratelimit:{client_key(request)}:{window}"
        redis = await get_redis()
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, _WINDOW_SECONDS)
        if count > self._limit:
            logger.info("Rate limit exceeded for %s", key)
            err = RateLimitError()
            retry_after = _WINDOW_SECONDS - int(time.time()) % _WINDOW_SECONDS
            return JSONResponse(
                status_code=err.http_status,
                content=error_response(err.code, err.message, err.kind).model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
