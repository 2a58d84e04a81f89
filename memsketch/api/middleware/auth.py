"""
Bearer-token authentication middleware.

Validates ``Authorization: Bearer <token>`` on ``/api/v1/`` routes against
``settings.api_tokens`` (token -> user id) and stores the resolved user on
``request.state.user_id``. Health, docs and CORS preflight requests pass
through untouched.
"""

from datetime import UTC, datetime

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from memsketch.core.config import get_settings
from memsketch.core.exceptions import AuthenticationError


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={
            "success": False,
            "error": detail,
            "code": "AUTH_REQUIRED",
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """Resolve the caller from a bearer token on /api/v1/ routes."""

    _PROTECTED_PREFIX = "/api/v1/"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method == "OPTIONS" or not request.url.path.startswith(self._PROTECTED_PREFIX):
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        if not auth_header:
            return _unauthorized("No authorization header")
        if not auth_header.startswith("Bearer "):
            return _unauthorized("Unauthorized")

        token = auth_header[len("Bearer ") :].strip()
        user_id = get_settings().api_tokens.get(token)
        if not user_id:
            return _unauthorized("Unauthorized")

        request.state.user_id = user_id
        return await call_next(request)


def current_user_id(request: Request) -> str:
    """FastAPI dependency returning the authenticated user id."""
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise AuthenticationError()
    return user_id
