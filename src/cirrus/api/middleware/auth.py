"""JWT Bearer authentication middleware."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from cirrus.config import settings

logger = logging.getLogger(__name__)

# Paths that do not require authentication
_PUBLIC_PATHS = {
    "/health",
    "/health/live",
    "/health/ready",
    "/health/clock",
    "/docs",
    "/openapi.json",
    "/redoc",
}

_ANONYMOUS = {"sub": "anonymous", "roles": [], "scopes": []}


def _decode_jwt(token: str) -> dict:
    from jose import JWTError, jwt

    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except JWTError as exc:
        logger.debug("JWT decode failed: %s", exc)
        raise ValueError(f"Invalid token: {exc}") from exc


class AuthMiddleware(BaseHTTPMiddleware):
    """Validate a Bearer token and attach user info to request.state."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path

        if path in _PUBLIC_PATHS or path.startswith("/docs") or path.startswith("/redoc"):
            request.state.user = dict(_ANONYMOUS)
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        if auth_header.startswith("Bearer "):
            request.state.user = self._validate_jwt(auth_header[7:])
        else:
            # Routes enforce authentication individually
            request.state.user = dict(_ANONYMOUS)
        return await call_next(request)

    def _validate_jwt(self, token: str) -> dict:
        try:
            payload = _decode_jwt(token)
        except ValueError:
            return {**_ANONYMOUS, "_auth_error": "invalid_token"}

        return {
            "sub": payload.get("sub", ""),
            "roles": payload.get("roles", []),
            "scopes": payload.get("scopes", ["*"]),
            "email": payload.get("email", ""),
        }
