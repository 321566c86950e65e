"""Bearer-token authentication.

The middleware only validates the token and stores its claims on
``request.state.user``; ``dependencies.get_current_user`` resolves the
``sub`` claim to a user row, so public routes never touch the database.
"""

import logging

from jose import JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from dtbooking.config import settings

logger = logging.getLogger(__name__)

PUBLIC_PATHS = frozenset(
    {
        "/api/v1/health",
        "/api/v1/health/live",
        "/api/v1/health/ready",
        # Guest booking confirmation links carry no session
        "/api/v1/jobs/immediate-job-email",
        "/openapi.json",
    }
)
PUBLIC_PREFIXES = ("/docs", "/redoc")


def is_public(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


def decode_token(token: str) -> dict:
    """Claims of a booking API token. Raises ``JWTError`` when invalid."""
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )


class AuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        claims: dict = {"sub": "anonymous"}
        scheme, _, token = request.headers.get("authorization", "").partition(" ")
        if not is_public(request.url.path) and scheme.lower() == "bearer" and token:
            try:
                payload = decode_token(token)
            except JWTError as exc:
                logger.info("Rejected bearer token on %s: %s", request.url.path, exc)
                claims["_auth_error"] = "invalid_token"
            else:
                claims = {"sub": str(payload.get("sub", "")), "email": payload.get("email", "")}
        request.state.user = claims
        return await call_next(request)
