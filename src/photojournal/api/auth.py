"""HTTP Basic authentication for the management API."""

import secrets

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import ADMIN_USERNAME, AppConfig
from ..errors import AuthenticationError

security = HTTPBasic(auto_error=False)

# Every mutating /api request needs the admin credential
ADMIN_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


async def read_credentials(request: Request) -> HTTPBasicCredentials | None:
    """Basic credentials from the Authorization header; None when missing or malformed."""
    try:
        return await security(request)
    except StarletteHTTPException:
        return None


def verify_admin(config: AppConfig, credentials: HTTPBasicCredentials | None, path: str) -> str:
    """
    Check credentials against the admin user.

    Returns:
        str: Authenticated user name

    Raises:
        AuthenticationError: If credentials are missing or wrong
    """
    if credentials is None:
        raise AuthenticationError(
            "Missing or malformed Authorization header",
            code="auth_required",
            user_message="Authentication required",
            details={"path": path},
        )

    username_ok = secrets.compare_digest(credentials.username.encode("utf-8"), ADMIN_USERNAME.encode("utf-8"))
    password_ok = secrets.compare_digest(credentials.password.encode("utf-8"), config.admin_password.encode("utf-8"))

    if not (username_ok and password_ok):
        raise AuthenticationError(
            "Invalid admin credentials",
            code="invalid_credentials",
            user_message="Invalid credentials",
            details={"path": path, "username": credentials.username},
        )

    return credentials.username


async def require_admin(request: Request) -> str:
    """Dependency admitting only the admin user."""
    credentials = await read_credentials(request)
    return verify_admin(request.app.state.config, credentials, request.url.path)


async def admin_guard(request: Request, call_next):
    """
    Middleware rejecting unauthenticated management requests before the
    route reads, parses or spools the request body.
    """
    if request.method in ADMIN_METHODS and request.url.path.startswith("/api/"):
        credentials = await read_credentials(request)
        try:
            verify_admin(request.app.state.config, credentials, request.url.path)
        except AuthenticationError as exc:
            return JSONResponse(exc.to_response(), status_code=exc.status_code)
    return await call_next(request)
