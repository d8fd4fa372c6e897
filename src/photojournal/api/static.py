"""Static file serving with environment-dependent cache headers."""

from fastapi.staticfiles import StaticFiles
from starlette.responses import Response
from starlette.types import Scope


def cache_control(max_age: int) -> str:
    return f"public, max-age={max_age}" if max_age > 0 else "no-cache"


class CachedStaticFiles(StaticFiles):
    """StaticFiles that adds Cache-Control; ETag and Last-Modified come from Starlette."""

    def __init__(self, *args, max_age: int = 0, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.max_age = max_age

    async def get_response(self, path: str, scope: Scope) -> Response:
        response = await super().get_response(path, scope)
        if response.status_code in (200, 304):
            response.headers["Cache-Control"] = cache_control(self.max_age)
        return response
