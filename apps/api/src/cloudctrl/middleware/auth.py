"""
Bearer key gate for the API.

If CLOUDCTRL_API_KEY is not set, the gate is open. If set, every request
outside the health endpoints must send ``Authorization: Bearer <key>``.
The end user's identity arrives separately (see request_context).
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core.crypto import secure_compare

PUBLIC_PATHS = frozenset({"/health", "/"})


class BearerKeyAuth(BaseHTTPMiddleware):
    """Rejects requests without the configured bearer key."""

    def __init__(self, app, api_key: str | None = None):
        super().__init__(app)
        self.api_key = (api_key or "").strip()

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in PUBLIC_PATHS or not self.api_key:
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        if auth_header.lower().startswith("bearer "):
            token = auth_header.split(" ", 1)[1].strip()
            if secure_compare(token, self.api_key):
                return await call_next(request)

        return JSONResponse(status_code=401, content={"detail": "unauthorized"})
