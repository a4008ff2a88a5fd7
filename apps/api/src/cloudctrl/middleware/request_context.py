"""
Request context middleware.

- Propagates or generates X-Request-ID and echoes it on the response
- Reads the end user's identity from X-User-Id (set by the upstream auth
  proxy); absent means an anonymous request on default credentials
- Binds both to the logging context and logs request start/end
"""
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core.logging import get_logger, set_request_context
from ..services.cached_fetch import validate_user_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
USER_ID_HEADER = "X-User-Id"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        user_id = (request.headers.get(USER_ID_HEADER) or "").strip() or None

        if user_id is not None:
            try:
                validate_user_id(user_id)
            except ValueError as exc:
                logger.warning("Rejected %s header on %s: %s", USER_ID_HEADER, request.url.path, exc)
                response = JSONResponse(
                    status_code=400,
                    content={"detail": f"Invalid {USER_ID_HEADER}: {exc}", "code": "invalid_user_id"},
                )
                response.headers[REQUEST_ID_HEADER] = request_id
                return response

        request.state.request_id = request_id
        request.state.user_id = user_id
        set_request_context(request_id, user_id)

        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "Request completed: %s %s -> %s (%.1fms)",
                request.method, request.url.path, response.status_code, elapsed_ms,
            )
        except Exception:
            logger.exception("Request failed: %s %s", request.method, request.url.path)
            raise
        finally:
            set_request_context(None, None)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
