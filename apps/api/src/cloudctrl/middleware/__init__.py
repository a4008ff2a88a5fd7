from .auth import BearerKeyAuth
from .request_context import RequestContextMiddleware

__all__ = ["BearerKeyAuth", "RequestContextMiddleware"]
