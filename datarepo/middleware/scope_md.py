from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from datarepo.context.scope import Scope

class ScopeMiddleware(BaseHTTPMiddleware):
    """Opens one Scope per request and closes it (and its contexts) on every exit path."""

    async def dispatch(self, request: Request, call_next):
        scope = Scope(scope_id=getattr(request.state, "trace_id", None))
        request.state.scope = scope
        try:
            return await call_next(request)
        finally:
            await scope.close()
            logger.debug(f"Request scope {scope.scope_id} released")


def get_request_scope(request: Request) -> Scope:
    """Dependency: the Scope of the current request."""
    scope = getattr(request.state, "scope", None)
    if scope is None:
        raise RuntimeError("ScopeMiddleware is not installed")
    return scope
