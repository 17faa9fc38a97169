"""Request middleware: ``async def mw(request, next) -> Response``."""

from roost.middleware.protocol import Middleware, Next

__all__ = ["Middleware", "Next"]
