"""The middleware shape.

Middleware sits outside routing and the access gate. It sees every
request, matched or not, and every response, 401s and fallbacks
included. An ``HTTPError`` raised from middleware goes through the same
error path as one raised by the router: ``NotMatched`` and
``MethodNotAllowed`` reach the fallback registered for their status, and
any other ``HTTPError`` (or a miss with no fallback) gets a plain-text
body with the error's headers.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from roost.http.request import Request
from roost.http.response import Response

type Next = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Any async callable taking ``(request, next)``.

    A function or an object with ``__call__`` both fit::

        async def no_store(request: Request, next: Next) -> Response:
            response = await next(request)
            if response.status == 401:
                return response
            return response.with_header("Cache-Control", "no-store")
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...
