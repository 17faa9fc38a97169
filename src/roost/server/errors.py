"""Turning a failed request into a response.

Which body an error gets depends on where it came from:

- Router misses (``NotMatched``, ``MethodNotAllowed``) go to the
  fallback registered for their status, if any.
- API routes turn ``HTTPError`` into a JSON body (``json_error``).
- Anything else becomes a plain-text error with the error's headers.
- Unexpected exceptions become a generic 500 and are logged; internal
  detail only reaches the response body in debug mode.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from roost._internal.invoke import invoke
from roost.context import RequestContext
from roost.errors import HTTPError, MethodNotAllowed, NotMatched
from roost.http.request import Request
from roost.http.response import Response
from roost.routing.route import ViewTarget
from roost.security.credentials import extract_credentials
from roost.server.negotiation import negotiate
from roost.views.dispatcher import ViewDispatcher

logger = logging.getLogger("roost.server")

ROUTER_MISSES: tuple[type[HTTPError], ...] = (NotMatched, MethodNotAllowed)


def json_error(exc: HTTPError) -> Response:
    """The JSON error body API routes respond with."""
    body = {"error": exc.detail or f"Error {exc.status}", "status": exc.status}
    return Response.json(body, status=exc.status).with_headers(exc.headers)


async def call_fallback(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
    dispatcher: ViewDispatcher,
) -> Response:
    """Run a fallback and shape its result into the error response.

    A fallback declares up to two parameters and receives that many of
    ``(request, exc)``. A returned ``ViewTarget`` is rendered through the
    dispatcher; anything else is negotiated. Either way the response
    keeps the error's status unless the fallback chose a non-200 one.
    """
    arity = min(len(inspect.signature(handler).parameters), 2)
    result = await invoke(handler, *(request, exc)[:arity])

    status = exc.status if isinstance(exc, HTTPError) else 500
    if isinstance(result, ViewTarget):
        context = RequestContext.from_request(request, extract_credentials(request.headers))
        return await dispatcher.render(result, context, status=status)

    response = negotiate(result)
    return response.with_status(status) if response.status == 200 else response


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    fallbacks: dict[int, Callable[..., Any]],
    dispatcher: ViewDispatcher,
    debug: bool,
) -> Response:
    """Respond to an ``HTTPError`` raised outside an API route."""
    logger.debug("%s %s answered %d: %s", request.method, request.path, exc.status, exc.detail)

    if isinstance(exc, ROUTER_MISSES):
        handler = fallbacks.get(exc.status)
        if handler is not None:
            response = await call_fallback(handler, request, exc, dispatcher)
            return response.with_headers(exc.headers)

    text = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        text = f"{exc.status}: {text}"
    return Response.plain(text, status=exc.status).with_headers(exc.headers)


def handle_internal_error(exc: Exception, request: Request, debug: bool) -> Response:
    """Log *exc* and answer with a generic 500."""
    logger.exception("Unhandled error in %s %s", request.method, request.path)
    if not debug:
        return Response.plain("Internal Server Error", status=500)
    return Response.plain(
        f"Internal Server Error\n\n{type(exc).__name__}: {exc}", status=500
    )
