"""Request pipeline: one ASGI ``http`` scope in, one response out.

Per request::

    Received → Matched | NotMatched
             → Authorizing → Allowed | Denied
             → (view) StateComputed → Rendered
             → (API)  HandlerInvoked → Responded

Credentials are parsed once, right after the route matched, and travel
in the ``RequestContext`` from then on.
"""

import inspect
from collections.abc import Callable, Sequence
from functools import partial
from typing import Any

from roost._internal.invoke import invoke
from roost._internal.types import Receive, Scope, Send
from roost.context import RequestContext
from roost.errors import HTTPError, Unauthorized
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next
from roost.routing.params import kwarg_name
from roost.routing.route import Route
from roost.routing.router import Router
from roost.security.credentials import extract_credentials
from roost.security.policy import Decision, authorize
from roost.server.errors import handle_http_error, handle_internal_error, json_error
from roost.server.negotiation import negotiate
from roost.server.sender import send_response
from roost.views.dispatcher import ViewDispatcher

type Providers = dict[type, Callable[..., Any]]

_EMPTY = inspect.Parameter.empty


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    dispatcher: ViewDispatcher,
    middleware: Sequence[Callable[..., Any]],
    fallbacks: dict[int, Callable[..., Any]],
    providers: Providers | None = None,
    realm: str = "roost",
    debug: bool = False,
) -> None:
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    endpoint = partial(
        _dispatch,
        router=router,
        dispatcher=dispatcher,
        providers=providers or {},
        realm=realm,
    )

    try:
        response = await _chain(middleware, endpoint)(request)
    except HTTPError as exc:
        try:
            response = await handle_http_error(exc, request, fallbacks, dispatcher, debug)
        except Exception as broken:
            response = handle_internal_error(broken, request, debug)
    except Exception as exc:
        response = handle_internal_error(exc, request, debug)

    await send_response(response, send, head=request.method == "HEAD")


def _chain(middleware: Sequence[Callable[..., Any]], endpoint: Next) -> Next:
    """Wrap *endpoint* so the first middleware runs outermost."""
    call = endpoint
    for mw in reversed(middleware):
        call = partial(_step, mw, call)
    return call


async def _step(mw: Callable[..., Any], following: Next, request: Request) -> Response:
    return await mw(request, following)


async def _dispatch(
    request: Request,
    *,
    router: Router,
    dispatcher: ViewDispatcher,
    providers: Providers,
    realm: str,
) -> Response:
    match = router.match(request.method, request.path)
    request = request.with_path_params(match.path_params)
    context = RequestContext.from_request(request, extract_credentials(request.headers))
    route = match.route

    if route.is_view:
        _require_access(route, context, request, realm)
        return await dispatcher.render(route.target, context)

    # API routes answer their own HTTP errors in JSON
    try:
        _require_access(route, context, request, realm)
        result = await invoke(route.target, **_arguments(route.target, request, context, providers))
    except HTTPError as exc:
        return json_error(exc)
    return negotiate(result)


def _require_access(route: Route, context: RequestContext, request: Request, realm: str) -> None:
    if authorize(context.credentials, route.roles, request=request) is Decision.DENY:
        raise Unauthorized(realm=realm)


def _coerce(value: str, annotation: Any) -> Any:
    if annotation is _EMPTY:
        return value
    try:
        return annotation(value)
    except (TypeError, ValueError):
        return value


def _arguments(
    handler: Callable[..., Any],
    request: Request,
    context: RequestContext,
    providers: Providers,
) -> dict[str, Any]:
    """Keyword arguments for *handler*, chosen by parameter name and annotation.

    A parameter gets, in this order: the ``Request`` (named ``request`` or
    annotated ``Request``), the ``RequestContext`` (named ``context`` or
    annotated), a path parameter (``user-id`` arrives as ``user_id``,
    converted with the annotation when it accepts the string), or an
    instance from the provider registered for its annotation. Anything
    else is left to the handler's own default.
    """
    path_values = {kwarg_name(key): raw for key, raw in request.path_params.items()}
    resolved: dict[str, Any] = {}

    for name, param in inspect.signature(handler, eval_str=True).parameters.items():
        hint = param.annotation
        if name == "request" or hint is Request:
            resolved[name] = request
        elif name == "context" or hint is RequestContext:
            resolved[name] = context
        elif name in path_values:
            resolved[name] = _coerce(path_values[name], hint)
        elif hint is not _EMPTY and hint in providers:
            resolved[name] = providers[hint]()

    return resolved
