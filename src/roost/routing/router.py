"""Compiled router with ordered, first-match-wins pattern matching.

Routes are registered during setup and compiled into regex patterns.
Precedence is registration order, not specificity::

    router.add(Route("/users/:id", ...))   # registered first
    router.add(Route("/users/me", ...))    # never reached for GET /users/me

Register the more specific pattern first when two patterns overlap.
"""

import re
from dataclasses import dataclass

from roost.errors import ConfigurationError, MethodNotAllowed, NotMatched
from roost.routing.params import CONVERTERS, PARAM_NAME
from roost.routing.route import PathSegment, Route, RouteMatch


def _param_segment(part: str, name: str, param_type: str, path: str) -> PathSegment:
    if not PARAM_NAME.fullmatch(name):
        msg = f"Invalid parameter name {name!r} in route {path!r}."
        raise ConfigurationError(msg)
    if param_type not in CONVERTERS:
        known = ", ".join(sorted(CONVERTERS))
        msg = f"Unknown converter {param_type!r} in route {path!r}. Known converters: {known}."
        raise ConfigurationError(msg)
    return PathSegment(value=part, is_param=True, param_name=name, param_type=param_type)


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"             -> [PathSegment("users")]
        "/users/:user-id"    -> [PathSegment("users"), PathSegment(":user-id", is_param=True, ...)]
        "/users/{id:int}"    -> [PathSegment("users"), PathSegment("{id:int}", param_type="int")]
        "/files/{rest:path}" -> [PathSegment("files"), PathSegment("{rest:path}", ...)]

    Raises ``ConfigurationError`` for Flask-style ``<param>`` segments,
    invalid parameter names, unknown converters, repeated parameter
    names, or a ``path`` converter that is not the last segment.
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("<") and part.endswith(">"):
            msg = (
                f"Route {path!r} uses Flask-style <param> syntax. "
                "Use {param} or :param instead."
            )
            raise ConfigurationError(msg)
        if part.startswith(":"):
            segments.append(_param_segment(part, part[1:], "str", path))
        elif part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            name, _, param_type = inner.partition(":")
            segments.append(_param_segment(part, name, param_type or "str", path))
        else:
            segments.append(PathSegment(value=part))

    names = [s.param_name for s in segments if s.is_param]
    if len(names) != len(set(names)):
        msg = f"Route {path!r} repeats a parameter name."
        raise ConfigurationError(msg)
    for seg in segments[:-1]:
        if seg.param_type == "path":
            msg = f"Route {path!r}: a path parameter must be the last segment."
            raise ConfigurationError(msg)
    return segments


def compile_pattern(segments: list[PathSegment]) -> tuple[re.Pattern[str], tuple[str, ...]]:
    """Compile parsed segments into a regex for ``fullmatch``.

    Capture groups are positional (``p0``, ``p1``...) because parameter
    names such as ``user-id`` are not valid group names. The returned
    tuple maps group index to parameter name.
    """
    if not segments:
        return re.compile("/"), ()

    parts: list[str] = []
    names: list[str] = []
    for seg in segments:
        if seg.is_param:
            pattern = CONVERTERS[seg.param_type]
            parts.append(f"(?P<p{len(names)}>{pattern})")
            names.append(seg.param_name or "")
        else:
            parts.append(re.escape(seg.value))
    return re.compile("/" + "/".join(parts)), tuple(names)


def normalize_path(path: str) -> str:
    """Collapse empty segments and drop the trailing slash."""
    parts = [p for p in path.strip("/").split("/") if p]
    return "/" + "/".join(parts)


@dataclass(frozen=True, slots=True)
class _CompiledRoute:
    route: Route
    regex: re.Pattern[str]
    param_names: tuple[str, ...]


class Router:
    """Ordered router. First registered match wins.

    Usage::

        router = Router()
        router.add(Route("/users/:user-id", target, frozenset({"GET"}), roles))
        router.compile()
        match = router.match("GET", "/users/2")
        match.path_params  # {"user-id": "2"}
    """

    __slots__ = ("_compiled", "_entries")

    def __init__(self) -> None:
        self._entries: list[_CompiledRoute] = []
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route to the router. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        regex, names = compile_pattern(parse_path(route.path))
        self._entries.append(_CompiledRoute(route=route, regex=regex, param_names=names))

    @property
    def routes(self) -> list[Route]:
        """All registered routes, in registration (precedence) order."""
        return [entry.route for entry in self._entries]

    def compile(self) -> None:
        """Build the match table. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request method and path against the routes, in order.

        ``HEAD`` requests are served by ``GET`` routes.

        Returns a ``RouteMatch`` on success.
        Raises ``NotMatched`` if no route pattern fits the path.
        Raises ``MethodNotAllowed`` if patterns fit but none for this method.
        """
        normalized = normalize_path(path)
        allowed: set[str] = set()

        for entry in self._entries:
            m = entry.regex.fullmatch(normalized)
            if m is None:
                continue
            methods = entry.route.methods
            if method in methods or (method == "HEAD" and "GET" in methods):
                params = {name: m.group(f"p{i}") for i, name in enumerate(entry.param_names)}
                return RouteMatch(route=entry.route, path_params=params)
            allowed.update(methods)

        if allowed:
            raise MethodNotAllowed(frozenset(allowed))
        raise NotMatched(f"No route matches {method} {path!r}")
