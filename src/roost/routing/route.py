"""What a registered route is, and what the router hands back on a hit."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from roost.security.roles import Role


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/users``      (is_param=False)
    Param:   ``/:user-id``   (is_param=True, param_name="user-id")
    Param:   ``/{id}``       (is_param=True, param_name="id")
    Typed:   ``/{id:int}``   (is_param=True, param_name="id", param_type="int")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class ViewTarget:
    """A route target that renders a named client component."""

    component: str


type Target = ViewTarget | Callable[..., Any]


@dataclass(frozen=True, slots=True)
class Route:
    """One registered route.

    ``target`` is either a ``ViewTarget`` (render a component) or an API
    handler. An empty ``roles`` set registers the route but denies every
    request to it.
    """

    path: str
    target: Target
    methods: frozenset[str]
    roles: frozenset[Role] = field(default_factory=frozenset)
    name: str | None = None

    @property
    def is_view(self) -> bool:
        """True when the route renders a client component."""
        return isinstance(self.target, ViewTarget)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """The matched route and its raw path parameter strings."""

    route: Route
    path_params: dict[str, str]
