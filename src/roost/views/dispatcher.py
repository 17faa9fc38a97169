"""View dispatcher — renders the layout shell for a view route.

The dispatcher is built once, when the app compiles, from an explicit
configuration: component registry, compiled layout, state function and
app config. It holds no per-request state and is shared by every
request.

Authorization happens upstream in the request pipeline. ``render()``
is only reached for allowed requests, so the state function never runs
for a denied one.
"""

from typing import Any

from kida.template import Markup

from roost.config import AppConfig
from roost.context import RequestContext
from roost.http.response import Response
from roost.routing.route import ViewTarget
from roost.views.components import ComponentRegistry
from roost.views.runtime import runtime_snippet
from roost.views.state import StateFunction, compute_state, embedded_state


class ViewDispatcher:
    """Resolve a view target, compute its state, and render the layout.

    Usage::

        dispatcher = ViewDispatcher(registry, layout, state_fn, config)
        response = await dispatcher.render(ViewTarget("user-profile"), context)
    """

    __slots__ = ("_components", "_config", "_layout", "_runtime", "_state_fn")

    def __init__(
        self,
        components: ComponentRegistry,
        layout: Any,
        state_fn: StateFunction | None,
        config: AppConfig,
    ) -> None:
        self._components = components
        self._layout = layout
        self._state_fn = state_fn
        self._config = config
        self._runtime = Markup(
            runtime_snippet(
                state_id=config.state_element_id,
                registry_id=config.registry_element_id,
            )
        )

    @property
    def components(self) -> ComponentRegistry:
        return self._components

    async def render(
        self,
        target: ViewTarget,
        context: RequestContext,
        *,
        status: int = 200,
    ) -> Response:
        """Render the shell that mounts *target* with its state.

        Calls the state function exactly once. Unknown components raise
        ``MisconfiguredRoute``; for registered routes that is caught at
        compile time, so here it only fires for fallback handlers that
        return an unregistered ``ViewTarget``.
        """
        component = self._components.resolve(target.component)
        payload = await compute_state(self._state_fn, context)
        cfg = self._config

        html = self._layout.render(
            {
                "title": cfg.title,
                "runtime": self._runtime,
                "component": component.name,
                "components": list(self._components),
                "embedded": embedded_state(payload, context),
                "mount_id": cfg.mount_id,
                "state_id": cfg.state_element_id,
                "registry_id": cfg.registry_element_id,
            }
        )
        return Response(body=html, status=status)
