"""Component registry — the client components the layout can mount.

The registry is the server's view of what the client runtime knows how to
mount. View routes are checked against it when the app compiles; a route
naming an unregistered component aborts startup with ``MisconfiguredRoute``.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from roost.errors import ConfigurationError, MisconfiguredRoute


@dataclass(frozen=True, slots=True)
class Component:
    """A named client component.

    Attributes:
        name: The name routes refer to and the client registers under.
        src: Script URL that defines the component. ``None`` when the
            component is registered by a bundle loaded elsewhere.
        version: Opaque version string. Sent as ``data-roost-version`` on
            the component's script tag and reported in ``roost:mount``
            events; components without ``src`` report the runtime version.
    """

    name: str
    src: str | None = None
    version: str = "1"


class ComponentRegistry:
    """Ordered name → ``Component`` mapping.

    Mutable during setup, read-only once the app has compiled.
    """

    __slots__ = ("_components",)

    def __init__(self, components: tuple[Component, ...] = ()) -> None:
        self._components: dict[str, Component] = {}
        for component in components:
            self.add(component)

    def add(self, component: Component) -> None:
        """Register a component. Names are unique."""
        if not component.name.strip():
            msg = "Component name must not be empty."
            raise ConfigurationError(msg)
        if component.name in self._components:
            msg = f"Component {component.name!r} is already registered."
            raise ConfigurationError(msg)
        self._components[component.name] = component

    def __contains__(self, name: object) -> bool:
        return name in self._components

    def __iter__(self) -> Iterator[Component]:
        return iter(self._components.values())

    def __len__(self) -> int:
        return len(self._components)

    @property
    def names(self) -> list[str]:
        """Registered names, in registration order."""
        return list(self._components)

    def resolve(self, name: str, *, route: str | None = None) -> Component:
        """Return the component called *name*.

        Raises ``MisconfiguredRoute`` when it is not registered.
        """
        try:
            return self._components[name]
        except KeyError:
            where = f" (route {route!r})" if route else ""
            known = ", ".join(repr(n) for n in self._components) or "none"
            msg = f"Unknown component {name!r}{where}. Registered components: {known}."
            raise MisconfiguredRoute(msg) from None
