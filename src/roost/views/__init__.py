"""Views — client components, state payloads, and the layout shell."""

from roost.views.components import Component, ComponentRegistry
from roost.views.dispatcher import ViewDispatcher
from roost.views.state import (
    StateFunction,
    StatePayload,
    compute_state,
    read_embedded_state,
    serialize_embedded,
)

__all__ = [
    "Component",
    "ComponentRegistry",
    "StateFunction",
    "StatePayload",
    "ViewDispatcher",
    "compute_state",
    "read_embedded_state",
    "serialize_embedded",
]
