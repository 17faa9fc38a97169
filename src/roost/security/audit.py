"""Access decision events.

Every pass through the access gate produces one ``SecurityEvent``
(``access.allow`` or ``access.deny``). Nothing is recorded unless an
application installs a sink::

    from roost.security import set_security_event_sink

    events = []
    set_security_event_sink(events.append)
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from time import time
from typing import Any


@dataclass(frozen=True, slots=True)
class SecurityEvent:
    """One access decision.

    Attributes:
        name: ``access.allow`` or ``access.deny``.
        path: Request path, when the decision was made for a request.
        method: Request method, likewise.
        username: Presented username; ``None`` for anonymous callers.
        roles: The route's permitted roles, sorted by label.
        reason: Why a request was denied (``no_roles`` or
            ``credentials_required``); ``None`` for allows.
    """

    name: str
    path: str | None = None
    method: str | None = None
    username: str | None = None
    roles: tuple[str, ...] = ()
    reason: str | None = None
    timestamp: float = field(default_factory=time)


type SecurityEventSink = Callable[[SecurityEvent], None]

_lock = threading.Lock()
_sink: SecurityEventSink | None = None


def set_security_event_sink(sink: SecurityEventSink | None) -> SecurityEventSink | None:
    """Install *sink* process-wide and return the one it replaces.

    ``None`` turns delivery off.
    """
    global _sink
    with _lock:
        previous, _sink = _sink, sink
    return previous


def emit_security_event(
    name: str,
    *,
    request: Any | None = None,
    username: str | None = None,
    roles: tuple[str, ...] = (),
    reason: str | None = None,
) -> None:
    """Deliver an event to the installed sink, if there is one."""
    sink = _sink
    if sink is None:
        return
    sink(
        SecurityEvent(
            name=name,
            path=getattr(request, "path", None),
            method=getattr(request, "method", None),
            username=username,
            roles=roles,
            reason=reason,
        )
    )
