"""State payloads — computing, serializing, and reading them back.

The state function is a pure function of the ``RequestContext``. Its
output is embedded into the layout next to the matched path and query
parameters, inside a ``<script type="application/json">`` element::

    {"state": {...}, "params": {...}, "query": {...}}

``serialize_embedded()`` escapes ``<``, ``>``, ``&`` and the JS line
separators as ``\\uXXXX`` so the payload cannot terminate its script
element; ``json.loads`` undoes the escapes, so the round trip is exact.
NaN and the infinities are rejected on both sides, since browsers
cannot ``JSON.parse`` them.
"""

import html
import json
import re
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from roost._internal.invoke import invoke
from roost.context import RequestContext

type StatePayload = dict[str, Any]
type StateFunction = Callable[[RequestContext], Mapping[str, Any] | Awaitable[Mapping[str, Any]]]

_SCRIPT_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_SCRIPT_UNSAFE = re.compile("[<>&\u2028\u2029]")


async def compute_state(fn: StateFunction | None, context: RequestContext) -> StatePayload:
    """Call the state function once for *context*.

    No state function means an empty payload. A non-mapping result is a
    programming error and raises ``TypeError``.
    """
    if fn is None:
        return {}
    result = await invoke(fn, context)
    if not isinstance(result, Mapping):
        msg = (
            f"State function {getattr(fn, '__name__', fn)!r} returned "
            f"{type(result).__name__}; expected a mapping."
        )
        raise TypeError(msg)
    return dict(result)


def embedded_state(payload: StatePayload, context: RequestContext) -> dict[str, Any]:
    """The document the client reads: state plus matched params and query."""
    return {
        "state": payload,
        "params": dict(context.path_params),
        "query": context.query.first_values(),
    }


def serialize_embedded(value: Any) -> str:
    """JSON for embedding inside a ``<script>`` element.

    Raises ``ValueError`` for NaN or infinite floats.
    """
    raw = json.dumps(
        value, separators=(",", ":"), ensure_ascii=False, allow_nan=False, default=str
    )
    return _SCRIPT_UNSAFE.sub(lambda m: _SCRIPT_ESCAPES[m.group(0)], raw)


def read_embedded_state(document: str, element_id: str = "roost-state") -> dict[str, Any]:
    """Recover the embedded document from rendered HTML.

    The server-side twin of the client runtime's ``roost.state()`` /
    ``roost.params()`` / ``roost.query()`` accessors.

    Raises ``ValueError`` when the element is missing or holds a
    constant (``NaN``, ``Infinity``) that is not strict JSON.
    """
    pattern = re.compile(
        r'<script type="application/json" id="'
        + re.escape(html.escape(element_id, quote=True))
        + r'">(.*?)</script>',
        re.DOTALL,
    )
    found = pattern.search(document)
    if found is None:
        msg = f"No embedded state element with id {element_id!r}."
        raise ValueError(msg)
    return json.loads(found.group(1), parse_constant=_reject_constant)


def _reject_constant(name: str) -> Any:
    msg = f"Embedded state contains {name}, which is not valid JSON."
    raise ValueError(msg)
