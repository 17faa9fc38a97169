"""Turn what an API handler (or fallback) returned into a ``Response``."""

from typing import Any

from roost.http.response import Response

_OCTETS = "application/octet-stream"


def negotiate(value: Any) -> Response:
    """Convert *value* to a ``Response`` by its type.

    ``Response`` passes through; ``str`` is HTML; ``bytes`` is an octet
    stream; ``dict`` and ``list`` are JSON; ``None`` is an empty 204.
    A ``(value, status)`` or ``(value, status, headers)`` tuple
    negotiates *value* and then applies the status and headers.
    """
    match value:
        case Response():
            return value
        case None:
            return Response(body="", status=204)
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type=_OCTETS)
        case dict() | list():
            return Response.json(value)
        case (body, int() as status):
            return negotiate(body).with_status(status)
        case (body, int() as status, dict() as headers):
            return negotiate(body).with_status(status).with_headers(headers)
    raise TypeError(
        f"Cannot convert {type(value).__name__} to a response; "
        "return a Response, str, bytes, dict, list or None"
    )
