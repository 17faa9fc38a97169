"""Writing a ``Response`` to the ASGI ``send`` channel."""

from roost._internal.types import Send
from roost.http.response import Response

# Status codes whose responses never carry a body
_BODYLESS = frozenset({204, 304})


def encode_headers(response: Response, content_length: int) -> list[tuple[bytes, bytes]]:
    """Wire headers: content type, the response's own headers, then length."""
    pairs = [("content-type", response.content_type), *response.headers]
    pairs.append(("content-length", str(content_length)))
    return [(name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in pairs]


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Send *response* as one start message and one body message.

    A ``HEAD`` response announces the length of the body it would have
    sent, and sends none.
    """
    bodyless = response.status < 200 or response.status in _BODYLESS
    body = b"" if bodyless else response.body_bytes
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": encode_headers(response, len(body)),
        }
    )
    await send({"type": "http.response.body", "body": b"" if head else body})
