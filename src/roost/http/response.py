"""Outgoing response, built by immutable ``with_*`` steps."""

import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

type HeaderPairs = tuple[tuple[str, str], ...]

_JSON = "application/json; charset=utf-8"
_TEXT = "text/plain; charset=utf-8"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response.

    The default content type is HTML, which is what view routes render.
    API routes and error paths use the ``json`` and ``plain`` builders::

        Response.json({"error": "Unauthorized", "status": 401}, status=401)
        Response.plain("Internal Server Error", status=500)
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: HeaderPairs = ()

    @classmethod
    def json(cls, value: Any, *, status: int = 200) -> Response:
        return cls(json.dumps(value, default=str), status, _JSON)

    @classmethod
    def plain(cls, text: str, *, status: int = 200) -> Response:
        return cls(text, status, _TEXT)

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str] | HeaderPairs) -> Response:
        """Append *headers*, given as a mapping or as ``(name, value)`` pairs."""
        pairs = headers.items() if isinstance(headers, Mapping) else headers
        return replace(self, headers=(*self.headers, *pairs))

    def header(self, name: str, default: str | None = None) -> str | None:
        """First value of header *name*, compared case-insensitively."""
        return next(
            (value for key, value in self.headers if key.lower() == name.lower()),
            default,
        )

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode("utf-8") if isinstance(self.body, str) else self.body

    @property
    def text(self) -> str:
        return self.body if isinstance(self.body, str) else self.body.decode("utf-8")

    def json_body(self) -> Any:
        """Decode the body as JSON (test and client convenience)."""
        return json.loads(self.body_bytes)
