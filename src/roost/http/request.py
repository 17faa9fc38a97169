"""The incoming request, as the pipeline sees it."""

import json
from dataclasses import dataclass, field, replace
from typing import Any

from roost._internal.types import Receive, Scope
from roost.http.headers import Headers
from roost.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An HTTP request.

    Built from the ASGI scope before routing, so ``path_params`` starts
    empty; once a route matches, the pipeline continues with the copy
    returned by ``with_path_params()``. Credentials are not parsed here;
    see ``roost.security.credentials``.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: dict[str, str] = field(default_factory=dict)
    _receive: Receive | None = field(default=None, repr=False, compare=False)
    # Shared between copies so the body is read from ASGI at most once
    _body: list[bytes] = field(default_factory=list, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=Headers(scope.get("headers", ())),
            query=QueryParams(scope.get("query_string", b"")),
            _receive=receive,
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    def with_path_params(self, path_params: dict[str, str]) -> Request:
        """Copy of this request carrying the router's captures."""
        return replace(self, path_params=path_params)

    async def body(self) -> bytes:
        """The complete request body."""
        if not self._body:
            chunks: list[bytes] = []
            more = self._receive is not None
            while more:
                message = await self._receive()
                chunks.append(message.get("body", b""))
                more = message.get("more_body", False)
            self._body.append(b"".join(chunks))
        return self._body[0]

    async def json(self) -> Any:
        """The request body decoded as JSON."""
        return json.loads(await self.body())
