"""Exceptions raised by roost.

``ConfigurationError`` and its subclasses are setup mistakes, raised before the
first request is served. ``HTTPError`` and its subclasses carry a status
and become responses.
"""

from dataclasses import dataclass


class RoostError(Exception):
    """Base for all roost-specific errors."""


class ConfigurationError(RoostError):
    """A route, component or provider was registered incorrectly."""


class MisconfiguredRoute(ConfigurationError):  # noqa: N818
    """A view route references a component the registry does not know.

    Detected when the app compiles. Fatal: startup is aborted rather than
    deferring the failure to the first request.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(RoostError):
    """A failure with a status code, plus any headers the response needs."""

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        return f"{self.status}: {self.detail}" if self.detail else str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — the requested thing does not exist."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class NotMatched(NotFound):  # noqa: N818
    """404 — no route pattern fits the request method and path.

    Only this error (and ``MethodNotAllowed``) consults the registered
    per-status fallbacks. A handler raising plain ``NotFound`` does not.
    """


class RecordNotFound(NotFound):  # noqa: N818
    """404 — no record with the requested id."""

    def __init__(self, record_id: str) -> None:
        super().__init__(detail=f"No record with id {record_id!r}")


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — a route pattern matched but not for this HTTP method.

    ``allowed`` goes out in the ``Allow`` header, sorted.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow = ", ".join(sorted(allowed))
        super().__init__(
            status=405,
            detail=detail or f"Method not allowed; use {allow}",
            headers=(("Allow", allow),),
        )


class Unauthorized(HTTPError):  # noqa: N818
    """401 — the access gate denied the request.

    Carries a ``WWW-Authenticate`` challenge for the Basic scheme so
    browsers prompt for credentials.
    """

    def __init__(self, realm: str = "roost", detail: str = "Unauthorized") -> None:
        super().__init__(
            status=401,
            detail=detail,
            headers=(("WWW-Authenticate", f'Basic realm="{realm}"'),),
        )
