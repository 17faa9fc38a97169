"""Per-request context handed to the state function and handlers.

Built by the pipeline once a route has matched, after credentials have
been extracted. Owned by that request alone and discarded with it.
"""

from dataclasses import dataclass

from roost.http.query import QueryParams
from roost.http.request import Request
from roost.security.credentials import Credentials


@dataclass(frozen=True, slots=True)
class RequestContext:
    """What a state function is allowed to see about a request.

    Two contexts that compare equal must produce equal state payloads;
    state functions read from here and nowhere else.
    """

    method: str
    path: str
    path_params: dict[str, str]
    query: QueryParams
    credentials: Credentials | None = None

    @property
    def username(self) -> str | None:
        """The presented username, or ``None`` for anonymous callers."""
        if self.credentials is None or not self.credentials.is_present:
            return None
        return self.credentials.username

    @property
    def is_authenticated(self) -> bool:
        """True when credentials with a non-empty username were presented."""
        return self.username is not None

    @classmethod
    def from_request(cls, request: Request, credentials: Credentials | None) -> RequestContext:
        """Build the context for a matched request."""
        return cls(
            method=request.method,
            path=request.path,
            path_params=dict(request.path_params),
            query=request.query,
            credentials=credentials,
        )
