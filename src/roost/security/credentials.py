"""Credential extraction — once per request, independent of path.

The pipeline calls ``extract_credentials()`` exactly once for every
matched request and hands the result to the access gate and to the
``RequestContext``. Only the Basic scheme is understood; anything else
(or anything malformed) is treated as no credentials at all.
"""

import base64
import binascii
from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Credentials:
    """Credentials presented by the caller.

    The password is kept out of ``repr()`` so it never lands in logs.
    """

    username: str
    password: str = field(default="", repr=False)
    scheme: str = "Basic"

    @property
    def is_present(self) -> bool:
        """True when a non-empty username was presented."""
        return bool(self.username)


def extract_credentials(headers: Mapping[str, str]) -> Credentials | None:
    """Parse an ``Authorization: Basic <base64(user:password)>`` header.

    Returns ``None`` when the header is missing, uses another scheme,
    is not valid base64, or lacks the ``user:password`` separator.
    """
    header = headers.get("authorization")
    if not header:
        return None

    scheme, _, encoded = header.strip().partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return Credentials(username=username, password=password)


def basic_auth_header(username: str, password: str = "") -> str:
    """Build the ``Authorization`` header value for the Basic scheme."""
    token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
    return f"Basic {token}"
