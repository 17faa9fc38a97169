"""Roles — the closed set of labels a route can permit.

Roles are compared by value. Registration accepts either ``Role`` members
or their string labels; anything else fails at registration time.
"""

from collections.abc import Iterable
from enum import StrEnum

from roost.errors import ConfigurationError


class Role(StrEnum):
    """A label attached to a route at registration time."""

    ANYONE = "anyone"
    """Universal access, credentials or not."""

    LOGGED_IN = "logged-in"
    """Requires the caller to present credentials."""


type RoleSpec = Role | str | Iterable[Role | str] | None


def coerce_roles(roles: RoleSpec) -> frozenset[Role]:
    """Normalize a role declaration into a frozen set of ``Role`` members.

    Accepts a single role, a single label, an iterable of either, or
    ``None`` (no roles — the route will always deny)::

        coerce_roles("anyone")                    -> {Role.ANYONE}
        coerce_roles([Role.LOGGED_IN, "anyone"])  -> {Role.LOGGED_IN, Role.ANYONE}
        coerce_roles(None)                        -> frozenset()

    Raises ``ConfigurationError`` for an unknown label.
    """
    if roles is None:
        return frozenset()
    if isinstance(roles, str):
        roles = (roles,)

    result: set[Role] = set()
    for role in roles:
        try:
            result.add(Role(role))
        except ValueError:
            known = ", ".join(repr(r.value) for r in Role)
            msg = f"Unknown role {role!r}. Known roles: {known}."
            raise ConfigurationError(msg) from None
    return frozenset(result)
