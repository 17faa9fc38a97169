"""Access policy evaluator.

Decides whether a caller may reach a route, given the route's
permitted-role set and the credentials extracted from the request:

1. ``Role.ANYONE`` in the set → allow, credentials or not.
2. ``Role.LOGGED_IN`` in the set → allow iff credentials with a
   non-empty username were presented.
3. Otherwise → deny. An empty set always denies (fails closed).

The LOGGED_IN check is a presence check only. The password is never
verified; this is a placeholder gate, not an authentication system.
"""

import logging
from enum import Enum
from typing import Any

from roost.security.audit import emit_security_event
from roost.security.credentials import Credentials
from roost.security.roles import Role

_log = logging.getLogger("roost.security")


class Decision(Enum):
    """Outcome of an access check."""

    ALLOW = "allow"
    DENY = "deny"


def evaluate(credentials: Credentials | None, permitted: frozenset[Role]) -> Decision:
    """Pure policy decision. No logging, no events."""
    if Role.ANYONE in permitted:
        return Decision.ALLOW
    if Role.LOGGED_IN in permitted and credentials is not None and credentials.is_present:
        return Decision.ALLOW
    return Decision.DENY


def authorize(
    credentials: Credentials | None,
    permitted: frozenset[Role],
    *,
    request: Any | None = None,
) -> Decision:
    """Evaluate the policy and report the decision.

    Emits ``access.allow`` / ``access.deny`` security events. Denials are
    also logged on ``roost.security`` at debug level.
    """
    decision = evaluate(credentials, permitted)
    username = credentials.username if credentials is not None else None
    roles = tuple(sorted(role.value for role in permitted))
    reason = None

    if decision is Decision.DENY:
        reason = "no_roles" if not permitted else "credentials_required"
        if request is not None:
            _log.debug("Denied %s %s (%s)", request.method, request.path, reason)

    emit_security_event(
        f"access.{decision.value}",
        request=request,
        username=username,
        roles=roles,
        reason=reason,
    )
    return decision
