"""Access gating — roles, credential extraction, and the policy evaluator.

::

    from roost.security import Decision, Role, authorize, extract_credentials

    credentials = extract_credentials(request.headers)
    if authorize(credentials, frozenset({Role.LOGGED_IN})) is Decision.DENY:
        raise Unauthorized()
"""

from roost.security.audit import SecurityEvent, emit_security_event, set_security_event_sink
from roost.security.credentials import Credentials, basic_auth_header, extract_credentials
from roost.security.policy import Decision, authorize, evaluate
from roost.security.roles import Role, coerce_roles

__all__ = [
    "Credentials",
    "Decision",
    "Role",
    "SecurityEvent",
    "authorize",
    "basic_auth_header",
    "coerce_roles",
    "emit_security_event",
    "evaluate",
    "extract_credentials",
    "set_security_event_sink",
]
