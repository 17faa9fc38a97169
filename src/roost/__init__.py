"""Roost: component routing for client views, with role-gated server state.

Picks the client view component for a URL, computes a small state
payload on the server, embeds both in an HTML shell, and gates views
and their JSON APIs by role.

Basic usage::

    from roost import App, Role

    app = App()
    app.component("home", src="/static/home.js")
    app.view("/", "home", roles=Role.ANYONE)

    @app.state
    def state(context):
        return {"currentUser": context.username}

    app.run()
"""

__version__ = "0.1.0.dev0"

# Public name -> module it lives in; imported on first access.
_EXPORTS: dict[str, str] = {
    "App": "roost.app",
    "AppConfig": "roost.config",
    "ConfigurationError": "roost.errors",
    "HTTPError": "roost.errors",
    "MethodNotAllowed": "roost.errors",
    "MisconfiguredRoute": "roost.errors",
    "NotFound": "roost.errors",
    "NotMatched": "roost.errors",
    "Record": "roost.store",
    "RecordNotFound": "roost.errors",
    "RecordStore": "roost.store",
    "Request": "roost.http.request",
    "RequestContext": "roost.context",
    "Response": "roost.http.response",
    "Role": "roost.security.roles",
    "RoostError": "roost.errors",
    "Unauthorized": "roost.errors",
    "ViewTarget": "roost.routing.route",
}

__all__ = list(_EXPORTS)


def __getattr__(name: str) -> object:
    """Resolve the public API lazily so ``import roost`` stays cheap."""
    module = _EXPORTS.get(name)
    if module is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    from importlib import import_module

    return getattr(import_module(module), name)
