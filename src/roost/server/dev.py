"""Serving an ``App`` with pounce (the ``server`` extra)."""

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def run_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = False,
    log_level: str = "info",
    app_path: str | None = None,
) -> None:
    """Bind *host*:*port* and serve *app* until interrupted.

    pounce is handed the live ASGI object rather than an import string.
    Pass ``app_path`` (``"module:attribute"``) when ``reload`` is on so
    the server can re-import the app after a change.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    logging.basicConfig(level=log_level.upper(), format=_LOG_FORMAT)
    Server(ServerConfig(host=host, port=port, workers=1, reload=reload), app, app_path=app_path).run()
