"""Application configuration."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Settings for one ``App``, fixed when the app is constructed.

    Every field has a default::

        App(AppConfig(realm="staff", title="Staff directory"))

    ``debug`` puts exception detail in 500 bodies and turns on reload
    under ``App.run()``. ``template_dir`` switches the layout shell from
    the built-in template to ``layout`` loaded from that directory.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Access gate
    realm: str = "roost"  # Sent in the WWW-Authenticate challenge

    # Layout shell
    title: str = "roost"
    template_dir: str | Path | None = None  # None = built-in layout
    layout: str = "layout.html"
    autoescape: bool = True
    mount_id: str = "roost-app"
    state_element_id: str = "roost-state"
    registry_element_id: str = "roost-components"

    # Logging (applied by App.run(), never on import)
    log_level: str = "info"
