"""Kida layout environment and template helpers.

The layout is a kida template rendered once per view request. It gets
three helpers as globals, each returning ``Markup`` so autoescaping
leaves the generated HTML intact:

- ``component_root(name, mount_id=...)`` — the mount point element
- ``state_script(document, element_id=...)`` — the embedded state
- ``component_registry(components, element_id=...)`` — component
  scripts plus the JSON list of registered names

A custom layout (``AppConfig.template_dir`` + ``AppConfig.layout``) must
call all three; the built-in ``DEFAULT_LAYOUT`` shows the shape::

    <body>
      {{ component_root(component, mount_id=mount_id) }}
      {{ state_script(embedded, element_id=state_id) }}
      {{ component_registry(components, element_id=registry_id) }}
    </body>
"""

import html
import json
from collections.abc import Iterable
from typing import Any

from kida import Environment, FileSystemLoader
from kida.template import Markup

from roost.config import AppConfig
from roost.views.components import Component
from roost.views.state import serialize_embedded

DEFAULT_LAYOUT = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ title }}</title>
{{ runtime }}
</head>
<body>
{{ component_root(component, mount_id=mount_id) }}
{{ state_script(embedded, element_id=state_id) }}
{{ component_registry(components, element_id=registry_id) }}
</body>
</html>
"""


def component_root(name: str, *, mount_id: str = "roost-app", cls: str = "") -> Markup:
    """Mount point for the resolved component."""
    attrs = [
        f' id="{html.escape(mount_id, quote=True)}"',
        f' data-roost-component="{html.escape(name, quote=True)}"',
    ]
    if cls:
        attrs.append(f' class="{html.escape(cls, quote=True)}"')
    return Markup(f"<div{''.join(attrs)}></div>")


def state_script(document: Any, *, element_id: str = "roost-state") -> Markup:
    """Embed *document* as JSON the client runtime can read back."""
    return Markup(
        f'<script type="application/json" id="{html.escape(element_id, quote=True)}">'
        f"{serialize_embedded(document)}</script>"
    )


def component_registry(
    components: Iterable[Component],
    *,
    element_id: str = "roost-components",
) -> Markup:
    """Component scripts plus the JSON list of every registered name.

    Scripts are ``defer`` so they run, and register their adapters,
    before the runtime mounts on ``DOMContentLoaded``.
    """
    components = list(components)
    names = json.dumps([c.name for c in components], ensure_ascii=True).replace("<", "\\u003c")
    parts = [
        f'<script type="application/json" id="{html.escape(element_id, quote=True)}">'
        f"{names}</script>"
    ]
    parts.extend(
        f'<script src="{html.escape(c.src, quote=True)}"'
        f' data-roost-src="{html.escape(c.name, quote=True)}"'
        f' data-roost-version="{html.escape(c.version, quote=True)}" defer></script>'
        for c in components
        if c.src
    )
    return Markup("\n".join(parts))


LAYOUT_GLOBALS: dict[str, Any] = {
    "component_registry": component_registry,
    "component_root": component_root,
    "state_script": state_script,
}


def create_environment(config: AppConfig) -> Environment:
    """Create the kida Environment for layouts.

    Called once while the app compiles. Uses a ``FileSystemLoader``
    when ``config.template_dir`` is set; otherwise the environment only
    renders the built-in layout from a string.
    """
    if config.template_dir is not None:
        env = Environment(
            loader=FileSystemLoader(str(config.template_dir)),
            autoescape=config.autoescape,
            auto_reload=config.debug,
        )
    else:
        env = Environment(autoescape=config.autoescape)

    for name, value in LAYOUT_GLOBALS.items():
        env.add_global(name, value)
    return env


def load_layout(env: Environment, config: AppConfig) -> Any:
    """Compile the layout template once, while the app compiles."""
    if config.template_dir is not None:
        return env.get_template(config.layout)
    return env.from_string(DEFAULT_LAYOUT)
