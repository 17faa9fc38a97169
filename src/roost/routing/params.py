"""Path parameter syntax.

``:name`` and ``{name}`` capture one segment as text. ``{name:int}``,
``{name:float}`` and ``{name:path}`` narrow what the segment may hold;
``path`` also spans slashes and must come last.
"""

import re

# Regex each converter contributes to a compiled route pattern
CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "path": r".+",
}

PARAM_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")


def kwarg_name(param_name: str) -> str:
    """Keyword a parameter is passed to handlers under (``user-id`` -> ``user_id``)."""
    return param_name.replace("-", "_")
