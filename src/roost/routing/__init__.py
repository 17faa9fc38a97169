"""Routing — ordered, compiled route table.

Routes are registered during setup and compiled into regex patterns when
the app compiles. Matching walks them in registration order; the first
route whose pattern and method both fit wins.
"""

from roost.routing.route import Route, RouteMatch, ViewTarget
from roost.routing.router import Router, parse_path

__all__ = ["Route", "RouteMatch", "Router", "ViewTarget", "parse_path"]
