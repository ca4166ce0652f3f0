"""Resolver - Turns handler strings into callables at the app boundary.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Union

from roadweb_core.routing.route import ControllerRef

# "package.module:ClassName:method" or "package.module:ClassName@method"
_CONTROLLER_RE = re.compile(
    r"^(?P<target>[A-Za-z_][\w.]*(?::[A-Za-z_][\w.]*)?)[:@](?P<method>[A-Za-z_]\w*)$"
)


class ResolutionError(RuntimeError):
    """Raised when a handler string cannot be resolved."""


def parse_controller(value: str) -> ControllerRef:
    """Parse a controller string into a ControllerRef.

    Examples:
        "myapp.controllers:UserController:show"
        "myapp.controllers:UserController@show"
        "myapp.controllers.UserController@show"
    """
    match = _CONTROLLER_RE.match(value)
    if not match:
        raise ResolutionError(f"{value!r} is not resolvable")
    return ControllerRef(match.group("target"), match.group("method"))


def resolve_callable(obj: Any) -> Union[Callable[..., Any], ControllerRef]:
    """Accept a callable, a ControllerRef or a controller string."""
    if isinstance(obj, ControllerRef) or callable(obj):
        return obj
    if isinstance(obj, str):
        return parse_controller(obj)
    raise ResolutionError(f"Callable is not resolvable: {obj!r}")


__all__ = [
    "ResolutionError",
    "parse_controller",
    "resolve_callable",
]
