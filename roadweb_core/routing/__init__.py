"""Routing module - Pattern compilation, route table and dispatch."""

from roadweb_core.routing.pattern import (
    PatternCompiler,
    CompiledPattern,
    Segment,
    PatternError,
    MissingSegmentValue,
    SegmentValueMismatch,
)
from roadweb_core.routing.route import Route, ControllerRef
from roadweb_core.routing.router import (
    Router,
    DispatchStatus,
    DispatchResult,
    RouteMatch,
    NotFound,
    MethodNotAllowed,
    UnknownRoute,
    RouterLockedError,
)
from roadweb_core.routing.strategy import (
    InvocationStrategy,
    RequestResponseArgs,
    RequestResponseParams,
    capture_output,
    echo,
)

__all__ = [
    "PatternCompiler",
    "CompiledPattern",
    "Segment",
    "PatternError",
    "MissingSegmentValue",
    "SegmentValueMismatch",
    "Route",
    "ControllerRef",
    "Router",
    "DispatchStatus",
    "DispatchResult",
    "RouteMatch",
    "NotFound",
    "MethodNotAllowed",
    "UnknownRoute",
    "RouterLockedError",
    "InvocationStrategy",
    "RequestResponseArgs",
    "RequestResponseParams",
    "capture_output",
    "echo",
]
