"""RoadWeb - Request-dispatch core of a micro web framework.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

RoadWeb resolves an HTTP method and path to a registered route, extracts
path parameters and runs the request through two levels of onion
middleware:
- Route templates with generic and typed segments
- First-match dispatch with NotFound / MethodNotAllowed outcomes
- Reverse URL building by route name
- Application-level and route-level middleware stacks
- Handler invocation with result normalization

Architecture Overview:
┌─────────────────────────────────────────────────────────────────────────────┐
│                               RoadWeb                                        │
├─────────────────────────────────────────────────────────────────────────────┤
│                                                                              │
│  ┌───────────────────────────────────────────────────────────────────────┐  │
│  │                        Request Pipeline                                │  │
│  │  Caller ──▶ App stack ──▶ Router ──▶ Route stack ──▶ Strategy ──▶ Handler │
│  └───────────────────────────────────────────────────────────────────────┘  │
│                                                                              │
│  ┌─────────────────┐  ┌─────────────────┐  ┌─────────────────────────────┐ │
│  │    Routing      │  │   Middleware    │  │        App                  │ │
│  │                 │  │                 │  │                             │ │
│  │ - Patterns      │  │ - LIFO stack    │  │ - Verb shortcuts            │ │
│  │ - Dispatch      │  │ - Lock / cycles │  │ - Groups                    │ │
│  │ - url_for       │  │ - Logging       │  │ - Halt / error handlers     │ │
│  │ - Strategies    │  │                 │  │ - Controller strings        │ │
│  └─────────────────┘  └─────────────────┘  └─────────────────────────────┘ │
│                                                                              │
└─────────────────────────────────────────────────────────────────────────────┘

Request Flow:
1. Caller builds a Request and hands it to App.handle
2. Application middleware runs, most recently added first
3. Router finds the first route whose pattern matches the path
4. Route middleware runs around the handler
5. Invocation strategy calls the handler and normalizes its result
6. Response flows back out through both stacks

Usage:
    from roadweb_core import App, Request

    app = App()

    @app.get("/user/{id:[0-9]+}", name="user.show")
    def show_user(request, response, id):
        return f"user:{id}"

    app.handle(Request("GET", "/user/42")).text    # "user:42"
    app.url_for("user.show", {"id": 42}, {"tab": "posts"})
"""

__version__ = "0.1.0"
__author__ = "BlackRoad OS, Inc."

# HTTP
from roadweb_core.http.message import Request, Response

# Routing
from roadweb_core.routing.pattern import (
    PatternCompiler,
    CompiledPattern,
    PatternError,
    MissingSegmentValue,
    SegmentValueMismatch,
)
from roadweb_core.routing.route import Route, ControllerRef
from roadweb_core.routing.router import (
    Router,
    DispatchStatus,
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
    echo,
)

# Middleware
from roadweb_core.middleware.stack import (
    MiddlewareStack,
    InvalidMiddlewareReturn,
    CircularMiddleware,
    MiddlewareLockedError,
)
from roadweb_core.middleware.base import Middleware, HookMiddleware
from roadweb_core.middleware.logging import LoggingMiddleware

# App
from roadweb_core.app.application import App, HaltException

# Utils
from roadweb_core.utils.config import AppConfig, load_config, configure_logging

__all__ = [
    # Version
    "__version__",
    # HTTP
    "Request",
    "Response",
    # Routing
    "PatternCompiler",
    "CompiledPattern",
    "PatternError",
    "MissingSegmentValue",
    "SegmentValueMismatch",
    "Route",
    "ControllerRef",
    "Router",
    "DispatchStatus",
    "RouteMatch",
    "NotFound",
    "MethodNotAllowed",
    "UnknownRoute",
    "RouterLockedError",
    "InvocationStrategy",
    "RequestResponseArgs",
    "RequestResponseParams",
    "echo",
    # Middleware
    "MiddlewareStack",
    "InvalidMiddlewareReturn",
    "CircularMiddleware",
    "MiddlewareLockedError",
    "Middleware",
    "HookMiddleware",
    "LoggingMiddleware",
    # App
    "App",
    "HaltException",
    # Utils
    "AppConfig",
    "load_config",
    "configure_logging",
]
