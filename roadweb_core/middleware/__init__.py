"""Middleware module - Onion middleware composition."""

from roadweb_core.middleware.stack import (
    MiddlewareStack,
    MiddlewareError,
    InvalidMiddlewareReturn,
    CircularMiddleware,
    MiddlewareLockedError,
    StackSeedError,
)
from roadweb_core.middleware.base import Middleware, HookMiddleware
from roadweb_core.middleware.logging import LoggingMiddleware, AccessLogMiddleware

__all__ = [
    "MiddlewareStack",
    "MiddlewareError",
    "InvalidMiddlewareReturn",
    "CircularMiddleware",
    "MiddlewareLockedError",
    "StackSeedError",
    "Middleware",
    "HookMiddleware",
    "LoggingMiddleware",
    "AccessLogMiddleware",
]
