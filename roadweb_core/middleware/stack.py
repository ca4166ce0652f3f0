"""Middleware Stack - Concentric (onion) middleware composition.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional, Tuple, Type

from roadweb_core.http.message import Request, Response

logger = logging.getLogger(__name__)

Next = Callable[[Request, Response], Response]
MiddlewareCallable = Callable[[Request, Response, Next], Response]


def describe(obj: Any) -> str:
    """Readable name for a middleware or kernel in error messages."""
    name = getattr(obj, "__qualname__", None)
    if name and not isinstance(obj, type):
        return f"{type(obj).__name__} {name}"
    return type(obj).__name__


class MiddlewareError(RuntimeError):
    """Base error for middleware composition problems."""


class InvalidMiddlewareReturn(MiddlewareError, TypeError):
    """Raised when a frame returns something other than a Response."""

    def __init__(self, middleware: Any, result: Any):
        super().__init__(
            f"Middleware {describe(middleware)} must return a Response, "
            f"got {type(result).__name__}"
        )
        self.middleware = middleware
        self.result = result


class CircularMiddleware(MiddlewareError):
    """Raised when the same middleware object is added to a stack twice."""

    def __init__(self, middleware: Any):
        super().__init__(
            f"Middleware {describe(middleware)} is already in this stack"
        )
        self.middleware = middleware


class MiddlewareLockedError(MiddlewareError):
    """Raised when middleware is added while the stack is dequeuing."""


class StackSeedError(MiddlewareError):
    """Raised on a second seed, or when an unseeded stack is used."""


class MiddlewareStack:
    """LIFO middleware stack around a kernel callable.

    Every ``add`` wraps the current outermost frame, so the most recently
    added middleware runs first on the way in and last on the way out:

    ┌──────────────────────────────────────────────────────┐
    │  add(A); add(B)                                       │
    │                                                       │
    │  Request ──▶ B ──▶ A ──▶ kernel                       │
    │                              │                        │
    │  Response ◀── B ◀── A ◀──────┘                        │
    └──────────────────────────────────────────────────────┘

    Frames are immutable closures; ``add`` swaps in a new outermost frame,
    so a dispatch already under way keeps traversing the chain it started
    with. The dequeuing lock is tracked per thread.

    Usage:
        stack = MiddlewareStack(kernel)
        stack.add(auth).add(logging_middleware)
        response = stack.dispatch(request, response)
    """

    def __init__(
        self,
        kernel: Optional[Next] = None,
        response_class: Type[Response] = Response,
    ):
        self.response_class = response_class
        self._kernel: Optional[Next] = None
        self._top: Optional[Next] = None
        self._middleware: List[Any] = []
        self._lock = threading.Lock()
        self._local = threading.local()

        if kernel is not None:
            self.seed(kernel)

    @property
    def seeded(self) -> bool:
        return self._top is not None

    @property
    def dispatching(self) -> bool:
        """True while this thread is inside ``dispatch``."""
        return getattr(self._local, "depth", 0) > 0

    @property
    def kernel(self) -> Optional[Next]:
        return self._kernel

    @property
    def middleware(self) -> Tuple[Any, ...]:
        """Middleware in execution order (outermost first)."""
        return tuple(reversed(self._middleware))

    def seed(self, kernel: Next) -> "MiddlewareStack":
        """Install the innermost callable."""
        with self._lock:
            if self._top is not None:
                raise StackSeedError("Middleware stack can only be seeded once")
            self._kernel = kernel
            self._top = kernel
        return self

    def add(self, middleware: MiddlewareCallable) -> "MiddlewareStack":
        """Wrap the stack in a new outermost middleware."""
        if self.dispatching:
            raise MiddlewareLockedError(
                "Middleware can't be added once the stack is dequeuing"
            )

        with self._lock:
            if self._top is None:
                raise StackSeedError(
                    "Middleware stack must be seeded before middleware is added"
                )
            if any(existing is middleware for existing in self._middleware):
                raise CircularMiddleware(middleware)

            self._top = self._wrap(middleware, self._top)
            self._middleware.append(middleware)

        logger.debug(f"Added middleware {describe(middleware)}")
        return self

    def _wrap(self, middleware: MiddlewareCallable, next_frame: Next) -> Next:
        response_class = self.response_class

        def frame(request: Request, response: Response) -> Response:
            result = middleware(request, response, next_frame)
            if not isinstance(result, response_class):
                raise InvalidMiddlewareReturn(middleware, result)
            return result

        return frame

    def dispatch(self, request: Request, response: Response) -> Response:
        """Run the request through every frame down to the kernel."""
        start = self._top
        if start is None:
            raise StackSeedError("Middleware stack has not been seeded")

        self._local.depth = getattr(self._local, "depth", 0) + 1
        try:
            result = start(request, response)
        finally:
            self._local.depth -= 1

        if not isinstance(result, self.response_class):
            raise InvalidMiddlewareReturn(self._kernel, result)
        return result

    def __call__(self, request: Request, response: Response) -> Response:
        return self.dispatch(request, response)

    def __len__(self) -> int:
        return len(self._middleware)


__all__ = [
    "MiddlewareStack",
    "MiddlewareError",
    "InvalidMiddlewareReturn",
    "CircularMiddleware",
    "MiddlewareLockedError",
    "StackSeedError",
    "Next",
    "MiddlewareCallable",
]
