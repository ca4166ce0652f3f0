"""Route - A pattern bound to methods, a handler and middleware.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from roadweb_core.http.message import Request, Response
from roadweb_core.middleware.stack import (
    CircularMiddleware,
    MiddlewareCallable,
    MiddlewareStack,
)
from roadweb_core.routing.pattern import CompiledPattern, PatternCompiler
from roadweb_core.routing.strategy import InvocationStrategy, RequestResponseArgs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControllerRef:
    """A controller class and method name, resolved when the route runs.

    ``target`` is either the class itself or an import path of the form
    ``"package.module:ClassName"``. A new controller instance is built for
    every call, receiving the route container (usually the app) as its only
    constructor argument.
    """

    target: Union[type, str]
    method: str

    def resolve_class(self) -> type:
        if isinstance(self.target, type):
            return self.target

        module_name, _, class_path = self.target.partition(":")
        if not class_path:
            module_name, _, class_path = self.target.rpartition(".")
        obj: Any = importlib.import_module(module_name)
        for attr in class_path.split("."):
            obj = getattr(obj, attr)
        return obj

    def bind(self, container: Any = None) -> Callable[..., Any]:
        """Return a callable that instantiates the controller per call."""

        def call_controller(*args: Any, **kwargs: Any) -> Any:
            cls = self.resolve_class()
            controller = cls(container) if container is not None else cls()
            return getattr(controller, self.method)(*args, **kwargs)

        call_controller.__qualname__ = f"{self.target_name}.{self.method}"
        return call_controller

    @property
    def target_name(self) -> str:
        if isinstance(self.target, type):
            return self.target.__qualname__
        return self.target

    def __str__(self) -> str:
        return f"{self.target_name}:{self.method}"


Handler = Union[Callable[..., Any], ControllerRef]


class Route:
    """Route definition.

    Each route owns two middleware stacks. The inner one holds route
    middleware and has the route itself as kernel, which invokes the handler
    through the invocation strategy. The outer one is built from the group
    middleware when the route is created and wraps the inner one, so group
    middleware always runs first regardless of when `use` is called:

        group middleware ──▶ route middleware ──▶ handler

    Usage:
        route = router.map(["GET"], "/user/{id:[0-9]+}", show_user, name="user.show")
        route.use(require_login)
    """

    def __init__(
        self,
        methods: Iterable[str],
        pattern: str,
        handler: Handler,
        name: str = "",
        compiled: Optional[CompiledPattern] = None,
        strategy: Optional[InvocationStrategy] = None,
        container: Any = None,
        group_middleware: Sequence[MiddlewareCallable] = (),
    ):
        if not (callable(handler) or isinstance(handler, ControllerRef)):
            raise TypeError(
                f"Route handler must be callable or a ControllerRef, "
                f"got {type(handler).__name__}"
            )

        self.name = name
        self._methods: Tuple[str, ...] = tuple(
            dict.fromkeys(method.upper() for method in methods)
        )
        self._pattern = pattern
        self.compiled = compiled or PatternCompiler().compile(pattern)
        self.handler = handler
        self.strategy = strategy or RequestResponseArgs()
        self.container = container

        self._stack = MiddlewareStack(self)
        self._group_stack = MiddlewareStack(self._stack.dispatch)
        for middleware in reversed(tuple(group_middleware)):
            self._group_stack.add(middleware)

    @property
    def methods(self) -> List[str]:
        return list(self._methods)

    @property
    def pattern(self) -> str:
        return self._pattern

    @property
    def middleware(self) -> Tuple[Any, ...]:
        """Middleware in execution order (outermost first)."""
        return self._group_stack.middleware + self._stack.middleware

    def allows(self, method: str) -> bool:
        return method.upper() in self._methods

    def matches(self, path: str, decode: bool = True) -> Optional[Dict[str, str]]:
        return self.compiled.match(path, decode=decode)

    def use(self, middleware: MiddlewareCallable) -> "Route":
        """Add route middleware. The last one added runs first.

        Route middleware always runs inside the group middleware.
        """
        if any(existing is middleware for existing in self._group_stack.middleware):
            raise CircularMiddleware(middleware)
        self._stack.add(middleware)
        return self

    add = use

    def resolve_handler(self) -> Callable[..., Any]:
        if isinstance(self.handler, ControllerRef):
            return self.handler.bind(self.container)
        return self.handler

    def run(self, request: Request, response: Response) -> Response:
        """Traverse group and route middleware and return the response."""
        return self._group_stack.dispatch(request, response)

    def __call__(self, request: Request, response: Response) -> Response:
        """Stack kernel: invoke the handler with this route's parameters."""
        params = {
            name: request.attributes[name]
            for name in self.compiled.names
            if name in request.attributes
        }
        return self.strategy(self.resolve_handler(), request, response, params)

    def __repr__(self) -> str:
        return (
            f"Route(name={self.name!r}, methods={list(self._methods)!r}, "
            f"pattern={self._pattern!r})"
        )


__all__ = [
    "Route",
    "ControllerRef",
    "Handler",
]
