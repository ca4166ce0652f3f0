"""Application - Route registration and the application middleware stack.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional

from roadweb_core.app.handlers import ErrorHandler, NotAllowedHandler, NotFoundHandler
from roadweb_core.app.resolver import resolve_callable
from roadweb_core.http.message import Request, Response
from roadweb_core.middleware.stack import MiddlewareCallable, MiddlewareStack
from roadweb_core.routing.route import ControllerRef, Route
from roadweb_core.routing.router import (
    MethodNotAllowed,
    RouteMatch,
    Router,
)
from roadweb_core.routing.strategy import InvocationStrategy
from roadweb_core.utils.config import AppConfig

logger = logging.getLogger(__name__)

ANY_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


class HaltException(Exception):
    """Stops the current dispatch and sends ``response`` instead."""

    def __init__(self, response: Response):
        super().__init__(f"Halted with status {response.status}")
        self.response = response


class App:
    """Web application.

    The application owns a middleware stack whose kernel is the router
    dispatch. Each matched route then runs its own middleware stack around
    its handler:

    ┌──────────────────────────────────────────────────────────────────┐
    │  App middleware ──▶ Router.dispatch ──▶ Route middleware ──▶ handler │
    └──────────────────────────────────────────────────────────────────┘

    Usage:
        app = App()

        @app.get("/user/{id:[0-9]+}", name="user.show")
        def show_user(request, response, id):
            return f"user:{id}"

        app.use(LoggingMiddleware())
        response = app.handle(Request("GET", "/user/42"))
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        router: Optional[Router] = None,
        strategy: Optional[InvocationStrategy] = None,
        not_found_handler: Optional[Callable[..., Response]] = None,
        not_allowed_handler: Optional[Callable[..., Response]] = None,
        error_handler: Optional[Callable[..., Response]] = None,
    ):
        self.config = config or AppConfig()
        self.router = router or Router(
            config=self.config, strategy=strategy, container=self
        )
        self.not_found_handler = not_found_handler or NotFoundHandler()
        self.not_allowed_handler = not_allowed_handler or NotAllowedHandler()
        self.error_handler = error_handler or ErrorHandler(debug=self.config.debug)
        self._stack = MiddlewareStack(self)

    # Route registration

    def map(
        self,
        methods: Iterable[str],
        pattern: str,
        handler: Any = None,
        name: Optional[str] = None,
    ) -> Any:
        """Register a route.

        Without a handler, returns a decorator that registers the function
        and returns it unchanged.
        """
        methods = list(methods)
        if handler is None:
            def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
                self.map(methods, pattern, func, name=name)
                return func
            return decorator

        return self.router.map(methods, pattern, resolve_callable(handler), name=name)

    def get(self, pattern: str, handler: Any = None, name: Optional[str] = None) -> Any:
        return self.map(["GET"], pattern, handler, name=name)

    def post(self, pattern: str, handler: Any = None, name: Optional[str] = None) -> Any:
        return self.map(["POST"], pattern, handler, name=name)

    def put(self, pattern: str, handler: Any = None, name: Optional[str] = None) -> Any:
        return self.map(["PUT"], pattern, handler, name=name)

    def patch(self, pattern: str, handler: Any = None, name: Optional[str] = None) -> Any:
        return self.map(["PATCH"], pattern, handler, name=name)

    def delete(self, pattern: str, handler: Any = None, name: Optional[str] = None) -> Any:
        return self.map(["DELETE"], pattern, handler, name=name)

    def options(self, pattern: str, handler: Any = None, name: Optional[str] = None) -> Any:
        return self.map(["OPTIONS"], pattern, handler, name=name)

    def any(self, pattern: str, handler: Any = None, name: Optional[str] = None) -> Any:
        return self.map(ANY_METHODS, pattern, handler, name=name)

    @contextmanager
    def group(self, prefix: str, *middleware: Any) -> Iterator["App"]:
        """Register routes under a shared prefix and middleware.

        Usage:
            with app.group("/api", require_token):
                app.get("/users", list_users)
        """
        resolved = [self._resolve_middleware(mw) for mw in middleware]
        self.router.push_group(prefix, resolved)
        try:
            yield self
        finally:
            self.router.pop_group()

    def url_for(
        self,
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
    ) -> str:
        return self.router.url_for(name, params, query)

    # Middleware

    def use(self, middleware: MiddlewareCallable) -> "App":
        """Add application middleware. The last one added runs first."""
        self._stack.add(self._resolve_middleware(middleware))
        return self

    add = use

    def _resolve_middleware(self, middleware: Any) -> MiddlewareCallable:
        resolved = resolve_callable(middleware)
        if isinstance(resolved, ControllerRef):
            return resolved.bind(self)
        return resolved

    # Halting

    def stop(self, response: Response) -> None:
        """Abort dispatch and send ``response``."""
        raise HaltException(response)

    def halt(self, status: int, message: str = "") -> None:
        """Abort dispatch with a status and message."""
        response = Response(status=status, protocol_version=self.config.http_version)
        response.write(message)
        self.stop(response)

    # Dispatch

    def __call__(self, request: Request, response: Response) -> Response:
        """Application stack kernel: route the request."""
        result = self.router.dispatch(request.method, request.path)

        if isinstance(result, RouteMatch):
            attributes = dict(request.attributes)
            attributes.update(result.params)
            return result.route.run(request.with_attributes(attributes), response)

        if isinstance(result, MethodNotAllowed):
            return self.not_allowed_handler(
                request, response, list(result.allowed_methods)
            )

        return self.not_found_handler(request, response)

    def handle(self, request: Request, response: Optional[Response] = None) -> Response:
        """Run a request through the application and return the response.

        Halts become their response. Other exceptions go to the error
        handler, or propagate when ``propagate_exceptions`` is set.
        """
        if response is None:
            response = Response(
                headers={"Content-Type": "text/html"},
                protocol_version=self.config.http_version,
            )

        try:
            return self._stack.dispatch(request, response)
        except HaltException as e:
            return e.response
        except Exception as e:
            if self.config.propagate_exceptions:
                raise
            logger.exception(f"Unhandled error for {request.method} {request.path}")
            return self.error_handler(request, response, e)

    def sub_request(
        self,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
    ) -> Response:
        """Run an internal request through the full application stack.

        Safe to call from a handler or middleware; the nested dispatch gets
        its own response and output buffer.
        """
        request = Request(method=method, path=path, headers=dict(headers or {}), body=body)
        return self.handle(request)

    @property
    def routes(self) -> list:
        return self.router.routes()

    def route(self, name: str) -> Optional[Route]:
        return self.router.get(name)


__all__ = [
    "App",
    "HaltException",
]
