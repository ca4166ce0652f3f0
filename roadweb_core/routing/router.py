"""Router - Route table, dispatch and reverse URL building.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from roadweb_core.middleware.stack import CircularMiddleware, MiddlewareCallable
from roadweb_core.routing.pattern import PatternCompiler, PatternError
from roadweb_core.routing.route import Handler, Route
from roadweb_core.routing.strategy import InvocationStrategy, RequestResponseArgs
from roadweb_core.utils.config import AppConfig
from roadweb_core.utils.helpers import join_paths, normalize_path

logger = logging.getLogger(__name__)


class DispatchStatus(Enum):
    """Dispatch outcomes."""

    FOUND = auto()
    NOT_FOUND = auto()
    METHOD_NOT_ALLOWED = auto()


@dataclass(frozen=True)
class DispatchResult:
    """Base for dispatch outcomes."""

    status: DispatchStatus


@dataclass(frozen=True)
class RouteMatch(DispatchResult):
    """A route matched the path and accepts the method."""

    status: DispatchStatus = field(default=DispatchStatus.FOUND, init=False)
    route: Optional[Route] = None
    params: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class NotFound(DispatchResult):
    """No route pattern matched the path."""

    status: DispatchStatus = field(default=DispatchStatus.NOT_FOUND, init=False)


@dataclass(frozen=True)
class MethodNotAllowed(DispatchResult):
    """The first matching route does not accept the method."""

    status: DispatchStatus = field(
        default=DispatchStatus.METHOD_NOT_ALLOWED, init=False
    )
    allowed_methods: Tuple[str, ...] = ()


class UnknownRoute(LookupError):
    """Raised when no route is registered under a name."""

    def __init__(self, name: str):
        super().__init__(f"Named route does not exist for name: {name}")
        self.name = name


class RouterLockedError(RuntimeError):
    """Raised when routes are registered after the router was frozen."""


@dataclass
class _Group:
    prefix: str
    middleware: Tuple[MiddlewareCallable, ...]


class Router:
    """Request Router.

    Features:
    - Template patterns (/user/{name}/{id:[0-9]+})
    - First-match dispatch in registration order
    - Reverse URL building by route name
    - Route groups with shared prefix and middleware

    Dispatch stops at the first route whose pattern matches. If that route
    does not accept the method the result is MethodNotAllowed carrying that
    route's methods, even when a later route with the same pattern would
    accept it.

    The table is frozen on first dispatch. After that it is only read, so
    concurrent dispatch needs no locking.

    Usage:
        router = Router()
        router.map(["GET"], "/user/{id:[0-9]+}", show_user, name="user.show")

        result = router.dispatch("GET", "/user/42")
        if result.status is DispatchStatus.FOUND:
            route, params = result.route, result.params
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        compiler: Optional[PatternCompiler] = None,
        strategy: Optional[InvocationStrategy] = None,
        container: Any = None,
    ):
        self.config = config or AppConfig()
        self.compiler = compiler or PatternCompiler(
            default_conditions=self.config.default_conditions,
            strict=self.config.strict_url_params,
        )
        self.strategy = strategy or RequestResponseArgs()
        self.container = container

        self._routes: Dict[str, Route] = {}
        self._groups: List[_Group] = []
        self._counter = itertools.count()
        self._frozen = False
        self._lock = threading.RLock()

    @property
    def frozen(self) -> bool:
        return self._frozen

    def map(
        self,
        methods: Iterable[str],
        pattern: str,
        handler: Handler,
        name: Optional[str] = None,
    ) -> Route:
        """Register a route.

        Args:
            methods: HTTP methods, normalized to upper case
            pattern: Route template
            handler: Callable or ControllerRef
            name: Route identifier; generated when omitted. Registering an
                existing name replaces that route and moves it to the end.

        Raises:
            PatternError: The template is malformed
            RouterLockedError: The router is frozen
        """
        with self._lock:
            if self._frozen:
                raise RouterLockedError(
                    f"Cannot register {pattern!r}: routes are frozen once dispatch begins"
                )

            if not isinstance(pattern, str):
                raise PatternError("Route pattern must be a string", pattern)

            full_pattern = self._group_pattern(pattern)
            group_middleware = tuple(
                middleware for group in self._groups for middleware in group.middleware
            )
            if name is None:
                name = self._generate_name()

            route = Route(
                methods=methods,
                pattern=full_pattern,
                handler=handler,
                name=name,
                compiled=self.compiler.compile(full_pattern),
                strategy=self.strategy,
                container=self.container,
                group_middleware=group_middleware,
            )

            if self._routes.pop(name, None) is not None:
                logger.debug(f"Route {name} replaced")
            self._routes[name] = route

        logger.debug(f"Registered route {name}: {route.methods} {full_pattern}")
        return route

    def register(
        self,
        name: str,
        methods: Iterable[str],
        pattern: str,
        handler: Handler,
    ) -> Route:
        """Register a route under an explicit name."""
        return self.map(methods, pattern, handler, name=name)

    def _generate_name(self) -> str:
        name = f"route{next(self._counter)}"
        while name in self._routes:
            name = f"route{next(self._counter)}"
        return name

    def _group_pattern(self, pattern: str) -> str:
        prefix = "".join(group.prefix for group in self._groups)
        return prefix + pattern if prefix else pattern

    def push_group(
        self,
        prefix: str,
        middleware: Sequence[MiddlewareCallable] = (),
    ) -> None:
        """Enter a route group.

        Raises:
            CircularMiddleware: A middleware object is already used by this
                group or an enclosing one
        """
        middleware = tuple(middleware)
        with self._lock:
            seen: List[Any] = [mw for group in self._groups for mw in group.middleware]
            for mw in middleware:
                if any(existing is mw for existing in seen):
                    raise CircularMiddleware(mw)
                seen.append(mw)

            prefix = normalize_path(prefix)
            if prefix == "/":
                prefix = ""
            self._groups.append(_Group(prefix, middleware))

    def pop_group(self) -> None:
        """Leave the innermost route group."""
        with self._lock:
            if not self._groups:
                raise RuntimeError("No route group to pop")
            self._groups.pop()

    def freeze(self) -> None:
        """Make the table read-only."""
        if self._frozen:
            return
        with self._lock:
            if self._frozen:
                return
            self._frozen = True
        logger.debug(f"Router frozen with {len(self._routes)} routes")

    def dispatch(self, method: str, path: str) -> DispatchResult:
        """Resolve a method and path to a route.

        Returns:
            RouteMatch, NotFound or MethodNotAllowed
        """
        self.freeze()
        method = method.upper()

        for route in self._routes.values():
            params = route.matches(path, decode=self.config.decode_params)
            if params is None:
                continue

            if not route.allows(method):
                logger.debug(
                    f"{method} {path} matched {route.name} which allows {route.methods}"
                )
                return MethodNotAllowed(allowed_methods=tuple(route.methods))

            return RouteMatch(route=route, params=params)

        logger.debug(f"{method} {path} matched no route")
        return NotFound()

    def url_for(
        self,
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Build the URL of a named route.

        Raises:
            UnknownRoute: No route has that name
            MissingSegmentValue: A segment has no value
        """
        route = self._routes.get(name)
        if route is None:
            raise UnknownRoute(name)

        url = self.compiler.build_url(route.pattern, params, query)
        if self.config.root_path:
            url = join_paths(self.config.root_path, url)
        return url

    def get(self, name: str) -> Optional[Route]:
        """Get a route by name."""
        return self._routes.get(name)

    def routes(self) -> List[Route]:
        """Get all routes in dispatch order."""
        return list(self._routes.values())

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, name: str) -> bool:
        return name in self._routes


__all__ = [
    "Router",
    "DispatchStatus",
    "DispatchResult",
    "RouteMatch",
    "NotFound",
    "MethodNotAllowed",
    "UnknownRoute",
    "RouterLockedError",
]
