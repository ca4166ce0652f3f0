"""Middleware Base - Base classes for middleware.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

from roadweb_core.http.message import Request, Response
from roadweb_core.middleware.stack import Next

logger = logging.getLogger(__name__)


class Middleware(ABC):
    """Abstract middleware base class.

    A middleware receives the request, the response and the next frame. It
    may act before delegating, after delegating, or return a response without
    delegating at all.

    Pipeline:
    ┌────────────────────────────────────────────────────────────┐
    │                  Middleware Pipeline                        │
    │                                                             │
    │  Request ──▶ MW2 ──▶ MW1 ──▶ ... ──▶ Handler               │
    │                                          │                  │
    │  Response ◀── MW2 ◀── MW1 ◀── ... ◀──────┘                 │
    └────────────────────────────────────────────────────────────┘
    """

    @abstractmethod
    def __call__(
        self,
        request: Request,
        response: Response,
        next: Next,
    ) -> Response:
        """Process the request and return a response."""
        pass


class HookMiddleware(Middleware):
    """Middleware expressed as a pre-request and a post-request hook."""

    def pre_request(
        self,
        request: Request,
    ) -> Optional[Union[Request, Response]]:
        """Process request before the inner frames.

        Returns:
            Replacement request, Response to short-circuit, or None
        """
        return None

    def post_request(
        self,
        request: Request,
        response: Response,
    ) -> Optional[Response]:
        """Process response on the way out.

        Returns:
            Replacement response or None
        """
        return None

    def __call__(
        self,
        request: Request,
        response: Response,
        next: Next,
    ) -> Response:
        result = self.pre_request(request)
        if isinstance(result, Response):
            return result
        if result is not None:
            request = result

        response = next(request, response)

        result = self.post_request(request, response)
        if result is not None:
            response = result
        return response


class PassthroughMiddleware(Middleware):
    """Middleware that does nothing (for testing)."""

    def __call__(
        self,
        request: Request,
        response: Response,
        next: Next,
    ) -> Response:
        return next(request, response)


__all__ = [
    "Middleware",
    "HookMiddleware",
    "PassthroughMiddleware",
]
