"""Default handlers for unmatched routes and unhandled errors.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import html
import json
import logging
import traceback
from typing import Sequence

from roadweb_core.http.message import Request, Response
from roadweb_core.utils.helpers import preferred_media_type

logger = logging.getLogger(__name__)

KNOWN_TYPES = ("text/html", "application/json")

_HTML_PAGE = (
    "<html><head><title>{title}</title></head>"
    "<body><h1>{title}</h1><p>{message}</p></body></html>"
)


class ErrorRenderer:
    """Renders a status page as HTML or JSON depending on ``Accept``."""

    def content_type(self, request: Request) -> str:
        return preferred_media_type(
            request.get_header("Accept"), KNOWN_TYPES, default="text/html"
        )

    def render(
        self,
        request: Request,
        response: Response,
        status: int,
        title: str,
        message: str,
        **extra,
    ) -> Response:
        content_type = self.content_type(request)
        if content_type == "application/json":
            error = {"code": status, "type": title, "message": message}
            error.update(extra)
            body = json.dumps({"error": error})
        else:
            body = _HTML_PAGE.format(
                title=html.escape(title), message=html.escape(message)
            )

        response.status = status
        response.body = b""
        response.set_header("Content-Type", content_type)
        return response.write(body)


class NotFoundHandler(ErrorRenderer):
    """404 page."""

    def __call__(self, request: Request, response: Response) -> Response:
        return self.render(
            request, response, 404, "Not Found", "Page not found"
        )


class NotAllowedHandler(ErrorRenderer):
    """405 page with an ``Allow`` header."""

    def __call__(
        self,
        request: Request,
        response: Response,
        methods: Sequence[str],
    ) -> Response:
        methods = list(methods)
        if len(methods) > 1:
            allowed = ", ".join(methods[:-1]) + " or " + methods[-1]
        else:
            allowed = "".join(methods)

        response = self.render(
            request,
            response,
            405,
            "Method Not Allowed",
            f"Method not allowed. Must be one of: {allowed}",
            allowed=methods,
        )
        response.set_header("Allow", ", ".join(methods))
        return response


class ErrorHandler(ErrorRenderer):
    """500 page. Includes the traceback when ``debug`` is set."""

    def __init__(self, debug: bool = False):
        self.debug = debug

    def __call__(
        self,
        request: Request,
        response: Response,
        exc: BaseException,
    ) -> Response:
        message = "A website error has occurred. Sorry for the temporary inconvenience."
        extra = {}
        if self.debug:
            message = f"{type(exc).__name__}: {exc}"
            extra["trace"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return self.render(request, response, 500, "Application Error", message, **extra)


__all__ = [
    "ErrorRenderer",
    "NotFoundHandler",
    "NotAllowedHandler",
    "ErrorHandler",
]
