"""Invocation Strategy - Calling route handlers and normalizing results.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

A handler may return a Response, return a string, or write incidental output
with ``echo()``. Whatever it produces is folded into a single Response:

    returned Response ──▶ replaces the current response
    returned str      ──▶ appended to the body
    echo() output     ──▶ appended after the returned value

Output is captured in an ``OutputSink`` held in a ContextVar, so concurrent
dispatches never share a buffer.
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, Mapping, Optional

from roadweb_core.http.message import Request, Response

logger = logging.getLogger(__name__)

_sink_var: ContextVar[Optional["OutputSink"]] = ContextVar(
    "roadweb_output_sink", default=None
)


class OutputSink:
    """Buffer for output a handler writes while it runs."""

    def __init__(self):
        self._buffer = io.StringIO()

    def write(self, text: str) -> int:
        return self._buffer.write(text)

    def getvalue(self) -> str:
        return self._buffer.getvalue()

    def discard(self) -> None:
        self._buffer = io.StringIO()


@contextmanager
def capture_output() -> Iterator[OutputSink]:
    """Install a fresh sink for the duration of the block."""
    sink = OutputSink()
    token = _sink_var.set(sink)
    try:
        yield sink
    finally:
        _sink_var.reset(token)


def current_sink() -> Optional[OutputSink]:
    return _sink_var.get()


def echo(*values: Any, sep: str = "", end: str = "") -> None:
    """Write output into the response of the handler being invoked.

    Raises ``LookupError`` if called outside a handler invocation.
    """
    sink = _sink_var.get()
    if sink is None:
        msg = "No output sink. echo() must be called while a route handler runs."
        raise LookupError(msg)
    sink.write(sep.join(str(value) for value in values) + end)


class InvocationStrategy(ABC):
    """Adapts a resolved handler to the ``(request, response) -> Response`` shape."""

    def __call__(
        self,
        handler: Callable[..., Any],
        request: Request,
        response: Response,
        params: Mapping[str, str],
    ) -> Response:
        with capture_output() as sink:
            try:
                result = self.invoke(handler, request, response, params)
            except Exception:
                sink.discard()
                raise
            output = sink.getvalue()

        return self.normalize(result, response, output)

    @abstractmethod
    def invoke(
        self,
        handler: Callable[..., Any],
        request: Request,
        response: Response,
        params: Mapping[str, str],
    ) -> Any:
        """Call the handler."""
        pass

    def normalize(self, result: Any, response: Response, output: str) -> Response:
        """Fold the handler result and captured output into one response."""
        if isinstance(result, Response):
            response = result
        elif isinstance(result, str):
            response.write(result)
        elif result is not None:
            logger.warning(
                f"Ignoring handler return value of type {type(result).__name__}"
            )

        if output:
            response.write(output)
        return response


class RequestResponseArgs(InvocationStrategy):
    """Call ``handler(request, response, *params)`` in template order."""

    def invoke(self, handler, request, response, params):
        return handler(request, response, *params.values())


class RequestResponseParams(InvocationStrategy):
    """Call ``handler(request, response, params)`` with a single mapping."""

    def invoke(self, handler, request, response, params):
        return handler(request, response, dict(params))


__all__ = [
    "InvocationStrategy",
    "RequestResponseArgs",
    "RequestResponseParams",
    "OutputSink",
    "capture_output",
    "current_sink",
    "echo",
]
