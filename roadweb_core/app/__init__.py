"""App module - Application, default handlers and callable resolution."""

from roadweb_core.app.application import App, HaltException
from roadweb_core.app.handlers import NotFoundHandler, NotAllowedHandler, ErrorHandler
from roadweb_core.app.resolver import ResolutionError, resolve_callable

__all__ = [
    "App",
    "HaltException",
    "NotFoundHandler",
    "NotAllowedHandler",
    "ErrorHandler",
    "ResolutionError",
    "resolve_callable",
]
