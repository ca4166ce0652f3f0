"""HTTP module - Request and response message objects."""

from roadweb_core.http.message import Request, Response

__all__ = [
    "Request",
    "Response",
]
