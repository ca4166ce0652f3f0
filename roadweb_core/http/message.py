"""Request/Response - HTTP message objects handed through the dispatch core.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Request:
    """HTTP Request object.

    Treated as immutable by the routing core: route parameters are attached
    with ``with_attributes`` which returns a copy.
    """

    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    attributes: Dict[str, Any] = field(default_factory=dict)

    def get_header(self, name: str, default: str = "") -> str:
        """Get header value (case-insensitive)."""
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value
        return default

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def with_attributes(self, attributes: Dict[str, Any]) -> "Request":
        """Return a copy carrying the given attributes."""
        return dataclasses.replace(self, attributes=dict(attributes))

    def text(self) -> str:
        return self.body.decode()


@dataclass
class Response:
    """HTTP Response object.

    Middleware and handlers either mutate this object in place or return a
    new one; the dispatch core only requires that a ``Response`` comes back.
    """

    status: int = 200
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    protocol_version: str = "1.1"

    STATUS_MESSAGES = {
        200: "OK",
        201: "Created",
        204: "No Content",
        301: "Moved Permanently",
        302: "Found",
        304: "Not Modified",
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        405: "Method Not Allowed",
        500: "Internal Server Error",
        503: "Service Unavailable",
    }

    @property
    def status_message(self) -> str:
        return self.STATUS_MESSAGES.get(self.status, "Unknown")

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode()

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_error(self) -> bool:
        return self.status >= 400

    def set_header(self, name: str, value: str) -> "Response":
        """Set header value."""
        self.headers[name] = value
        return self

    def get_header(self, name: str, default: str = "") -> str:
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value
        return default

    def with_status(self, status: int) -> "Response":
        self.status = status
        return self

    def write(self, content: Any) -> "Response":
        """Append content to the body."""
        if isinstance(content, str):
            content = content.encode()
        self.body += content
        return self

    @classmethod
    def json(
        cls,
        data: Any,
        status: int = 200,
        headers: Optional[Dict[str, str]] = None,
    ) -> "Response":
        """Create JSON response."""
        body = json.dumps(data).encode()
        resp_headers = headers or {}
        resp_headers["Content-Type"] = "application/json"
        return cls(status=status, body=body, headers=resp_headers)

    @classmethod
    def redirect(cls, location: str, status: int = 302) -> "Response":
        """Create redirect response."""
        return cls(status=status, headers={"Location": location})


__all__ = [
    "Request",
    "Response",
]
