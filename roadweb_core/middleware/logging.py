"""Logging Middleware - Request/response logging.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from roadweb_core.http.message import Request, Response
from roadweb_core.middleware.base import HookMiddleware

logger = logging.getLogger(__name__)


@dataclass
class LoggingConfig:
    """Logging middleware configuration."""

    log_headers: bool = False
    log_query: bool = True
    skip_paths: List[str] = field(default_factory=list)


class LoggingMiddleware(HookMiddleware):
    """Logging middleware for requests and responses."""

    def __init__(self, config: Optional[LoggingConfig] = None):
        self.config = config or LoggingConfig()

    def pre_request(self, request: Request) -> Optional[Request]:
        """Log incoming request."""
        if request.path in self.config.skip_paths:
            return None

        request_id = str(uuid.uuid4())[:8]
        attributes = dict(request.attributes)
        attributes["_request_id"] = request_id
        attributes["_start_time"] = time.time()

        log_parts = [f"[{request_id}] --> {request.method} {request.path}"]

        if self.config.log_query and request.query:
            log_parts.append(f"query={request.query}")

        if self.config.log_headers:
            log_parts.append(f"headers={request.headers}")

        logger.info(" ".join(log_parts))
        return request.with_attributes(attributes)

    def post_request(
        self,
        request: Request,
        response: Response,
    ) -> Optional[Response]:
        """Log outgoing response."""
        if request.path in self.config.skip_paths:
            return None

        request_id = request.get_attribute("_request_id", "?")
        start_time = request.get_attribute("_start_time", time.time())

        duration_ms = (time.time() - start_time) * 1000
        logger.info(f"[{request_id}] <-- {response.status} ({duration_ms:.2f}ms)")

        response.set_header("X-Request-Id", request_id)
        return None


class AccessLogMiddleware(HookMiddleware):
    """Apache/Nginx style access logging."""

    def __init__(self, format_string: Optional[str] = None):
        self.format = format_string or (
            '{remote_addr} - - [{time}] '
            '"{method} {path} HTTP/{protocol}" {status} {body_bytes} '
            '"{referer}" "{user_agent}"'
        )

    def post_request(
        self,
        request: Request,
        response: Response,
    ) -> Optional[Response]:
        """Log in access log format."""
        log_data = {
            "remote_addr": request.get_header("X-Forwarded-For", "-"),
            "time": time.strftime("%d/%b/%Y:%H:%M:%S %z"),
            "method": request.method,
            "path": request.path,
            "protocol": response.protocol_version,
            "status": response.status,
            "body_bytes": len(response.body),
            "referer": request.get_header("Referer", "-"),
            "user_agent": request.get_header("User-Agent", "-"),
        }

        logger.info(self.format.format(**log_data))
        return None


__all__ = [
    "LoggingMiddleware",
    "AccessLogMiddleware",
    "LoggingConfig",
]
