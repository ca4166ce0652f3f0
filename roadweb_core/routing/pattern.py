"""Pattern Compiler - Route template compilation and URL building.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Route templates mix literal text with placeholders:

    /user/{name}/{id:[0-9]+}
           │      │
           │      └── typed segment, matches exactly ``[0-9]+``
           └── generic segment, matches ``[^/]+``

    Regex:  ^/user/(?P<name>[^/]+)/(?P<id>[0-9]+)$

Typed segments may contain balanced braces of their own (``{year:\\d{4}}``),
so placeholders are located with a brace-depth scanner rather than a regex.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote, unquote_plus, urlencode

logger = logging.getLogger(__name__)

GENERIC_SEGMENT = "[^/]+"

# Characters left unescaped when a value is substituted into a path segment.
# "/" is excluded so a value always lands in a single segment, "+" because
# extracted parameters are decoded with form semantics.
SEGMENT_SAFE = "!$&'()*,;=:@"

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class PatternError(ValueError):
    """Raised when a route template is malformed."""

    def __init__(self, message: str, pattern: Any = None):
        super().__init__(message)
        self.pattern = pattern


class SegmentValueMismatch(PatternError):
    """Raised by strict URL building when a value does not fit its segment."""


class MissingSegmentValue(LookupError):
    """Raised when URL building has no value for a required segment."""

    def __init__(self, segment: str):
        super().__init__(f"Missing data for URL segment: {segment}")
        self.segment = segment


@dataclass(frozen=True)
class Segment:
    """A ``{name}`` or ``{name:expr}`` placeholder."""

    name: str
    expr: Optional[str] = None

    def regex(self, default_conditions: Mapping[str, str]) -> str:
        """Effective expression; an inline one beats the default table."""
        if self.expr is not None:
            return self.expr
        return default_conditions.get(self.name, GENERIC_SEGMENT)


Part = Union[str, Segment]


@dataclass(frozen=True)
class CompiledPattern:
    """A route template compiled to an anchored regex."""

    pattern: str
    regex: "re.Pattern[str]"
    parts: Tuple[Part, ...]
    conditions: Tuple[Tuple[str, str], ...] = ()

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return tuple(part for part in self.parts if isinstance(part, Segment))

    @property
    def names(self) -> List[str]:
        return [segment.name for segment in self.segments]

    def match(self, path: str, decode: bool = True) -> Optional[Dict[str, str]]:
        """Match a full path.

        Returns:
            Segment values in template order, or None if the path does not match.
            Groups that are not route segments are dropped.
        """
        match = self.regex.fullmatch(path)
        if match is None:
            return None

        params: Dict[str, str] = {}
        for segment in self.segments:
            value = match.group(segment.name)
            params[segment.name] = unquote_plus(value) if decode else value
        return params


def parse_pattern(pattern: str) -> List[Part]:
    """Split a template into literal text and segments."""
    if not isinstance(pattern, str):
        raise PatternError("Route pattern must be a string", pattern)

    parts: List[Part] = []
    seen = set()
    literal_start = 0
    i = 0
    length = len(pattern)

    while i < length:
        char = pattern[i]
        if char == "}":
            raise PatternError(
                f"Unbalanced '}}' at offset {i} in route pattern {pattern!r}",
                pattern,
            )
        if char != "{":
            i += 1
            continue

        if i > literal_start:
            parts.append(pattern[literal_start:i])

        depth = 1
        j = i + 1
        while j < length and depth:
            if pattern[j] == "\\":
                j += 2
                continue
            if pattern[j] == "{":
                depth += 1
            elif pattern[j] == "}":
                depth -= 1
            j += 1
        if depth:
            raise PatternError(
                f"Unterminated segment at offset {i} in route pattern {pattern!r}",
                pattern,
            )

        segment = _parse_segment(pattern, pattern[i + 1:j - 1])
        if segment.name in seen:
            raise PatternError(
                f"Duplicate segment {segment.name!r} in route pattern {pattern!r}",
                pattern,
            )
        seen.add(segment.name)
        parts.append(segment)
        i = literal_start = j

    if literal_start < length:
        parts.append(pattern[literal_start:])

    return parts


def _parse_segment(pattern: str, body: str) -> Segment:
    name, sep, expr = body.partition(":")
    name = name.strip()
    if not _NAME_RE.fullmatch(name):
        raise PatternError(
            f"Invalid segment name {name!r} in route pattern {pattern!r}",
            pattern,
        )
    if not sep:
        return Segment(name)

    expr = expr.strip()
    if not expr:
        raise PatternError(
            f"Empty expression for segment {name!r} in route pattern {pattern!r}",
            pattern,
        )
    return Segment(name, expr)


class PatternCompiler:
    """Compiles route templates and builds URLs from them.

    Compiled patterns are memoized. The cache is filled under a lock and read
    without one, so a compiler can be shared by concurrent dispatchers.

    Usage:
        compiler = PatternCompiler(default_conditions={"id": "[0-9]+"})
        compiled = compiler.compile("/user/{id}")
        compiled.match("/user/42")        # {"id": "42"}
        compiler.build_url("/user/{id}", {"id": 42}, {"tab": "posts"})
    """

    def __init__(
        self,
        default_conditions: Optional[Mapping[str, str]] = None,
        strict: bool = False,
    ):
        self.default_conditions: Dict[str, str] = dict(default_conditions or {})
        self.strict = strict
        self._cache: Dict[str, CompiledPattern] = {}
        self._lock = threading.Lock()

    def compile(self, pattern: str) -> CompiledPattern:
        """Compile a template, raising PatternError if it is malformed."""
        compiled = self._cache.get(pattern) if isinstance(pattern, str) else None
        if compiled is not None:
            return compiled

        with self._lock:
            compiled = self._cache.get(pattern)
            if compiled is None:
                compiled = self._compile(pattern)
                self._cache[pattern] = compiled
        return compiled

    def _compile(self, pattern: str) -> CompiledPattern:
        parts = parse_pattern(pattern)
        regex_parts = []
        conditions = []

        for part in parts:
            if isinstance(part, Segment):
                expr = part.regex(self.default_conditions)
                conditions.append((part.name, expr))
                regex_parts.append(f"(?P<{part.name}>{expr})")
            else:
                regex_parts.append(re.escape(part))

        regex_str = "^" + "".join(regex_parts) + "$"
        try:
            regex = re.compile(regex_str)
        except re.error as e:
            raise PatternError(
                f"Route pattern {pattern!r} does not compile: {e}", pattern
            ) from e

        logger.debug(f"Compiled route pattern {pattern} -> {regex_str}")
        return CompiledPattern(
            pattern=pattern,
            regex=regex,
            parts=tuple(parts),
            conditions=tuple(conditions),
        )

    def build_url(
        self,
        pattern: str,
        params: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
        strict: Optional[bool] = None,
    ) -> str:
        """Substitute segment values into a template.

        Args:
            pattern: Route template
            params: Segment values keyed by segment name
            query: Query parameters appended form-encoded
            strict: Check each value against its segment expression
                (defaults to the compiler setting)

        Raises:
            MissingSegmentValue: A segment has no value
            SegmentValueMismatch: Strict mode and a value does not match
        """
        params = params or {}
        strict = self.strict if strict is None else strict
        compiled = self.compile(pattern)
        conditions = dict(compiled.conditions)

        url_parts = []
        for part in compiled.parts:
            if not isinstance(part, Segment):
                url_parts.append(part)
                continue

            if part.name not in params or params[part.name] is None:
                raise MissingSegmentValue(part.name)

            value = str(params[part.name])
            if strict and re.fullmatch(conditions[part.name], value) is None:
                raise SegmentValueMismatch(
                    f"Value {value!r} does not match segment "
                    f"{part.name!r} ({conditions[part.name]})",
                    pattern,
                )
            url_parts.append(quote(value, safe=SEGMENT_SAFE))

        url = "".join(url_parts)
        if query:
            url += "?" + urlencode(query, doseq=True)
        return url

    def clear(self) -> None:
        """Drop memoized patterns."""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


__all__ = [
    "GENERIC_SEGMENT",
    "PatternError",
    "SegmentValueMismatch",
    "MissingSegmentValue",
    "Segment",
    "CompiledPattern",
    "PatternCompiler",
    "parse_pattern",
]
