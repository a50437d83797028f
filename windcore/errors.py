from __future__ import annotations

from typing import Optional


class SourceError(RuntimeError):
    """Base error for anything that goes wrong between upstream and reading."""

    kind = "source"
    retryable = False


class NetworkError(SourceError):
    """Connection failure or per-attempt timeout."""

    kind = "network"
    retryable = True


class HttpStatusError(SourceError):
    """Upstream answered with a non-2xx status."""

    kind = "http_status"
    retryable = True

    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code


class SessionError(SourceError):
    """Session handshake did not yield a token; not retried within the cycle."""

    kind = "session"


class ParseError(SourceError):
    """Payload shape did not match what the parser expects."""

    kind = "parse"


class ValidationReject(SourceError):
    """Reading is physically implausible and must be discarded."""

    kind = "validation"


class CacheUnavailable(SourceError):
    """Cache store is unreachable; callers treat it as a miss."""

    kind = "cache"


__all__ = [
    "CacheUnavailable",
    "HttpStatusError",
    "NetworkError",
    "ParseError",
    "SessionError",
    "SourceError",
    "ValidationReject",
]
