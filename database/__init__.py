"""
Database module for the Query Gateway.

Provides:
- Session lifecycle (authenticate, query, close)
- Raw result shapes returned by the driver
"""

from .connection import (
    ConnectionSession,
    SessionStatus,
    ResultMetadata,
    RawResult,
    AuthError,
    QueryError,
    build_url,
)

__all__ = [
    "ConnectionSession",
    "SessionStatus",
    "ResultMetadata",
    "RawResult",
    "AuthError",
    "QueryError",
    "build_url",
]
