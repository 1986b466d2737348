"""SQL module exports."""

from .presets import (
    DialectTag,
    DiscoveryIntent,
    DriverNative,
    Literal,
    QuerySpec,
    UnsupportedDialectError,
    resolve,
    supported_dialects,
)

__all__ = [
    "DialectTag", "DiscoveryIntent", "DriverNative", "Literal", "QuerySpec",
    "UnsupportedDialectError", "resolve", "supported_dialects"
]
