"""
Preset discovery queries - one entry per (intent, dialect) pair.

The table below is the only place that knows how each engine lists its
databases and tables. Unknown pairs raise instead of falling back.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union, List

logger = logging.getLogger(__name__)


class UnsupportedDialectError(ValueError):
    """Raised when no preset query exists for a dialect."""
    pass


class DialectTag(Enum):
    """Supported database dialects."""
    MYSQL = "mysql"
    MARIADB = "mariadb"
    POSTGRES = "postgres"
    MSSQL = "mssql"
    SQLITE = "sqlite"

    @classmethod
    def parse(cls, value: Union[str, "DialectTag"]) -> "DialectTag":
        if isinstance(value, cls):
            return value
        name = (value or "").strip().lower()
        if name == "postgresql":
            name = "postgres"
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedDialectError(f"Unsupported dialect: {value!r}") from None


class DiscoveryIntent(Enum):
    LIST_DATABASES = "databases"
    LIST_TABLES = "tables"


@dataclass(frozen=True)
class Literal:
    """A plain SQL statement to run through ``ConnectionSession.query``."""
    sql: str


@dataclass(frozen=True)
class DriverNative:
    """A session method to call instead of SQL."""
    method_name: str


QuerySpec = Union[Literal, DriverNative]

SHOW_ALL_SCHEMAS = DriverNative("show_all_schemas")

PRESET_QUERIES: Dict[Tuple[DiscoveryIntent, DialectTag], QuerySpec] = {
    (DiscoveryIntent.LIST_DATABASES, DialectTag.MYSQL): Literal("SHOW DATABASES"),
    (DiscoveryIntent.LIST_DATABASES, DialectTag.MARIADB): Literal("SHOW DATABASES"),
    (DiscoveryIntent.LIST_DATABASES, DialectTag.POSTGRES): Literal(
        "SELECT datname FROM pg_database WHERE NOT datistemplate"
    ),
    (DiscoveryIntent.LIST_DATABASES, DialectTag.MSSQL): Literal("SELECT * FROM Sys.Databases"),

    (DiscoveryIntent.LIST_TABLES, DialectTag.MYSQL): SHOW_ALL_SCHEMAS,
    (DiscoveryIntent.LIST_TABLES, DialectTag.MARIADB): SHOW_ALL_SCHEMAS,
    (DiscoveryIntent.LIST_TABLES, DialectTag.SQLITE): SHOW_ALL_SCHEMAS,
    (DiscoveryIntent.LIST_TABLES, DialectTag.MSSQL): SHOW_ALL_SCHEMAS,
    (DiscoveryIntent.LIST_TABLES, DialectTag.POSTGRES): Literal(
        "SELECT table_name FROM information_schema.tables WHERE table_schema='public'"
    ),
}


def resolve(intent: DiscoveryIntent, dialect: Union[str, DialectTag]) -> QuerySpec:
    """
    Get the discovery query for an intent on a dialect.

    Raises:
        UnsupportedDialectError: If the pair has no preset query
    """
    tag = DialectTag.parse(dialect)
    spec = PRESET_QUERIES.get((intent, tag))
    if spec is None:
        raise UnsupportedDialectError(
            f"No {intent.value} query for dialect '{tag.value}'. "
            f"Supported: {', '.join(d.value for d in supported_dialects(intent))}"
        )
    logger.debug(f"Resolved {intent.value} query for {tag.value}: {spec}")
    return spec


def supported_dialects(intent: DiscoveryIntent) -> List[DialectTag]:
    return [tag for (i, tag) in PRESET_QUERIES if i == intent]
