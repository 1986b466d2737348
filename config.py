"""
Configuration module for the Database Query Gateway.

This module handles all configuration including:
- Connection credentials (MySQL, MariaDB, PostgreSQL, MSSQL, SQLite)
- Gateway settings (preview size, event timestamps, channel name)
- Logging setup
"""

import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, List, Mapping, Any

# Load .env file BEFORE any os.getenv calls
from dotenv import load_dotenv
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


class CredentialsError(ValueError):
    """Raised when a required credential field is missing."""
    pass


# Engines that store their data in a local file instead of behind a server
FILE_ENGINES = {"sqlite"}

SERVER_REQUIRED_FIELDS = ["database", "username", "host"]
FILE_REQUIRED_FIELDS = ["database_path"]


@dataclass(frozen=True)
class Credentials:
    """
    Connection credentials for one database engine.

    Only used to build a session; the session never keeps a reference.
    """
    engine: str
    database: str = ""
    username: str = ""
    password: str = ""
    host: str = ""
    port: Optional[int] = None
    database_path: Optional[str] = None

    @property
    def is_file_based(self) -> bool:
        return self.engine.lower() in FILE_ENGINES

    def missing_fields(self) -> List[str]:
        """List required fields that are empty for this engine."""
        if not self.engine:
            return ["engine"]
        required = FILE_REQUIRED_FIELDS if self.is_file_based else SERVER_REQUIRED_FIELDS
        return [name for name in required if not getattr(self, name)]

    def validate(self) -> None:
        missing = self.missing_fields()
        if missing:
            raise CredentialsError(f"Missing required credentials: {', '.join(missing)}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Credentials":
        """
        Build credentials from a login payload.

        Accepts the channel payload keys (``portNumber``, ``databasePath``)
        as well as the python field names.

        Raises:
            CredentialsError: If a required field is missing
        """
        port = data.get("port", data.get("portNumber"))
        credentials = cls(
            engine=(data.get("engine") or "").strip(),
            database=data.get("database") or "",
            username=data.get("username") or "",
            password=data.get("password") or "",
            host=data.get("host") or "",
            port=int(port) if port not in (None, "") else None,
            database_path=data.get("database_path", data.get("databasePath")),
        )
        credentials.validate()
        return credentials

    @classmethod
    def from_env(cls) -> "Credentials":
        """Create credentials from DB_* environment variables."""
        port = os.getenv("DB_PORT")
        return cls(
            engine=os.getenv("DB_ENGINE", ""),
            database=os.getenv("DB_DATABASE", ""),
            username=os.getenv("DB_USERNAME", ""),
            password=os.getenv("DB_PASSWORD", ""),
            host=os.getenv("DB_HOST", ""),
            port=int(port) if port else None,
            database_path=os.getenv("DB_PATH"),
        )

    def __repr__(self) -> str:
        return (
            f"Credentials(engine={self.engine!r}, database={self.database!r}, "
            f"username={self.username!r}, host={self.host!r}, port={self.port!r}, "
            f"database_path={self.database_path!r})"
        )


@dataclass
class GatewayConfig:
    """Settings for the introspection pipeline and event stream."""

    # Rows fetched per table when previewing
    preview_limit: int = field(
        default_factory=lambda: int(os.getenv("GATEWAY_PREVIEW_LIMIT", "5"))
    )

    # Wall-clock format used by every event timestamp
    timestamp_format: str = field(
        default_factory=lambda: os.getenv("GATEWAY_TIMESTAMP_FORMAT", "%H:%M:%S GMT%z")
    )

    # Channel name used by transport-backed sinks
    channel: str = field(default_factory=lambda: os.getenv("GATEWAY_CHANNEL", "channel"))

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Echo SQL emitted by SQLAlchemy
    echo_sql: bool = field(
        default_factory=lambda: os.getenv("DB_ECHO", "false").lower() in ("1", "true", "yes")
    )


class AppConfig:
    """
    Main application configuration aggregator.

    Combines all configuration sections and provides
    validation methods.
    """

    def __init__(self):
        self.gateway = GatewayConfig()
        self.credentials = Credentials.from_env()

    def validate(self) -> tuple[bool, List[str]]:
        """
        Validate all configuration settings.

        Returns:
            tuple: (is_valid, list of error messages)
        """
        errors = []

        missing = self.credentials.missing_fields()
        if missing:
            errors.append(
                f"Connection configuration incomplete ({', '.join(missing)}). "
                "Check DB_* environment variables."
            )

        if self.gateway.preview_limit < 1:
            errors.append("GATEWAY_PREVIEW_LIMIT must be a positive integer.")

        return len(errors) == 0, errors

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging once for gateway processes."""
    logging.basicConfig(
        level=(level or config.gateway.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


# Global configuration instance
config = AppConfig.from_env()
