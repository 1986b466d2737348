"""
Database Connection Module - One authenticated session per gateway.

This module provides:
- SQLAlchemy engine construction for MySQL, MariaDB, PostgreSQL, MSSQL and SQLite
- Liveness checking on authentication
- Single-statement query execution returning raw driver rows
- Driver-native table listing through the SQLAlchemy inspector
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Generator, List, Dict, Any, Tuple, Union

import sqlparse
from sqlalchemy import create_engine, text, inspect
from sqlalchemy.engine import Engine, URL
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from config import Credentials, GatewayConfig, config
from sql.presets import DialectTag, UnsupportedDialectError

logger = logging.getLogger(__name__)


# SQLAlchemy driver name per dialect
DRIVERS = {
    DialectTag.MYSQL: "mysql+pymysql",
    DialectTag.MARIADB: "mariadb+pymysql",
    DialectTag.POSTGRES: "postgresql+psycopg2",
    DialectTag.MSSQL: "mssql+pymssql",
    DialectTag.SQLITE: "sqlite",
}


class AuthError(Exception):
    """Raised when a session cannot be established."""
    pass


class QueryError(Exception):
    """Raised when a statement fails to execute on the session."""

    def __init__(self, sql: str, driver_message: str):
        super().__init__(driver_message)
        self.sql = sql
        self.driver_message = driver_message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": type(self).__name__,
            "message": self.driver_message,
            "sql": self.sql,
        }


class SessionStatus(Enum):
    UNAUTHENTICATED = "unauthenticated"
    CONNECTED = "connected"
    CLOSED = "closed"


@dataclass
class ResultMetadata:
    """Driver metadata returned alongside literal query rows."""
    columns: List[str] = field(default_factory=list)
    rowcount: int = -1


Row = Dict[str, Any]

# Literal queries return (rows, metadata); driver-native calls return bare rows
RawResult = Union[Tuple[List[Row], ResultMetadata], List[Row]]


def build_url(credentials: Credentials) -> URL:
    """
    Build the SQLAlchemy URL for a set of credentials.

    Raises:
        UnsupportedDialectError: If the engine is not supported
    """
    dialect = DialectTag.parse(credentials.engine)
    if dialect == DialectTag.SQLITE:
        return URL.create(DRIVERS[dialect], database=credentials.database_path)
    return URL.create(
        DRIVERS[dialect],
        username=credentials.username,
        password=credentials.password or None,
        host=credentials.host,
        port=credentials.port,
        database=credentials.database,
    )


class ConnectionSession:
    """
    Owns one authenticated connection to a database engine.

    Lifecycle: unauthenticated -> connected -> closed. Queries are only
    accepted while connected.
    """

    def __init__(self, gateway_config: Optional[GatewayConfig] = None):
        self.config = gateway_config or config.gateway
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._dialect: Optional[DialectTag] = None
        self._status = SessionStatus.UNAUTHENTICATED

    @property
    def dialect(self) -> Optional[DialectTag]:
        return self._dialect

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_connected(self) -> bool:
        return self._status == SessionStatus.CONNECTED

    @property
    def connection_state(self) -> str:
        """Human readable lifecycle state."""
        if self._status == SessionStatus.UNAUTHENTICATED:
            return "none: credentials were not sent"
        if self._status == SessionStatus.CONNECTED:
            return f"connected: {self._dialect.value}"
        return "closed"

    def authenticate(self, credentials: Credentials) -> None:
        """
        Create the engine and check the target is alive.

        Args:
            credentials: Connection credentials. Not retained.

        Raises:
            AuthError: On bad credentials, unreachable host or unsupported engine
        """
        try:
            dialect = DialectTag.parse(credentials.engine)
            url = build_url(credentials)
        except UnsupportedDialectError as e:
            raise AuthError(str(e)) from e

        logger.info(f"Connecting to {url.render_as_string(hide_password=True)}")
        engine = None
        try:
            engine = create_engine(url, pool_pre_ping=True, echo=self.config.echo_sql)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, ImportError) as e:
            if engine is not None:
                engine.dispose()
            logger.error(f"Authentication failed for {dialect.value}: {e}")
            raise AuthError(str(e)) from e

        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, autoflush=False)
        self._dialect = dialect
        self._status = SessionStatus.CONNECTED
        logger.info(f"{dialect.value.upper()} connection successful")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Context manager for ORM sessions bound to this connection.

        Yields:
            SQLAlchemy Session instance
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    def _require_connected(self, sql: str) -> None:
        if self._status != SessionStatus.CONNECTED:
            raise QueryError(sql, f"Session is not connected ({self.connection_state})")

    def query(self, sql: str) -> Tuple[List[Row], ResultMetadata]:
        """
        Execute a single SQL statement.

        Args:
            sql: Statement text, executed as given

        Returns:
            Tuple of (rows as dictionaries, result metadata)

        Raises:
            QueryError: On driver errors, a closed session or multiple statements
        """
        self._require_connected(sql)

        statements = [s for s in sqlparse.split(sql) if s.strip()]
        if len(statements) > 1:
            raise QueryError(sql, "Multiple SQL statements not allowed")

        try:
            with self.get_session() as session:
                # Sent verbatim: no bind-parameter parsing, no driver % formatting
                result = session.connection().exec_driver_sql(
                    sql, execution_options={"no_parameters": True}
                )
                if result.returns_rows:
                    columns = list(result.keys())
                    rows = [dict(zip(columns, row)) for row in result.fetchall()]
                else:
                    columns, rows = [], []
                metadata = ResultMetadata(columns=columns, rowcount=result.rowcount)
        except SQLAlchemyError as e:
            raise QueryError(sql, str(e)) from e

        return rows, metadata

    def show_all_schemas(self) -> List[Row]:
        """
        List the tables of the connected database via the driver inspector.

        Returns:
            Bare list of ``{"name": table_name}`` rows
        """
        label = "show_all_schemas()"
        self._require_connected(label)
        try:
            names = inspect(self._engine).get_table_names()
        except SQLAlchemyError as e:
            raise QueryError(label, str(e)) from e
        return [{"name": name} for name in names]

    def close(self) -> None:
        """Dispose of the engine. Safe to call when nothing is open."""
        if self._status != SessionStatus.CONNECTED:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        self._status = SessionStatus.CLOSED
        logger.info("Database connections closed")
