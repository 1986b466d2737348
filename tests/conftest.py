import sqlite3

import pytest

from config import Credentials, GatewayConfig
from database.connection import QueryError, ResultMetadata, SessionStatus
from events import CollectingSink, EventEmitter
from sql.presets import DialectTag


class FakeSession:
    """In-memory stand-in for ConnectionSession on server dialects."""

    def __init__(self, dialect, results=None, tables=None, failures=None):
        self.dialect = DialectTag.parse(dialect)
        self.results = results or {}
        self.tables = tables or []
        self.failures = failures or {}
        self.status = SessionStatus.CONNECTED
        self.executed = []

    @property
    def is_connected(self):
        return self.status == SessionStatus.CONNECTED

    @property
    def connection_state(self):
        return self.status.value

    def _check(self, sql):
        self.executed.append(sql)
        if not self.is_connected:
            raise QueryError(sql, "Session is not connected (closed)")
        if sql in self.failures:
            raise QueryError(sql, self.failures[sql])

    def query(self, sql):
        self._check(sql)
        rows = [dict(row) for row in self.results.get(sql, [])]
        columns = list(rows[0].keys()) if rows else []
        return rows, ResultMetadata(columns=columns, rowcount=len(rows))

    def show_all_schemas(self):
        self._check("show_all_schemas()")
        return [dict(row) for row in self.tables]

    def close(self):
        if self.is_connected:
            self.status = SessionStatus.CLOSED


@pytest.fixture()
def make_session():
    return FakeSession


@pytest.fixture()
def gateway_config():
    return GatewayConfig(
        preview_limit=5,
        timestamp_format="%H:%M:%S GMT%z",
        channel="channel",
        log_level="INFO",
        echo_sql=False,
    )


@pytest.fixture()
def sink():
    return CollectingSink()


@pytest.fixture()
def emitter(sink, gateway_config):
    return EventEmitter(sink, gateway_config.timestamp_format)


@pytest.fixture()
def sqlite_db_path(tmp_path):
    db_path = tmp_path / "shop.db"
    conn = sqlite3.connect(db_path)
    try:
        conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, age INTEGER)")
        conn.execute("CREATE TABLE orders (id INTEGER PRIMARY KEY, user_id INTEGER, total REAL)")
        conn.executemany(
            "INSERT INTO users (name, age) VALUES (?, ?)",
            [("Ada", 30), ("Linus", 45), ("Grace", 50)],
        )
        conn.commit()
    finally:
        conn.close()
    return db_path


@pytest.fixture()
def sqlite_credentials(sqlite_db_path):
    return Credentials(engine="sqlite", database_path=str(sqlite_db_path))
