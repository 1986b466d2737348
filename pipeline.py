"""
Introspection Pipeline - discovery workflows over one session.

Lists databases, lists tables and previews each of them, runs ad-hoc
queries, and pushes one event per discovered unit as soon as it is ready.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from config import GatewayConfig, config
from database.connection import ConnectionSession, QueryError, RawResult
from events import (
    EventEmitter,
    DatabaseList,
    TableList,
    TablePreview,
    QueryResult,
    Disconnected,
)
from sql.presets import DiscoveryIntent, DriverNative, Literal, QuerySpec, resolve
from table_parser import Table, empty_table, parse_rows

logger = logging.getLogger(__name__)


@dataclass
class PreviewOutcome:
    """Settled state of one table preview."""
    table_name: str
    table: Optional[Table] = None
    error: Optional[QueryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class PreviewBatch:
    """All previews launched by one table listing."""
    table_names: List[str]
    outcomes: Dict[str, PreviewOutcome] = field(default_factory=dict)

    def settle(self, outcome: PreviewOutcome) -> None:
        self.outcomes[outcome.table_name] = outcome

    @property
    def pending(self) -> List[str]:
        return [name for name in self.table_names if name not in self.outcomes]

    @property
    def settled(self) -> bool:
        return not self.pending

    @property
    def succeeded(self) -> List[PreviewOutcome]:
        return [o for o in self.outcomes.values() if o.ok]

    @property
    def failed(self) -> List[PreviewOutcome]:
        return [o for o in self.outcomes.values() if not o.ok]


def result_rows(raw: RawResult) -> List[Any]:
    """Rows of a raw result, whether it came with metadata or bare."""
    if isinstance(raw, tuple):
        return list(raw[0])
    return list(raw)


def first_field(row: Any) -> Any:
    """The sole (or first) value of a row mapping or sequence."""
    if isinstance(row, dict):
        return next(iter(row.values()))
    if isinstance(row, (list, tuple)):
        return row[0]
    return row


class IntrospectionPipeline:
    """
    Runs discovery and query workflows against a connection session.

    Holds no state between calls; every workflow reports through the
    emitter it was given.
    """

    def __init__(
        self,
        session: ConnectionSession,
        emitter: EventEmitter,
        gateway_config: Optional[GatewayConfig] = None
    ):
        self.session = session
        self.emitter = emitter
        self.config = gateway_config or config.gateway

    def _execute(self, spec: QuerySpec) -> RawResult:
        if isinstance(spec, Literal):
            return self.session.query(spec.sql)
        if isinstance(spec, DriverNative):
            return getattr(self.session, spec.method_name)()
        raise TypeError(f"Unknown query spec: {spec!r}")

    def show_databases(self) -> List[str]:
        """
        Emit the databases visible to the session.

        The DatabaseList message also clears the consumer's table list.
        """
        spec = resolve(DiscoveryIntent.LIST_DATABASES, self.session.dialect)
        raw = self._execute(spec)
        names = [first_field(row) for row in result_rows(raw)]
        self.emitter.emit(DatabaseList(names=names))
        return names

    def show_tables(self) -> PreviewBatch:
        """
        Emit the table list, then one preview per table.

        A failing table listing raises before any preview runs. Each preview
        failure is reported on its own and the remaining tables still run.

        Returns:
            PreviewBatch, settled once every table has been attempted
        """
        spec = resolve(DiscoveryIntent.LIST_TABLES, self.session.dialect)
        raw = self._execute(spec)
        names = [str(first_field(row)) for row in result_rows(raw)]
        self.emitter.emit(TableList(names=names))

        batch = PreviewBatch(table_names=names)
        for name in names:
            batch.settle(self.preview_table(name))

        logger.info(
            f"Previewed {len(batch.succeeded)} of {len(names)} tables "
            f"({len(batch.failed)} failed)"
        )
        return batch

    def preview_table(self, table_name: str) -> PreviewOutcome:
        # Table names come from the catalog and are interpolated unescaped
        sql = f"SELECT * FROM {table_name} LIMIT {self.config.preview_limit}"
        self.emitter.log(sql)
        try:
            rows, _ = self.session.query(sql)
        except QueryError as e:
            self.emitter.error(e)
            return PreviewOutcome(table_name=table_name, error=e)

        if rows:
            table = parse_rows(rows)
        else:
            table = empty_table()
            self.emitter.log(f"NOTE: table [{table_name}] seems to be empty")

        self.emitter.emit(TablePreview(table_name=table_name, table=table))
        return PreviewOutcome(table_name=table_name, table=table)

    def send_query(self, sql: str) -> List[Dict[str, Any]]:
        """Run an ad-hoc statement and emit its unparsed rows."""
        self.emitter.log(sql)
        rows, _ = self.session.query(sql)
        self.emitter.emit(QueryResult(rows=rows))
        return rows

    def receive_server_query(self, sql: str, reply: Callable[[Dict[str, Any]], None]) -> Table:
        """
        Run a statement on behalf of a server-side requester.

        The requester gets the parsed table; the main consumer gets the rows.
        """
        rows, metadata = self.session.query(sql)
        table = parse_rows(rows) if rows else parse_rows([], columns=metadata.columns)
        reply(table.to_dict())
        self.emitter.emit(QueryResult(rows=rows))
        return table

    def disconnect(self) -> None:
        self.session.close()
        self.emitter.emit(Disconnected())
