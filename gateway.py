"""
Query Gateway - public entry point for consumers.

Combines all components:
- Session lifecycle (login / disconnect)
- Dialect-aware discovery (databases, tables, previews)
- Ad-hoc and server-issued queries
- Log and error event emission
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from config import Credentials, GatewayConfig, config
from database.connection import ConnectionSession, QueryError
from events import ChannelSink, EventEmitter, EventSink
from pipeline import IntrospectionPipeline, PreviewBatch
from table_parser import Table

logger = logging.getLogger(__name__)


class QueryGateway:
    """
    Facade over one database session and its event stream.

    Discovery and query failures are reported to the sink as Error events
    and the call returns None. Login failures and unsupported dialects are
    raised to the caller instead.
    """

    def __init__(self, sink: EventSink, gateway_config: Optional[GatewayConfig] = None):
        self.config = gateway_config or config.gateway
        self.emitter = EventEmitter(sink, self.config.timestamp_format)
        self.session: Optional[ConnectionSession] = None

    @property
    def connection_state(self) -> str:
        if self.session is None:
            return "none: credentials were not sent"
        return self.session.connection_state

    def login(self, credentials: Union[Credentials, Mapping[str, Any]]) -> ConnectionSession:
        """
        Open a new session, replacing any existing one.

        Raises:
            CredentialsError: If a required field is missing
            AuthError: If the engine rejects or cannot be reached
        """
        if not isinstance(credentials, Credentials):
            credentials = Credentials.from_mapping(credentials)
        else:
            credentials.validate()

        if self.session is not None:
            self.session.close()
            self.session = None

        session = ConnectionSession(self.config)
        session.authenticate(credentials)
        self.session = session
        return session

    def _pipeline(self, sql: str = "") -> IntrospectionPipeline:
        if self.session is None:
            raise QueryError(sql, "No active session: login first")
        return IntrospectionPipeline(self.session, self.emitter, self.config)

    def update_log(self, message: str) -> None:
        self.emitter.log(message)

    def raise_error(self, error: Exception) -> None:
        self.emitter.error(error)

    def show_databases(self) -> Optional[List[str]]:
        try:
            return self._pipeline().show_databases()
        except QueryError as e:
            self.raise_error(e)
            return None

    def show_tables(self) -> Optional[PreviewBatch]:
        try:
            return self._pipeline().show_tables()
        except QueryError as e:
            self.raise_error(e)
            return None

    def send_query(self, sql: str) -> Optional[List[Dict[str, Any]]]:
        try:
            return self._pipeline(sql).send_query(sql)
        except QueryError as e:
            self.raise_error(e)
            return None

    def receive_server_query(
        self,
        sql: str,
        reply: Callable[[Dict[str, Any]], None]
    ) -> Optional[Table]:
        """Answer a server-issued query; the app still receives the rows."""
        try:
            return self._pipeline(sql).receive_server_query(sql, reply)
        except QueryError as e:
            self.raise_error(e)
            return None

    def disconnect(self) -> None:
        """Close the session and reset the consumer. No-op when nothing is open."""
        if self.session is None or not self.session.is_connected:
            logger.debug("disconnect called without an open session")
            return
        self._pipeline().disconnect()


def create_gateway(sink: EventSink, gateway_config: Optional[GatewayConfig] = None) -> QueryGateway:
    return QueryGateway(sink, gateway_config)


def create_channel_gateway(transport: Any, gateway_config: Optional[GatewayConfig] = None) -> QueryGateway:
    """Gateway pushing messages to ``transport.send(<configured channel>, message)``."""
    gateway_config = gateway_config or config.gateway
    return QueryGateway(ChannelSink(transport, gateway_config.channel), gateway_config)
