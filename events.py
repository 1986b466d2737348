"""
Gateway events - everything the pipeline pushes to a consumer.

Each event renders to a channel message (a plain dict). Discovery and query
messages always carry an ``error`` key, and keys that a consumer should reset
are sent as explicit None rather than left out.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from config import config
from table_parser import Table

logger = logging.getLogger(__name__)

DEFAULT_TIMESTAMP_FORMAT = "%H:%M:%S GMT%z"


def timestamp(fmt: str = DEFAULT_TIMESTAMP_FORMAT) -> str:
    """Local wall-clock time for event payloads."""
    return datetime.now().astimezone().strftime(fmt)


class Event:
    """Base class for gateway events."""

    def to_message(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass
class Log(Event):
    message: str
    timestamp: str

    def to_message(self) -> Dict[str, Any]:
        return {"log": {"message": self.message, "timestamp": self.timestamp}}


@dataclass
class Error(Event):
    detail: Dict[str, Any]
    timestamp: str

    def to_message(self) -> Dict[str, Any]:
        return {"error": {**self.detail, "timestamp": self.timestamp}}


@dataclass
class DatabaseList(Event):
    names: List[str]

    def to_message(self) -> Dict[str, Any]:
        # tables=None tells the consumer to drop the previous database's tables
        return {"databases": list(self.names), "error": None, "tables": None}


@dataclass
class TableList(Event):
    names: List[str]

    def to_message(self) -> Dict[str, Any]:
        return {"error": None, "tables": list(self.names)}


@dataclass
class TablePreview(Event):
    table_name: str
    table: Table

    def to_message(self) -> Dict[str, Any]:
        return {"error": None, self.table_name: self.table.to_dict()}


@dataclass
class QueryResult(Event):
    rows: List[Dict[str, Any]] = field(default_factory=list)

    def to_message(self) -> Dict[str, Any]:
        return {"error": None, "rows": self.rows}


@dataclass
class Disconnected(Event):

    def to_message(self) -> Dict[str, Any]:
        return {"databases": None, "error": None, "rows": None, "tables": None}


EventSink = Callable[[Event], None]

E = TypeVar("E", bound=Event)


class ChannelSink:
    """
    Forwards event messages to a transport exposing ``send(channel, message)``.

    The channel defaults to ``GATEWAY_CHANNEL``.

    Example:
        gateway = create_gateway(ChannelSink(respond_event))
    """

    def __init__(self, transport: Any, channel: Optional[str] = None):
        self.transport = transport
        self.channel = channel or config.gateway.channel

    def __call__(self, event: Event) -> None:
        self.transport.send(self.channel, event.to_message())


class CollectingSink:
    """Keeps every event in order."""

    def __init__(self):
        self.events: List[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    @property
    def messages(self) -> List[Dict[str, Any]]:
        return [event.to_message() for event in self.events]

    def of_type(self, event_type: Type[E]) -> List[E]:
        return [event for event in self.events if isinstance(event, event_type)]

    def clear(self) -> None:
        self.events.clear()


class EventEmitter:
    """Stamps and forwards events to a consumer sink."""

    def __init__(self, sink: EventSink, timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT):
        self.sink = sink
        self.timestamp_format = timestamp_format

    def emit(self, event: Event) -> None:
        self.sink(event)

    def log(self, message: str) -> None:
        self.emit(Log(message=message, timestamp=timestamp(self.timestamp_format)))

    def error(self, error: Exception) -> None:
        logger.error(f"{type(error).__name__}: {error}")
        if hasattr(error, "to_dict"):
            detail = error.to_dict()
        else:
            detail = {"name": type(error).__name__, "message": str(error)}
        self.emit(Error(detail=detail, timestamp=timestamp(self.timestamp_format)))
