import re
from unittest.mock import MagicMock

from database.connection import QueryError
from events import (
    ChannelSink,
    CollectingSink,
    DatabaseList,
    Disconnected,
    Error,
    EventEmitter,
    Log,
    QueryResult,
    TableList,
    TablePreview,
    timestamp,
)
from table_parser import empty_table

TIMESTAMP = re.compile(r"^\d{2}:\d{2}:\d{2} GMT[+-]\d{4}$")


def test_discovery_messages_keep_explicit_nulls():
    assert DatabaseList(names=["shop"]).to_message() == {
        "databases": ["shop"], "error": None, "tables": None
    }
    assert TableList(names=["users"]).to_message() == {"error": None, "tables": ["users"]}
    assert QueryResult(rows=[{"x": 1}]).to_message() == {"error": None, "rows": [{"x": 1}]}
    assert Disconnected().to_message() == {
        "databases": None, "error": None, "rows": None, "tables": None
    }


def test_table_preview_is_keyed_by_table_name():
    message = TablePreview(table_name="orders", table=empty_table()).to_message()

    assert message == {
        "error": None,
        "orders": {"columnnames": ["NA"], "rows": [["empty table"]], "nrows": 1, "ncols": 1},
    }


def test_log_and_error_messages():
    assert Log(message="SELECT 1", timestamp="t").to_message() == {
        "log": {"message": "SELECT 1", "timestamp": "t"}
    }
    assert Error(detail={"message": "boom"}, timestamp="t").to_message() == {
        "error": {"message": "boom", "timestamp": "t"}
    }


def test_timestamp_format():
    assert TIMESTAMP.match(timestamp())


def test_emitter_stamps_logs(sink):
    EventEmitter(sink).log("SELECT * FROM users LIMIT 5")

    (event,) = sink.events
    assert event.message == "SELECT * FROM users LIMIT 5"
    assert TIMESTAMP.match(event.timestamp)


def test_emitter_merges_query_error_fields(sink):
    EventEmitter(sink).error(QueryError("SELECT nope", "syntax error"))

    payload = sink.messages[0]["error"]
    assert payload["name"] == "QueryError"
    assert payload["message"] == "syntax error"
    assert payload["sql"] == "SELECT nope"
    assert TIMESTAMP.match(payload["timestamp"])


def test_emitter_handles_plain_exceptions(sink):
    EventEmitter(sink).error(RuntimeError("lost"))

    assert sink.messages[0]["error"]["name"] == "RuntimeError"
    assert sink.messages[0]["error"]["message"] == "lost"


def test_channel_sink_sends_messages():
    transport = MagicMock()
    channel_sink = ChannelSink(transport, channel="channel")

    channel_sink(TableList(names=["users"]))

    transport.send.assert_called_once_with("channel", {"error": None, "tables": ["users"]})


def test_collecting_sink_filters_by_type():
    collected = CollectingSink()
    collected(Log(message="a", timestamp="t"))
    collected(TableList(names=[]))

    assert [type(e) for e in collected.of_type(Log)] == [Log]
    collected.clear()
    assert collected.events == []


def test_channel_sink_defaults_to_configured_channel(monkeypatch):
    import config as config_module

    monkeypatch.setenv("GATEWAY_CHANNEL", "db-events")
    monkeypatch.setattr(config_module.config, "gateway", config_module.GatewayConfig())
    transport = MagicMock()

    ChannelSink(transport)(TableList(names=[]))

    transport.send.assert_called_once_with("db-events", {"error": None, "tables": []})
