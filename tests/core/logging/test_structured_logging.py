"""Tests for structured logging with trace propagation."""

from __future__ import annotations

import io
import json

import pytest

from marketsnap.core.logging import configure_logging, current_trace_id, log_context, logger


def _read_records(stream: io.StringIO) -> list[dict[str, object]]:
    stream.seek(0)
    lines = [line for line in stream.getvalue().splitlines() if line.strip()]
    return [json.loads(line) for line in lines]


@pytest.fixture
def buffer():
    stream = io.StringIO()
    configure_logging(level="DEBUG", console_stream=stream)
    yield stream
    configure_logging(level="WARNING", serialize=False)


def test_structured_log_contains_trace_and_context(buffer: io.StringIO) -> None:
    with log_context(trace_id="trace-123", endpoint="/api/market"):
        logger.bind(provider="yahoo", field="dxy").warning("dxy provider yahoo failed", symbol="DX-Y.NYB")

    records = _read_records(buffer)
    assert len(records) == 1
    record = records[0]
    assert record["level"] == "WARNING"
    assert record["trace_id"] == "trace-123"
    assert record["provider"] == "yahoo"
    assert record["field"] == "dxy"
    assert record["context"]["endpoint"] == "/api/market"
    assert record["context"]["symbol"] == "DX-Y.NYB"


def test_trace_id_propagates_within_context(buffer: io.StringIO) -> None:
    with log_context() as trace_id:
        assert current_trace_id() == trace_id
        logger.info("first event")
        logger.info("second event")

    logger.info("outside context")

    records = _read_records(buffer)
    assert len(records) == 3
    assert records[0]["trace_id"] == records[1]["trace_id"] == trace_id
    assert records[2]["trace_id"] != trace_id


def test_trace_id_generated_when_missing(buffer: io.StringIO) -> None:
    logger.info("single message")

    records = _read_records(buffer)
    trace_id = records[0]["trace_id"]
    assert isinstance(trace_id, str)
    assert len(trace_id) == 32
    assert all(character in "0123456789abcdef" for character in trace_id)


def test_level_filters_records() -> None:
    stream = io.StringIO()
    configure_logging(level="ERROR", console_stream=stream)
    try:
        logger.warning("ignored")
        logger.error("kept")
    finally:
        configure_logging(level="WARNING", serialize=False)

    records = _read_records(stream)
    assert [record["message"] for record in records] == ["kept"]
