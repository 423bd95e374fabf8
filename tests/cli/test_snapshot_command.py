from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from typer.testing import CliRunner

from marketsnap.cli import snapshot as snapshot_module
from marketsnap.cli.main import create_app
from marketsnap.core.aggregator import RequestOptions
from marketsnap.core.models import AggregateResponse, FieldName, Trend


class StubSnapshot:
    def __init__(self) -> None:
        self.calls: list[RequestOptions] = []

    async def __call__(self, config, options: RequestOptions) -> dict:
        self.calls.append(options)
        return AggregateResponse(
            dxy=104.3,
            usd_inr=84.1234,
            usd_inr_change_pct30d=5.0,
            usd_inr_trend=Trend.WEAKENING,
            setf_gold_price=123.456,
            rsi14_setfgold=81.5,
            errors=["realYield: fred returned HTTP 500"],
        ).to_wire()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def stub(monkeypatch: pytest.MonkeyPatch) -> StubSnapshot:
    stub = StubSnapshot()
    monkeypatch.setattr(snapshot_module, "run_snapshot", stub)
    return stub


def test_snapshot_json_output(runner: CliRunner, stub: StubSnapshot) -> None:
    result = runner.invoke(create_app(), ["--format", "json", "snapshot"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["dxy"] == 104.3
    assert payload["usdInrTrend"] == "weakening"
    assert stub.calls[0].inav_enabled is True
    assert stub.calls[0].overrides == {}


def test_snapshot_table_output(runner: CliRunner, stub: StubSnapshot) -> None:
    result = runner.invoke(create_app(), ["--no-color", "snapshot"])

    assert result.exit_code == 0, result.output
    assert "123.46" in result.output
    assert "84.1234" in result.output
    assert "81.5" in result.output
    assert "realYield: fred returned HTTP 500" in result.output


def test_snapshot_forwards_toggles_and_overrides(runner: CliRunner, stub: StubSnapshot) -> None:
    result = runner.invoke(
        create_app(),
        ["--format", "json", "snapshot", "--no-inav", "--price-manual", "150", "--real-yield-manual", "1.8"],
    )

    assert result.exit_code == 0, result.output
    options = stub.calls[0]
    assert options.inav_enabled is False
    assert options.overrides == {FieldName.PRICE: 150.0, FieldName.REAL_YIELD: 1.8}


def test_unknown_format_is_rejected(runner: CliRunner, stub: StubSnapshot) -> None:
    result = runner.invoke(create_app(), ["--format", "xml", "snapshot"])

    assert result.exit_code != 0
    assert stub.calls == []


def test_rsi_command(runner: CliRunner) -> None:
    closes = ["100", "102", "101", "103", "106", "105", "107", "110", "108", "111", "113", "112", "115", "117", "116", "118", "120"]
    result = runner.invoke(create_app(), ["rsi", *closes])

    assert result.exit_code == 0, result.output
    assert result.output.strip() == "81.5"


def test_rsi_command_needs_enough_closes(runner: CliRunner) -> None:
    result = runner.invoke(create_app(), ["rsi", "1", "2", "3"])

    assert result.exit_code == 1
    assert "need at least 15 closes" in result.output


def test_snapshot_inav_manual(runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    run = AsyncMock(return_value=AggregateResponse(inav=70.0, manual={"inav": 70.0}).to_wire())
    monkeypatch.setattr(snapshot_module, "run_snapshot", run)

    result = runner.invoke(create_app(), ["-f", "json", "snapshot", "--inav-manual", "70"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["manual"] == {"inav": 70.0}
    options = run.await_args.args[1]
    assert options.overrides == {FieldName.INAV: 70.0}
