"""Output formatter abstractions for CLI commands."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, TextIO

from rich.box import SIMPLE
from rich.console import Console
from rich.table import Table

# dashboard precision per field
_DECIMALS = {
    "setfGoldPrice": 2,
    "rsi14Setfgold": 1,
    "usdInr": 4,
    "dxy": 2,
    "realYield": 2,
    "inav": 2,
    "usdInrChangePct30d": 2,
}


class OutputFormatter:
    """Protocol-like base class for CLI output formatters."""

    name: str

    def render(self, payload: Mapping[str, Any], *, stream: TextIO) -> None:
        raise NotImplementedError


@dataclass(slots=True)
class JsonFormatter(OutputFormatter):
    """Render the snapshot exactly as the endpoint serves it."""

    name: str = "json"

    def render(self, payload: Mapping[str, Any], *, stream: TextIO) -> None:
        stream.write(json.dumps(payload, indent=2, allow_nan=False))
        stream.write("\n")


@dataclass(slots=True)
class TableFormatter(OutputFormatter):
    """Render the scalar fields as a Rich table."""

    name: str = "table"
    no_color: bool = False

    def render(self, payload: Mapping[str, Any], *, stream: TextIO) -> None:
        console = Console(file=stream, color_system=None if self.no_color else "auto", no_color=self.no_color)
        table = Table(box=SIMPLE)
        table.add_column("field")
        table.add_column("value", justify="right")
        for key, decimals in _DECIMALS.items():
            value = payload.get(key)
            table.add_row(key, "" if value is None else f"{value:.{decimals}f}")
        table.add_row("usdInrTrend", payload.get("usdInrTrend") or "")
        table.add_row("asOf", str(payload.get("asOf", "")))
        console.print(table)
        for error in payload.get("errors", []):
            console.print(f"! {error}", style=None if self.no_color else "yellow", markup=False)


def create_formatter(name: str, *, no_color: bool = False) -> OutputFormatter:
    normalized = name.strip().lower()
    if normalized == "json":
        return JsonFormatter()
    if normalized == "table":
        return TableFormatter(no_color=no_color)
    raise ValueError(f"Unsupported format '{name}'. Choose 'table' or 'json'.")
