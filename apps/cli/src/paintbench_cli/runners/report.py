from __future__ import annotations
from typing import Dict, List, Optional, Sequence

from rich.console import Console
from rich.table import Table

from paintbench.metrics import BenchmarkResult

_NUMERIC_SUFFIXES = ("Tracing", "NoTracing", "Factor", "timeline")


def result_rows(results: Sequence[BenchmarkResult]) -> List[Dict[str, str]]:
    return [r.as_row() for r in results]


def build_table(rows: Sequence[Dict[str, str]], title: Optional[str] = None) -> Table:
    """One column per key seen in any row; missing cells stay blank."""
    columns: List[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    table = Table(title=title)
    for column in columns:
        numeric = column.endswith(_NUMERIC_SUFFIXES)
        table.add_column(column, justify="right" if numeric else "left", no_wrap=True)
    for row in rows:
        table.add_row(*(row.get(c, "") for c in columns))
    return table


def print_table(rows: Sequence[Dict[str, str]], console: Optional[Console] = None) -> None:
    console = console or Console()
    if not rows:
        console.print("(no results)")
        return
    console.print(build_table(rows, title="click-to-paint (ms)"))
