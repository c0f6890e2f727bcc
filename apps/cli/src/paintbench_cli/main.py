from __future__ import annotations
import json
import logging
from typing import List, Optional

import typer

from paintbench import registry
from paintbench.config import load_settings
from .runners.catalog import RUNNERS, describe, select_runners
from .runners.common import _load_adapters, run_all
from .runners.report import print_table, result_rows

app = typer.Typer(add_completion=False, help="Click-to-paint latency benchmark CLI")


@app.command()
def run(
    executable: str = typer.Argument(..., help="Path to the Chrome executable."),
    runner: Optional[List[str]] = typer.Option(
        None, "--runner", "-r", help="Runner to use (repeatable). Defaults to all runners."
    ),
    framework: Optional[List[str]] = typer.Option(
        None, "--framework", "-f", help="Framework to benchmark (repeatable)."
    ),
    count: Optional[int] = typer.Option(None, "--count", min=1, help="Trials per framework and tracing mode."),
    print_json: bool = typer.Option(False, "--json", help="Print the result rows as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every trial."),
) -> None:
    """Run the benchmark with and without tracing and print the result table."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        specs = select_runners(runner)
    except KeyError as e:
        raise typer.BadParameter(str(e.args[0]), param_hint="--runner")
    settings = load_settings().with_overrides(
        count=count,
        frameworks=tuple(framework) if framework else None,
    )
    typer.echo(f"executable {executable}")

    def _done(spec, results) -> None:
        typer.echo(f"{spec.name} done ({len(results)} frameworks)", err=True)

    results = run_all(specs, executable, settings=settings, on_runner_done=_done)
    rows = result_rows(results)
    if print_json:
        typer.echo(json.dumps(rows, indent=2))
    else:
        print_table(rows)


@app.command("list-runners")
def list_runners() -> None:
    """List the runner variants."""
    for name, spec in RUNNERS.items():
        typer.echo(f"- {name}: {describe(spec)}")


@app.command("list-backends")
def list_backends() -> None:
    """List registered browser automation backends."""
    _load_adapters()
    for name in registry.list().keys():
        typer.echo(f"- {name}")


def app_main():
    app()


if __name__ == "__main__":
    app_main()
