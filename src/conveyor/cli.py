"""CLI entrypoint for conveyor."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from conveyor.config import ConfigValidationError, EngineSettings, load_description
from conveyor.graph import build_graph
from conveyor.registry import default_registry
from conveyor.runner import run_pipeline
from conveyor.types import UsageError

app = typer.Typer(help="Conveyor dataflow pipeline command-line interface.")

STARTER_PIPELINE = {
    "nodes": {
        "counter": "counter",
        "format_line": "format<INT index>",
        "printer": "print",
    },
    "constants": {
        "counter.min": 0,
        "counter.max": 3,
        "format_line.input": "line %d",
    },
    "links": {
        "counter.index": "format_line.index",
        "format_line.output": "printer.input",
        "format_line.error": "printer.input",
    },
}


@app.command("run")
def run(
    pipeline: Annotated[Path, typer.Argument(exists=True, dir_okay=False)],
    max_passes: Annotated[
        Optional[int], typer.Option("--max-passes", min=1, help="Stop after this many passes.")
    ] = None,
    trace: Annotated[
        Optional[Path], typer.Option("--trace", help="Write a JSONL trace of the run.")
    ] = None,
    log_level: Annotated[
        Optional[str], typer.Option("--log-level", help="Logging level, e.g. INFO or DEBUG.")
    ] = None,
) -> None:
    """Run a pipeline description until it reaches a fixpoint."""
    overrides: dict[str, object] = {}
    if log_level is not None:
        overrides["log_level"] = log_level
    if max_passes is not None:
        overrides["max_passes"] = max_passes
    if trace is not None:
        overrides["trace_path"] = trace
    try:
        settings = EngineSettings(**overrides)
    except ValidationError as err:
        raise typer.BadParameter(str(err)) from err
    logging.basicConfig(level=settings.log_level)

    try:
        report = run_pipeline(pipeline, settings)
    except (UsageError, ConfigValidationError) as err:
        raise typer.BadParameter(f"Invalid pipeline {pipeline}: {err}") from err

    if not report.converged:
        typer.echo(f"Pipeline stopped after {report.passes} passes without reaching a fixpoint")
        raise typer.Exit(code=1)
    typer.echo(f"Pipeline finished work ({report.passes} passes)")


@app.command("validate")
def validate(
    pipeline: Annotated[list[Path], typer.Argument(exists=True, dir_okay=False)],
) -> None:
    """Validate one or more pipeline files by building their graphs."""
    registry = default_registry()
    for pipeline_file in pipeline:
        try:
            description = load_description(pipeline_file)
            build_graph(description, registry=registry)
        except (UsageError, ConfigValidationError) as err:
            raise typer.BadParameter(f"Invalid pipeline {pipeline_file}: {err}") from err
        typer.echo(f"valid pipeline: {pipeline_file} ({description.summary()})")


@app.command("kinds")
def kinds() -> None:
    """List registered node kinds."""
    registry = default_registry()
    for name, node_cls in sorted(registry.items()):
        templated = " <template>" if node_cls.templated else ""
        doc = (node_cls.__doc__ or "").strip().splitlines()
        typer.echo(f"{name}{templated}: {doc[0] if doc else ''}")


@app.command("init")
def init(output: Path = Path("pipelines/starter.json")) -> None:
    """Write a starter pipeline description."""
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(STARTER_PIPELINE, indent=2), encoding="utf-8")
    typer.echo(f"starter pipeline written: {output}")
