"""Pipeline execution helpers."""

from __future__ import annotations

import logging
from pathlib import Path

from conveyor.config import EngineSettings, load_description
from conveyor.graph import build_graph
from conveyor.observer import CompositeObserver, EngineObserver, LoggingObserver, TraceRecorder
from conveyor.registry import NodeRegistry
from conveyor.scheduler import RunReport, Scheduler

logger = logging.getLogger(__name__)


def build_observer(settings: EngineSettings) -> EngineObserver:
    observers: list[EngineObserver] = [LoggingObserver()]
    if settings.trace_path is not None:
        observers.append(TraceRecorder(settings.trace_path))
    return CompositeObserver(*observers)


def run_pipeline(
    pipeline_path: Path,
    settings: EngineSettings | None = None,
    registry: NodeRegistry | None = None,
) -> RunReport:
    """Load a pipeline file, build its graph and drive it to a fixpoint."""
    settings = settings or EngineSettings()
    description = load_description(pipeline_path)
    logger.info("%s: %s", pipeline_path, description.summary())

    observer = build_observer(settings)
    graph = build_graph(description, registry=registry, observer=observer)
    report = Scheduler(graph, observer=observer, max_passes=settings.max_passes).run()
    if report.converged:
        logger.info("Pipeline finished work")
    return report
