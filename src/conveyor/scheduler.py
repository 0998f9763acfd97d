"""Run-to-fixpoint scheduler."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

from conveyor.graph import Graph
from conveyor.observer import NULL_OBSERVER, EngineObserver
from conveyor.types import UsageError

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    passes: int = 0
    converged: bool = False
    progress_counts: Counter[str] = field(default_factory=Counter)


class Scheduler:
    """Drives every node of a graph until a full pass makes no progress.

    Nodes run one at a time in the graph's insertion order. There is no
    dependency ordering: cyclic graphs terminate only when their nodes stop
    reporting progress, or when ``max_passes`` is reached.
    """

    def __init__(
        self,
        graph: Graph,
        *,
        observer: EngineObserver | None = None,
        max_passes: int | None = None,
    ) -> None:
        if max_passes is not None and max_passes < 1:
            raise UsageError("max_passes must be at least 1")
        self.graph = graph
        self.observer = observer or graph.observer or NULL_OBSERVER
        self.max_passes = max_passes

    def run_pass(self, report: RunReport) -> bool:
        progressed = False
        for node in self.graph:
            node_progressed = node.run()
            self.observer.node_ran(node, node_progressed)
            if node_progressed:
                report.progress_counts[node.name] += 1
                progressed = True
        report.passes += 1
        self.observer.pass_completed(report.passes, progressed)
        return progressed

    def run(self) -> RunReport:
        self.graph.seal()
        report = RunReport()
        while True:
            if not self.run_pass(report):
                report.converged = True
                break
            if self.max_passes is not None and report.passes >= self.max_passes:
                logger.warning(
                    "stopping after %d passes: graph is still making progress",
                    report.passes,
                )
                break
        self.observer.pipeline_finished(report)
        return report


def run_graph(
    graph: Graph,
    *,
    observer: EngineObserver | None = None,
    max_passes: int | None = None,
) -> RunReport:
    return Scheduler(graph, observer=observer, max_passes=max_passes).run()
