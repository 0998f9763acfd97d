"""Conveyor: typed dataflow pipelines driven to a fixpoint."""

from conveyor.graph import Graph, build_graph
from conveyor.node import BaseNode
from conveyor.observer import EngineObserver
from conveyor.scheduler import RunReport, Scheduler, run_graph
from conveyor.types import ConveyorError, Image, UsageError, ValueType

__version__ = "0.1.0"

__all__ = [
    "BaseNode",
    "ConveyorError",
    "EngineObserver",
    "Graph",
    "Image",
    "RunReport",
    "Scheduler",
    "UsageError",
    "ValueType",
    "build_graph",
    "run_graph",
]
