"""Trace points raised by the engine and the observers that consume them."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from conveyor.types import Value, describe_value

if TYPE_CHECKING:
    from conveyor.node import BaseNode
    from conveyor.scheduler import RunReport

logger = logging.getLogger(__name__)


class EngineObserver:
    """No-op observer. Subclasses override the trace points they care about."""

    def node_created(self, node: BaseNode) -> None:
        pass

    def constant_assigned(self, node: BaseNode, input_name: str, value: Value) -> None:
        pass

    def output_connected(
        self, node: BaseNode, output_name: str, target: BaseNode, input_name: str
    ) -> None:
        pass

    def value_delivered(self, node: BaseNode, input_name: str, value: Value) -> None:
        pass

    def value_sent(
        self,
        node: BaseNode,
        output_name: str,
        target: BaseNode,
        input_name: str,
        value: Value,
    ) -> None:
        pass

    def value_dropped(self, node: BaseNode, output_name: str, value: Value) -> None:
        pass

    def node_ran(self, node: BaseNode, progressed: bool) -> None:
        pass

    def pass_completed(self, index: int, progressed: bool) -> None:
        pass

    def pipeline_finished(self, report: RunReport) -> None:
        pass


NULL_OBSERVER = EngineObserver()


class LoggingObserver(EngineObserver):
    """Reports trace points through the standard ``logging`` module."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger

    def node_created(self, node: BaseNode) -> None:
        self.log.debug("node %s created", node.debug_name)

    def constant_assigned(self, node: BaseNode, input_name: str, value: Value) -> None:
        self.log.debug(
            "node %s uses constant %r for input '%s'", node.debug_name, value, input_name
        )

    def output_connected(
        self, node: BaseNode, output_name: str, target: BaseNode, input_name: str
    ) -> None:
        self.log.debug(
            "node %s connects output '%s' to input '%s' of node %s (type = %s)",
            node.debug_name,
            output_name,
            input_name,
            target.debug_name,
            target.input_type(input_name).value,
        )

    def value_delivered(self, node: BaseNode, input_name: str, value: Value) -> None:
        self.log.debug(
            "node %s received value %r to input '%s'", node.debug_name, value, input_name
        )

    def value_sent(
        self,
        node: BaseNode,
        output_name: str,
        target: BaseNode,
        input_name: str,
        value: Value,
    ) -> None:
        self.log.debug(
            "node %s sends value %r through output '%s' to input '%s' of node %s",
            node.debug_name,
            value,
            output_name,
            input_name,
            target.debug_name,
        )

    def value_dropped(self, node: BaseNode, output_name: str, value: Value) -> None:
        self.log.debug(
            "node %s dropped value %r: output '%s' is not connected",
            node.debug_name,
            value,
            output_name,
        )

    def node_ran(self, node: BaseNode, progressed: bool) -> None:
        if progressed:
            self.log.debug("node %s made progress", node.debug_name)

    def pass_completed(self, index: int, progressed: bool) -> None:
        self.log.info("pass %d completed (progress=%s)", index, progressed)

    def pipeline_finished(self, report: RunReport) -> None:
        self.log.info(
            "pipeline finished after %d passes (converged=%s)",
            report.passes,
            report.converged,
        )


class TraceRecorder(EngineObserver):
    """Appends every trace point to a JSONL file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def record(self, event: str, **payload: Any) -> None:
        record = {"timestamp": self._now(), "event": event, "payload": payload}
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=str) + "\n")

    def node_created(self, node: BaseNode) -> None:
        self.record("node_created", node=node.name, kind=node.kind)

    def constant_assigned(self, node: BaseNode, input_name: str, value: Value) -> None:
        self.record(
            "constant_assigned",
            node=node.name,
            input=input_name,
            value=describe_value(value),
        )

    def output_connected(
        self, node: BaseNode, output_name: str, target: BaseNode, input_name: str
    ) -> None:
        self.record(
            "output_connected",
            node=node.name,
            output=output_name,
            target=target.name,
            input=input_name,
        )

    def value_delivered(self, node: BaseNode, input_name: str, value: Value) -> None:
        self.record(
            "value_delivered",
            node=node.name,
            input=input_name,
            value=describe_value(value),
        )

    def value_sent(
        self,
        node: BaseNode,
        output_name: str,
        target: BaseNode,
        input_name: str,
        value: Value,
    ) -> None:
        self.record(
            "value_sent",
            node=node.name,
            output=output_name,
            target=target.name,
            input=input_name,
            value=describe_value(value),
        )

    def value_dropped(self, node: BaseNode, output_name: str, value: Value) -> None:
        self.record(
            "value_dropped",
            node=node.name,
            output=output_name,
            value=describe_value(value),
        )

    def node_ran(self, node: BaseNode, progressed: bool) -> None:
        self.record("node_ran", node=node.name, progressed=progressed)

    def pass_completed(self, index: int, progressed: bool) -> None:
        self.record("pass_completed", index=index, progressed=progressed)

    def pipeline_finished(self, report: RunReport) -> None:
        self.record(
            "pipeline_finished", passes=report.passes, converged=report.converged
        )


class CompositeObserver(EngineObserver):
    """Forwards every trace point to each wrapped observer in order."""

    def __init__(self, *observers: EngineObserver) -> None:
        self.observers = list(observers)

    def node_created(self, node: BaseNode) -> None:
        for observer in self.observers:
            observer.node_created(node)

    def constant_assigned(self, node: BaseNode, input_name: str, value: Value) -> None:
        for observer in self.observers:
            observer.constant_assigned(node, input_name, value)

    def output_connected(
        self, node: BaseNode, output_name: str, target: BaseNode, input_name: str
    ) -> None:
        for observer in self.observers:
            observer.output_connected(node, output_name, target, input_name)

    def value_delivered(self, node: BaseNode, input_name: str, value: Value) -> None:
        for observer in self.observers:
            observer.value_delivered(node, input_name, value)

    def value_sent(
        self,
        node: BaseNode,
        output_name: str,
        target: BaseNode,
        input_name: str,
        value: Value,
    ) -> None:
        for observer in self.observers:
            observer.value_sent(node, output_name, target, input_name, value)

    def value_dropped(self, node: BaseNode, output_name: str, value: Value) -> None:
        for observer in self.observers:
            observer.value_dropped(node, output_name, value)

    def node_ran(self, node: BaseNode, progressed: bool) -> None:
        for observer in self.observers:
            observer.node_ran(node, progressed)

    def pass_completed(self, index: int, progressed: bool) -> None:
        for observer in self.observers:
            observer.pass_completed(index, progressed)

    def pipeline_finished(self, report: RunReport) -> None:
        for observer in self.observers:
            observer.pipeline_finished(report)
