"""Node base class: typed port set, delivery, wiring and output fan-out."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, ClassVar

from conveyor.observer import NULL_OBSERVER, EngineObserver
from conveyor.types import UsageError, Value, ValueType, clone_value

PortDecl = dict[str, dict[str, ValueType]]


@dataclass
class InputPort:
    """Input port in queued mode until a constant is assigned."""

    value_type: ValueType
    queue: deque[Value] = field(default_factory=deque)
    constant: Value | None = None
    is_constant: bool = False


@dataclass(frozen=True)
class Destination:
    node: BaseNode
    input_name: str


@dataclass
class OutputPort:
    value_type: ValueType
    destinations: list[Destination] = field(default_factory=list)


class BaseNode(ABC):
    """Unit of work in a pipeline graph.

    Subclasses declare their ports in ``declare_ports`` and implement ``run``,
    which must return ``True`` when it produced output or advanced internal
    state and ``False`` when blocked on missing input.
    """

    kind: ClassVar[str] = "node"
    templated: ClassVar[bool] = False

    def __init__(
        self,
        name: str,
        template: str | None = None,
        *,
        observer: EngineObserver | None = None,
    ) -> None:
        if template is not None and not self.templated:
            raise UsageError(f"node kind '{self.kind}' does not take a template")
        if template is None and self.templated:
            raise UsageError(f"node kind '{self.kind}' requires a template")
        self.name = name
        self.template = template
        self.observer = observer or NULL_OBSERVER
        ports = self.declare_ports()
        self._inputs = {
            port: InputPort(value_type) for port, value_type in ports["inputs"].items()
        }
        self._outputs = {
            port: OutputPort(value_type)
            for port, value_type in ports["outputs"].items()
        }
        self.observer.node_created(self)

    @abstractmethod
    def declare_ports(self) -> PortDecl:
        """Return ``{"inputs": {...}, "outputs": {...}}`` name -> type maps."""

    @abstractmethod
    def run(self) -> bool:
        ...

    @property
    def debug_name(self) -> str:
        return f"{{{type(self).__name__} | {self.name}}}"

    # --- introspection ---

    @property
    def input_names(self) -> list[str]:
        return list(self._inputs)

    @property
    def output_names(self) -> list[str]:
        return list(self._outputs)

    def has_input(self, name: str) -> bool:
        return name in self._inputs

    def input_type(self, name: str) -> ValueType:
        return self._input(name).value_type

    def output_type(self, name: str) -> ValueType:
        return self._output(name).value_type

    def is_constant(self, name: str) -> bool:
        return self._input(name).is_constant

    def pending_count(self, name: str) -> int:
        return len(self._input(name).queue)

    def destinations(self, name: str) -> list[Destination]:
        return list(self._output(name).destinations)

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "template": self.template,
            "inputs": {name: port.value_type.value for name, port in self._inputs.items()},
            "outputs": {
                name: port.value_type.value for name, port in self._outputs.items()
            },
        }

    def _input(self, name: str) -> InputPort:
        port = self._inputs.get(name)
        if port is None:
            raise UsageError(f"no such input '{name}' on node {self.debug_name}")
        return port

    def _output(self, name: str) -> OutputPort:
        port = self._outputs.get(name)
        if port is None:
            raise UsageError(f"no such output '{name}' on node {self.debug_name}")
        return port

    # --- wiring and delivery ---

    def deliver(self, input_name: str, value: Value) -> None:
        """Append ``value`` to a queued input."""
        port = self._input(input_name)
        if not port.value_type.accepts(value):
            raise UsageError(
                f"wrong type for input '{input_name}' of node {self.debug_name}: "
                f"expected {port.value_type.value}, got {type(value).__name__}"
            )
        if port.is_constant:
            raise UsageError(f"input '{input_name}' of node {self.debug_name} is a constant")
        port.queue.append(value)
        self.observer.value_delivered(self, input_name, value)

    def assign_constant(self, input_name: str, value: Value) -> None:
        """Bind an input to a fixed value that is read but never consumed."""
        port = self._input(input_name)
        if not port.value_type.accepts(value):
            raise UsageError(
                f"wrong type for input '{input_name}' of node {self.debug_name}: "
                f"expected {port.value_type.value}, got {type(value).__name__}"
            )
        port.queue.clear()
        port.constant = value
        port.is_constant = True
        self.observer.constant_assigned(self, input_name, value)

    def connect_output(
        self, output_name: str, target: BaseNode | None, input_name: str
    ) -> None:
        """Bind an output to a queued input of ``target`` with the same type."""
        output = self._output(output_name)
        if target is None:
            raise UsageError(f"cannot connect output '{output_name}': target node is None")
        if not target.has_input(input_name):
            raise UsageError(
                f"no such input '{input_name}' for node {target.debug_name}"
            )
        if target.is_constant(input_name):
            raise UsageError(
                f"input '{input_name}' of node {target.debug_name} is a constant"
            )
        receive_type = target.input_type(input_name)
        if receive_type != output.value_type:
            raise UsageError(
                f"type mismatch: {self.name}.{output_name} ({output.value_type.value}) -> "
                f"{target.name}.{input_name} ({receive_type.value})"
            )
        output.destinations.append(Destination(target, input_name))
        self.observer.output_connected(self, output_name, target, input_name)

    # --- helpers for run() ---

    def has_pending(self, input_name: str) -> bool:
        port = self._input(input_name)
        return port.is_constant or bool(port.queue)

    def take_input(self, input_name: str) -> Value:
        port = self._input(input_name)
        if port.is_constant:
            return clone_value(port.constant)
        if not port.queue:
            raise UsageError(f"input '{input_name}' of node {self.debug_name} is empty")
        return port.queue.popleft()

    def send_output(self, output_name: str, value: Value) -> None:
        """Deliver an independent copy of ``value`` to every bound input."""
        output = self._output(output_name)
        if not output.destinations:
            self.observer.value_dropped(self, output_name, value)
            return
        for destination in output.destinations:
            copy = clone_value(value)
            self.observer.value_sent(
                self, output_name, destination.node, destination.input_name, copy
            )
            destination.node.deliver(destination.input_name, copy)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, kind={self.kind!r})"
