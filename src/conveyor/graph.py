"""Pipeline graph: named nodes plus their wiring, built atomically."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from conveyor.node import BaseNode
from conveyor.observer import NULL_OBSERVER, EngineObserver
from conveyor.registry import NodeRegistry, default_registry
from conveyor.schema import PipelineDescription, split_reference, validate_description
from conveyor.types import UsageError, Value

logger = logging.getLogger(__name__)


class Graph:
    """Owns every node of a pipeline by unique name.

    Nodes are kept in insertion order, which is also the scheduler's pass
    order. Once sealed the graph rejects further nodes and connections.
    """

    def __init__(
        self,
        *,
        registry: NodeRegistry | None = None,
        observer: EngineObserver | None = None,
    ) -> None:
        self._registry = registry
        self.observer = observer or NULL_OBSERVER
        self._nodes: dict[str, BaseNode] = {}
        self._sealed = False

    @property
    def nodes(self) -> Mapping[str, BaseNode]:
        return MappingProxyType(self._nodes)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> Graph:
        self._sealed = True
        return self

    def _check_open(self) -> None:
        if self._sealed:
            raise UsageError("graph is sealed; nodes and connections are fixed")

    def node(self, name: str) -> BaseNode:
        node = self._nodes.get(name)
        if node is None:
            raise UsageError(f"no such node '{name}'")
        return node

    def add_node(self, node_or_name: BaseNode | str, descriptor: str | None = None) -> BaseNode:
        """Add a node instance, or create one from ``descriptor`` via the registry."""
        self._check_open()
        if isinstance(node_or_name, BaseNode):
            node = node_or_name
        else:
            if descriptor is None:
                raise UsageError(f"node '{node_or_name}' needs a kind descriptor")
            if self._registry is None:
                self._registry = default_registry()
            node = self._registry.create(node_or_name, descriptor, observer=self.observer)
        if node.name in self._nodes:
            raise UsageError(f"duplicate node name '{node.name}'")
        self._nodes[node.name] = node
        return node

    def assign_constant(self, reference: str, value: Value, *, replace: bool = True) -> None:
        """Bind a constant to ``"node.input"``.

        With ``replace=False`` an input that already holds a constant is an error.
        """
        self._check_open()
        node_name, input_name = _split(reference)
        target = self.node(node_name)
        if not replace and target.is_constant(input_name):
            raise UsageError(f"input '{reference}' already has a constant")
        for source in self._nodes.values():
            for output in source.output_names:
                if any(
                    dest.node is target and dest.input_name == input_name
                    for dest in source.destinations(output)
                ):
                    raise UsageError(
                        f"input '{reference}' is already connected to "
                        f"'{source.name}.{output}'"
                    )
        target.assign_constant(input_name, value)

    def connect(self, source: str, target: str) -> None:
        """Wire ``"node.output"`` to ``"node.input"``."""
        self._check_open()
        source_node, output_name = _split(source)
        target_node, input_name = _split(target)
        self.node(source_node).connect_output(
            output_name, self.node(target_node), input_name
        )

    def __iter__(self) -> Iterator[BaseNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, name: str) -> bool:
        return name in self._nodes

    def describe(self) -> dict[str, Any]:
        return {
            name: {
                **node.describe(),
                "links": {
                    output: [
                        f"{dest.node.name}.{dest.input_name}"
                        for dest in node.destinations(output)
                    ]
                    for output in node.output_names
                },
            }
            for name, node in self._nodes.items()
        }


def _split(reference: str) -> tuple[str, str]:
    try:
        return split_reference(reference)
    except ValueError as err:
        raise UsageError(str(err)) from err


def build_graph(
    description: PipelineDescription | dict[str, Any],
    *,
    registry: NodeRegistry | None = None,
    observer: EngineObserver | None = None,
) -> Graph:
    """Instantiate nodes, assign constants and wire links, in that order.

    Raises ``UsageError`` on the first problem; a partially built graph is
    never returned.
    """
    if not isinstance(description, PipelineDescription):
        try:
            description = validate_description(description)
        except ValidationError as err:
            raise UsageError(str(err)) from err

    graph = Graph(registry=registry or default_registry(), observer=observer)
    for name, descriptor in description.nodes.items():
        graph.add_node(name, descriptor)
    for reference, value in description.constants.items():
        graph.assign_constant(reference, value, replace=False)
    for source, target in description.link_pairs():
        graph.connect(source, target)

    logger.info("graph built: %s", description.summary())
    return graph.seal()
