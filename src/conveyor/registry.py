"""Node kind registry: descriptor strings to node constructors."""

from __future__ import annotations

import inspect
import re
from collections.abc import Iterable
from importlib import metadata

from conveyor.node import BaseNode
from conveyor.nodes import NODE_KINDS
from conveyor.observer import EngineObserver
from conveyor.types import UsageError

_DESCRIPTOR = re.compile(r"^\s*(?P<kind>[A-Za-z_][\w]*)\s*(?:<(?P<template>.*)>)?\s*$")


def parse_descriptor(descriptor: str) -> tuple[str, str | None]:
    """Split ``"format<INT index>"`` into ``("format", "INT index")``."""
    match = _DESCRIPTOR.match(descriptor)
    if match is None:
        raise UsageError(f"malformed node descriptor {descriptor!r}")
    return match.group("kind"), match.group("template")


class NodeRegistry:
    """Registry of node kinds, keyed by the name used in pipeline descriptions."""

    def __init__(self) -> None:
        self._kinds: dict[str, type[BaseNode]] = {}

    def register(self, node_cls: type[BaseNode], kind: str | None = None) -> None:
        name = kind or node_cls.kind
        if not name or not name.strip():
            raise ValueError("node kind must be non-empty")
        self._kinds[name.strip()] = node_cls

    def register_builtins(self) -> None:
        for node_cls in NODE_KINDS.values():
            self.register(node_cls)

    def discover_entry_points(self, group: str = "conveyor.nodes") -> None:
        for entry_point in metadata.entry_points(group=group):
            loaded = entry_point.load()
            if inspect.isclass(loaded) and issubclass(loaded, BaseNode):
                self.register(loaded, entry_point.name)

    def list_kinds(self) -> list[str]:
        return sorted(self._kinds.keys())

    def get(self, kind: str) -> type[BaseNode]:
        if kind not in self._kinds:
            available = ", ".join(self.list_kinds())
            raise UsageError(f"Unknown node kind '{kind}'. Available: {available}")
        return self._kinds[kind]

    def create(
        self,
        name: str,
        descriptor: str,
        *,
        observer: EngineObserver | None = None,
    ) -> BaseNode:
        kind, template = parse_descriptor(descriptor)
        node_cls = self.get(kind)
        return node_cls(name, template, observer=observer)

    def items(self) -> Iterable[tuple[str, type[BaseNode]]]:
        return self._kinds.items()

    def __contains__(self, kind: str) -> bool:
        return kind in self._kinds


def default_registry() -> NodeRegistry:
    registry = NodeRegistry()
    registry.register_builtins()
    registry.discover_entry_points()
    return registry
