import pytest

from conveyor.graph import Graph, build_graph
from conveyor.nodes import FormatterNode, PrinterNode
from conveyor.registry import NodeRegistry, default_registry, parse_descriptor
from conveyor.types import UsageError


def _description(**overrides: object) -> dict:
    description = {
        "nodes": {
            "counter": "counter",
            "fmt": "format<INT index>",
            "printer": "print",
        },
        "constants": {"counter.min": 0, "counter.max": 3, "fmt.input": "n=%d"},
        "links": {"counter.index": "fmt.index", "fmt.output": ["printer.input"]},
    }
    for key, value in overrides.items():
        description[key] = {**description[key], **value}
    return description


def test_build_graph_wires_description() -> None:
    graph = build_graph(_description())

    assert list(graph.nodes) == ["counter", "fmt", "printer"]
    assert graph.sealed
    assert graph.node("fmt").is_constant("input")
    assert graph.describe()["counter"]["links"] == {"index": ["fmt.index"]}
    assert isinstance(graph.node("printer"), PrinterNode)


@pytest.mark.parametrize(
    "overrides",
    [
        {"nodes": {"a": "teleport"}},
        {"nodes": {"a": "format<COLOR c>"}},
        {"nodes": {"a": "print<INT x>"}},
        {"nodes": {"a": "filter"}},
        {"constants": {"counter.min": "zero"}},
        {"constants": {"counter.steps": 1}},
        {"constants": {"ghost.min": 1}},
        {"links": {"counter.index": "printer.input"}},
        {"links": {"fmt.output": "fmt.input"}},
        {"links": {"counter.index": "ghost.index"}},
        {"links": {"counter.index": "fmt"}},
    ],
)
def test_build_graph_fails_atomically(overrides: dict) -> None:
    with pytest.raises(UsageError):
        build_graph(_description(**overrides))


def test_sealed_graph_rejects_changes() -> None:
    graph = build_graph(_description())

    with pytest.raises(UsageError, match="sealed"):
        graph.add_node("extra", "print")
    with pytest.raises(UsageError, match="sealed"):
        graph.connect("fmt.error", "printer.input")
    assert "extra" not in graph


def test_programmatic_graph() -> None:
    graph = Graph()
    graph.add_node(FormatterNode("fmt", "STRING name"))
    graph.add_node("printer", "print")
    graph.assign_constant("fmt.input", "hello %s")
    graph.connect("fmt.output", "printer.input")

    assert len(graph) == 2
    with pytest.raises(UsageError, match="duplicate node"):
        graph.add_node("printer", "print")
    with pytest.raises(UsageError, match="no such node"):
        graph.connect("fmt.error", "nobody.input")


def test_constant_on_connected_input_is_rejected() -> None:
    graph = Graph()
    graph.add_node("fmt", "format<STRING name>")
    graph.add_node("printer", "print")
    graph.connect("fmt.output", "printer.input")

    with pytest.raises(UsageError, match="already connected"):
        graph.assign_constant("printer.input", "static")
    assert not graph.node("printer").is_constant("input")


def test_parse_descriptor() -> None:
    assert parse_descriptor("print") == ("print", None)
    assert parse_descriptor("format<INT a, STRING b>") == ("format", "INT a, STRING b")
    with pytest.raises(UsageError):
        parse_descriptor("format<INT a")


def test_registry_lists_builtin_kinds() -> None:
    registry = default_registry()

    for kind in ("print", "counter", "format", "read_jpg", "stack", "save_jpg", "enhancer", "filter"):
        assert kind in registry
    with pytest.raises(UsageError, match="Unknown node kind"):
        NodeRegistry().get("print")


def test_build_graph_rejects_constant_bound_twice() -> None:
    with pytest.raises(UsageError, match="duplicate constant for 'counter.max'"):
        build_graph(_description(constants={"counter. max": 5}))


def test_constant_cannot_be_reassigned_while_building() -> None:
    graph = Graph()
    graph.add_node("counter", "counter")
    graph.assign_constant("counter.max", 3, replace=False)

    with pytest.raises(UsageError, match="already has a constant"):
        graph.assign_constant("counter.max", 9, replace=False)
    assert graph.node("counter").take_input("max") == 3
    graph.assign_constant("counter.max", 9)
    assert graph.node("counter").take_input("max") == 9
