import pytest

from conveyor.node import BaseNode, PortDecl
from conveyor.nodes import EnhancerNode, FilterNode, FormatterNode, PrinterNode, StackNode
from conveyor.observer import EngineObserver
from conveyor.types import Image, UsageError, ValueType


class Sink(BaseNode):
    kind = "sink"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.received: list[Image] = []

    def declare_ports(self) -> PortDecl:
        return {"inputs": {"image": ValueType.IMAGE}, "outputs": {}}

    def run(self) -> bool:
        if not self.has_pending("image"):
            return False
        self.received.append(self.take_input("image"))
        return True


class Source(BaseNode):
    kind = "source"

    def declare_ports(self) -> PortDecl:
        return {"inputs": {}, "outputs": {"image": ValueType.IMAGE}}

    def run(self) -> bool:
        return False


class Recorder(EngineObserver):
    def __init__(self) -> None:
        self.dropped: list[tuple[str, str, object]] = []

    def value_dropped(self, node, output_name, value) -> None:
        self.dropped.append((node.name, output_name, value))


def test_deliver_queues_values_in_order() -> None:
    printer = PrinterNode("printer")
    printer.deliver("input", "a")
    printer.deliver("input", "b")

    assert printer.pending_count("input") == 2
    assert printer.take_input("input") == "a"
    assert printer.take_input("input") == "b"


@pytest.mark.parametrize(
    ("input_name", "value"),
    [("missing", "x"), ("input", 1), ("input", True)],
)
def test_deliver_rejects_bad_input_without_mutation(input_name: str, value: object) -> None:
    printer = PrinterNode("printer")

    with pytest.raises(UsageError):
        printer.deliver(input_name, value)
    assert printer.pending_count("input") == 0


def test_deliver_rejects_constant_port() -> None:
    formatter = FormatterNode("fmt", "INT index")
    formatter.assign_constant("input", "%d")

    with pytest.raises(UsageError, match="is a constant"):
        formatter.deliver("input", "%s")
    assert formatter.take_input("input") == "%d"


def test_constant_is_never_consumed() -> None:
    stack = StackNode("stack")
    stack.assign_constant("count", 2)

    assert stack.has_pending("count")
    assert stack.take_input("count") == 2
    assert stack.take_input("count") == 2
    stack.assign_constant("count", 4)
    assert stack.take_input("count") == 4


def test_assign_constant_validates_type() -> None:
    stack = StackNode("stack")
    with pytest.raises(UsageError, match="wrong type"):
        stack.assign_constant("count", 2.0)
    with pytest.raises(UsageError, match="no such input"):
        stack.assign_constant("amount", 2)
    assert not stack.is_constant("count")


def test_connect_output_rejects_type_mismatch_both_ways() -> None:
    enhancer = EnhancerNode("enhancer")
    printer = PrinterNode("printer")
    image_filter = FilterNode("filter", "STRING input")

    with pytest.raises(UsageError, match="type mismatch"):
        enhancer.connect_output("output", printer, "input")
    with pytest.raises(UsageError, match="type mismatch"):
        image_filter.connect_output("output_true", enhancer, "input")
    assert enhancer.destinations("output") == []


def test_connect_output_rejects_bad_targets() -> None:
    enhancer = EnhancerNode("enhancer")
    stack = StackNode("stack")
    stack.assign_constant("count", 3)

    with pytest.raises(UsageError, match="None"):
        enhancer.connect_output("output", None, "input")
    with pytest.raises(UsageError, match="no such input"):
        enhancer.connect_output("output", stack, "images")
    with pytest.raises(UsageError, match="no such output"):
        enhancer.connect_output("result", stack, "input")
    formatter = FormatterNode("fmt", "INT n")
    formatter.assign_constant("input", "%d")
    with pytest.raises(UsageError, match="is a constant"):
        formatter.connect_output("error", formatter, "input")
    assert formatter.destinations("error") == []


def test_blocked_run_is_idempotent() -> None:
    stack = StackNode("stack")
    printer = PrinterNode("printer")

    for _ in range(3):
        assert stack.run() is False
        assert printer.run() is False
    assert stack.current_count is None
    assert printer.printed == []


def test_fan_out_sends_independent_copies() -> None:
    source = Source("source")
    left = Sink("left")
    right = Sink("right")
    source.connect_output("image", left, "image")
    source.connect_output("image", right, "image")

    original = Image(2, 2, title="shared")
    source.send_output("image", original)
    left.run()
    right.run()
    left.received[0].operation("blur")

    assert right.received[0].operations == []
    assert original.operations == []
    assert left.received[0] is not right.received[0]


def test_send_on_unconnected_output_is_dropped() -> None:
    observer = Recorder()
    source = Source("source", observer=observer)

    source.send_output("image", Image(1, 1))

    assert observer.dropped[0][:2] == ("source", "image")


def test_template_rules() -> None:
    with pytest.raises(UsageError, match="does not take a template"):
        PrinterNode("printer", "INT x")
    with pytest.raises(UsageError, match="requires a template"):
        FormatterNode("fmt")
    with pytest.raises(UsageError, match="no such type"):
        FormatterNode("fmt", "COLOR shade")
    with pytest.raises(UsageError, match="named 'input'"):
        FilterNode("filter", "INT value")


def test_describe_lists_ports() -> None:
    formatter = FormatterNode("fmt", "INT index, FLOAT ratio")

    assert formatter.describe()["inputs"] == {
        "input": "STRING",
        "index": "INT",
        "ratio": "FLOAT",
    }
    assert formatter.output_names == ["output", "error"]
