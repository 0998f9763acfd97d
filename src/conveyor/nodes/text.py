"""String and integer node kinds: printer, counter and formatter."""

from __future__ import annotations

from conveyor.node import BaseNode, PortDecl
from conveyor.types import UsageError, ValueType, parse_template


class PrinterNode(BaseNode):
    """Prints every string it receives."""

    kind = "print"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.printed: list[str] = []

    def declare_ports(self) -> PortDecl:
        return {"inputs": {"input": ValueType.STRING}, "outputs": {}}

    def run(self) -> bool:
        if not self.has_pending("input"):
            return False
        text = self.take_input("input")
        self.printed.append(text)
        print(f"[Printer says] {text}")
        return True


class CounterNode(BaseNode):
    """Emits every integer in ``[min, max)`` once both bounds are available.

    One-shot: after the first emission the node never reports progress again.
    """

    kind = "counter"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.done = False

    def declare_ports(self) -> PortDecl:
        return {
            "inputs": {"min": ValueType.INT, "max": ValueType.INT},
            "outputs": {"index": ValueType.INT},
        }

    def run(self) -> bool:
        if self.done:
            return False
        if not self.has_pending("min") or not self.has_pending("max"):
            return False
        for index in range(self.take_input("min"), self.take_input("max")):
            self.send_output("index", index)
        self.done = True
        return True


class FormatterNode(BaseNode):
    """printf-style formatting of ``input`` with the template parameters.

    ``format<INT index, STRING label>`` adds the inputs ``index`` and ``label``;
    their values are substituted in declaration order. A mismatch between the
    format string and the parameters is reported on ``error``.
    """

    kind = "format"
    templated = True

    def declare_ports(self) -> PortDecl:
        self.params = parse_template(self.template)
        inputs = {"input": ValueType.STRING}
        for value_type, name in self.params:
            if name in inputs:
                raise UsageError(f"template parameter '{name}' shadows an input")
            inputs[name] = value_type
        return {
            "inputs": inputs,
            "outputs": {"output": ValueType.STRING, "error": ValueType.STRING},
        }

    def run(self) -> bool:
        if not all(self.has_pending(name) for name in self.input_names):
            return False
        format_string = self.take_input("input")
        values = tuple(self.take_input(name) for _, name in self.params)
        try:
            result = format_string % values
        except (TypeError, ValueError) as exc:
            self.send_output("error", str(exc))
        else:
            self.send_output("output", result)
        return True
