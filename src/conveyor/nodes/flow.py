"""Routing node kinds."""

from __future__ import annotations

from conveyor.node import BaseNode, PortDecl
from conveyor.types import UsageError, ValueType, parse_template


class FilterNode(BaseNode):
    """Routes ``input`` unchanged to ``output_true`` or ``output_false``.

    The input type comes from the template, which must declare exactly one
    parameter named ``input``: ``filter<IMAGE input>``.
    """

    kind = "filter"
    templated = True

    def declare_ports(self) -> PortDecl:
        params = parse_template(self.template)
        if len(params) != 1 or params[0][1] != "input":
            raise UsageError("Pass one template parameter named 'input'")
        value_type = params[0][0]
        return {
            "inputs": {"input": value_type, "condition": ValueType.BOOL},
            "outputs": {"output_true": value_type, "output_false": value_type},
        }

    def run(self) -> bool:
        if not self.has_pending("input") or not self.has_pending("condition"):
            return False
        value = self.take_input("input")
        condition = self.take_input("condition")
        self.send_output("output_true" if condition else "output_false", value)
        return True
