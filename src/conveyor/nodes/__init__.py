"""Built-in node kinds."""

from conveyor.nodes.flow import FilterNode
from conveyor.nodes.image import (
    EnhancerNode,
    ReadJpgNode,
    SaveJpgNode,
    StackNode,
    StackState,
)
from conveyor.nodes.text import CounterNode, FormatterNode, PrinterNode

NODE_KINDS = {
    cls.kind: cls
    for cls in (
        PrinterNode,
        CounterNode,
        FormatterNode,
        ReadJpgNode,
        StackNode,
        SaveJpgNode,
        EnhancerNode,
        FilterNode,
    )
}

__all__ = [
    "NODE_KINDS",
    "CounterNode",
    "EnhancerNode",
    "FilterNode",
    "FormatterNode",
    "PrinterNode",
    "ReadJpgNode",
    "SaveJpgNode",
    "StackNode",
    "StackState",
]
