"""Inert image node kinds.

No pixels are stored or decoded: every operation is only recorded in the
image's operation log so that the pipeline's behaviour stays observable.
"""

from __future__ import annotations

from enum import Enum

from conveyor.node import BaseNode, PortDecl
from conveyor.types import Image, ValueType

READ_WIDTH = 800
READ_HEIGHT = 600


class ReadJpgNode(BaseNode):
    """Pretends to read a file: always yields an 800x600 image titled by the filename."""

    kind = "read_jpg"

    def declare_ports(self) -> PortDecl:
        return {
            "inputs": {"filename": ValueType.STRING},
            "outputs": {"image": ValueType.IMAGE, "error": ValueType.STRING},
        }

    def run(self) -> bool:
        if not self.has_pending("filename"):
            return False
        filename = self.take_input("filename")
        self.send_output("image", Image(READ_WIDTH, READ_HEIGHT, title=filename))
        return True


class StackState(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


class StackNode(BaseNode):
    """Combines ``count`` images of equal size into one image.

    ``count`` and ``method`` are read once per batch. Images are then collected
    across as many invocations as needed; once the batch is full it is
    validated and combined, and the node returns to idle. Every failure is
    reported on ``error`` and discards the batch.
    """

    kind = "stack"
    methods = ("median",)

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.reset()

    def declare_ports(self) -> PortDecl:
        return {
            "inputs": {
                "input": ValueType.IMAGE,
                "count": ValueType.INT,
                "method": ValueType.STRING,
            },
            "outputs": {"output": ValueType.IMAGE, "error": ValueType.STRING},
        }

    @property
    def state(self) -> StackState:
        return StackState.IDLE if self.current_count is None else StackState.ACCUMULATING

    def reset(self) -> None:
        self.current_count: int | None = None
        self.current_method: str | None = None
        self.current_images: list[Image] = []

    def run(self) -> bool:
        armed = False
        if self.state is StackState.IDLE:
            if not self.has_pending("count") or not self.has_pending("method"):
                return False
            self.current_count = self.take_input("count")
            self.current_method = self.take_input("method")
            self.current_images = []
            armed = True

        if self.current_count < 1:
            self.send_output("error", f"Invalid count: {self.current_count}")
            self.reset()
            return True

        if not self.has_pending("input"):
            return armed

        while self.has_pending("input") and len(self.current_images) < self.current_count:
            self.current_images.append(self.take_input("input"))

        if len(self.current_images) == self.current_count:
            self._combine()
            self.reset()
        return True

    def _combine(self) -> None:
        first = self.current_images[0]
        width, height = first.width, first.height
        if any(img.width != width or img.height != height for img in self.current_images):
            self.send_output("error", "Image size mismatch")
            return
        if self.current_method not in self.methods:
            self.send_output("error", f"Unsupported method: {self.current_method}")
            return
        titles = ", ".join(img.title or "" for img in self.current_images)
        combined = Image(width, height)
        combined.operation(f"{self.current_method} [{titles}]")
        self.send_output("output", combined)


class SaveJpgNode(BaseNode):
    """Pretends to save an image: prints its size, title and operation log."""

    kind = "save_jpg"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.saved: list[tuple[str, Image]] = []

    def declare_ports(self) -> PortDecl:
        return {
            "inputs": {"filename": ValueType.STRING, "image": ValueType.IMAGE},
            "outputs": {"error": ValueType.STRING},
        }

    def run(self) -> bool:
        if not self.has_pending("filename") or not self.has_pending("image"):
            return False
        filename = self.take_input("filename")
        image = self.take_input("image")
        self.saved.append((filename, image))
        print(
            f"[SaveJpg] saving image {filename}: w {image.width}, h {image.height}, "
            f"title {image.title}, operations {{{' AND '.join(image.operations)}}}"
        )
        return True


class EnhancerNode(BaseNode):
    """Marks an image as enhanced and tells whether another pass is worthwhile.

    Designed to sit in a feedback loop with a ``filter<IMAGE input>`` node:
    ``enhance_again`` drives the filter condition and the filter's true branch
    feeds the image back in. Enhancement stops at ``MAX_ENHANCEMENTS``.
    """

    kind = "enhancer"
    MAX_ENHANCEMENTS = 5
    MARKER = "enhanced"

    def declare_ports(self) -> PortDecl:
        return {
            "inputs": {"input": ValueType.IMAGE},
            "outputs": {"output": ValueType.IMAGE, "enhance_again": ValueType.BOOL},
        }

    def run(self) -> bool:
        if not self.has_pending("input"):
            return False
        image = self.take_input("input")
        applied = image.operations.count(self.MARKER)
        if applied < self.MAX_ENHANCEMENTS:
            image.operation(self.MARKER)
            applied += 1
        self.send_output("output", image)
        self.send_output("enhance_again", applied < self.MAX_ENHANCEMENTS)
        return True
