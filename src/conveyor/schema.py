"""Pipeline description schema and validation."""

from __future__ import annotations

from typing import Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)

ConstantValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]


def split_reference(reference: str) -> tuple[str, str]:
    """Split ``"node.port"`` into its two parts."""
    parts = reference.split(".")
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise ValueError(f"reference {reference!r} must look like 'node.port'")
    return parts[0].strip(), parts[1].strip()


class PipelineDescription(BaseModel):
    """Parsed pipeline file: node kinds, constant inputs and output links."""

    model_config = ConfigDict(extra="forbid")

    nodes: dict[str, str]
    constants: dict[str, ConstantValue] = Field(default_factory=dict)
    links: dict[str, Union[str, list[str]]] = Field(default_factory=dict)

    @field_validator("nodes")
    @classmethod
    def _validate_nodes(cls, value: dict[str, str]) -> dict[str, str]:
        for name, descriptor in value.items():
            if not name.strip() or "." in name:
                raise ValueError(f"invalid node name {name!r}")
            if not descriptor.strip():
                raise ValueError(f"node '{name}' has an empty kind")
        return value

    @field_validator("links")
    @classmethod
    def _normalize_links(
        cls, value: dict[str, Union[str, list[str]]]
    ) -> dict[str, Union[str, list[str]]]:
        return {
            source: targets if isinstance(targets, list) else [targets]
            for source, targets in value.items()
        }

    @model_validator(mode="after")
    def _validate_references(self) -> "PipelineDescription":
        errors: list[str] = []

        def check(reference: str, role: str) -> tuple[str, str] | None:
            try:
                node, port = split_reference(reference)
            except ValueError as exc:
                errors.append(str(exc))
                return None
            if node not in self.nodes:
                errors.append(f"{role} '{reference}' references missing node '{node}'")
            return node, port

        bound: set[tuple[str, str]] = set()
        for reference in self.constants:
            key = check(reference, "constant")
            if key is None:
                continue
            if key in bound:
                errors.append(f"duplicate constant for '{key[0]}.{key[1]}'")
            bound.add(key)
        for source, targets in self.links.items():
            check(source, "link source")
            for target in targets:
                check(target, "link target")

        if errors:
            raise ValueError("; ".join(errors))
        return self

    def link_pairs(self) -> list[tuple[str, str]]:
        """Every ``(source, target)`` pair in declaration order."""
        return [
            (source, target)
            for source, targets in self.links.items()
            for target in targets
        ]

    def summary(self) -> str:
        return (
            f"{len(self.nodes)} nodes, {len(self.constants)} constants, "
            f"{len(self.links)} links"
        )


def validate_description(data: dict[str, Any]) -> PipelineDescription:
    """Validate a raw pipeline mapping."""

    return PipelineDescription.model_validate(data)
