"""
Typed data models for generated Arduino projects.

A project is an immutable value once received from the AI service.
JSON-serializable via dataclasses.asdict().
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Component:
    name: str
    quantity: int = 1
    notes: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Component:
        return cls(
            name=str(data.get("name", "")).strip(),
            quantity=int(data.get("quantity", 1) or 1),
            notes=str(data.get("notes") or data.get("description") or ""),
        )


@dataclass(frozen=True)
class ArduinoProject:
    """Code, parts list and wiring description for one project."""
    project_name: str
    code: str
    components: tuple[Component, ...] = field(default_factory=tuple)
    circuit_diagram: str = ""
    description: str = ""
    libraries: tuple[str, ...] = field(default_factory=tuple)

    @property
    def total_parts(self) -> int:
        return sum(c.quantity for c in self.components)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ArduinoProject:
        """Build from the service's JSON. Assumes validate_project() passed."""
        return cls(
            project_name=str(data["project_name"]).strip(),
            code=str(data["code"]),
            components=tuple(Component.from_dict(c) for c in data.get("components", [])),
            circuit_diagram=str(data.get("circuit_diagram", "")),
            description=str(data.get("description", "")),
            libraries=tuple(str(lib) for lib in data.get("libraries", []) or []),
        )
