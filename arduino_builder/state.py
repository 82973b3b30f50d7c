"""
RequestState — tagged variant for the generation request lifecycle.

One class per state so illegal combinations (loading with a stale
error, a result next to an error) cannot be expressed.
"""
from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Union

from arduino_builder.types import ArduinoProject

VALIDATION_MESSAGE = "Por favor, descreva o projeto que você deseja criar."
GENERATION_FAILED_MESSAGE = (
    "Ocorreu um erro ao gerar o projeto. A API pode estar indisponível "
    "ou a resposta foi malformada. Tente novamente."
)


@dataclass(frozen=True)
class Idle:
    kind_name = "idle"


@dataclass(frozen=True)
class Loading:
    description: str
    kind_name = "loading"


@dataclass(frozen=True)
class Succeeded:
    project: ArduinoProject
    kind_name = "succeeded"


@dataclass(frozen=True)
class Failed:
    message: str
    kind: Literal["validation", "generation"] = "generation"
    # Diagnostics only, never shown to users
    cause: Exception | None = field(default=None, compare=False, repr=False)
    kind_name = "failed"


RequestState = Union[Idle, Loading, Succeeded, Failed]


def state_to_dict(state: RequestState) -> dict[str, Any]:
    """Render a state for JSON transports (HTTP, SSE, CLI --json)."""
    out: dict[str, Any] = {"state": state.kind_name}
    if isinstance(state, Loading):
        out["description"] = state.description
    elif isinstance(state, Succeeded):
        out["project"] = asdict(state.project)
    elif isinstance(state, Failed):
        out["error"] = state.message
        out["error_kind"] = state.kind
        if state.cause is not None:
            out["error_type"] = type(state.cause).__name__
    return out
