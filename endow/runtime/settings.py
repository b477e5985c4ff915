"""
Endow Evaluation Settings

Per-evaluation value that flows through the transform pipeline: the source
text, the evaluation mode, the final capability set and the location used in
diagnostics. Settings are frozen; hooks return replacements.

Key classes:
- EvaluationMode: EXPRESSION, ASSERTED_EXPRESSION, PROGRAM
- EvaluationSettings: (source, mode, capabilities, location)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping

from endow.errors import DEFAULT_LOCATION, TypeMismatchError
from endow.runtime.capabilities import (
    EMPTY_CAPABILITIES,
    CapabilitySet,
    capability_names,
    freeze_capabilities,
)


class EvaluationMode(Enum):
    EXPRESSION = "expression"
    ASSERTED_EXPRESSION = "asserted_expression"
    PROGRAM = "program"

    @property
    def is_expression(self) -> bool:
        return self is not EvaluationMode.PROGRAM


@dataclass(frozen=True)
class EvaluationSettings:
    """
    Settings for a single evaluation.

    ``capabilities`` is always stored as a read-only mapping, whatever
    mapping the caller supplied.
    """
    source: str
    mode: EvaluationMode = EvaluationMode.EXPRESSION
    capabilities: CapabilitySet = field(default_factory=lambda: EMPTY_CAPABILITIES)
    location: str = DEFAULT_LOCATION

    def __post_init__(self):
        if not isinstance(self.source, str):
            raise TypeMismatchError("source", self.source, context="Cannot evaluate")
        if not isinstance(self.location, str):
            raise TypeMismatchError("location", self.location, context="Cannot evaluate")
        if not isinstance(self.mode, EvaluationMode):
            object.__setattr__(self, "mode", EvaluationMode(self.mode))
        object.__setattr__(self, "capabilities", freeze_capabilities(self.capabilities))

    def with_source(self, source: str) -> "EvaluationSettings":
        return replace(self, source=source)

    def with_capabilities(self, capabilities: Mapping[str, Any]) -> "EvaluationSettings":
        return replace(self, capabilities=capabilities)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "mode": self.mode.value,
            "capabilities": list(capability_names(self.capabilities)),
            "location": self.location,
        }
