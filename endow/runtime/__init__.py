"""
Endow Runtime

Capability-scoped evaluation of Python source:
- capabilities: CapabilitySet merging
- settings: EvaluationMode and EvaluationSettings
- transforms: Transform hooks and the two-phase pipeline
- guard: Static leak guard over the parsed tree
- evaluator: SandboxedEvaluator
- family: EvaluatorFamily and the default evaluate functions
"""

from endow.runtime.capabilities import CapabilitySet, freeze_capabilities, merge
from endow.runtime.settings import EvaluationMode, EvaluationSettings
from endow.runtime.transforms import (
    SAFE_BUILTINS,
    SafeBuiltins,
    Transform,
    apply_transforms,
    build_pipeline,
    safe_builtins,
)
from endow.runtime.evaluator import SandboxedEvaluator
from endow.runtime.family import (
    EvaluateOptions,
    EvaluatorFamily,
    evaluate,
    evaluate_expression,
    evaluate_program,
    make_evaluator_family,
)

__all__ = [
    "CapabilitySet",
    "freeze_capabilities",
    "merge",
    "EvaluationMode",
    "EvaluationSettings",
    "SAFE_BUILTINS",
    "SafeBuiltins",
    "Transform",
    "apply_transforms",
    "build_pipeline",
    "safe_builtins",
    "SandboxedEvaluator",
    "EvaluateOptions",
    "EvaluatorFamily",
    "evaluate",
    "evaluate_expression",
    "evaluate_program",
    "make_evaluator_family",
]
