"""
Endow Evaluator Family

Binds a base capability set and a list of configured transform hooks into
three evaluators that differ only in mode:
- evaluate: EXPRESSION
- evaluate_expression: ASSERTED_EXPRESSION
- evaluate_program: PROGRAM

Each evaluator is called as ``(source, capabilities=None, options=None)``.
Per call: base and call capabilities are merged, call-scoped hooks are placed
ahead of the configured hooks, the pipeline runs, and the resulting settings
are evaluated.

Key classes:
- EvaluateOptions: Per-call options (transforms, location)
- EvaluatorFamily: The bound family
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from endow.errors import DEFAULT_LOCATION, TypeMismatchError
from endow.runtime.capabilities import CapabilitySet, freeze_capabilities, merge
from endow.runtime.evaluator import SandboxedEvaluator, default_evaluator
from endow.runtime.settings import EvaluationMode, EvaluationSettings
from endow.runtime.transforms import TransformHook, apply_transforms, build_pipeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluateOptions:
    """Per-call evaluation options."""
    transforms: Tuple[TransformHook, ...] = ()
    location: str = DEFAULT_LOCATION

    @classmethod
    def coerce(cls, options: Union["EvaluateOptions", Mapping[str, Any], None]) -> "EvaluateOptions":
        """Accept an EvaluateOptions, a mapping with ``transforms``/``hooks``, or None."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if isinstance(options, Mapping):
            hooks = options.get("transforms", options.get("hooks", ()))
            return cls(
                transforms=tuple(hooks or ()),
                location=options.get("location", DEFAULT_LOCATION),
            )
        raise TypeMismatchError("options", options, expected="EvaluateOptions or a mapping")


class EvaluatorFamily:
    """
    Evaluators sharing a base capability set and configured transforms.

    Example:
        family = EvaluatorFamily({"x": 2}, transforms=[safe_builtins])
        family.evaluate("x + 1")              # 3
        family.evaluate_program("y = x\\ny")   # 2
    """

    def __init__(self,
                 capabilities: Optional[Mapping[str, Any]] = None,
                 transforms: Iterable[TransformHook] = (),
                 evaluator: SandboxedEvaluator = None):
        self.capabilities: CapabilitySet = freeze_capabilities(capabilities)
        self.transforms: Tuple[TransformHook, ...] = tuple(transforms)
        self.evaluator = evaluator or default_evaluator

    def evaluate(self, source: str,
                 capabilities: Optional[Mapping[str, Any]] = None,
                 options: Union[EvaluateOptions, Mapping[str, Any], None] = None) -> Any:
        """Evaluate ``source`` as an expression."""
        return self.run(EvaluationMode.EXPRESSION, source, capabilities, options)

    def evaluate_expression(self, source: str,
                            capabilities: Optional[Mapping[str, Any]] = None,
                            options: Union[EvaluateOptions, Mapping[str, Any], None] = None) -> Any:
        """Evaluate ``source``, which must already be a single expression."""
        return self.run(EvaluationMode.ASSERTED_EXPRESSION, source, capabilities, options)

    def evaluate_program(self, source: str,
                         capabilities: Optional[Mapping[str, Any]] = None,
                         options: Union[EvaluateOptions, Mapping[str, Any], None] = None) -> Any:
        """Run ``source`` as statements; return the trailing expression's value."""
        return self.run(EvaluationMode.PROGRAM, source, capabilities, options)

    def prepare(self, mode: EvaluationMode, source: str,
                capabilities: Optional[Mapping[str, Any]] = None,
                options: Union[EvaluateOptions, Mapping[str, Any], None] = None) -> EvaluationSettings:
        """Merge capabilities and run the transform pipeline without evaluating."""
        options = EvaluateOptions.coerce(options)
        settings = EvaluationSettings(
            source=source,
            mode=mode,
            capabilities=merge(self.capabilities, capabilities),
            location=options.location,
        )
        pipeline = build_pipeline(options.transforms, self.transforms)
        return apply_transforms(pipeline, settings)

    def run(self, mode: EvaluationMode, source: str,
            capabilities: Optional[Mapping[str, Any]] = None,
            options: Union[EvaluateOptions, Mapping[str, Any], None] = None) -> Any:
        settings = self.prepare(mode, source, capabilities, options)
        return self.evaluator.evaluate(settings)


def make_evaluator_family(capabilities: Optional[Mapping[str, Any]] = None,
                          transforms: Iterable[TransformHook] = ()) -> EvaluatorFamily:
    return EvaluatorFamily(capabilities, transforms)


_default_family = EvaluatorFamily()

evaluate = _default_family.evaluate
evaluate_expression = _default_family.evaluate_expression
evaluate_program = _default_family.evaluate_program
