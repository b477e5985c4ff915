"""
Endow Transform Pipeline

A transform hook is any object that may expose either or both of:
- extend(capabilities) -> mapping of capabilities to layer on top
- rewrite(settings) -> EvaluationSettings with a new source

The pipeline runs in two strictly ordered phases. Every ``extend`` runs first,
in pipeline order, so that every ``rewrite`` sees the final capability set
(a rewrite may alias a name another hook provides). Call-scoped hooks come
before configured hooks.

Key classes:
- Transform: Hook built from plain callables
- SafeBuiltins: Opt-in hook granting side-effect-free builtins
"""

from __future__ import annotations

import builtins
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Tuple

from endow.errors import TransformError
from endow.runtime.capabilities import (
    CapabilitySet,
    capability_names,
    merge,
    same_capabilities,
)
from endow.runtime.settings import EvaluationSettings

logger = logging.getLogger(__name__)

TransformHook = Any
TransformPipeline = Tuple[TransformHook, ...]


@dataclass(frozen=True)
class Transform:
    """Transform hook assembled from optional ``extend`` and ``rewrite`` callables."""
    extend: Optional[Callable[[CapabilitySet], Mapping[str, Any]]] = None
    rewrite: Optional[Callable[[EvaluationSettings], EvaluationSettings]] = None
    name: str = ""

    def __repr__(self) -> str:
        return f"Transform({self.name or hex(id(self))})"


def build_pipeline(call_hooks: Optional[Iterable[TransformHook]],
                   configured_hooks: Optional[Iterable[TransformHook]]) -> TransformPipeline:
    """Call-scoped hooks first, then configured hooks, each group in order."""
    return tuple(call_hooks or ()) + tuple(configured_hooks or ())


def apply_transforms(pipeline: Sequence[TransformHook],
                     settings: EvaluationSettings) -> EvaluationSettings:
    """
    Run the extension phase, then the rewrite phase.

    Args:
        pipeline: Ordered transform hooks
        settings: Settings seeded with base and call capabilities

    Returns:
        Settings with final capabilities and rewritten source

    Raises:
        TransformError: If a rewrite returns something other than settings,
            or changes anything but the source
    """
    capabilities = settings.capabilities
    for hook in pipeline:
        extend = getattr(hook, "extend", None)
        if extend is None:
            continue
        added = extend(capabilities)
        if added is None:
            continue
        capabilities = merge(capabilities, added)
        logger.debug("Hook %r extended capabilities with %s", hook, capability_names(added))

    settings = settings.with_capabilities(capabilities)

    for hook in pipeline:
        rewrite = getattr(hook, "rewrite", None)
        if rewrite is None:
            continue
        rewritten = rewrite(settings)
        _check_rewrite(hook, settings, rewritten)
        if rewritten.source != settings.source:
            logger.debug("Hook %r rewrote %s source", hook, settings.location)
        settings = settings.with_source(rewritten.source)

    return settings


def _check_rewrite(hook: TransformHook,
                   before: EvaluationSettings,
                   after: Any) -> None:
    """A rewrite may only change the source."""
    if not isinstance(after, EvaluationSettings):
        raise TransformError(
            f"Transform {hook!r} rewrite must return EvaluationSettings, "
            f"got {type(after).__name__}",
            hook,
        )
    if after.mode is not before.mode:
        raise TransformError(
            f"Transform {hook!r} changed evaluation mode from "
            f"{before.mode.value} to {after.mode.value}",
            hook,
        )
    if after.location != before.location:
        raise TransformError(f"Transform {hook!r} changed location", hook)
    if not same_capabilities(after.capabilities, before.capabilities):
        raise TransformError(
            f"Transform {hook!r} changed capabilities during rewrite; use extend",
            hook,
        )


SAFE_BUILTIN_NAMES = (
    "abs", "all", "any", "bool", "chr", "dict", "divmod", "enumerate",
    "filter", "float", "frozenset", "int", "isinstance", "len", "list",
    "map", "max", "min", "ord", "pow", "range", "repr", "reversed", "round",
    "set", "slice", "sorted", "str", "sum", "tuple", "zip",
    "ArithmeticError", "Exception", "IndexError", "KeyError",
    "LookupError", "TypeError", "ValueError", "ZeroDivisionError",
)

SAFE_BUILTINS: CapabilitySet = MappingProxyType(
    {name: getattr(builtins, name) for name in SAFE_BUILTIN_NAMES}
)


class SafeBuiltins:
    """
    Grants SAFE_BUILTINS to sandboxed source.

    Names the caller already granted keep the caller's value.
    """

    def extend(self, capabilities: CapabilitySet) -> Mapping[str, Any]:
        return {
            name: value
            for name, value in SAFE_BUILTINS.items()
            if name not in capabilities
        }

    def __repr__(self) -> str:
        return "SafeBuiltins()"


safe_builtins = SafeBuiltins()
