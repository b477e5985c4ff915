"""
Endow Capability Sets

A capability set (endowments) maps a name to the value sandboxed source may
reference under that name. Capability sets are read-only once built; layering
is done by merging into a new set, never by mutating an existing one.

Layers, lowest priority first:
- base: fixed when an evaluator family is created
- call: supplied with each evaluation
- pipeline: added by transform hooks, applied last, hook by hook

Key functions:
- freeze_capabilities: Validate a mapping and return a read-only copy
- merge: Layer one capability set over another
- capability_names: Sorted names, for diagnostics and logging
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from endow.errors import TypeMismatchError

CapabilitySet = Mapping[str, Any]

EMPTY_CAPABILITIES: CapabilitySet = MappingProxyType({})

# Names the evaluator owns inside the execution scope.
RESERVED_NAMES = frozenset({"__builtins__"})


def freeze_capabilities(capabilities: Optional[Mapping[str, Any]]) -> CapabilitySet:
    """
    Return a read-only copy of a capability mapping.

    Args:
        capabilities: Mapping of name to value, or None for no capabilities

    Returns:
        A MappingProxyType over a private copy

    Raises:
        TypeMismatchError: If the argument is not a mapping, or a key is not
            an identifier, or a key is reserved by the evaluator
    """
    if capabilities is None:
        return EMPTY_CAPABILITIES
    if not isinstance(capabilities, Mapping):
        raise TypeMismatchError("capabilities", capabilities, expected="a mapping")

    for name in capabilities:
        if not isinstance(name, str) or not name.isidentifier():
            raise TypeMismatchError("capability name", name, expected="an identifier")
        if name in RESERVED_NAMES:
            raise TypeMismatchError(
                "capability name", name, expected="a name not reserved by the evaluator"
            )

    return MappingProxyType(dict(capabilities))


def merge(base: Optional[Mapping[str, Any]],
          call: Optional[Mapping[str, Any]]) -> CapabilitySet:
    """Layer ``call`` over ``base``; keys in ``call`` win."""
    merged = dict(freeze_capabilities(base))
    merged.update(freeze_capabilities(call))
    return MappingProxyType(merged)


def capability_names(capabilities: Mapping[str, Any]) -> Tuple[str, ...]:
    return tuple(sorted(capabilities))


def same_capabilities(left: Mapping[str, Any], right: Mapping[str, Any]) -> bool:
    """True if both sets grant the same names bound to the very same objects."""
    if left is right:
        return True
    if left.keys() != right.keys():
        return False
    return all(left[name] is right[name] for name in left)
