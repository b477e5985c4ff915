"""
Endow Leak Guard

Static check over a parsed tree, run before any sandboxed statement executes.

Sandboxed source sees only its capabilities and an empty builtins namespace,
but Python objects carry references back to the host: ``f.__globals__``,
``obj.__class__.__subclasses__()``, ``gen.gi_frame.f_back`` and so on. The
guard rejects the syntax that reaches for them:
- dunder names (``__builtins__``, ``__import__``, ...) that were not granted
- import statements, which implicitly reference ``__import__``
- attributes starting with an underscore
- frame, code and traceback introspection attributes
"""

from __future__ import annotations

import ast
from typing import Any, Mapping

from endow.errors import RestrictedSyntaxError, UnboundNameError

INTROSPECTION_ATTRIBUTES = frozenset({
    "ag_await", "ag_code", "ag_frame",
    "cr_await", "cr_code", "cr_frame", "cr_origin",
    "f_back", "f_builtins", "f_code", "f_globals", "f_locals",
    "gi_code", "gi_frame", "gi_yieldfrom",
    "tb_frame", "tb_next",
    "mro",
})


def is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def is_restricted_attribute(attribute: str) -> bool:
    return attribute.startswith("_") or attribute in INTROSPECTION_ATTRIBUTES


class LeakGuard(ast.NodeVisitor):
    """Raises on the first construct that could observe host state."""

    def __init__(self, capabilities: Mapping[str, Any], location: str):
        self.capabilities = capabilities
        self.location = location

    def visit_Name(self, node: ast.Name) -> None:
        if is_dunder(node.id) and node.id not in self.capabilities:
            raise UnboundNameError(node.id, self.location)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        self._check_attribute(node.attr, node)
        self.generic_visit(node)

    def visit_MatchClass(self, node: ast.MatchClass) -> None:
        # Keyword patterns are attribute lookups on the subject.
        for attribute in node.kwd_attrs:
            self._check_attribute(attribute, node)
        self.generic_visit(node)

    def visit_Import(self, node: ast.Import) -> None:
        self._check_import(node)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        self._check_import(node)

    def _check_import(self, node: ast.AST) -> None:
        if "__import__" not in self.capabilities:
            raise UnboundNameError("__import__", self.location)
        self.generic_visit(node)

    def _check_attribute(self, attribute: str, node: ast.AST) -> None:
        if is_restricted_attribute(attribute):
            offset = getattr(node, "col_offset", None)
            raise RestrictedSyntaxError(
                attribute,
                self.location,
                getattr(node, "lineno", None),
                offset + 1 if offset is not None else None,
            )


def check_tree(tree: ast.AST, capabilities: Mapping[str, Any], location: str) -> None:
    LeakGuard(capabilities, location).visit(tree)
