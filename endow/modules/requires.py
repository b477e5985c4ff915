"""
Endow Dependency Scanner

Discovers the specifiers a legacy-shimmed module passes to ``require``
without running it. Only calls with a single string literal argument are
declarations; computed specifiers cannot be known ahead of linking and are
left to fail at ``require`` time.
"""

from __future__ import annotations

import ast
import logging
from typing import List, Tuple

from endow.errors import SourceSyntaxError

logger = logging.getLogger(__name__)

REQUIRE = "require"


class _RequireCollector(ast.NodeVisitor):
    def __init__(self):
        self.found: List[Tuple[int, int, str]] = []
        self.dynamic = 0

    def visit_Call(self, node: ast.Call) -> None:
        if isinstance(node.func, ast.Name) and node.func.id == REQUIRE:
            if (len(node.args) == 1 and not node.keywords
                    and isinstance(node.args[0], ast.Constant)
                    and isinstance(node.args[0].value, str)):
                self.found.append((node.lineno, node.col_offset, node.args[0].value))
            else:
                self.dynamic += 1
        self.generic_visit(node)


def parse_requires(source: str, location: str) -> Tuple[str, ...]:
    """
    Return ``require`` specifiers in source order, duplicates included.

    Raises:
        SourceSyntaxError: If the module source does not parse
    """
    try:
        tree = ast.parse(source, filename=location, mode="exec")
    except (SyntaxError, ValueError) as err:
        raise SourceSyntaxError(
            f"Cannot scan module at {location} for dependencies, {err}",
            location,
            getattr(err, "lineno", None),
            getattr(err, "offset", None),
        ) from err

    collector = _RequireCollector()
    collector.visit(tree)
    if collector.dynamic:
        logger.debug("%s has %d non-literal require calls", location, collector.dynamic)

    collector.found.sort(key=lambda item: (item[0], item[1]))
    return tuple(specifier for _, _, specifier in collector.found)
