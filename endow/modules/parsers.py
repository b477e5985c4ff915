"""
Endow Module Record Compiler

Turns module source into a ModuleRecord: the specifiers it imports, found
without running it, and an ``execute(exports, resolved_imports)`` routine the
linker calls once those specifiers are bound.

Dialects:
- DECLARATIVE ("mjs"): delegated to an injected static-module-record parser
- LEGACY_SHIMMED ("cjs"): Python source using ``require``, ``module``,
  ``__filename`` and ``__dirname``, run through the sandboxed evaluator
- DATA ("json"): JSON text, exported as ``exports["default"]``

Key classes:
- ModuleDialect: Closed set of dialects
- ModuleRecord: (imports, execute)
- LiveExports: The ``module`` capability of a shimmed module
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, MutableMapping, Optional, Sequence, Tuple
from urllib.parse import urljoin

from endow.errors import LinkError, SourceSyntaxError, TypeMismatchError
from endow.modules.requires import parse_requires
from endow.runtime.family import EvaluateOptions, EvaluatorFamily, make_evaluator_family

logger = logging.getLogger(__name__)

Exports = MutableMapping[str, Any]
ResolvedImports = Mapping[str, Any]
Execute = Callable[[Exports, ResolvedImports], None]
Scanner = Callable[[str, str], Sequence[str]]


class ModuleDialect(Enum):
    DECLARATIVE = "mjs"
    LEGACY_SHIMMED = "cjs"
    DATA = "json"


@dataclass(frozen=True)
class ModuleRecord:
    """A compiled, not yet linked module."""
    imports: Tuple[str, ...]
    execute: Execute

    def __post_init__(self):
        object.__setattr__(self, "imports", tuple(self.imports))


DeclarativeParser = Callable[[str, str], ModuleRecord]


class LiveExports:
    """
    The ``module`` capability of a shimmed module.

    ``module.exports`` starts as the exports target. Assigning it redirects
    the live binding and sets ``exports["default"]`` in one step, so
    consumers of the target see the reassigned value as its default export.
    """

    __slots__ = ("_target", "_current")

    def __init__(self, target: Exports):
        self._target = target
        self._current: Any = target

    @property
    def exports(self) -> Any:
        return self._current

    @exports.setter
    def exports(self, namespace: Any) -> None:
        self._current = namespace
        self._target["default"] = namespace

    def __repr__(self) -> str:
        return f"LiveExports({self._current!r})"


def containing_directory(location: str) -> str:
    """Location of the directory holding ``location``, with a trailing separator."""
    if "://" in location:
        return urljoin(location, "./")
    return os.path.join(os.path.dirname(location) or ".", "")


def _make_require(imports: Sequence[str], resolved_imports: ResolvedImports, location: str):
    declared = frozenset(imports)

    def require(specifier):
        if specifier not in declared or specifier not in resolved_imports:
            raise LinkError(specifier, location)
        namespace = resolved_imports[specifier]
        if isinstance(namespace, Mapping) and "default" in namespace:
            return namespace["default"]
        return namespace

    return require


def parse_cjs(source: str,
              location: str,
              evaluators: Optional[EvaluatorFamily] = None,
              scanner: Optional[Scanner] = None) -> ModuleRecord:
    """
    Compile a legacy-shimmed module.

    Args:
        source: Module body
        location: Module location, used for ``__filename`` and ``__dirname``
        evaluators: Family that runs the body; defaults to a bare family
        scanner: Dependency scanner; defaults to parse_requires

    Raises:
        TypeMismatchError: If source or location is not a string
        SourceSyntaxError: If the scanner cannot parse the source
    """
    if not isinstance(source, str):
        raise TypeMismatchError(
            "source", source,
            context="Cannot create CommonJS static module record",
        )
    if not isinstance(location, str):
        raise TypeMismatchError(
            "location", location,
            context="Cannot create CommonJS static module record",
        )

    evaluators = evaluators or make_evaluator_family()
    imports = tuple((scanner or parse_requires)(source, location))

    def execute(exports: Exports, resolved_imports: ResolvedImports) -> None:
        capabilities = {
            "require": _make_require(imports, resolved_imports, location),
            "module": LiveExports(exports),
            "__filename": location,
            "__dirname": containing_directory(location),
        }
        logger.debug("Executing %s with %d resolved imports", location, len(resolved_imports))
        evaluators.evaluate_program(source, capabilities, EvaluateOptions(location=location))

    return ModuleRecord(imports=imports, execute=execute)


def parse_json(source: str, location: str) -> ModuleRecord:
    """Compile a data module; it imports nothing."""

    def execute(exports: Exports, resolved_imports: ResolvedImports = None) -> None:
        try:
            exports["default"] = json.loads(source)
        except (ValueError, RecursionError) as err:
            raise SourceSyntaxError(
                f"Cannot parse JSON module at {location}, {err}",
                location,
                getattr(err, "lineno", None),
                getattr(err, "colno", None),
            ) from err

    return ModuleRecord(imports=(), execute=execute)


def parse_mjs(source: str, location: str, declarative_parser: DeclarativeParser) -> ModuleRecord:
    """Delegate to the static-module-record parser and normalise its result."""
    record = declarative_parser(source, location)
    if isinstance(record, ModuleRecord):
        return record
    if isinstance(record, Mapping):
        imports, execute = record.get("imports"), record.get("execute")
    else:
        imports, execute = getattr(record, "imports", None), getattr(record, "execute", None)
    if imports is None or not callable(execute):
        raise TypeMismatchError(
            "declarative parser result", record,
            expected="a record with imports and execute",
            context=f"Cannot compile module at {location}",
        )
    return ModuleRecord(imports=tuple(imports), execute=execute)


def make_compiler(dialect: ModuleDialect,
                  evaluators: Optional[EvaluatorFamily] = None,
                  declarative_parser: Optional[DeclarativeParser] = None,
                  scanner: Optional[Scanner] = None) -> Callable[[str, str], ModuleRecord]:
    """
    Bind a dialect's compiler to its collaborators.

    Raises:
        TypeMismatchError: For the declarative dialect without a parser
    """
    if dialect is ModuleDialect.DECLARATIVE:
        if declarative_parser is None:
            raise TypeMismatchError(
                "declarative_parser", None, expected="a callable",
                context="Cannot compile declarative modules",
            )

        def compile_declarative(source: str, location: str) -> ModuleRecord:
            return parse_mjs(source, location, declarative_parser)

        return compile_declarative

    if dialect is ModuleDialect.LEGACY_SHIMMED:
        evaluators = evaluators or make_evaluator_family()

        def compile_shimmed(source: str, location: str) -> ModuleRecord:
            return parse_cjs(source, location, evaluators, scanner)

        return compile_shimmed

    return parse_json


def compile_module(dialect: ModuleDialect,
                   source: str,
                   location: str,
                   evaluators: Optional[EvaluatorFamily] = None,
                   declarative_parser: Optional[DeclarativeParser] = None,
                   scanner: Optional[Scanner] = None) -> ModuleRecord:
    compiler = make_compiler(ModuleDialect(dialect), evaluators, declarative_parser, scanner)
    return compiler(source, location)
