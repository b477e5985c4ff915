"""
Endow Parser Registry

Maps file extensions to module record compilers. A registry is built once
from an ``{extension: dialect name}`` declaration and is read-only after
that; it can be shared by any number of concurrent compilations.

Construction is all-or-nothing: every bad entry is reported in a single
ConfigurationError and no registry is returned.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from endow.errors import ConfigurationError, UnsupportedExtensionError
from endow.modules.extension import parse_extension
from endow.modules.parsers import (
    DeclarativeParser,
    ModuleDialect,
    ModuleRecord,
    Scanner,
    make_compiler,
)
from endow.runtime.family import EvaluatorFamily

logger = logging.getLogger(__name__)

Compiler = Callable[[str, str], ModuleRecord]

_DIALECTS_BY_NAME = {dialect.value: dialect for dialect in ModuleDialect}


def _dialect_for_name(name: Any) -> Optional[ModuleDialect]:
    if isinstance(name, ModuleDialect):
        return name
    return _DIALECTS_BY_NAME.get(name) if isinstance(name, str) else None


def _normalize_extension(extension: str) -> str:
    return extension[1:] if extension.startswith(".") else extension


class ParserRegistry:
    """Total, immutable mapping from extension to (dialect, compiler)."""

    def __init__(self, entries: Mapping[str, Tuple[ModuleDialect, Compiler]]):
        self._entries = MappingProxyType(dict(entries))

    @property
    def extensions(self) -> Tuple[str, ...]:
        return tuple(sorted(self._entries))

    def dialect_for(self, extension: str) -> Optional[ModuleDialect]:
        entry = self._entries.get(_normalize_extension(extension))
        return entry[0] if entry else None

    def compiler_for(self, location: str) -> Compiler:
        extension = parse_extension(location)
        entry = self._entries.get(extension)
        if entry is None:
            raise UnsupportedExtensionError(extension, location)
        return entry[1]

    def parse(self, source: str, location: str) -> ModuleRecord:
        """
        Compile module source by the extension of its location.

        Raises:
            UnsupportedExtensionError: If no parser is registered for the extension
        """
        return self.compiler_for(location)(source, location)

    def to_dict(self) -> Dict[str, str]:
        return {extension: dialect.value for extension, (dialect, _) in self._entries.items()}

    def __contains__(self, extension: object) -> bool:
        return isinstance(extension, str) and _normalize_extension(extension) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.extensions)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ParserRegistry({self.to_dict()!r})"


def build_registry(extensions: Mapping[str, Any],
                   evaluators: Optional[EvaluatorFamily] = None,
                   declarative_parser: Optional[DeclarativeParser] = None,
                   scanner: Optional[Scanner] = None) -> ParserRegistry:
    """
    Build a registry from ``{extension: dialect name}``.

    Args:
        extensions: Extension (leading dot optional) to "mjs", "cjs" or "json"
        evaluators: Family running legacy-shimmed module bodies
        declarative_parser: Static-module-record parser for "mjs"
        scanner: Dependency scanner for "cjs"

    Raises:
        ConfigurationError: Listing every non-string extension, every unknown
            dialect name, and every declarative entry when no declarative
            parser is configured
    """
    entries: Dict[str, Tuple[ModuleDialect, Compiler]] = {}
    invalid: List[Tuple[Any, Any]] = []
    errors: List[str] = []

    for extension, name in extensions.items():
        if not isinstance(extension, str):
            invalid.append((extension, name))
            errors.append(f'"{name}" for extension {extension!r} (extension must be a string)')
            continue
        dialect = _dialect_for_name(name)
        if dialect is None:
            invalid.append((extension, name))
            errors.append(f'"{name}" for extension "{extension}"')
            continue
        if dialect is ModuleDialect.DECLARATIVE and declarative_parser is None:
            invalid.append((extension, dialect.value))
            errors.append(
                f'"{dialect.value}" for extension "{extension}" (no declarative parser configured)'
            )
            continue
        entries[_normalize_extension(extension)] = (
            dialect,
            make_compiler(dialect, evaluators, declarative_parser, scanner),
        )

    if errors:
        raise ConfigurationError(
            f"No parser available for language: {', '.join(errors)}",
            invalid,
        )

    registry = ParserRegistry(entries)
    logger.debug("Built %r", registry)
    return registry
