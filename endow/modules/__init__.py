"""
Endow Module Records

- parsers: ModuleDialect, ModuleRecord, per-dialect compilers
- registry: ParserRegistry and build_registry
- requires: Static ``require`` scanner
- extension: Extension of a module location
"""

from endow.modules.extension import parse_extension
from endow.modules.parsers import (
    LiveExports,
    ModuleDialect,
    ModuleRecord,
    compile_module,
    parse_cjs,
    parse_json,
    parse_mjs,
)
from endow.modules.registry import ParserRegistry, build_registry
from endow.modules.requires import parse_requires

__all__ = [
    "parse_extension",
    "LiveExports",
    "ModuleDialect",
    "ModuleRecord",
    "compile_module",
    "parse_cjs",
    "parse_json",
    "parse_mjs",
    "ParserRegistry",
    "build_registry",
    "parse_requires",
]
