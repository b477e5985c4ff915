"""
Endow - capability-scoped evaluation of Python source

Runs untrusted or semi-trusted source with exactly the names it is granted
("endowments"), through a pipeline of transform hooks, and compiles module
source into records a linker can wire into a dependency graph.

Exports:
- evaluate / evaluate_expression / evaluate_program: default evaluators
- EvaluatorFamily, make_evaluator_family: evaluators with base capabilities
  and configured transforms
- Transform, safe_builtins: transform hooks
- build_registry, ParserRegistry, ModuleRecord, ModuleDialect: module records
- errors: typed error taxonomy
"""

from endow.errors import (
    ConfigurationError,
    EndowError,
    LinkError,
    RestrictedSyntaxError,
    SourceSyntaxError,
    TransformError,
    TypeMismatchError,
    UnboundNameError,
    UnsupportedExtensionError,
)
from endow.runtime import (
    EvaluateOptions,
    EvaluationMode,
    EvaluationSettings,
    EvaluatorFamily,
    SafeBuiltins,
    SandboxedEvaluator,
    Transform,
    apply_transforms,
    evaluate,
    evaluate_expression,
    evaluate_program,
    make_evaluator_family,
    merge,
    safe_builtins,
)
from endow.modules import (
    LiveExports,
    ModuleDialect,
    ModuleRecord,
    ParserRegistry,
    build_registry,
    compile_module,
    parse_extension,
    parse_requires,
)

__version__ = "0.3.0"

__all__ = [
    "ConfigurationError",
    "EndowError",
    "LinkError",
    "RestrictedSyntaxError",
    "SourceSyntaxError",
    "TransformError",
    "TypeMismatchError",
    "UnboundNameError",
    "UnsupportedExtensionError",
    "EvaluateOptions",
    "EvaluationMode",
    "EvaluationSettings",
    "EvaluatorFamily",
    "SafeBuiltins",
    "SandboxedEvaluator",
    "Transform",
    "apply_transforms",
    "evaluate",
    "evaluate_expression",
    "evaluate_program",
    "make_evaluator_family",
    "merge",
    "safe_builtins",
    "LiveExports",
    "ModuleDialect",
    "ModuleRecord",
    "ParserRegistry",
    "build_registry",
    "compile_module",
    "parse_extension",
    "parse_requires",
]
