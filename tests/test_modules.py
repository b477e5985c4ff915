"""Test module record compilation (scanner, dialects, shims)."""
import json
import pytest
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from endow.errors import LinkError, SourceSyntaxError, TypeMismatchError, UnboundNameError
from endow.modules.extension import parse_extension
from endow.modules.parsers import (
    LiveExports,
    ModuleDialect,
    ModuleRecord,
    compile_module,
    containing_directory,
    make_compiler,
    parse_cjs,
    parse_json,
    parse_mjs,
)
from endow.modules.requires import parse_requires
from endow.runtime.family import EvaluatorFamily
from endow.runtime.transforms import safe_builtins


class TestParseExtension:
    """Tests for location extensions."""

    @pytest.mark.parametrize("location,expected", [
        ("/app/lib/index.py", "py"),
        ("index.cjs", "cjs"),
        ("file:///app/data/config.json", "json"),
        ("https://example.com/pkg/mod.py?v=1", "py"),
        ("C:\\app\\mod.py", "py"),
        ("/app/archive.tar.gz", "gz"),
        ("/app/README", ""),
        ("/app.d/README", ""),
    ])
    def test_extension(self, location, expected):
        assert parse_extension(location) == expected


class TestParseRequires:
    """Tests for the dependency scanner."""

    def test_order_and_duplicates(self):
        source = 'a = require("./a")\nb = require("./b")\nc = require("./a")\n'
        assert parse_requires(source, "m.py") == ("./a", "./b", "./a")

    def test_nested_calls(self):
        source = 'def load():\n    return require("./late")\nx = [require("./x"), require("./y")]\n'
        assert parse_requires(source, "m.py") == ("./late", "./x", "./y")

    def test_computed_specifiers_ignored(self):
        source = 'name = "./a"\nrequire(name)\nrequire("./" + name)\n'
        assert parse_requires(source, "m.py") == ()

    def test_other_callables_ignored(self):
        assert parse_requires('load("./a")\nobj.require("./b")', "m.py") == ()

    def test_does_not_execute(self):
        assert parse_requires('raise SystemExit(1)\nrequire("./a")', "m.py") == ("./a",)

    def test_malformed_source(self):
        with pytest.raises(SourceSyntaxError) as exc_info:
            parse_requires("def (:", "/app/broken.py")
        assert exc_info.value.location == "/app/broken.py"
        assert "/app/broken.py" in str(exc_info.value)


class TestLiveExports:
    """Tests for the module capability."""

    def test_exports_start_as_target(self):
        target = {}
        module = LiveExports(target)
        assert module.exports is target

    def test_reassignment_sets_default(self):
        target = {}
        module = LiveExports(target)
        module.exports = [1, 2]
        assert module.exports == [1, 2]
        assert target["default"] == [1, 2]

    def test_no_extra_attributes(self):
        module = LiveExports({})
        with pytest.raises(AttributeError):
            module.other = 1


class TestContainingDirectory:
    """Tests for __dirname computation."""

    def test_path(self):
        assert containing_directory("/app/lib/index.py") == "/app/lib/"

    def test_url(self):
        assert containing_directory("file:///app/lib/index.py") == "file:///app/lib/"

    def test_bare_name(self):
        assert containing_directory("index.py").startswith(".")


class TestShimmedModules:
    """Tests for the legacy-shimmed dialect."""

    def test_imports_without_execution(self, shimmed_module_source):
        record = parse_cjs(shimmed_module_source, "/app/main.py")
        assert isinstance(record, ModuleRecord)
        assert record.imports == ("./dep.json",)

    def test_execute_reassigns_exports(self, shimmed_module_source, resolved_dep):
        record = parse_cjs(shimmed_module_source, "/app/main.py")
        exports = {}
        record.execute(exports, resolved_dep)
        assert exports["default"] == {"answer": 42, "file": "/app/main.py"}

    def test_execute_mutates_exports(self):
        source = 'module.exports["dir"] = __dirname\nmodule.exports["name"] = "mod"\n'
        record = parse_cjs(source, "file:///app/lib/mod.py")
        exports = {}
        record.execute(exports, {})
        assert exports == {"dir": "file:///app/lib/", "name": "mod"}

    def test_require_returns_namespace_without_default(self):
        source = 'ns = require("./ns")\nmodule.exports = ns["value"]\n'
        record = parse_cjs(source, "/app/main.py")
        exports = {}
        record.execute(exports, {"./ns": {"value": 7}})
        assert exports["default"] == 7

    def test_require_returns_null_default(self):
        data = {}
        parse_json("null", "/app/n.json").execute(data, {})
        record = parse_cjs('module.exports = require("./n.json")', "/app/main.py")
        exports = {}
        record.execute(exports, {"./n.json": data})
        assert "default" in exports
        assert exports["default"] is None

    def test_unresolved_require(self):
        record = parse_cjs('require("./missing")', "/app/main.py")
        with pytest.raises(LinkError) as exc_info:
            record.execute({}, {})
        assert exc_info.value.specifier == "./missing"
        assert exc_info.value.location == "/app/main.py"

    def test_undeclared_require(self):
        record = parse_cjs('name = "./x"\nrequire(name)', "/app/main.py")
        with pytest.raises(LinkError):
            record.execute({}, {"./x": {"default": 1}})

    def test_no_ambient_names(self):
        record = parse_cjs("module.exports = len([1])", "/app/main.py")
        with pytest.raises(UnboundNameError) as exc_info:
            record.execute({}, {})
        assert exc_info.value.location == "/app/main.py"

    def test_family_capabilities_and_hooks(self):
        family = EvaluatorFamily({"helper": lambda: 7}, [safe_builtins])
        record = parse_cjs("module.exports = helper() + len([1])", "/app/main.py", family)
        exports = {}
        record.execute(exports, {})
        assert exports["default"] == 8

    def test_custom_scanner(self):
        record = parse_cjs("x = 1", "/app/main.py", scanner=lambda source, location: ["./extra"])
        assert record.imports == ("./extra",)

    @pytest.mark.parametrize("source,location", [(None, "m.py"), ("x = 1", 42)])
    def test_non_text_arguments(self, source, location):
        with pytest.raises(TypeMismatchError) as exc_info:
            parse_cjs(source, location)
        assert "Cannot create CommonJS static module record" in str(exc_info.value)

    def test_malformed_source_fails_at_compile(self):
        with pytest.raises(SourceSyntaxError):
            parse_cjs("def (:", "/app/main.py")


class TestDataModules:
    """Tests for the data dialect."""

    def test_exports_default(self):
        record = parse_json(json.dumps({"a": [1, 2]}), "/app/data.json")
        assert record.imports == ()
        exports = {}
        record.execute(exports, {})
        assert exports == {"default": {"a": [1, 2]}}

    def test_parse_failure_carries_location(self):
        record = parse_json("{not json", "/app/data.json")
        with pytest.raises(SourceSyntaxError) as exc_info:
            record.execute({}, {})
        assert "Cannot parse JSON module at /app/data.json" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)

    def test_parse_is_deferred_to_execute(self):
        assert parse_json("{not json", "/app/data.json").imports == ()

    def test_undecodable_bytes_carry_location(self):
        record = parse_json(b"\xff\xfe\xfa", "/app/data.json")
        with pytest.raises(SourceSyntaxError) as exc_info:
            record.execute({}, {})
        assert exc_info.value.location == "/app/data.json"

    def test_deep_nesting_carries_location(self):
        depth = 200000
        record = parse_json("[" * depth + "]" * depth, "/app/deep.json")
        with pytest.raises(SourceSyntaxError) as exc_info:
            record.execute({}, {})
        assert isinstance(exc_info.value.__cause__, RecursionError)


class TestDeclarativeModules:
    """Tests for delegation to the declarative parser."""

    def test_mapping_result(self):
        def execute(exports, resolved):
            exports["x"] = 1

        def parser(source, location):
            return {"imports": ["./a", "./b"], "execute": execute}

        record = parse_mjs("export const x = 1", "/app/m.mjs", parser)
        assert record.imports == ("./a", "./b")
        assert record.execute is execute

    def test_record_passed_through(self):
        expected = ModuleRecord(imports=("./a",), execute=lambda exports, resolved: None)
        assert parse_mjs("", "/app/m.mjs", lambda source, location: expected) is expected

    def test_malformed_result(self):
        with pytest.raises(TypeMismatchError):
            parse_mjs("", "/app/m.mjs", lambda source, location: {"imports": []})

    def test_compiler_requires_parser(self):
        with pytest.raises(TypeMismatchError):
            make_compiler(ModuleDialect.DECLARATIVE)


class TestCompileModule:
    """Tests for dialect dispatch."""

    def test_by_dialect_name(self):
        record = compile_module("json", "[1]", "/app/data.json")
        exports = {}
        record.execute(exports, {})
        assert exports["default"] == [1]

    def test_by_dialect(self):
        record = compile_module(ModuleDialect.LEGACY_SHIMMED, 'require("./a")', "/app/m.py")
        assert record.imports == ("./a",)

    def test_unknown_dialect(self):
        with pytest.raises(ValueError):
            compile_module("typescript", "", "/app/m.ts")
