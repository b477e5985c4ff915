"""Test the transform pipeline and the safe builtins hook."""
import pytest
import sys
from dataclasses import replace
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from endow.errors import TransformError, UnboundNameError
from endow.runtime.family import EvaluatorFamily
from endow.runtime.settings import EvaluationMode, EvaluationSettings
from endow.runtime.transforms import (
    SAFE_BUILTINS,
    Transform,
    apply_transforms,
    build_pipeline,
    safe_builtins,
)


def grant(**capabilities):
    return Transform(extend=lambda current: capabilities, name=f"grant{sorted(capabilities)}")


class TestPipelineOrder:
    """Tests for pipeline ordering."""

    def test_call_hooks_come_first(self):
        first, second = object(), object()
        assert build_pipeline([first], [second]) == (first, second)

    def test_missing_groups(self):
        assert build_pipeline(None, None) == ()

    def test_call_scoped_rewrite_wins(self, replace_text):
        family = EvaluatorFamily({"Y": "from Y", "Z": "from Z"}, [replace_text("X", "Z")])
        assert family.evaluate("X") == "from Z"
        assert family.evaluate("X", options={"transforms": [replace_text("X", "Y")]}) == "from Y"

    def test_configured_hook_still_runs(self, replace_text):
        family = EvaluatorFamily({"a": 1, "b": 2}, [replace_text("B", "b")])
        options = {"transforms": [replace_text("A", "a")]}
        assert family.evaluate("A + B", options=options) == 3


class TestExtensionPhase:
    """Tests for capability extension."""

    def test_extend_before_rewrite(self, replace_text):
        hook = Transform(
            extend=lambda capabilities: {"abc": 123},
            rewrite=lambda settings: settings.with_source(settings.source.replace("ABC", "abc")),
        )
        family = EvaluatorFamily(transforms=[hook])
        assert family.evaluate_program("ABC") == 123

    def test_rewrite_sees_other_hooks_extensions(self, replace_text):
        family = EvaluatorFamily(transforms=[replace_text("alias", "target"), grant(target=9)])
        assert family.evaluate("alias") == 9

    def test_pipeline_overrides_call_and_base(self):
        family = EvaluatorFamily({"a": "base"}, [grant(a="pipeline")])
        assert family.evaluate("a", {"a": "call"}) == "pipeline"

    def test_later_hook_wins(self):
        family = EvaluatorFamily(transforms=[grant(a=1), grant(a=2)])
        assert family.evaluate("a") == 2

    def test_extend_receives_current_capabilities(self):
        seen = []

        def extend(capabilities):
            seen.append(dict(capabilities))
            return {}

        family = EvaluatorFamily({"a": 1}, [grant(b=2), Transform(extend=extend)])
        family.evaluate("a", {"c": 3})
        assert seen == [{"a": 1, "b": 2, "c": 3}]

    def test_extend_returning_none(self):
        family = EvaluatorFamily({"a": 1}, [Transform(extend=lambda capabilities: None)])
        assert family.evaluate("a") == 1

    def test_hook_with_neither_operation(self):
        family = EvaluatorFamily({"a": 1}, [object()])
        assert family.evaluate("a") == 1


class TestRewritePhase:
    """Tests for rewrite contract checks."""

    @pytest.fixture
    def settings(self):
        return EvaluationSettings(source="1", capabilities={"a": 1})

    def test_rewrite_changes_source(self, settings, replace_text):
        result = apply_transforms([replace_text("1", "2")], settings)
        assert result.source == "2"

    def test_rewrite_must_return_settings(self, settings):
        hook = Transform(rewrite=lambda s: "2")
        with pytest.raises(TransformError) as exc_info:
            apply_transforms([hook], settings)
        assert exc_info.value.hook is hook

    def test_rewrite_cannot_change_mode(self, settings):
        hook = Transform(rewrite=lambda s: replace(s, mode=EvaluationMode.PROGRAM))
        with pytest.raises(TransformError):
            apply_transforms([hook], settings)

    def test_rewrite_cannot_change_location(self, settings):
        hook = Transform(rewrite=lambda s: replace(s, location="other.py"))
        with pytest.raises(TransformError):
            apply_transforms([hook], settings)

    def test_rewrite_cannot_change_capabilities(self, settings):
        hook = Transform(rewrite=lambda s: s.with_capabilities({"a": 2}))
        with pytest.raises(TransformError):
            apply_transforms([hook], settings)

    def test_transform_error_is_type_error(self, settings):
        with pytest.raises(TypeError):
            apply_transforms([Transform(rewrite=lambda s: None)], settings)


class TestSafeBuiltins:
    """Tests for the opt-in safe builtins hook."""

    def test_not_granted_by_default(self, family):
        with pytest.raises(UnboundNameError):
            family.evaluate("len([1])")

    def test_granted_with_hook(self, safe_family):
        assert safe_family.evaluate("len([1, 2])") == 2
        assert safe_family.evaluate("sorted(items)", {"items": [3, 1, 2]}) == [1, 2, 3]

    def test_as_call_scoped_hook(self, family):
        assert family.evaluate("max(1, 5)", options={"transforms": [safe_builtins]}) == 5

    def test_caller_value_kept(self, safe_family):
        assert safe_family.evaluate("len", {"len": "mine"}) == "mine"

    def test_exception_types_usable(self, safe_family):
        source = "try:\n    1 / 0\nexcept ZeroDivisionError:\n    r = 'caught'\nr"
        assert safe_family.evaluate_program(source) == "caught"

    def test_no_side_effecting_builtins(self):
        for name in ("open", "print", "eval", "exec", "compile", "getattr", "type", "vars"):
            assert name not in SAFE_BUILTINS
