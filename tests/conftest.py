"""Test fixtures for the endow test suite."""
import json
import pytest
import sys
from pathlib import Path
from typing import Any, Dict

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from endow.runtime.family import EvaluatorFamily
from endow.runtime.transforms import Transform, safe_builtins
from endow.modules.registry import build_registry


def _replace_text(old: str, new: str) -> Transform:
    return Transform(
        rewrite=lambda settings: settings.with_source(settings.source.replace(old, new)),
        name=f"{old}->{new}",
    )


@pytest.fixture
def replace_text():
    """Factory for transforms rewriting every occurrence of one text to another."""
    return _replace_text


@pytest.fixture
def family() -> EvaluatorFamily:
    """Family with no base capabilities and no configured hooks."""
    return EvaluatorFamily()


@pytest.fixture
def safe_family() -> EvaluatorFamily:
    """Family granting the safe builtins."""
    return EvaluatorFamily(transforms=[safe_builtins])


@pytest.fixture
def sample_extensions() -> Dict[str, str]:
    """Extension declaration covering the built-in dialects."""
    return {"py": "cjs", "cjs": "cjs", "json": "json"}


@pytest.fixture
def registry(sample_extensions):
    """Registry built from sample_extensions."""
    return build_registry(sample_extensions)


@pytest.fixture
def shimmed_module_source() -> str:
    """Shimmed module reading one dependency and exporting a namespace."""
    return (
        'dep = require("./dep.json")\n'
        'module.exports = {"answer": dep["value"] + 1, "file": __filename}\n'
    )


@pytest.fixture
def resolved_dep() -> Dict[str, Any]:
    """Linker output for ./dep.json."""
    return {"./dep.json": {"default": {"value": 41}}}


@pytest.fixture
def config_file(tmp_path):
    """Write a JSON config and return its path."""
    def write(data: Dict[str, Any]) -> str:
        path = tmp_path / "endow.json"
        path.write_text(json.dumps(data))
        return str(path)
    return write
