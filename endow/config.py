"""
Endow Configuration

EvaluatorConfig carries host settings for evaluator families and parser
registries. Config files are JSON, validated with pydantic:

    {
        "location": "<sandbox>",
        "safe_builtins": true,
        "extensions": {"py": "cjs", "json": "json"}
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from endow.errors import DEFAULT_LOCATION, ConfigurationError
from endow.modules.parsers import DeclarativeParser, Scanner
from endow.modules.registry import ParserRegistry, build_registry
from endow.runtime.family import EvaluatorFamily
from endow.runtime.transforms import safe_builtins

DEFAULT_EXTENSIONS: Dict[str, str] = {
    "py": "cjs",
    "cjs": "cjs",
    "json": "json",
}


@dataclass
class EvaluatorConfig:
    """Configuration for evaluator families and registries."""
    location: str = DEFAULT_LOCATION
    safe_builtins: bool = False
    extensions: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_EXTENSIONS))


class ConfigFile(BaseModel):
    """On-disk shape of an EvaluatorConfig."""
    location: str = DEFAULT_LOCATION
    safe_builtins: bool = False
    extensions: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_EXTENSIONS))


def parse_config(data: Any) -> EvaluatorConfig:
    """
    Validate a decoded config document.

    Raises:
        ConfigurationError: If the document does not match ConfigFile
    """
    try:
        model = ConfigFile.model_validate(data)
    except ValidationError as err:
        raise ConfigurationError(f"Invalid configuration: {err}") from err
    return EvaluatorConfig(
        location=model.location,
        safe_builtins=model.safe_builtins,
        extensions=dict(model.extensions),
    )


def load_config(path: Union[str, Path]) -> EvaluatorConfig:
    """
    Load a JSON config file.

    Raises:
        ConfigurationError: If the file is not JSON or fails validation
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as err:
        raise ConfigurationError(f"Invalid JSON in config {path}: {err}") from err
    return parse_config(data)


def family_from_config(config: EvaluatorConfig,
                       capabilities: Optional[Mapping[str, Any]] = None) -> EvaluatorFamily:
    transforms = [safe_builtins] if config.safe_builtins else []
    return EvaluatorFamily(capabilities, transforms)


def registry_from_config(config: EvaluatorConfig,
                         evaluators: Optional[EvaluatorFamily] = None,
                         declarative_parser: Optional[DeclarativeParser] = None,
                         scanner: Optional[Scanner] = None) -> ParserRegistry:
    return build_registry(
        config.extensions,
        evaluators=evaluators or family_from_config(config),
        declarative_parser=declarative_parser,
        scanner=scanner,
    )
