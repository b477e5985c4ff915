"""Rendering of evaluation results for the CLI and API."""

from __future__ import annotations

import json
from typing import Any


def to_jsonable(value: Any) -> Any:
    """Return ``value`` if it serialises to JSON, else its repr."""
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)
    return value
