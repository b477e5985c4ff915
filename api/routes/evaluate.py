"""Evaluate endpoint for capability-scoped evaluation."""

import logging
import time
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from endow.errors import DEFAULT_LOCATION
from endow.render import to_jsonable
from endow.runtime.family import EvaluateOptions, EvaluatorFamily
from endow.runtime.settings import EvaluationMode
from endow.runtime.transforms import safe_builtins as safe_builtins_hook

logger = logging.getLogger(__name__)

router = APIRouter()


class EvaluateRequest(BaseModel):
    """Request body for evaluation."""
    source: str
    mode: Literal["expression", "asserted_expression", "program"] = "expression"
    capabilities: Dict[str, Any] = Field(default_factory=dict)
    safe_builtins: bool = False
    location: str = DEFAULT_LOCATION


class EvaluateResponse(BaseModel):
    """Response body for evaluation."""
    success: bool
    value: Any = None
    execution_time_ms: float
    error: Optional[str] = None
    error_type: Optional[str] = None


@router.post("/evaluate", response_model=EvaluateResponse)
async def evaluate_source(request: EvaluateRequest):
    """Evaluate source with only the capabilities in the request."""
    start_time = time.time()
    transforms = [safe_builtins_hook] if request.safe_builtins else []
    family = EvaluatorFamily(transforms=transforms)

    try:
        value = family.run(
            EvaluationMode(request.mode),
            request.source,
            request.capabilities,
            EvaluateOptions(location=request.location),
        )
    except Exception as e:
        logger.info("Evaluation failed at %s: %s: %s", request.location, type(e).__name__, e)
        return EvaluateResponse(
            success=False,
            execution_time_ms=(time.time() - start_time) * 1000,
            error=str(e),
            error_type=type(e).__name__,
        )

    return EvaluateResponse(
        success=True,
        value=to_jsonable(value),
        execution_time_ms=(time.time() - start_time) * 1000,
    )
