"""Compile endpoint: module records without execution."""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from endow.config import DEFAULT_EXTENSIONS
from endow.errors import ConfigurationError, EndowError
from endow.modules.extension import parse_extension
from endow.modules.registry import build_registry

logger = logging.getLogger(__name__)

router = APIRouter()


class CompileRequest(BaseModel):
    """Request body for module compilation."""
    source: str
    location: str
    extensions: Optional[Dict[str, str]] = None


class CompileResponse(BaseModel):
    """Response body for module compilation."""
    location: str
    dialect: str
    imports: List[str]


@router.post("/compile", response_model=CompileResponse)
async def compile_source(request: CompileRequest):
    """Parse a module source into a record and report its imports."""
    try:
        registry = build_registry(request.extensions or DEFAULT_EXTENSIONS)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        record = registry.parse(request.source, request.location)
    except EndowError as e:
        logger.info("Compile failed for %s: %s", request.location, e)
        raise HTTPException(status_code=422, detail=str(e))

    dialect = registry.dialect_for(parse_extension(request.location))
    return CompileResponse(
        location=request.location,
        dialect=dialect.value,
        imports=list(record.imports),
    )
