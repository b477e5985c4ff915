"""
Endow API - FastAPI Application

Run with: uvicorn api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from endow import __version__
from api.routes.health import router as health_router
from api.routes.evaluate import router as evaluate_router
from api.routes.compile import router as compile_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Endow API starting (version %s)", __version__)
    yield
    logger.info("Endow API shutting down")


app = FastAPI(
    title="Endow API",
    description="Capability-scoped evaluation of Python source and module records",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/api/v1", tags=["Health"])
app.include_router(evaluate_router, prefix="/api/v1", tags=["Evaluation"])
app.include_router(compile_router, prefix="/api/v1", tags=["Modules"])


@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "name": "Endow API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
