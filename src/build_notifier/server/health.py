"""Health check endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> JSONResponse:
    """Report liveness and the configured sink mode."""
    config = request.app.state.config
    return JSONResponse(content={
        "healthy": True,
        "sink": config.sink.value,
        "ready": request.app.state.handler is not None,
    })
