"""Health check endpoints."""

from fastapi import APIRouter, Request

from filebox import __version__
from filebox.schemas.system import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Lightweight connectivity check for the app shell."""
    services = getattr(request.app.state, "services", None)
    authenticated = services is not None and services.gate.is_authenticated
    return HealthResponse(version=__version__, authenticated=authenticated)


@router.get("/ping")
async def ping():
    """Ultra-lightweight ping."""
    return {"status": "ok"}
