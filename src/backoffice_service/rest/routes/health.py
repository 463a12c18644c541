"""Health check endpoints."""

from fastapi import APIRouter

from backoffice_service.db.engine import ping

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
async def ready() -> dict[str, str]:
    """Ready once the datastore answers; configuration and connection errors surface as 500."""
    await ping()
    return {"status": "ready"}
