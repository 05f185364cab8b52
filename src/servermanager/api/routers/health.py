"""Health check API endpoints."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/live")
async def liveness():
    """Liveness probe."""
    return {"status": "alive"}
