from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter()


@router.get("/health", summary="Health check")
async def health_check():
    """
    Liveness check for terminals and load balancers.
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc),
    }
