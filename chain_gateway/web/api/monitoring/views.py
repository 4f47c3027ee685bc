from datetime import UTC, datetime
from typing import Any, Dict

from fastapi import APIRouter

from chain_gateway.web.api.envelope import success

router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Checks the health of a project.

    It returns 200 if the project is healthy.
    """
    return success({"status": "ok", "timestamp": datetime.now(UTC).isoformat()})
