# API Router for Health Checks
import logging

import httpx
from fastapi import APIRouter, Depends

from case_tracking_service.app.config import settings
from case_tracking_service.app.dependencies.http_client import get_http_client
from case_tracking_service.app.dependencies.session import get_client_session

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/health", tags=["Monitoring"])
async def health_check(
    session=Depends(get_client_session),
    http_client: httpx.AsyncClient = Depends(get_http_client),
):
    case_api_status = "reachable"
    try:
        # Any HTTP answer, even 401 or 404, proves the backend is up.
        await http_client.get(settings.CASE_API_BASE_URL)
    except httpx.HTTPError as e:
        logger.error(f"Case API health check failed: {e}")
        case_api_status = "unreachable"

    snapshot = session.get_snapshot()
    return {
        "status": "ok",
        "components": {
            "case_api": case_api_status,
            "snapshot": {
                "generation": snapshot.generation,
                "fetched_at": snapshot.fetched_at.isoformat() if snapshot.fetched_at else None,
                "cases": len(snapshot.cases),
            },
        },
        "service_name": settings.SERVICE_NAME_API,
    }
