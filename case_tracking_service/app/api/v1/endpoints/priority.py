# API Router for creation-form previews
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from case_tracking_service.app.api.errors import to_http_exception
from case_tracking_service.app.dependencies.session import get_client_session
from case_tracking_service.app.models import CamelModel
from case_tracking_service.app.service.exceptions import BaseCaseTrackingError
from case_tracking_service.app.service.queries import preview_case_number

logger = logging.getLogger(__name__)
router = APIRouter()


class PriorityPreviewRequest(CamelModel):
    case_type: str
    resource_requirement: Optional[str] = None
    # Left untyped: non-numeric durations score 0 instead of failing validation.
    estimated_duration_days: Optional[Any] = None


class PriorityPreviewResponse(CamelModel):
    priority: int
    case_number_preview: str


@router.post("/priority/preview", response_model=PriorityPreviewResponse, tags=["Preview"])
async def preview_priority(request_data: PriorityPreviewRequest = Body(...), session=Depends(get_client_session)):
    try:
        priority = session.preview_priority(
            request_data.case_type,
            request_data.resource_requirement,
            request_data.estimated_duration_days,
        )
    except BaseCaseTrackingError as e:
        raise to_http_exception(e, "preview case priority")
    return PriorityPreviewResponse(priority=priority, case_number_preview=preview_case_number(session.now()))
