# Mapping of service exceptions to HTTP responses for the view adapter
import logging

from fastapi import HTTPException

from case_tracking_service.app.service.exceptions import (
    AuthorizationError,
    BaseCaseTrackingError,
    CaseNotFoundError,
    CaseValidationError,
    TransportError,
)

logger = logging.getLogger(__name__)


def to_http_exception(error: BaseCaseTrackingError, context: str) -> HTTPException:
    if isinstance(error, CaseValidationError):
        logger.warning(f"Validation error while trying to {context}: {error}")
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, AuthorizationError):
        logger.warning(f"Authorization denied while trying to {context}: {error}")
        return HTTPException(status_code=403, detail=str(error))
    if isinstance(error, CaseNotFoundError):
        logger.warning(f"Case not found while trying to {context}: {error}")
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, TransportError):
        logger.error(f"Case API failure while trying to {context}: {error}")
        return HTTPException(status_code=502, detail=str(error))
    logger.error(f"Unexpected service error while trying to {context}: {error}", exc_info=True)
    return HTTPException(status_code=500, detail=f"Failed to {context}")
