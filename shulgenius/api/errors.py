# shulgenius/api/errors.py
from fastapi import HTTPException, status

from shulgenius.core.exceptions import (
    EntityNotFound,
    GatewayUnavailable,
    ProcessorNotFound,
    ReconciliationError,
    ShulGeniusError,
)


def status_for(exc: ShulGeniusError) -> int:
    if isinstance(exc, (EntityNotFound, ProcessorNotFound)):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, GatewayUnavailable):
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(exc, ReconciliationError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def http_error(exc: ShulGeniusError) -> HTTPException:
    """Translate a service error for the management endpoints"""
    return HTTPException(status_code=status_for(exc), detail=exc.message)
