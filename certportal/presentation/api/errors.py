"""Translate portal exceptions into HTTP responses"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from certportal.domain.exceptions import (AuthenticationException,
                                          AuthorizationException,
                                          ConcurrentModification,
                                          DuplicateCertificate,
                                          InvalidTransition, MissingReason,
                                          PortalException,
                                          ResourceNotFoundException,
                                          StoreUnavailable,
                                          ValidationException)
from certportal.infrastructure.exceptions import (DuplicateKeyError,
                                                  StorageException,
                                                  StorageNotFoundError,
                                                  StoragePermissionError)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[PortalException], int] = {
    ValidationException: 422,
    MissingReason: 422,
    InvalidTransition: status.HTTP_409_CONFLICT,
    ConcurrentModification: status.HTTP_409_CONFLICT,
    DuplicateKeyError: status.HTTP_409_CONFLICT,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    DuplicateCertificate: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ResourceNotFoundException: status.HTTP_404_NOT_FOUND,
    AuthorizationException: status.HTTP_403_FORBIDDEN,
    AuthenticationException: status.HTTP_401_UNAUTHORIZED,
    StorageNotFoundError: status.HTTP_404_NOT_FOUND,
    StoragePermissionError: status.HTTP_400_BAD_REQUEST,
    StorageException: status.HTTP_502_BAD_GATEWAY,
}


def status_code_for(exc: PortalException) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def portal_exception_handler(request: Request, exc: PortalException) -> JSONResponse:
    status_code = status_code_for(exc)

    if isinstance(exc, DuplicateCertificate):
        # Issuance guards make this unreachable in correct operation
        logger.critical(f"Invariant violated on {request.url.path}: {exc.message} {exc.details}")
    elif status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")

    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    if isinstance(exc, (StoreUnavailable, ConcurrentModification)):
        headers = {"Retry-After": "1"}

    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PortalException, portal_exception_handler)
