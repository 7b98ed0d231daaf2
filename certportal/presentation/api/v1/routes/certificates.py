"""Certificate lookup endpoints"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from certportal.application.use_cases.applications.application_operations import \
    ApplicationService
from certportal.application.use_cases.certificates.certificate_verification import \
    CertificateVerificationService
from certportal.domain.entities.actor import Actor
from certportal.infrastructure.config.settings import get_settings
from certportal.presentation.api.dependencies import (get_application_service,
                                                      get_current_actor,
                                                      get_verification_service)
from certportal.presentation.api.rate_limit import limiter
from certportal.presentation.api.v1.schemas.certificate import (
    CertificateResponse, CertificateVerificationResponse)

settings = get_settings()

router = APIRouter()


@router.get("/verify/{certificate_number}", response_model=CertificateVerificationResponse)
@limiter.limit(settings.verify_rate_limit)
async def verify_certificate(
    request: Request,
    certificate_number: str,
    service: Annotated[CertificateVerificationService, Depends(get_verification_service)],
):
    """
    Public authenticity check.

    No authentication required. ``is_valid`` reports whether the certificate
    is still within its validity period; ``signature_valid`` whether the
    stored signature matches the certificate contents.
    """
    result = await service.verify(certificate_number)
    return CertificateVerificationResponse(
        certificate=CertificateResponse.model_validate(result.certificate),
        is_valid=result.is_valid,
        signature_valid=result.signature_valid,
    )


@router.get("/mine", response_model=list[CertificateResponse])
async def my_certificates(
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[ApplicationService, Depends(get_application_service)],
):
    """Certificates issued on the caller's own applications"""
    certificates = await service.certificates_for_owner(actor)
    return [CertificateResponse.model_validate(c) for c in certificates]
