"""
Certificate issuance.

Runs inside the approving transition's unit of work. Certificate numbers
are random and protected by a unique constraint; a collision is retried
with a fresh number.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from certportal.domain.enums import ApplicationStatus
from certportal.domain.exceptions import (DuplicateCertificate,
                                          StoreUnavailable,
                                          ValidationException)
from certportal.infrastructure.exceptions import DuplicateKeyError
from certportal.infrastructure.persistence.models.certificate import \
    Certificate
from certportal.shared.telemetry.logging import get_logger
from certportal.shared.telemetry.tracing import traced
from certportal.shared.utils.clock import utc_now
from certportal.shared.utils.generators import generate_certificate_number

if TYPE_CHECKING:
    from certportal.application.interfaces.services import ISignatureService
    from certportal.infrastructure.persistence.models.application import \
        Application
    from certportal.infrastructure.persistence.repositories.certificate_repo import \
        CertificateRepository

logger = get_logger(__name__)

MAX_NUMBER_ATTEMPTS = 5


class CertificateIssuer:
    """Mint, sign and persist the certificate of an approved application"""

    def __init__(
        self,
        certificate_repo: "CertificateRepository",
        signer: "ISignatureService",
        validity_days: int | None = None,
    ):
        self.certificate_repo = certificate_repo
        self.signer = signer
        self.validity_days = validity_days

    @traced("certificate.issue")
    async def issue(self, application: "Application") -> Certificate:
        """
        Issue the certificate for an approved application.

        Raises:
            ValidationException: Application is not approved
            DuplicateCertificate: A certificate already exists for the application
            StoreUnavailable: No unique number could be allocated
        """
        if application.status != ApplicationStatus.APPROVED.value:
            raise ValidationException(
                f"Application {application.application_code} is not approved", field="status"
            )

        existing = await self.certificate_repo.get_by_application(application.id)
        if existing is not None:
            raise DuplicateCertificate(application.id, existing.certificate_number)

        issued_date = utc_now().date()
        valid_until = (
            issued_date + timedelta(days=self.validity_days) if self.validity_days else None
        )

        for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
            number = generate_certificate_number(issued_date.year)
            certificate = Certificate(
                certificate_number=number,
                certificate_type=application.certificate_type,
                issued_to=application.full_name,
                issued_date=issued_date,
                valid_until=valid_until,
                application_id=application.id,
                digital_signature=self.signer.sign(
                    certificate_number=number,
                    application_id=application.id,
                    certificate_type=application.certificate_type,
                    issued_to=application.full_name,
                    issued_date=issued_date,
                    valid_until=valid_until,
                ),
            )
            try:
                created = await self.certificate_repo.create_unique(certificate)
            except DuplicateKeyError:
                # Either the number collided or another approval won the race
                existing = await self.certificate_repo.get_by_application(application.id)
                if existing is not None:
                    raise DuplicateCertificate(application.id, existing.certificate_number)
                logger.warning(
                    "Certificate number %s collided (attempt %d/%d)",
                    number,
                    attempt,
                    MAX_NUMBER_ATTEMPTS,
                )
                continue

            logger.info(
                "Issued certificate %s for application %s",
                created.certificate_number,
                application.application_code,
            )
            return created

        raise StoreUnavailable("certificate.issue", "could not allocate a unique certificate number")
