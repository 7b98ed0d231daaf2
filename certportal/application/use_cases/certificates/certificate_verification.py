"""Public certificate authenticity lookup"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from certportal.domain.exceptions import ResourceNotFoundException
from certportal.shared.utils.clock import utc_now

if TYPE_CHECKING:
    from certportal.application.interfaces.services import ISignatureService
    from certportal.infrastructure.persistence.models.certificate import \
        Certificate
    from certportal.infrastructure.persistence.repositories.certificate_repo import \
        CertificateRepository


@dataclass
class CertificateVerification:
    certificate: "Certificate"
    is_valid: bool
    signature_valid: bool


def is_within_validity(valid_until: date | None, today: date | None = None) -> bool:
    """A certificate without an expiry date never lapses"""
    if valid_until is None:
        return True
    return valid_until > (today or utc_now().date())


class CertificateVerificationService:
    """Read-only lookup used by the public authenticity checker"""

    def __init__(self, certificate_repo: "CertificateRepository", signer: "ISignatureService"):
        self.certificate_repo = certificate_repo
        self.signer = signer

    async def verify(self, certificate_number: str) -> CertificateVerification:
        """
        Look up a certificate by number.

        Raises:
            ResourceNotFoundException: No certificate carries this number
        """
        number = (certificate_number or "").strip()
        certificate = await self.certificate_repo.get_by_number(number) if number else None
        if certificate is None:
            raise ResourceNotFoundException("Certificate", number)

        signature_valid = self.signer.verify(
            certificate.digital_signature,
            certificate_number=certificate.certificate_number,
            application_id=certificate.application_id,
            certificate_type=certificate.certificate_type,
            issued_to=certificate.issued_to,
            issued_date=certificate.issued_date,
            valid_until=certificate.valid_until,
        )
        return CertificateVerification(
            certificate=certificate,
            is_valid=is_within_validity(certificate.valid_until),
            signature_valid=signature_valid,
        )
