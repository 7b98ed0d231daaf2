"""
Signature service for issued certificates.

Follows OCP - new signing algorithms can be added without modifying
SignatureService.
"""

import hashlib
import hmac
import json
from abc import ABC, abstractmethod
from datetime import date
from typing import Any


class SigningAlgorithm(ABC):
    """Abstract base class for keyed signing algorithms (OCP)"""

    @abstractmethod
    def sign(self, key: bytes, data: str) -> str:
        """Compute a signature of the input data"""
        pass


class HMACSHA256Algorithm(SigningAlgorithm):
    """HMAC-SHA256 signing"""

    def sign(self, key: bytes, data: str) -> str:
        return hmac.new(key, data.encode(), hashlib.sha256).hexdigest()


class SignatureService:
    """
    Single source of truth for certificate signatures.

    Used at issuance and again by the public verification lookup, so both
    sides always sign the same canonical representation.
    """

    def __init__(self, key: str, algorithm: SigningAlgorithm | None = None):
        if not key:
            raise ValueError("Signing key is required")
        self._key = key.encode()
        self.algorithm = algorithm or HMACSHA256Algorithm()

    @staticmethod
    def canonical_json(data: dict[str, Any]) -> str:
        """Convert a dictionary to a canonical JSON string"""
        return json.dumps(data, sort_keys=True, separators=(",", ":"))

    def sign(
        self,
        certificate_number: str,
        application_id: str,
        certificate_type: str,
        issued_to: str,
        issued_date: date,
        valid_until: date | None,
    ) -> str:
        """
        Sign the identifying fields of a certificate.

        Returns:
            Hex digest of the canonical JSON representation
        """
        content = {
            "certificate_number": certificate_number,
            "application_id": application_id,
            "certificate_type": certificate_type,
            "issued_to": issued_to,
            "issued_date": issued_date.isoformat(),
            "valid_until": valid_until.isoformat() if valid_until else None,
        }
        return self.algorithm.sign(self._key, self.canonical_json(content))

    def verify(
        self,
        signature: str,
        certificate_number: str,
        application_id: str,
        certificate_type: str,
        issued_to: str,
        issued_date: date,
        valid_until: date | None,
    ) -> bool:
        expected = self.sign(
            certificate_number,
            application_id,
            certificate_type,
            issued_to,
            issued_date,
            valid_until,
        )
        return hmac.compare_digest(expected, signature or "")
