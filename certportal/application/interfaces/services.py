"""
Service interfaces (ports) for the application layer.

These protocols define the contracts for application services.
Following Dependency Inversion Principle (DIP).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Protocol


@dataclass(frozen=True)
class Notification:
    """Status change delivered to the application owner"""

    application_id: str
    application_code: str
    new_status: str
    recipient: str
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class INotificationSink(Protocol):
    """Protocol for notification delivery (DIP). May raise on failure."""

    async def send(self, notification: Notification) -> None:
        ...


class ISignatureService(Protocol):
    """Protocol for certificate signing (DIP)"""

    def sign(
        self,
        certificate_number: str,
        application_id: str,
        certificate_type: str,
        issued_to: str,
        issued_date: date,
        valid_until: date | None,
    ) -> str:
        ...

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
        ...
