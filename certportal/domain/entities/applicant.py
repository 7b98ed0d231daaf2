"""
Applicant details value entity.

Validates and normalizes the personal fields a citizen fills in when
submitting an application.
"""

import re
from dataclasses import dataclass, fields, replace
from datetime import date

from certportal.domain.exceptions import ValidationException
from certportal.shared.utils.clock import utc_now

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_DIGITS = 10

REQUIRED_FIELDS = (
    "full_name",
    "father_name",
    "address",
    "phone_number",
    "email",
    "purpose",
)


def normalize_phone_number(raw: str) -> str:
    """
    Reduce a phone number to its 10 national digits.

    Separators are dropped, as is a leading ``91`` country code or a leading
    trunk ``0``. Anything that does not end up as exactly 10 digits is rejected.
    """
    digits = re.sub(r"\D", "", raw or "")
    if len(digits) == PHONE_DIGITS + 2 and digits.startswith("91"):
        digits = digits[2:]
    elif len(digits) == PHONE_DIGITS + 1 and digits.startswith("0"):
        digits = digits[1:]

    if len(digits) != PHONE_DIGITS:
        raise ValidationException(
            "Phone number must be a 10-digit number", field="phone_number"
        )
    return digits


@dataclass
class ApplicantDetails:
    """Personal details captured on an application"""

    full_name: str
    father_name: str
    date_of_birth: date
    address: str
    phone_number: str
    email: str
    purpose: str
    additional_info: str | None = None

    def validate(self) -> "ApplicantDetails":
        """Validate business rules and return a normalized copy"""
        for name in REQUIRED_FIELDS:
            value = getattr(self, name)
            if value is None or not str(value).strip():
                raise ValidationException(f"{name} is required", field=name)

        if self.date_of_birth is None:
            raise ValidationException("date_of_birth is required", field="date_of_birth")
        if self.date_of_birth > utc_now().date():
            raise ValidationException(
                "date_of_birth cannot be in the future", field="date_of_birth"
            )

        email = self.email.strip()
        if not EMAIL_PATTERN.match(email):
            raise ValidationException("Invalid email address", field="email")

        additional = self.additional_info.strip() if self.additional_info else None

        return replace(
            self,
            full_name=self.full_name.strip(),
            father_name=self.father_name.strip(),
            address=self.address.strip(),
            phone_number=normalize_phone_number(self.phone_number),
            email=email.lower(),
            purpose=self.purpose.strip(),
            additional_info=additional or None,
        )

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}
