from datetime import UTC, datetime

from cuid2 import Cuid, cuid_wrapper

# Create a CUID generator with custom settings
cuid_generator = cuid_wrapper()

# Short CUIDs for human-facing reference numbers
_reference_generator = Cuid(length=10)

APPLICATION_CODE_PREFIX = "APP"
CERTIFICATE_NUMBER_PREFIX = "CERT"


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier"""
    result = cuid_generator()
    assert isinstance(result, str)
    return result


def _generate_reference(prefix: str, year: int | None = None) -> str:
    year = year or datetime.now(UTC).year
    suffix = _reference_generator.generate().upper()
    return f"{prefix}{year}{suffix}"


def generate_application_code(year: int | None = None) -> str:
    """Human-facing application code, e.g. APP2026K3F9Q0ZL2M"""
    return _generate_reference(APPLICATION_CODE_PREFIX, year)


def generate_certificate_number(year: int | None = None) -> str:
    """Externally verifiable certificate number, e.g. CERT2026P1X7C4W8HD"""
    return _generate_reference(CERTIFICATE_NUMBER_PREFIX, year)
