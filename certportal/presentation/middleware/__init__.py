from certportal.presentation.middleware.correlation import (
    CorrelationIDMiddleware)
from certportal.presentation.middleware.security import (
    RequestSizeLimitMiddleware, SecurityHeadersMiddleware)
from certportal.presentation.middleware.timeout import TimeoutMiddleware

__all__ = [
    "CorrelationIDMiddleware",
    "RequestSizeLimitMiddleware",
    "SecurityHeadersMiddleware",
    "TimeoutMiddleware",
]
