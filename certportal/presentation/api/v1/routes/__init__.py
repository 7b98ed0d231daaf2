from certportal.presentation.api.v1.routes import (applications, certificates,
                                                   documents, roles)

__all__ = ["applications", "certificates", "documents", "roles"]
