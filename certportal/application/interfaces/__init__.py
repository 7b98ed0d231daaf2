from certportal.application.interfaces.services import (INotificationSink,
                                                        ISignatureService,
                                                        Notification)
from certportal.application.interfaces.storage import IFileStorage

__all__ = ["INotificationSink", "ISignatureService", "Notification", "IFileStorage"]
