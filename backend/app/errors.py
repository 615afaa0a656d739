"""
Error taxonomy for the publish pipeline.

Failures that happen before a newsletter is persisted abort the whole
operation. Failures inside the broadcast fan-out are captured per recipient
and only reported as data (see DeliveryFailed).
"""

from typing import Any, Optional


class NewsletterServiceError(Exception):
    """Base class for every error raised by the newsletter services."""

    code = "newsletter_service_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UploadFailed(NewsletterServiceError):
    """The asset store rejected or errored on an image upload."""

    code = "upload_failed"


class PersistenceFailed(NewsletterServiceError):
    """The content repository could not write the newsletter record."""

    code = "persistence_failed"


class DirectoryUnavailable(NewsletterServiceError):
    """
    The recipient directory could not be read.

    When raised from a publish, ``newsletter`` holds the record that was
    already persisted (it is not rolled back) and ``summary`` reports zero
    attempted deliveries.
    """

    code = "directory_unavailable"

    def __init__(
        self,
        message: str,
        newsletter: Optional[Any] = None,
        summary: Optional[Any] = None,
    ):
        super().__init__(message)
        self.newsletter = newsletter
        self.summary = summary


class DeliveryFailed(NewsletterServiceError):
    """A single recipient's delivery failed. Never escalated past the dispatcher."""

    code = "delivery_failed"

    def __init__(self, message: str, recipient: str):
        super().__init__(message)
        self.recipient = recipient


class AssetDeleteFailed(NewsletterServiceError):
    """Best-effort asset cleanup failed. Callers log it and continue."""

    code = "asset_delete_failed"


class NotFound(NewsletterServiceError):
    """The requested record does not exist."""

    code = "not_found"
