"""
Domain exceptions shared by the services and translated to HTTP responses in main.py.
"""


class RemoteStoreError(Exception):
    """A read or write against the database failed."""


class RemoteWriteError(Exception):
    """
    A mutation could not be applied remotely.

    The message is meant to be shown to the user as is; the local cache was
    left unchanged.
    """

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class RecordNotFoundError(Exception):
    """The referenced record does not exist in the local cache."""

    def __init__(self, entity: str, record_id: str):
        super().__init__(f"{entity} with ID {record_id} not found")
        self.entity = entity
        self.record_id = record_id


class InvalidImageError(ValueError):
    """Rejected before upload: wrong type, too large or unreadable."""


class ImageUploadError(Exception):
    """The object store refused or failed the upload."""


class SubscriptionError(Exception):
    """The realtime change stream could not be joined."""


class AuthError(Exception):
    """Authentication provider rejected the credentials or the token."""
