"""Error types raised by the collection admin services.

Every error carries a ``kind`` (stable, machine-readable) and the HTTP status
it maps to. The API layer turns them into ``{"error": ..., "kind": ...}``
responses; the services themselves never build HTTP responses.
"""


class ErrorKind:
    """Machine-readable error kinds."""
    INVALID_NAME = "invalid_name"
    INVALID_PAYLOAD = "invalid_payload"
    MISSING_TENANT = "missing_tenant"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    STORE_UNAVAILABLE = "store_unavailable"


class CollectionAdminError(Exception):
    """Base class for errors raised by this package."""
    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidNameError(CollectionAdminError):
    """A collection name or tenant id failed validation."""
    kind = ErrorKind.INVALID_NAME
    status_code = 400


class InvalidPayloadError(CollectionAdminError):
    """A mutation payload was rejected before reaching the store."""
    kind = ErrorKind.INVALID_PAYLOAD
    status_code = 400


class MissingTenantError(CollectionAdminError):
    """No tenant id was supplied."""
    kind = ErrorKind.MISSING_TENANT
    status_code = 401


class NotFoundError(CollectionAdminError):
    """A single document targeted by id does not exist."""
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class DuplicateError(CollectionAdminError):
    """The collection being created already exists."""
    kind = ErrorKind.DUPLICATE
    status_code = 409
