from enum import Enum


class ErrorKind(str, Enum):
    MALFORMED_PAYLOAD = "MalformedPayload"
    VALIDATION_ERROR = "ValidationError"
    UNKNOWN_SITE = "UnknownSite"
    DOMAIN_NOT_ALLOWED = "DomainNotAllowed"
    STORAGE_FAILURE = "StorageFailure"


# kind -> (HTTP status, public error message)
ERROR_RESPONSES = {
    ErrorKind.MALFORMED_PAYLOAD: (400, "Malformed payload"),
    ErrorKind.VALIDATION_ERROR: (400, "Validation error"),
    ErrorKind.UNKNOWN_SITE: (404, "Site not found"),
    ErrorKind.DOMAIN_NOT_ALLOWED: (403, "Domain not allowed"),
    ErrorKind.STORAGE_FAILURE: (500, "Internal server error"),
}


class StorageError(Exception):
    """The database could not complete a read or write."""
