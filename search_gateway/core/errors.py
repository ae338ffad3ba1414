"""Error taxonomy shared by the services and the HTTP boundary.

Each error carries the public message sent to the caller. Backend details
are logged where the failure is detected and never put in ``message``.
"""

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_QUERY = "InvalidQuery"
    MALFORMED_REQUEST = "MalformedRequest"
    BACKEND_UNAVAILABLE = "BackendUnavailable"
    NOT_CONNECTED = "NotConnected"
    INGESTION_FAILED = "IngestionFailed"


class GatewayError(Exception):
    kind: ErrorKind = ErrorKind.BACKEND_UNAVAILABLE
    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidQueryError(GatewayError):
    kind = ErrorKind.INVALID_QUERY
    status_code = 400
    default_message = "Query not specified"


class MalformedRequestError(GatewayError):
    kind = ErrorKind.MALFORMED_REQUEST
    status_code = 400
    default_message = "Malformed request body"


class BackendUnavailableError(GatewayError):
    kind = ErrorKind.BACKEND_UNAVAILABLE
    status_code = 500
    default_message = "Something went wrong"


class NotConnectedError(BackendUnavailableError):
    kind = ErrorKind.NOT_CONNECTED
    default_message = "Search backend is not connected"


class IngestionFailedError(GatewayError):
    kind = ErrorKind.INGESTION_FAILED
    status_code = 500
    default_message = "Failed to create documents"
