"""
Error taxonomy shared by services and the HTTP layer.
"""


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ApiError(Exception):
    """Error carrying an HTTP status code and optional payload."""

    status_code = 500
    code = ErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        data: dict | None = None,
        code: str | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.data = data or {}
        self.headers = headers


class ValidationError(ApiError):
    status_code = 400
    code = ErrorCodes.INVALID_REQUEST


class NotFoundError(ApiError):
    status_code = 404
    code = ErrorCodes.NOT_FOUND


class ProviderError(ApiError):
    """An upstream provider failed; status mirrors the provider when known."""

    code = ErrorCodes.PROVIDER_ERROR


class ProviderUnavailableError(ProviderError):
    """The provider could not be reached at all."""

    status_code = 503
    code = ErrorCodes.PROVIDER_UNAVAILABLE
