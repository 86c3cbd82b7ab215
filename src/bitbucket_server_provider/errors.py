"""Exception classes raised by the repository resource and its HTTP client."""


class ProviderError(Exception):
    """Base exception for all provider errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class ConfigurationError(ProviderError):
    """Raised when provider configuration is invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class FormatError(ProviderError):
    """Raised when a stored identity is not of the form ``project_key/slug``."""

    def __init__(self, message: str = "Incorrect ID format, should match `project_key/slug`") -> None:
        super().__init__("FORMAT_ERROR", message)


class SerializationError(ProviderError):
    """Raised when a payload cannot be encoded or a response cannot be decoded."""

    def __init__(self, message: str) -> None:
        super().__init__("SERIALIZATION_ERROR", message)


class RequestError(ProviderError):
    """Raised on transport failures and non-success HTTP responses."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__("REQUEST_ERROR", message)
        self.status_code = status_code


class BodyReadError(ProviderError):
    """Raised when a response body cannot be read."""

    def __init__(self, message: str) -> None:
        super().__init__("BODY_READ_ERROR", message)


class NotFoundError(ProviderError):
    """Raised when an imported repository does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__("NOT_FOUND", message)
