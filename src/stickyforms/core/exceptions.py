"""Custom exceptions for stickyforms."""

from typing import Optional


class StickyFormsError(Exception):
    """Base exception for all stickyforms errors."""

    pass


class MetadataSchemaError(StickyFormsError):
    """Raised when a parameter descriptor does not match the metadata schema.

    Attributes:
        message: The validation error message
        path: Dotted path to the invalid field (e.g., "parameters[2].options")
        suggestion: Optional hint for fixing the descriptor
    """

    def __init__(self, message: str, path: str = "", suggestion: str = ""):
        self.message = message
        self.path = path
        self.suggestion = suggestion

        full_message = "Metadata schema error"
        if path:
            full_message += f" at {path}"
        full_message += f": {message}"
        if suggestion:
            full_message += f"\n{suggestion}"

        super().__init__(full_message)


class N8nClientError(StickyFormsError):
    """Raised when a request to n8n (or the execution backend) fails."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        self.url = url
        self.status_code = status_code
        self.original_error = original_error

        if status_code is not None:
            message = f"{message} (HTTP {status_code})"
        if url:
            message = f"{message}\nURL: {url}"
        if original_error:
            message = f"{message}\nOriginal error: {original_error!s}"

        super().__init__(message)


class SettingsError(StickyFormsError):
    """Raised when configuration values are invalid."""

    pass
