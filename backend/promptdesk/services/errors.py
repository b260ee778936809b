class PromptDeskError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PromptDeskError):
    """Missing or empty required input. Raised before any write."""

    status_code = 400


class NotFoundError(PromptDeskError):
    """Resource missing or not owned by the requesting user."""

    status_code = 404


class UpstreamError(PromptDeskError):
    """Completion endpoint unreachable, rate limited, or returned an unexpected shape."""

    status_code = 502


class PayloadTooLargeError(ValidationError):
    status_code = 413


class StorageError(PromptDeskError):
    """Persistence layer unavailable. Rows committed before the failure stay."""

    status_code = 503
