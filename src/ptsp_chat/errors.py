"""
PTSP chat error types.
"""

from typing import Any, Optional


class PTSPChatError(Exception):
    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ValidationError(PTSPChatError):
    status_code = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("validation_error", message, details)


class UnreachableError(PTSPChatError):
    """Transport failure or deadline expiry, after the fallback host (if any) was tried."""

    status_code = 503

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("unreachable", message, details)


class BackendError(PTSPChatError):
    """The backend answered with a non-2xx status."""

    def __init__(self, status: int, detail: str = ""):
        super().__init__("backend_error", f"HTTP {status}: {detail}", {"status": status, "detail": detail})
        self.status = status
        self.status_code = status
        self.detail = detail


class InvalidResponseError(PTSPChatError):
    status_code = 502

    def __init__(self, message: str):
        super().__init__("invalid_response", message)


class StorageError(PTSPChatError):
    def __init__(self, message: str):
        super().__init__("storage_error", message)
