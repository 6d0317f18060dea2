"""Exception hierarchy shared by every layer of the SDK.

Each error carries a machine-readable ``error_code`` next to the human
message so callers (and the CLI ``--json`` output) can branch on it.
"""
from __future__ import annotations

from typing import Any, Optional


class MoltmoonError(RuntimeError):
    def __init__(self, message: str, *, error_code: str) -> None:
        super().__init__(message)
        self.error_code = error_code


class ValidationError(MoltmoonError):
    """Raised when a launch field or URL is malformed."""

    def __init__(self, field: str, message: str, *, error_code: str = "invalid_field") -> None:
        super().__init__(f"Invalid {field}: {message}", error_code=error_code)
        self.field = field


class ImageFormatError(MoltmoonError):
    """Raised by the logo pipeline (format, MIME, size, dimensions, shape)."""


class NetworkError(MoltmoonError):
    """Raised when the backend returns a non-2xx status."""

    def __init__(self, status: int, message: str, response_json: Optional[dict[str, Any]] = None) -> None:
        super().__init__(f"API Error [{status}]: {message}", error_code="http_error")
        self.status = status
        self.server_message = message
        self.response_json = response_json or {}


class SignerRequiredError(MoltmoonError):
    def __init__(self, message: str = "Private key required to execute transactions. Initialize SDK with a private key.") -> None:
        super().__init__(message, error_code="signer_required")


class TransactionFailedError(MoltmoonError):
    """Raised when a broadcast transaction is mined but reverted."""

    def __init__(self, tx_hash: str, message: str = "Transaction reverted") -> None:
        super().__init__(f"{message}: {tx_hash}", error_code="tx_reverted")
        self.tx_hash = tx_hash
