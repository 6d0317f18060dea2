from .errors import (
    ImageFormatError,
    MoltmoonError,
    NetworkError,
    SignerRequiredError,
    TransactionFailedError,
    ValidationError,
)
from .models import LaunchParams, LaunchPreparation, LaunchResult, Socials, TransactionIntent
from .sdk import MoltmoonSDK

__version__ = "0.2.0"

__all__ = [
    "ImageFormatError",
    "MoltmoonError",
    "NetworkError",
    "SignerRequiredError",
    "TransactionFailedError",
    "ValidationError",
    "LaunchParams",
    "LaunchPreparation",
    "LaunchResult",
    "Socials",
    "TransactionIntent",
    "MoltmoonSDK",
]
