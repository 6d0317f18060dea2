from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from moltmoon.errors import ImageFormatError


class ImageLimits(BaseModel):
    """Logo constraints enforced before upload."""

    model_config = ConfigDict(frozen=True)

    max_bytes: int = Field(500 * 1024, ge=1)
    min_dim: int = Field(512, ge=1)
    max_dim: int = Field(2048, ge=1)
    square_tolerance: int = Field(2, ge=0)


DEFAULT_LIMITS = ImageLimits()


def enforce_byte_cap(data: bytes, limits: ImageLimits = DEFAULT_LIMITS) -> None:
    if len(data) > limits.max_bytes:
        raise ImageFormatError(
            f"Image is {len(data)} bytes; maximum is {limits.max_bytes} bytes",
            error_code="file_too_large",
        )


def validate_shape(width: int, height: int, limits: ImageLimits = DEFAULT_LIMITS) -> None:
    """Check dimensions in the order small, large, square; the first failure wins."""

    if width < limits.min_dim or height < limits.min_dim:
        raise ImageFormatError(
            f"Image is {width}x{height}; minimum is {limits.min_dim}x{limits.min_dim}",
            error_code="too_small",
        )
    if width > limits.max_dim or height > limits.max_dim:
        raise ImageFormatError(
            f"Image is {width}x{height}; maximum is {limits.max_dim}x{limits.max_dim}",
            error_code="too_large",
        )
    if abs(width - height) > limits.square_tolerance:
        raise ImageFormatError(
            f"Image must be square (within {limits.square_tolerance}px); got {width}x{height}",
            error_code="not_square",
        )
