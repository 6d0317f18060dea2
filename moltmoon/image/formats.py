"""Magic-byte sniffing for the two logo formats the launchpad accepts."""
from __future__ import annotations

from enum import Enum

from moltmoon.errors import ImageFormatError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SOI_PREFIX = b"\xff\xd8\xff"

# MIME names a caller may declare in a data URL, mapped to the canonical one.
_MIME_ALIASES = {
    "image/png": "image/png",
    "image/jpeg": "image/jpeg",
    "image/jpg": "image/jpeg",
}


class ImageFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    def matches_mime(self, declared: str) -> bool:
        """True if *declared* names this format (``jpg`` and ``jpeg`` are aliases)."""
        return _MIME_ALIASES.get(declared.lower()) == self.mime_type


def sniff_format(data: bytes) -> ImageFormat:
    if data.startswith(PNG_SIGNATURE):
        return ImageFormat.PNG
    if data.startswith(JPEG_SOI_PREFIX):
        return ImageFormat.JPEG
    raise ImageFormatError("Unsupported image format; expected PNG or JPEG", error_code="unsupported_format")
