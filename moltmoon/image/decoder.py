"""Pixel dimension decoding straight from PNG / JPEG bytes.

No imaging library is involved: the PNG header is read at fixed offsets and
JPEG segments are walked marker by marker until the first frame header.
"""
from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from moltmoon.errors import ImageFormatError
from moltmoon.image.formats import ImageFormat

logger = logging.getLogger(__name__)

# IHDR is assumed to be the first chunk: 8 byte signature + 4 byte length +
# 4 byte type puts width at 16 and height at 20. Chunks are not walked.
_PNG_WIDTH_OFFSET = 16
_PNG_HEIGHT_OFFSET = 20
_PNG_MIN_LENGTH = 24

# SOF0..SOF15 minus DHT (C4), JPG (C8) and DAC (CC), which carry no frame size.
_JPEG_SOF_MARKERS = frozenset(range(0xC0, 0xD0)) - {0xC4, 0xC8, 0xCC}
# Markers without a length field.
_JPEG_STANDALONE_MARKERS = frozenset({0x01, *range(0xD0, 0xDA)})


class Dimensions(NamedTuple):
    width: int
    height: int


class ByteCursor:
    """Bounds-checked big-endian reads over an immutable buffer.

    Reads past the end return ``None`` instead of raising, so decoders can
    decide how a truncated buffer should fail.
    """

    def __init__(self, data: bytes, position: int = 0) -> None:
        self._data = data
        self.position = position

    def __len__(self) -> int:
        return len(self._data)

    def at_end(self) -> bool:
        return self.position >= len(self._data)

    def byte_at(self, offset: int) -> Optional[int]:
        if 0 <= offset < len(self._data):
            return self._data[offset]
        return None

    def u16_at(self, offset: int) -> Optional[int]:
        return self._uint_at(offset, 2)

    def u32_at(self, offset: int) -> Optional[int]:
        return self._uint_at(offset, 4)

    def _uint_at(self, offset: int, size: int) -> Optional[int]:
        if offset < 0 or offset + size > len(self._data):
            return None
        return int.from_bytes(self._data[offset : offset + size], "big")


def decode_png(data: bytes) -> Dimensions:
    cursor = ByteCursor(data)
    if len(cursor) < _PNG_MIN_LENGTH:
        raise ImageFormatError("Invalid PNG: header is truncated", error_code="invalid_png")
    width = cursor.u32_at(_PNG_WIDTH_OFFSET)
    height = cursor.u32_at(_PNG_HEIGHT_OFFSET)
    if width is None or height is None:
        raise ImageFormatError("Invalid PNG: header is truncated", error_code="invalid_png")
    return Dimensions(width, height)


def decode_jpeg(data: bytes) -> Dimensions:
    cursor = ByteCursor(data, position=2)
    while not cursor.at_end():
        pos = cursor.position
        if cursor.byte_at(pos) != 0xFF:
            cursor.position += 1
            continue
        marker = cursor.byte_at(pos + 1)
        if marker is None:
            break
        if marker in (0x00, 0xFF):
            # stuffed byte or fill byte, keep scanning
            cursor.position += 1
            continue
        if marker in _JPEG_STANDALONE_MARKERS:
            cursor.position += 2
            continue

        segment_length = cursor.u16_at(pos + 2)
        if segment_length is None:
            break
        if marker in _JPEG_SOF_MARKERS:
            height = cursor.u16_at(pos + 5)
            width = cursor.u16_at(pos + 7)
            if height is None or width is None:
                break
            logger.debug("JPEG frame marker 0x%02X at offset %d", marker, pos)
            return Dimensions(width, height)
        cursor.position = pos + 2 + segment_length

    raise ImageFormatError("Cannot parse JPEG dimensions: no frame header found", error_code="cannot_parse_dimensions")


_DECODERS = {
    ImageFormat.PNG: decode_png,
    ImageFormat.JPEG: decode_jpeg,
}


def decode_dimensions(data: bytes, image_format: ImageFormat) -> Dimensions:
    decoder = _DECODERS.get(image_format)
    if decoder is None:
        raise ImageFormatError(f"Unsupported MIME type: {image_format}", error_code="unsupported_mime_type")
    return decoder(data)
