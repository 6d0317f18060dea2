"""Logo input normalisation.

Callers may hand over a logo as

* a ``data:image/(png|jpeg|jpg);base64,...`` URL,
* raw bytes, or
* a local file path.

Whatever the input, the bytes are size-capped, sniffed, decoded and
shape-checked, then re-emitted as a canonical data URL whose MIME type comes
from the sniffed bytes rather than from anything the caller declared.
"""
from __future__ import annotations

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import Callable, Union

from pydantic import BaseModel, ConfigDict

from moltmoon.errors import ImageFormatError
from moltmoon.image.decoder import decode_dimensions
from moltmoon.image.formats import ImageFormat, sniff_format
from moltmoon.image.validator import DEFAULT_LIMITS, ImageLimits, enforce_byte_cap, validate_shape

logger = logging.getLogger(__name__)

ImageInput = Union[bytes, bytearray, memoryview, str, Path]
FileReader = Callable[[Path], bytes]

_DATA_URL_RE = re.compile(r"^data:(image/(?:png|jpeg|jpg));base64,([A-Za-z0-9+/]+={0,2})$", re.IGNORECASE)


class ImageAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes
    format: ImageFormat
    width: int
    height: int

    @property
    def mime_type(self) -> str:
        return self.format.mime_type

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"


def _read_path(path: Path) -> bytes:
    return path.read_bytes()


def _decode_data_url(data_url: str) -> tuple[str, bytes]:
    match = _DATA_URL_RE.match(data_url.strip())
    if match is None:
        raise ImageFormatError(
            "Invalid image data URL; expected data:image/(png|jpeg);base64,...",
            error_code="invalid_data_url",
        )
    declared_mime, payload = match.groups()
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageFormatError("Invalid base64 payload in image data URL", error_code="invalid_data_url") from exc
    return declared_mime.lower(), raw


def _build_asset(raw: bytes, limits: ImageLimits, declared_mime: str | None = None) -> ImageAsset:
    enforce_byte_cap(raw, limits)
    image_format = sniff_format(raw)
    if declared_mime is not None and not image_format.matches_mime(declared_mime):
        raise ImageFormatError(
            f"Declared MIME {declared_mime} does not match detected {image_format.mime_type}",
            error_code="mime_mismatch",
        )
    width, height = decode_dimensions(raw, image_format)
    validate_shape(width, height, limits)
    logger.debug("Validated %s logo %dx%d (%d bytes)", image_format.value, width, height, len(raw))
    return ImageAsset(data=raw, format=image_format, width=width, height=height)


def load_image_asset(
    source: ImageInput,
    *,
    limits: ImageLimits = DEFAULT_LIMITS,
    read_file: FileReader = _read_path,
) -> ImageAsset:
    """Turn any supported logo input into a validated :class:`ImageAsset`."""

    if isinstance(source, (bytes, bytearray, memoryview)):
        return _build_asset(bytes(source), limits)

    if isinstance(source, str) and source[:5].lower() == "data:":
        declared_mime, raw = _decode_data_url(source)
        return _build_asset(raw, limits, declared_mime)

    path = Path(source)
    try:
        raw = read_file(path)
    except FileNotFoundError as exc:
        raise ImageFormatError(f"Image file not found: {path}", error_code="file_not_found") from exc
    return _build_asset(raw, limits)


def normalize_image_input(
    source: ImageInput,
    *,
    limits: ImageLimits = DEFAULT_LIMITS,
    read_file: FileReader = _read_path,
) -> str:
    """Validate *source* and return it as a canonical base64 data URL."""

    return load_image_asset(source, limits=limits, read_file=read_file).to_data_url()
