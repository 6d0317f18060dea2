from .decoder import ByteCursor, Dimensions, decode_dimensions
from .formats import ImageFormat, sniff_format
from .normalizer import ImageAsset, load_image_asset, normalize_image_input
from .validator import DEFAULT_LIMITS, ImageLimits, enforce_byte_cap, validate_shape

__all__ = [
    "ByteCursor",
    "Dimensions",
    "decode_dimensions",
    "ImageFormat",
    "sniff_format",
    "ImageAsset",
    "load_image_asset",
    "normalize_image_input",
    "DEFAULT_LIMITS",
    "ImageLimits",
    "enforce_byte_cap",
    "validate_shape",
]
