"""Launch metadata validation and encoding.

The metadata JSON is embedded verbatim in the token's on-chain URI, so keys
are inserted in a fixed order and serialised compactly: identical input must
give an identical URI, byte for byte.

Field checks run before any network call (the logo upload included), so an
invalid launch never leaves anything behind on the backend.
"""
from __future__ import annotations

import base64
import json
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict

from moltmoon.errors import ValidationError
from moltmoon.models import LaunchParams, Socials

logger = logging.getLogger(__name__)

EXTERNAL_URL = "https://moltmoon.xyz"
PLATFORM = "Built with MoltMoon SDK"
METADATA_URI_PREFIX = "data:application/json;base64,"

NAME_MIN, NAME_MAX = 2, 64
DESCRIPTION_MIN, DESCRIPTION_MAX = 5, 500
MIN_SEED_AMOUNT = Decimal(20)
_SYMBOL_RE = re.compile(r"^[A-Za-z0-9]{2,12}$")

SOCIAL_KEYS = ("website", "twitter", "telegram", "discord")


def validate_name(name: str) -> str:
    trimmed = name.strip()
    if not NAME_MIN <= len(trimmed) <= NAME_MAX:
        raise ValidationError("name", f"must be {NAME_MIN}-{NAME_MAX} characters")
    return trimmed


def validate_symbol(symbol: str) -> str:
    trimmed = symbol.strip()
    if not _SYMBOL_RE.match(trimmed):
        raise ValidationError("symbol", "must be 2-12 letters or digits")
    return trimmed


def validate_description(description: str) -> str:
    trimmed = description.strip()
    if not DESCRIPTION_MIN <= len(trimmed) <= DESCRIPTION_MAX:
        raise ValidationError("description", f"must be {DESCRIPTION_MIN}-{DESCRIPTION_MAX} characters")
    return trimmed


def validate_seed_amount(seed_amount: str) -> str:
    try:
        value = Decimal(str(seed_amount).strip())
    except InvalidOperation as exc:
        raise ValidationError("seedAmount", "must be a number") from exc
    if not value.is_finite():
        raise ValidationError("seedAmount", "must be a finite number")
    if value < MIN_SEED_AMOUNT:
        raise ValidationError("seedAmount", f"must be at least {MIN_SEED_AMOUNT} USDC")
    return str(seed_amount).strip()


def normalize_url(url: str, *, field: str = "url") -> str:
    """Parse an http(s) URL and return it in canonical form."""

    try:
        parts = urlsplit(url.strip())
    except ValueError as exc:
        raise ValidationError(field, f"invalid URL {url!r}", error_code="invalid_url") from exc
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        raise ValidationError(field, f"invalid URL {url!r}", error_code="invalid_url")
    return urlunsplit(
        (
            parts.scheme.lower(),
            parts.netloc.lower(),
            parts.path or "/",
            parts.query,
            parts.fragment,
        )
    )


def normalize_socials(socials: Socials | None) -> dict[str, str]:
    if socials is None:
        return {}
    normalized: dict[str, str] = {}
    for key in SOCIAL_KEYS:
        value = getattr(socials, key)
        if value and value.strip():
            normalized[key] = normalize_url(value, field=key)
    return normalized


class LaunchFields(BaseModel):
    """Validated, trimmed launch fields."""

    model_config = ConfigDict(frozen=True)

    name: str
    symbol: str
    description: str
    seed_amount: str
    socials: dict[str, str] = {}


def validate_launch_params(params: LaunchParams) -> LaunchFields:
    return LaunchFields(
        name=validate_name(params.name),
        symbol=validate_symbol(params.symbol),
        description=validate_description(params.description),
        seed_amount=validate_seed_amount(params.seed_amount),
        socials=normalize_socials(params.socials),
    )


def build_metadata(fields: LaunchFields, image_url: str | None = None) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "name": fields.name,
        "symbol": fields.symbol,
        "description": fields.description,
        "external_url": EXTERNAL_URL,
        "platform": PLATFORM,
    }
    if image_url:
        metadata["image"] = image_url
    for key in SOCIAL_KEYS:
        if fields.socials.get(key):
            metadata[key] = fields.socials[key]
    return metadata


def encode_metadata_uri(metadata: dict[str, Any]) -> str:
    payload = json.dumps(metadata, separators=(",", ":"), ensure_ascii=False)
    return METADATA_URI_PREFIX + base64.b64encode(payload.encode("utf-8")).decode("ascii")


def decode_metadata_uri(uri: str) -> dict[str, Any]:
    if not uri.startswith(METADATA_URI_PREFIX):
        raise ValueError("Not a base64 JSON data URI")
    return json.loads(base64.b64decode(uri[len(METADATA_URI_PREFIX):]).decode("utf-8"))
