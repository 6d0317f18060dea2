from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from moltmoon.image.validator import ImageLimits

# Load environment variables from a .env file if present (local dev only)
load_dotenv()

Network = Literal["base", "baseSepolia"]

DEFAULT_API_URL = "https://api.moltmoon.xyz"

CHAIN_IDS: dict[str, int] = {
    "base": 8453,
    "baseSepolia": 84532,
}

DEFAULT_RPC_URLS: dict[str, str] = {
    "base": "https://mainnet.base.org",
    "baseSepolia": "https://sepolia.base.org",
}


class Settings(BaseSettings):
    """SDK configuration loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True
    )

    # Backend
    api_url: str = Field(DEFAULT_API_URL, validation_alias="MOLTMOON_API_URL")
    request_timeout: float = Field(30.0, validation_alias="MOLTMOON_REQUEST_TIMEOUT")

    # Chain / signer
    network: Optional[Network] = Field(
        default=None,
        validation_alias="MOLTMOON_NETWORK",
        description="base | baseSepolia. Derived from api_url when unset.",
    )
    private_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MOLTMOON_PRIVATE_KEY", "PRIVATE_KEY"),
    )
    rpc_url: Optional[str] = Field(default=None, validation_alias="MOLTMOON_RPC_URL")

    # Logo validation
    image_max_bytes: int = Field(500 * 1024, validation_alias="MOLTMOON_IMAGE_MAX_BYTES")
    image_min_dim: int = Field(512, validation_alias="MOLTMOON_IMAGE_MIN_DIM")
    image_max_dim: int = Field(2048, validation_alias="MOLTMOON_IMAGE_MAX_DIM")
    image_square_tolerance: int = Field(2, validation_alias="MOLTMOON_IMAGE_SQUARE_TOLERANCE")

    log_level: str = Field("WARNING", validation_alias="MOLTMOON_LOG_LEVEL")

    @property
    def base_url(self) -> str:
        return self.api_url.rstrip("/")

    @property
    def resolved_network(self) -> Network:
        if self.network:
            return self.network
        return "baseSepolia" if "sepolia" in self.api_url.lower() else "base"

    @property
    def chain_id(self) -> int:
        return CHAIN_IDS[self.resolved_network]

    @property
    def resolved_rpc_url(self) -> str:
        return self.rpc_url or DEFAULT_RPC_URLS[self.resolved_network]

    @property
    def image_limits(self) -> ImageLimits:
        return ImageLimits(
            max_bytes=self.image_max_bytes,
            min_dim=self.image_min_dim,
            max_dim=self.image_max_dim,
            square_tolerance=self.image_square_tolerance,
        )


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
