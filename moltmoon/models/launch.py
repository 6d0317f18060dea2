from __future__ import annotations

from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict


class Socials(BaseModel):
    website: str | None = None
    twitter: str | None = None
    telegram: str | None = None
    discord: str | None = None


class LaunchParams(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    symbol: str
    description: str
    seed_amount: str  # USDC, human units
    image: Union[bytes, str, Path, None] = None  # raw bytes, data URL or local path
    socials: Socials | None = None
