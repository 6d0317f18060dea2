from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TransactionIntent(BaseModel):
    """Unsigned transaction returned by the backend; ``data`` is never inspected."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    to: str
    data: str
    value: str = "0"
    chain_id: int | None = None
    description: str | None = None


class LaunchPreparation(BaseModel):
    """Everything needed to launch a token, before anything is broadcast."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    metadata_uri: str = Field(..., alias="metadataURI")
    image_url: str | None = None
    approve_intent: TransactionIntent
    create_intent: TransactionIntent


class LaunchResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    hash: str
    approve_hash: str
    metadata_uri: str = Field(..., alias="metadataURI")
    image_url: str | None = None
