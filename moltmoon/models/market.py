from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class QuoteResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    amount_in: str
    amount_out: str
    fee_paid: str


class Token(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    token: str
    market: str
    name: str
    symbol: str
    uri: str
    total_supply: str
    curve_tokens: str
    creator: str
    block_number: str
    rewards_pool: str | None = None
    seed_amount: str | None = None
    raised: float | None = None
    market_cap: float | None = None


class MarketDetails(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    market: str
    token: str
    usdc: str
    graduated: bool
    curve_tokens_remaining: str
    base_reserve_real: str
    total_base_reserve: str
    virtual_base: str
    liquidity_tokens: str
    sell_fee_bps: int
    creator: str
    holder_rewards_pool: str
    aerodrome_pool: str | None = None
    progress_percent: float
