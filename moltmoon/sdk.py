"""Public entry point tying the backend client, signer and orchestrator together."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from moltmoon.config import Settings, get_settings
from moltmoon.models import LaunchParams, LaunchPreparation, LaunchResult, MarketDetails, QuoteResponse, Token
from moltmoon.services.api import MoltmoonAPI
from moltmoon.services.orchestrator import DEFAULT_SLIPPAGE_BPS, IntentOrchestrator
from moltmoon.services.signer import ExecutionEngine, Signer, Web3Signer

logger = logging.getLogger(__name__)


class MoltmoonSDK:
    """Launch tokens and trade on Moltmoon markets.

    Read methods go straight to the backend. Write methods need a signer,
    either passed in or built from ``settings.private_key``; the one
    exception is :meth:`prepare_launch_token`, which never signs anything.

    One SDK instance owns its signer: do not run overlapping write actions
    on the same instance, they would race for the account nonce.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        api: Optional[MoltmoonAPI] = None,
        signer: Optional[Signer] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.api = api or MoltmoonAPI(base_url=self.settings.base_url, timeout=self.settings.request_timeout)

        if signer is None and self.settings.private_key:
            signer = Web3Signer(
                private_key=self.settings.private_key,
                rpc_url=self.settings.resolved_rpc_url,
                chain_id=self.settings.chain_id,
                timeout=self.settings.request_timeout,
            )
        self.engine = ExecutionEngine(signer)
        self.orchestrator = IntentOrchestrator(self.api, self.engine, image_limits=self.settings.image_limits)

    async def __aenter__(self) -> "MoltmoonSDK":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def address(self) -> Optional[str]:
        signer = self.engine.signer
        return signer.address if signer is not None else None

    # ------------------------------------------------------------------
    # Read methods
    # ------------------------------------------------------------------

    async def get_tokens(self) -> list[Token]:
        return await self.api.get_tokens()

    async def get_market(self, market: str) -> MarketDetails:
        return await self.api.get_market(market)

    async def get_quote_buy(self, market: str, usdc_in: str) -> QuoteResponse:
        return await self.api.get_quote_buy(market, usdc_in)

    async def get_quote_sell(self, market: str, tokens_in: str) -> QuoteResponse:
        return await self.api.get_quote_sell(market, tokens_in)

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    @staticmethod
    def calculate_progress(details: MarketDetails) -> float:
        return details.progress_percent

    @staticmethod
    def calculate_market_cap(details: MarketDetails) -> float:
        # baseReserveReal is raw USDC with 6 decimals
        return float(Decimal(details.base_reserve_real) / Decimal(1_000_000))

    # ------------------------------------------------------------------
    # Write methods
    # ------------------------------------------------------------------

    async def prepare_launch_token(self, params: LaunchParams) -> LaunchPreparation:
        """Validate, upload the logo and fetch both launch intents without broadcasting."""
        return await self.orchestrator.prepare_launch(params)

    async def launch_token(self, params: LaunchParams) -> LaunchResult:
        """Upload logo, approve seed USDC, create token."""
        return await self.orchestrator.launch(params)

    async def buy(self, market: str, usdc_in: str, slippage_bps: int = DEFAULT_SLIPPAGE_BPS) -> str:
        """Approve USDC (with a quote-derived cushion), then buy."""
        return await self.orchestrator.buy(market, usdc_in, slippage_bps)

    async def sell(self, market: str, tokens_in: str, token: str, slippage_bps: int = DEFAULT_SLIPPAGE_BPS) -> str:
        """Approve exactly *tokens_in* to the market, then sell."""
        return await self.orchestrator.sell(market, tokens_in, token, slippage_bps)

    async def close(self) -> None:
        await self.api.close()
