"""Moltmoon launchpad backend wrapper.

Provides async helpers for the read endpoints (token listing, market details,
quotes) and for the write endpoints that hand back unsigned transaction
intents. Nothing here signs or broadcasts.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from moltmoon.errors import NetworkError
from moltmoon.models import MarketDetails, QuoteResponse, Token, TransactionIntent

logger = logging.getLogger(__name__)


class MoltmoonAPI:
    """Minimal async client for the Moltmoon launchpad API."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # Read endpoints
    # ------------------------------------------------------------------

    async def get_tokens(self) -> list[Token]:
        data = await self._request("GET", "/tokens")
        if not isinstance(data, dict):
            raise NetworkError(200, "Unexpected tokens response", None)
        return [Token.model_validate(t) for t in data.get("tokens", [])]

    async def get_market(self, market: str) -> MarketDetails:
        return MarketDetails.model_validate(await self._request("GET", f"/markets/{market}"))

    async def get_quote_buy(self, market: str, usdc_in: str) -> QuoteResponse:
        data = await self._request("GET", f"/markets/{market}/quote/buy", params={"usdcIn": usdc_in})
        return QuoteResponse.model_validate(data)

    async def get_quote_sell(self, market: str, tokens_in: str) -> QuoteResponse:
        data = await self._request("GET", f"/markets/{market}/quote/sell", params={"tokensIn": tokens_in})
        return QuoteResponse.model_validate(data)

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    async def upload_image(self, data_url: str) -> str:
        """Upload a validated logo data URL and return its hosted URL."""

        data = await self._request("POST", "/upload/image", json={"image": data_url})
        url = data.get("url") if isinstance(data, dict) else None
        if not url:
            raise NetworkError(200, "Missing url in image upload response", data if isinstance(data, dict) else None)
        return url

    # ------------------------------------------------------------------
    # Intent endpoints
    # ------------------------------------------------------------------

    async def intent_approve_seed(self, amount: str) -> TransactionIntent:
        return await self._intent("/intent/factory/approve-seed", {"amount": amount})

    async def intent_create_token(self, *, name: str, symbol: str, uri: str, seed_amount: str) -> TransactionIntent:
        return await self._intent(
            "/intent/tokens/create",
            {"name": name, "symbol": symbol, "uri": uri, "seedAmount": seed_amount},
        )

    async def intent_market_approve(self, market: str, amount: str) -> TransactionIntent:
        return await self._intent(f"/intent/markets/{market}/approve", {"amount": amount})

    async def intent_buy(self, market: str, usdc_in: str, slippage_bps: int) -> TransactionIntent:
        return await self._intent(
            f"/intent/markets/{market}/buy",
            {"usdcIn": usdc_in, "slippageBps": slippage_bps},
        )

    async def intent_sell(self, market: str, tokens_in: str, slippage_bps: int) -> TransactionIntent:
        return await self._intent(
            f"/intent/markets/{market}/sell",
            {"tokensIn": tokens_in, "slippageBps": slippage_bps},
        )

    async def intent_token_approve(self, token: str, spender: str, amount: str) -> TransactionIntent:
        return await self._intent(f"/intent/tokens/{token}/approve", {"spender": spender, "amount": amount})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _intent(self, path: str, payload: dict[str, Any]) -> TransactionIntent:
        return TransactionIntent.model_validate(await self._request("POST", path, json=payload))

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        logger.debug("%s %s%s -> %s", method, self._base_url, path, kwargs.get("json") or kwargs.get("params"))
        resp = await self._client.request(method, path, **kwargs)
        is_json = "application/json" in resp.headers.get("content-type", "")

        if not resp.is_success:
            message = resp.reason_phrase
            err_json = None
            if is_json:
                try:
                    err_json = resp.json()
                except ValueError:
                    err_json = None
                if isinstance(err_json, dict) and err_json.get("error"):
                    message = str(err_json["error"])
            raise NetworkError(resp.status_code, message, err_json if isinstance(err_json, dict) else None)

        if is_json:
            return resp.json()
        return resp.text

    async def close(self) -> None:
        await self._client.aclose()
