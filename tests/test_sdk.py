#!/usr/bin/env python3

from __future__ import annotations

import unittest

from moltmoon.config import Settings
from moltmoon.models import MarketDetails
from moltmoon.sdk import MoltmoonSDK

from _fixtures import MARKET, SIGNER_ADDRESS, FakeBackend, FakeSigner


def _details(**overrides) -> MarketDetails:
    values = {
        "market": MARKET,
        "token": "0x2",
        "usdc": "0x3",
        "graduated": False,
        "curveTokensRemaining": "1",
        "baseReserveReal": "2500000",
        "totalBaseReserve": "1",
        "virtualBase": "1",
        "liquidityTokens": "1",
        "sellFeeBps": 100,
        "creator": "0x4",
        "holderRewardsPool": "0x5",
        "progressPercent": 42.0,
    }
    values.update(overrides)
    return MarketDetails.model_validate(values)


class SettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = Settings(api_url="https://api.moltmoon.xyz/", private_key=None, network=None)
        self.assertEqual(settings.base_url, "https://api.moltmoon.xyz")
        self.assertEqual(settings.resolved_network, "base")
        self.assertEqual(settings.chain_id, 8453)
        self.assertEqual(settings.resolved_rpc_url, "https://mainnet.base.org")

    def test_image_limits_follow_settings(self) -> None:
        settings = Settings(image_min_dim=256, image_max_bytes=1024)
        self.assertEqual(settings.image_limits.min_dim, 256)
        self.assertEqual(settings.image_limits.max_bytes, 1024)


class MoltmoonSDKTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.backend = FakeBackend()
        self.signer = FakeSigner()
        self.sdk = MoltmoonSDK(
            Settings(api_url="https://api.test", private_key=None),
            api=self.backend.api(),
            signer=self.signer,
        )

    async def asyncTearDown(self) -> None:
        await self.sdk.close()

    async def test_market_utilities(self) -> None:
        details = _details()
        self.assertEqual(MoltmoonSDK.calculate_progress(details), 42.0)
        self.assertEqual(MoltmoonSDK.calculate_market_cap(details), 2.5)

    async def test_address_comes_from_signer(self) -> None:
        self.assertEqual(self.sdk.address, SIGNER_ADDRESS)

    async def test_read_calls_bypass_the_signer(self) -> None:
        self.assertEqual(await self.sdk.get_tokens(), [])
        self.assertEqual(self.signer.sent, [])

    async def test_buy_and_sell_go_through_the_orchestrator(self) -> None:
        await self.sdk.buy(MARKET, "10")
        await self.sdk.sell(MARKET, "3", "0x2222222222222222222222222222222222222222")
        self.assertEqual([i.description for i in self.signer.sent], ["approve", "buy", "approve", "sell"])


if __name__ == "__main__":
    unittest.main()
