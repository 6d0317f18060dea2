#!/usr/bin/env python3

from __future__ import annotations

import unittest

from moltmoon.errors import ImageFormatError, NetworkError, SignerRequiredError, TransactionFailedError, ValidationError
from moltmoon.models import LaunchParams, QuoteResponse
from moltmoon.services.metadata import decode_metadata_uri
from moltmoon.services.orchestrator import ActionState, ActionTrace, IntentOrchestrator, InvalidTransitionError, compute_buy_allowance
from moltmoon.services.signer import ExecutionEngine

from _fixtures import MARKET, TOKEN, FakeBackend, FakeSigner, pillow_image


def _launch_params(**overrides) -> LaunchParams:
    values = {"name": "SDK Agent", "symbol": "SDK", "description": "Launched via Moltmoon SDK", "seed_amount": "20"}
    values.update(overrides)
    return LaunchParams(**values)


class BuyAllowanceTests(unittest.TestCase):
    def test_quote_adds_fee_and_ten_percent_cushion(self) -> None:
        quote = QuoteResponse(amount_in="10", amount_out="1000", fee_paid="1.5")
        self.assertEqual(compute_buy_allowance("10", quote), "12.5")

    def test_cushion_never_drops_below_one_unit(self) -> None:
        quote = QuoteResponse(amount_in="0.000001", amount_out="1", fee_paid="0")
        self.assertEqual(compute_buy_allowance("0.000001", quote), "0.000002")

    def test_without_quote_approves_nominal_amount(self) -> None:
        self.assertEqual(compute_buy_allowance("10", None), "10")

    def test_result_rounds_up_to_usdc_precision(self) -> None:
        quote = QuoteResponse(amount_in="1", amount_out="1", fee_paid="0.0000001")
        self.assertEqual(compute_buy_allowance("1", quote), "1.100001")

    def test_negative_fee_never_lowers_allowance_below_nominal(self) -> None:
        quote = QuoteResponse(amount_in="10", amount_out="1000", fee_paid="-5")
        self.assertEqual(compute_buy_allowance("10", quote), "10")

    def test_non_finite_fee_approves_nominal_amount(self) -> None:
        quote = QuoteResponse(amount_in="10", amount_out="1000", fee_paid="Infinity")
        self.assertEqual(compute_buy_allowance("10", quote), "10")


class ActionTraceTests(unittest.TestCase):
    def test_happy_path_transitions(self) -> None:
        trace = ActionTrace("buy")
        for state in (
            ActionState.INTENTS_PREPARED,
            ActionState.APPROVAL_SUBMITTED,
            ActionState.APPROVAL_CONFIRMED,
            ActionState.ACTION_SUBMITTED,
            ActionState.ACTION_CONFIRMED,
        ):
            trace.advance(state)
        self.assertTrue(trace.state.is_terminal)

    def test_skipping_the_approval_is_rejected(self) -> None:
        trace = ActionTrace("sell")
        trace.advance(ActionState.INTENTS_PREPARED)
        with self.assertRaises(InvalidTransitionError):
            trace.advance(ActionState.ACTION_SUBMITTED)

    def test_failed_is_terminal(self) -> None:
        trace = ActionTrace("launch")
        trace.fail("boom")
        trace.fail("again")
        self.assertEqual(trace.history, [ActionState.DRAFT, ActionState.FAILED])
        self.assertEqual(trace.failure_reason, "boom")


class OrchestratorTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.events: list[str] = []
        self.backend = FakeBackend()
        self.backend.events = self.events
        self.signer = FakeSigner(events=self.events)
        self.api = self.backend.api()
        self.orchestrator = IntentOrchestrator(self.api, ExecutionEngine(self.signer))

    async def asyncTearDown(self) -> None:
        await self.api.close()


class BuyTests(OrchestratorTestCase):
    async def test_buy_approves_cushioned_amount_then_buys(self) -> None:
        tx_hash = await self.orchestrator.buy(MARKET, "10", 300)

        self.assertEqual(self.backend.body_for(f"/intent/markets/{MARKET}/approve"), {"amount": "12.5"})
        self.assertEqual(self.backend.body_for(f"/intent/markets/{MARKET}/buy"), {"usdcIn": "10", "slippageBps": 300})
        self.assertEqual(
            self.events,
            [
                f"http /markets/{MARKET}/quote/buy",
                f"http /intent/markets/{MARKET}/approve",
                "send approve",
                "confirm approve",
                f"http /intent/markets/{MARKET}/buy",
                "send buy",
                "confirm buy",
            ],
        )
        self.assertEqual(tx_hash, self.signer.confirmed[-1])
        self.assertEqual(self.orchestrator.last_trace.state, ActionState.ACTION_CONFIRMED)

    async def test_quote_failure_falls_back_to_nominal_allowance(self) -> None:
        self.backend.quote_status = 503

        with self.assertLogs("moltmoon.services.orchestrator", level="WARNING"):
            await self.orchestrator.buy(MARKET, "10")

        self.assertEqual(self.backend.body_for(f"/intent/markets/{MARKET}/approve"), {"amount": "10"})
        self.assertEqual(self.backend.body_for(f"/intent/markets/{MARKET}/buy"), {"usdcIn": "10", "slippageBps": 500})

    async def test_unusable_fee_in_quote_falls_back_to_nominal_allowance(self) -> None:
        for fee in ("-5", "Infinity", "NaN"):
            with self.subTest(fee=fee):
                self.backend.calls.clear()
                self.backend.quote = {"amountIn": "10", "amountOut": "1000", "feePaid": fee}

                with self.assertLogs("moltmoon.services.orchestrator", level="WARNING"):
                    await self.orchestrator.buy(MARKET, "10")

                self.assertEqual(self.backend.body_for(f"/intent/markets/{MARKET}/approve"), {"amount": "10"})

    async def test_approve_amount_is_never_below_nominal(self) -> None:
        self.backend.quote = {"amountIn": "50", "amountOut": "1", "feePaid": "0"}
        await self.orchestrator.buy(MARKET, "50")
        self.assertEqual(self.backend.body_for(f"/intent/markets/{MARKET}/approve"), {"amount": "55"})

    async def test_invalid_amount_makes_no_requests(self) -> None:
        with self.assertRaises(ValidationError):
            await self.orchestrator.buy(MARKET, "zero")
        with self.assertRaises(ValidationError):
            await self.orchestrator.buy(MARKET, "10", slippage_bps=20_000)
        self.assertEqual(self.backend.calls, [])

    async def test_failed_buy_leaves_confirmed_approval_visible(self) -> None:
        self.backend.failing_paths[f"/intent/markets/{MARKET}/buy"] = (400, {"error": "market graduated"})

        with self.assertRaises(NetworkError) as raised:
            await self.orchestrator.buy(MARKET, "10")

        self.assertEqual(raised.exception.server_message, "market graduated")
        trace = self.orchestrator.last_trace
        self.assertEqual(trace.history[-2:], [ActionState.APPROVAL_CONFIRMED, ActionState.FAILED])
        self.assertEqual(len(trace.tx_hashes), 1)
        self.assertEqual(len(self.signer.confirmed), 1)


class SellTests(OrchestratorTestCase):
    async def test_sell_approves_exact_amount_to_market(self) -> None:
        await self.orchestrator.sell(MARKET, "123.45", TOKEN, 100)

        self.assertEqual(
            self.backend.body_for(f"/intent/tokens/{TOKEN}/approve"),
            {"spender": MARKET, "amount": "123.45"},
        )
        self.assertEqual(
            self.backend.body_for(f"/intent/markets/{MARKET}/sell"),
            {"tokensIn": "123.45", "slippageBps": 100},
        )
        self.assertEqual([i.description for i in self.signer.sent], ["approve", "sell"])
        self.assertNotIn(f"/markets/{MARKET}/quote/sell", self.backend.paths())

    async def test_reverted_approval_stops_the_sell(self) -> None:
        signer = FakeSigner(revert_on=lambda intent: intent.description == "approve")
        orchestrator = IntentOrchestrator(self.api, ExecutionEngine(signer))

        with self.assertRaises(TransactionFailedError):
            await orchestrator.sell(MARKET, "5", TOKEN)

        self.assertNotIn(f"/intent/markets/{MARKET}/sell", self.backend.paths())
        self.assertEqual(
            orchestrator.last_trace.history[-2:],
            [ActionState.APPROVAL_SUBMITTED, ActionState.FAILED],
        )


class LaunchTests(OrchestratorTestCase):
    async def test_dry_run_prepares_both_intents_without_broadcasting(self) -> None:
        first = await self.orchestrator.prepare_launch(_launch_params())
        second = await self.orchestrator.prepare_launch(_launch_params())

        self.assertEqual(first, second)
        self.assertEqual(self.signer.sent, [])
        self.assertEqual(self.orchestrator.last_trace.state, ActionState.DRY_RUN_COMPLETE)
        self.assertEqual(self.backend.body_for("/intent/factory/approve-seed"), {"amount": "20"})
        create_body = self.backend.body_for("/intent/tokens/create")
        self.assertEqual(create_body["uri"], first.metadata_uri)
        self.assertEqual(create_body["seedAmount"], "20")
        self.assertEqual(decode_metadata_uri(first.metadata_uri)["name"], "SDK Agent")

    async def test_dry_run_works_without_a_signer(self) -> None:
        orchestrator = IntentOrchestrator(self.api, ExecutionEngine(None))
        preparation = await orchestrator.prepare_launch(_launch_params())
        self.assertEqual(preparation.approve_intent.description, "approve-seed")

    async def test_image_is_uploaded_and_referenced_by_url(self) -> None:
        preparation = await self.orchestrator.prepare_launch(_launch_params(image=pillow_image("PNG")))

        self.assertEqual(self.backend.paths()[0], "/upload/image")
        self.assertTrue(self.backend.body_for("/upload/image")["image"].startswith("data:image/png;base64,"))
        self.assertEqual(preparation.image_url, "https://cdn.moltmoon.xyz/logos/abc.png")
        self.assertEqual(decode_metadata_uri(preparation.metadata_uri)["image"], preparation.image_url)

    async def test_launch_executes_approve_then_create(self) -> None:
        result = await self.orchestrator.launch(_launch_params())

        self.assertEqual([i.description for i in self.signer.sent], ["approve-seed", "create"])
        self.assertEqual(result.approve_hash, self.signer.confirmed[0])
        self.assertEqual(result.hash, self.signer.confirmed[1])
        self.assertEqual(self.orchestrator.last_trace.state, ActionState.ACTION_CONFIRMED)

    async def test_invalid_fields_make_no_requests(self) -> None:
        with self.assertRaises(ValidationError):
            await self.orchestrator.prepare_launch(_launch_params(symbol="$$", image=pillow_image("PNG")))
        self.assertEqual(self.backend.calls, [])
        self.assertEqual(self.orchestrator.last_trace.state, ActionState.FAILED)

    async def test_invalid_image_makes_no_requests(self) -> None:
        with self.assertRaises(ImageFormatError):
            await self.orchestrator.prepare_launch(_launch_params(image=pillow_image("PNG", 256, 256)))
        self.assertEqual(self.backend.calls, [])

    async def test_launch_without_signer_makes_no_requests(self) -> None:
        orchestrator = IntentOrchestrator(self.api, ExecutionEngine(None))
        with self.assertRaises(SignerRequiredError):
            await orchestrator.launch(_launch_params())
        self.assertEqual(self.backend.calls, [])


if __name__ == "__main__":
    unittest.main()
