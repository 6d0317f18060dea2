"""Write-action orchestration: launch, buy and sell.

Every write action is an approve-then-act pair. The backend hands out
unsigned intents, the :class:`ExecutionEngine` signs and confirms them, and
the act intent is only requested once the approval has confirmed. There is
no compensating transaction: a confirmed approval stays on chain even if the
act that follows it fails.

Progress is recorded on an :class:`ActionTrace` so a failure can always be
placed in one of a small number of states.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from decimal import ROUND_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Iterator, Optional

import httpx
import pydantic

from moltmoon.errors import MoltmoonError, ValidationError
from moltmoon.image import DEFAULT_LIMITS, ImageLimits, normalize_image_input
from moltmoon.models import LaunchParams, LaunchPreparation, LaunchResult, QuoteResponse, TransactionIntent
from moltmoon.services.api import MoltmoonAPI
from moltmoon.services.metadata import build_metadata, encode_metadata_uri, validate_launch_params
from moltmoon.services.signer import ExecutionEngine

logger = logging.getLogger(__name__)

DEFAULT_SLIPPAGE_BPS = 500
MAX_SLIPPAGE_BPS = 10_000

# USDC has 6 decimals; one smallest unit is the floor for the buy cushion.
USDC_DECIMALS = 6
USDC_UNIT = Decimal(1).scaleb(-USDC_DECIMALS)
CUSHION_RATE = Decimal("0.1")


class ActionState(str, Enum):
    DRAFT = "Draft"
    METADATA_BUILT = "MetadataBuilt"
    INTENTS_PREPARED = "IntentsPrepared"
    DRY_RUN_COMPLETE = "DryRunComplete"
    APPROVAL_SUBMITTED = "ApprovalSubmitted"
    APPROVAL_CONFIRMED = "ApprovalConfirmed"
    ACTION_SUBMITTED = "ActionSubmitted"
    ACTION_CONFIRMED = "ActionConfirmed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({ActionState.DRY_RUN_COMPLETE, ActionState.ACTION_CONFIRMED, ActionState.FAILED})

_TRANSITIONS: dict[ActionState, frozenset[ActionState]] = {
    ActionState.DRAFT: frozenset({ActionState.METADATA_BUILT, ActionState.INTENTS_PREPARED}),
    ActionState.METADATA_BUILT: frozenset({ActionState.INTENTS_PREPARED}),
    ActionState.INTENTS_PREPARED: frozenset({ActionState.DRY_RUN_COMPLETE, ActionState.APPROVAL_SUBMITTED}),
    ActionState.APPROVAL_SUBMITTED: frozenset({ActionState.APPROVAL_CONFIRMED}),
    ActionState.APPROVAL_CONFIRMED: frozenset({ActionState.ACTION_SUBMITTED}),
    ActionState.ACTION_SUBMITTED: frozenset({ActionState.ACTION_CONFIRMED}),
}


class InvalidTransitionError(RuntimeError):
    pass


class ActionTrace:
    """State history of a single launch, buy or sell."""

    def __init__(self, action: str) -> None:
        self.action = action
        self.history: list[ActionState] = [ActionState.DRAFT]
        self.tx_hashes: list[str] = []
        self.failure_reason: Optional[str] = None

    @property
    def state(self) -> ActionState:
        return self.history[-1]

    def advance(self, new_state: ActionState) -> None:
        if new_state not in _TRANSITIONS.get(self.state, frozenset()):
            raise InvalidTransitionError(f"{self.action}: cannot move from {self.state.value} to {new_state.value}")
        logger.debug("%s: %s -> %s", self.action, self.state.value, new_state.value)
        self.history.append(new_state)

    def fail(self, reason: str) -> None:
        if self.state.is_terminal:
            return
        self.failure_reason = reason
        self.history.append(ActionState.FAILED)

    @contextmanager
    def guard(self) -> Iterator["ActionTrace"]:
        """Record any exception as ``Failed`` and let it propagate."""
        try:
            yield self
        except Exception as exc:
            self.fail(str(exc))
            raise


def _parse_amount(value: str, field: str) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValidationError(field, "must be a number") from exc
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(field, "must be a positive number")
    return amount


def _check_slippage(slippage_bps: int) -> int:
    if not 0 <= slippage_bps <= MAX_SLIPPAGE_BPS:
        raise ValidationError("slippageBps", f"must be between 0 and {MAX_SLIPPAGE_BPS}")
    return slippage_bps


def format_usdc(amount: Decimal) -> str:
    quantized = amount.quantize(USDC_UNIT, rounding=ROUND_UP)
    return format(quantized.normalize(), "f")


def compute_buy_allowance(usdc_in: str, quote: Optional[QuoteResponse]) -> str:
    """Approve amount for a buy of *usdc_in* USDC.

    With a quote: ``usdc_in + fee_paid + max(usdc_in * 10%, 1 unit)``.
    Without one: exactly ``usdc_in``.
    """
    nominal = _parse_amount(usdc_in, "usdcIn")
    if quote is None:
        return format_usdc(nominal)
    fee = Decimal(quote.fee_paid)
    if not fee.is_finite() or fee < 0:
        return format_usdc(nominal)
    cushion = max(nominal * CUSHION_RATE, USDC_UNIT)
    return format_usdc(max(nominal + fee + cushion, nominal))


class IntentOrchestrator:
    """Fetches intents for each write action and drives them through the engine."""

    def __init__(
        self,
        api: MoltmoonAPI,
        engine: ExecutionEngine,
        *,
        image_limits: ImageLimits = DEFAULT_LIMITS,
    ) -> None:
        self._api = api
        self._engine = engine
        self._image_limits = image_limits
        self.last_trace: Optional[ActionTrace] = None

    def _new_trace(self, action: str) -> ActionTrace:
        self.last_trace = ActionTrace(action)
        return self.last_trace

    # ------------------------------------------------------------------
    # Launch
    # ------------------------------------------------------------------

    async def _prepare_launch(self, params: LaunchParams, trace: ActionTrace) -> LaunchPreparation:
        # Field checks first: nothing may reach the backend for invalid input.
        fields = validate_launch_params(params)

        image_url = None
        if params.image is not None:
            data_url = normalize_image_input(params.image, limits=self._image_limits)
            image_url = await self._api.upload_image(data_url)
            logger.info("Uploaded logo: %s", image_url)

        metadata_uri = encode_metadata_uri(build_metadata(fields, image_url))
        trace.advance(ActionState.METADATA_BUILT)

        approve_intent = await self._api.intent_approve_seed(fields.seed_amount)
        create_intent = await self._api.intent_create_token(
            name=fields.name,
            symbol=fields.symbol,
            uri=metadata_uri,
            seed_amount=fields.seed_amount,
        )
        trace.advance(ActionState.INTENTS_PREPARED)

        return LaunchPreparation(
            metadata_uri=metadata_uri,
            image_url=image_url,
            approve_intent=approve_intent,
            create_intent=create_intent,
        )

    async def prepare_launch(self, params: LaunchParams) -> LaunchPreparation:
        """Dry run: build metadata and both intents without broadcasting."""

        trace = self._new_trace("launch")
        with trace.guard():
            preparation = await self._prepare_launch(params, trace)
            trace.advance(ActionState.DRY_RUN_COMPLETE)
        return preparation

    async def launch(self, params: LaunchParams) -> LaunchResult:
        trace = self._new_trace("launch")
        with trace.guard():
            self._engine.require_signer()
            preparation = await self._prepare_launch(params, trace)
            approve_hash = await self._execute_approval(preparation.approve_intent, trace)
            create_hash = await self._execute_action(preparation.create_intent, trace)
        return LaunchResult(
            hash=create_hash,
            approve_hash=approve_hash,
            metadata_uri=preparation.metadata_uri,
            image_url=preparation.image_url,
        )

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    async def _quote_for_allowance(self, market: str, usdc_in: str) -> Optional[QuoteResponse]:
        try:
            quote = await self._api.get_quote_buy(market, usdc_in)
            fee = Decimal(quote.fee_paid)
        except (MoltmoonError, httpx.HTTPError, pydantic.ValidationError, InvalidOperation) as exc:
            logger.warning("Buy quote failed for %s, approving without cushion: %s", market, exc)
            return None
        if not fee.is_finite() or fee < 0:
            logger.warning("Buy quote failed for %s, approving without cushion: feePaid=%s", market, quote.fee_paid)
            return None
        return quote

    async def buy(self, market: str, usdc_in: str, slippage_bps: int = DEFAULT_SLIPPAGE_BPS) -> str:
        trace = self._new_trace("buy")
        with trace.guard():
            _parse_amount(usdc_in, "usdcIn")
            _check_slippage(slippage_bps)
            self._engine.require_signer()

            quote = await self._quote_for_allowance(market, usdc_in)
            approve_amount = compute_buy_allowance(usdc_in, quote)
            logger.info("Approving %s USDC for buy of %s USDC on %s", approve_amount, usdc_in, market)

            approve_intent = await self._api.intent_market_approve(market, approve_amount)
            trace.advance(ActionState.INTENTS_PREPARED)
            await self._execute_approval(approve_intent, trace)

            buy_intent = await self._api.intent_buy(market, usdc_in, slippage_bps)
            return await self._execute_action(buy_intent, trace)

    async def sell(
        self,
        market: str,
        tokens_in: str,
        token: str,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    ) -> str:
        trace = self._new_trace("sell")
        with trace.guard():
            _parse_amount(tokens_in, "tokensIn")
            _check_slippage(slippage_bps)
            self._engine.require_signer()

            approve_intent = await self._api.intent_token_approve(token, spender=market, amount=tokens_in)
            trace.advance(ActionState.INTENTS_PREPARED)
            await self._execute_approval(approve_intent, trace)

            sell_intent = await self._api.intent_sell(market, tokens_in, slippage_bps)
            return await self._execute_action(sell_intent, trace)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _execute_approval(self, intent: TransactionIntent, trace: ActionTrace) -> str:
        tx_hash = await self._engine.execute(
            intent,
            on_submitted=lambda h: self._submitted(trace, h, ActionState.APPROVAL_SUBMITTED),
        )
        trace.advance(ActionState.APPROVAL_CONFIRMED)
        return tx_hash

    async def _execute_action(self, intent: TransactionIntent, trace: ActionTrace) -> str:
        tx_hash = await self._engine.execute(
            intent,
            on_submitted=lambda h: self._submitted(trace, h, ActionState.ACTION_SUBMITTED),
        )
        trace.advance(ActionState.ACTION_CONFIRMED)
        return tx_hash

    @staticmethod
    def _submitted(trace: ActionTrace, tx_hash: str, state: ActionState) -> None:
        trace.tx_hashes.append(tx_hash)
        trace.advance(state)
