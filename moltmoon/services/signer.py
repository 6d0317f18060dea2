"""Signing, broadcasting and confirmation of backend intents.

:class:`ExecutionEngine` is the only place in the SDK that changes chain
state. It has no retry or timeout logic of its own; both come from the
signer's transport.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from web3 import Web3

from moltmoon.errors import SignerRequiredError, TransactionFailedError
from moltmoon.models import TransactionIntent

logger = logging.getLogger(__name__)


class Signer(ABC):
    """Abstract interface for an account able to send transactions."""

    @property
    @abstractmethod
    def address(self) -> str:
        ...

    @abstractmethod
    async def send_transaction(self, intent: TransactionIntent) -> str:
        """Sign and broadcast *intent*, returning the 0x-prefixed hash."""

    @abstractmethod
    async def wait_for_confirmation(self, tx_hash: str) -> dict[str, Any]:
        """Block until *tx_hash* is mined; raise if it reverted."""


class Web3Signer(Signer):
    """Local private-key signer over a JSON-RPC node.

    web3's HTTP provider is synchronous, so every call is pushed to a worker
    thread to keep the event loop free.
    """

    def __init__(self, *, private_key: str, rpc_url: str, chain_id: int, timeout: float = 30.0) -> None:
        self._w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        self._account = self._w3.eth.account.from_key(private_key)
        self._chain_id = chain_id

    @property
    def address(self) -> str:
        return self._account.address

    def _build_transaction(self, intent: TransactionIntent) -> dict[str, Any]:
        tx: dict[str, Any] = {
            "from": self._account.address,
            "to": Web3.to_checksum_address(intent.to),
            "data": intent.data,
            "value": int(intent.value or "0"),
            "chainId": intent.chain_id or self._chain_id,
            "nonce": self._w3.eth.get_transaction_count(self._account.address, "pending"),
        }
        tx["gas"] = self._w3.eth.estimate_gas(tx)
        tx["gasPrice"] = self._w3.eth.gas_price
        return tx

    def _send(self, intent: TransactionIntent) -> str:
        tx = self._build_transaction(intent)
        signed = self._account.sign_transaction(tx)
        return Web3.to_hex(self._w3.eth.send_raw_transaction(signed.raw_transaction))

    async def send_transaction(self, intent: TransactionIntent) -> str:
        return await asyncio.to_thread(self._send, intent)

    async def wait_for_confirmation(self, tx_hash: str) -> dict[str, Any]:
        receipt = await asyncio.to_thread(self._w3.eth.wait_for_transaction_receipt, tx_hash)
        if receipt.get("status") == 0:
            raise TransactionFailedError(tx_hash)
        return dict(receipt)


class ExecutionEngine:  # pylint: disable=too-few-public-methods
    """Submit an intent through the signer and wait for it to confirm."""

    def __init__(self, signer: Optional[Signer] = None) -> None:
        self._signer = signer

    @property
    def signer(self) -> Optional[Signer]:
        return self._signer

    def require_signer(self) -> Signer:
        if self._signer is None:
            raise SignerRequiredError()
        return self._signer

    async def execute(
        self,
        intent: TransactionIntent,
        *,
        on_submitted: Optional[Callable[[str], None]] = None,
    ) -> str:
        signer = self.require_signer()

        logger.info("Executing: %s", intent.description or intent.to)
        tx_hash = await signer.send_transaction(intent)
        if on_submitted is not None:
            on_submitted(tx_hash)

        logger.info("Tx sent: %s. Waiting for confirmation...", tx_hash)
        await signer.wait_for_confirmation(tx_hash)
        logger.info("Confirmed %s", tx_hash)
        return tx_hash
