"""Signs, broadcasts and confirms ``executeLiquidation`` transactions."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from eth_account import Account
from web3 import AsyncWeb3
from web3.exceptions import TimeExhausted

from ...config import ExecutionConfig, ProtocolConfig
from ...errors import AllEndpointsFailedError, SubmissionError
from ...models import ExecutionParams, SubmittedTransaction
from .client import EvmClient, all_reverted

logger = logging.getLogger(__name__)

LIQUIDATION_HELPER_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "address", "name": "debtToken", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"},
            {"internalType": "address", "name": "colToken", "type": "address"},
            {"internalType": "address", "name": "user", "type": "address"},
            {"internalType": "uint24", "name": "poolFee1", "type": "uint24"},
            {"internalType": "uint24", "name": "poolFee2", "type": "uint24"},
            {"internalType": "address", "name": "pathToken", "type": "address"},
            {"internalType": "bool", "name": "usePath", "type": "bool"},
        ],
        "name": "executeLiquidation",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

# Node answers meaning the exact same signed transaction is already in its pool.
_ALREADY_KNOWN_MARKERS = ("already known", "known transaction", "already imported")

CONFIRMATION_POLL_SECONDS = 2.0


def _is_already_known(error: Exception) -> bool:
    text = str(error).lower()
    return any(marker in text for marker in _ALREADY_KNOWN_MARKERS)


class LiquidationHelperSubmitter:
    """Flash-liquidation submitter for the deployed liquidation helper.

    The transaction is built and simulated (gas estimation) through the
    failover client, signed once, and the identical signed bytes are then
    broadcast in endpoint priority order until one node accepts them.
    """

    def __init__(
        self,
        client: EvmClient,
        protocol: ProtocolConfig,
        execution: ExecutionConfig,
    ) -> None:
        self._client = client
        self._helper = AsyncWeb3.to_checksum_address(protocol.liquidation_helper)
        self._account = Account.from_key(execution.private_key)
        self._gas_limit_multiplier = execution.gas_limit_multiplier
        self._receipt_timeout = execution.receipt_timeout
        # One signer, one nonce sequence.
        self._nonce_lock = asyncio.Lock()

    @property
    def address(self) -> str:
        return self._account.address

    def _liquidation_call(self, w3: AsyncWeb3, params: ExecutionParams) -> Any:
        helper = self._client.contract(w3, self._helper, LIQUIDATION_HELPER_ABI)
        return helper.functions.executeLiquidation(
            AsyncWeb3.to_checksum_address(params.debt_token),
            params.repay_amount,
            AsyncWeb3.to_checksum_address(params.collateral_token),
            AsyncWeb3.to_checksum_address(params.borrower_address),
            params.fee_tier_1,
            params.fee_tier_2,
            AsyncWeb3.to_checksum_address(params.intermediate_token),
            params.uses_multi_hop,
        )

    async def _fee_fields(self, w3: AsyncWeb3) -> dict[str, int]:
        block = await w3.eth.get_block("latest")
        base_fee = block.get("baseFeePerGas")
        if base_fee is None:
            return {"gasPrice": await w3.eth.gas_price}
        priority = await w3.eth.max_priority_fee
        return {"maxFeePerGas": base_fee * 2 + priority, "maxPriorityFeePerGas": priority}

    async def _build_transaction(self, params: ExecutionParams) -> dict[str, Any]:
        async def _build(w3: AsyncWeb3) -> dict[str, Any]:
            fn = self._liquidation_call(w3, params)
            # Reverts here mean the liquidation would fail on-chain.
            gas_estimate = await fn.estimate_gas({"from": self.address})
            nonce = await w3.eth.get_transaction_count(self.address, "pending")
            tx = {
                "from": self.address,
                "nonce": nonce,
                "gas": int(gas_estimate * self._gas_limit_multiplier),
                "chainId": self._client.chain_id,
                **await self._fee_fields(w3),
            }
            return await fn.build_transaction(tx)

        try:
            return await self._client.call(_build, description="build executeLiquidation")
        except AllEndpointsFailedError as e:
            if all_reverted(e):
                raise SubmissionError(f"Simulation reverted: {e.failures[0].cause}") from e
            raise SubmissionError(f"Could not build transaction: {e}") from e

    async def submit_liquidation(self, params: ExecutionParams) -> SubmittedTransaction:
        """Broadcast the liquidation; returns once a node accepted it.

        Raises:
            SubmissionError: simulation reverted or no endpoint accepted the
                transaction.
        """
        logger.info("Executing liquidation [params: %s]", params)

        async with self._nonce_lock:
            tx = await self._build_transaction(params)
            signed = self._account.sign_transaction(tx)
            tx_hash = AsyncWeb3.to_hex(signed.hash)

            async def _broadcast(w3: AsyncWeb3) -> AsyncWeb3:
                try:
                    await w3.eth.send_raw_transaction(signed.raw_transaction)
                except Exception as e:
                    if not _is_already_known(e):
                        raise
                    logger.info("Transaction %s already known to node", tx_hash)
                return w3

            try:
                accepted_by = await self._client.call(
                    _broadcast, description=f"broadcast {tx_hash}"
                )
            except AllEndpointsFailedError as e:
                raise SubmissionError(f"Broadcast failed: {e}", tx_hash) from e

        endpoint = self._client.endpoint_name(accepted_by)
        logger.info("Transaction sent [txHash: %s, endpoint: %s]", tx_hash, endpoint)
        return SubmittedTransaction(tx_hash=tx_hash, endpoint=endpoint)

    async def wait_for_confirmation(
        self, submitted: SubmittedTransaction, confirmations: int
    ) -> Any:
        """Wait for the receipt, then for ``confirmations`` blocks including it.

        Polls the endpoint that accepted the broadcast.

        Raises:
            SubmissionError: reverted, not confirmed within the receipt timeout,
                or the endpoint failed while polling.
        """
        w3 = self._client.endpoint(submitted.endpoint)
        deadline = time.monotonic() + self._receipt_timeout

        try:
            receipt = await w3.eth.wait_for_transaction_receipt(
                submitted.tx_hash, timeout=self._receipt_timeout
            )
        except TimeExhausted as e:
            raise SubmissionError(
                f"No receipt after {self._receipt_timeout}s", submitted.tx_hash
            ) from e
        except Exception as e:
            raise SubmissionError(
                f"Receipt lookup failed on {submitted.endpoint}: {e}", submitted.tx_hash
            ) from e

        if receipt["status"] != 1:
            raise SubmissionError("Transaction reverted", submitted.tx_hash)

        target_block = receipt["blockNumber"] + confirmations - 1
        while await self._block_number(w3, submitted) < target_block:
            if time.monotonic() > deadline:
                raise SubmissionError(
                    f"Fewer than {confirmations} confirmations after "
                    f"{self._receipt_timeout}s",
                    submitted.tx_hash,
                )
            await asyncio.sleep(CONFIRMATION_POLL_SECONDS)

        logger.info(
            "Transaction confirmed [txHash: %s, block: %d, gasUsed: %d]",
            submitted.tx_hash, receipt["blockNumber"], receipt["gasUsed"],
        )
        return receipt

    @staticmethod
    async def _block_number(w3: Any, submitted: SubmittedTransaction) -> int:
        try:
            return await w3.eth.block_number
        except Exception as e:
            raise SubmissionError(
                f"Block number lookup failed on {submitted.endpoint}: {e}", submitted.tx_hash
            ) from e
