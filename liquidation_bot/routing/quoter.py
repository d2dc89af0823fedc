"""Uniswap-v3 style route search through the factory and QuoterV2."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from web3 import AsyncWeb3

from ..chains.evm.client import EvmClient, all_reverted
from ..config import RouterConfig
from ..errors import AllEndpointsFailedError
from ..models import ZERO_ADDRESS, PoolHop, SwapRoute

logger = logging.getLogger(__name__)

FACTORY_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "address", "name": "tokenA", "type": "address"},
            {"internalType": "address", "name": "tokenB", "type": "address"},
            {"internalType": "uint24", "name": "fee", "type": "uint24"},
        ],
        "name": "getPool",
        "outputs": [{"internalType": "address", "name": "pool", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    }
]

# QuoterV2.quoteExactInputSingle((tokenIn, tokenOut, amountIn, fee, sqrtPriceLimitX96))
QUOTER_V2_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {
                "components": [
                    {"internalType": "address", "name": "tokenIn", "type": "address"},
                    {"internalType": "address", "name": "tokenOut", "type": "address"},
                    {"internalType": "uint256", "name": "amountIn", "type": "uint256"},
                    {"internalType": "uint24", "name": "fee", "type": "uint24"},
                    {"internalType": "uint160", "name": "sqrtPriceLimitX96", "type": "uint160"},
                ],
                "internalType": "struct IQuoterV2.QuoteExactInputSingleParams",
                "name": "params",
                "type": "tuple",
            }
        ],
        "name": "quoteExactInputSingle",
        "outputs": [
            {"internalType": "uint256", "name": "amountOut", "type": "uint256"},
            {"internalType": "uint160", "name": "sqrtPriceX96After", "type": "uint160"},
            {"internalType": "uint32", "name": "initializedTicksCrossed", "type": "uint32"},
            {"internalType": "uint256", "name": "gasEstimate", "type": "uint256"},
        ],
        "stateMutability": "nonpayable",
        "type": "function",
    }
]


@dataclass(frozen=True)
class HopQuote:
    hop: PoolHop
    amount_out: int


class QuoterRouteProvider:
    """Find the best route of at most two hops for an exact input amount.

    Direct pools are tried for every fee tier; two-hop paths go through the
    configured intermediate tokens. The route with the largest output wins.
    """

    def __init__(self, client: EvmClient, config: RouterConfig) -> None:
        self._client = client
        self._quoter = AsyncWeb3.to_checksum_address(config.quoter)
        self._factory = AsyncWeb3.to_checksum_address(config.factory)
        self._fee_tiers = tuple(config.fee_tiers)
        self._intermediates = tuple(
            AsyncWeb3.to_checksum_address(t) for t in config.intermediate_tokens
        )

    async def _pool_address(self, token_in: str, token_out: str, fee: int) -> str | None:
        async def _read(w3: AsyncWeb3) -> str:
            factory = self._client.contract(w3, self._factory, FACTORY_ABI)
            return await factory.functions.getPool(token_in, token_out, fee).call()

        pool = await self._client.call(_read, description=f"getPool(fee={fee})")
        if not pool or int(pool, 16) == 0:
            return None
        return pool

    async def _quote(self, token_in: str, token_out: str, fee: int, amount_in: int) -> int:
        async def _read(w3: AsyncWeb3) -> Any:
            quoter = self._client.contract(w3, self._quoter, QUOTER_V2_ABI)
            return await quoter.functions.quoteExactInputSingle(
                (token_in, token_out, amount_in, fee, 0)
            ).call()

        result = await self._client.call(_read, description=f"quoteExactInputSingle(fee={fee})")
        return int(result[0])

    async def _quote_hop(
        self, token_in: str, token_out: str, fee: int, amount_in: int
    ) -> HopQuote | None:
        pool = await self._pool_address(token_in, token_out, fee)
        if pool is None:
            return None
        try:
            amount_out = await self._quote(token_in, token_out, fee, amount_in)
        except AllEndpointsFailedError as e:
            if not all_reverted(e):
                raise
            logger.debug("No quote %s -> %s at fee %d: pool reverted", token_in, token_out, fee)
            return None
        if amount_out <= 0:
            return None
        return HopQuote(PoolHop(pool_address=pool, fee_tier=fee), amount_out)

    async def _best_hop(self, token_in: str, token_out: str, amount_in: int) -> HopQuote | None:
        best: HopQuote | None = None
        for fee in self._fee_tiers:
            quote = await self._quote_hop(token_in, token_out, fee, amount_in)
            if quote and (best is None or quote.amount_out > best.amount_out):
                best = quote
        return best

    async def find_route(self, from_token: str, to_token: str, amount_in: int) -> SwapRoute:
        """Return the best route, or an empty route when no pool path exists."""
        token_in = AsyncWeb3.to_checksum_address(from_token)
        token_out = AsyncWeb3.to_checksum_address(to_token)
        logger.info(
            "Fetching trading path [fromToken: %s, toToken: %s, amountToSell: %d]",
            token_in, token_out, amount_in,
        )
        if amount_in <= 0 or token_in == token_out:
            return SwapRoute()

        candidates: list[SwapRoute] = []

        direct = await self._best_hop(token_in, token_out, amount_in)
        if direct:
            candidates.append(
                SwapRoute(
                    hops=(direct.hop,),
                    path_tokens=(token_in, token_out),
                    amount_out=direct.amount_out,
                )
            )

        for middle in self._intermediates:
            if middle in (token_in, token_out, ZERO_ADDRESS):
                continue
            first = await self._best_hop(token_in, middle, amount_in)
            if first is None:
                continue
            second = await self._best_hop(middle, token_out, first.amount_out)
            if second is None:
                continue
            candidates.append(
                SwapRoute(
                    hops=(first.hop, second.hop),
                    path_tokens=(token_in, middle, token_out),
                    amount_out=second.amount_out,
                )
            )

        if not candidates:
            logger.info("No route found %s -> %s", token_in, token_out)
            return SwapRoute()

        best = max(candidates, key=lambda r: r.amount_out)
        logger.info(
            "Best route %s via %d hop(s), amountOut %d",
            " -> ".join(best.path_tokens), len(best.hops), best.amount_out,
        )
        return best
