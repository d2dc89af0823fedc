"""EVM RPC client: one web3 instance per endpoint behind a failover client."""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from urllib.parse import urlparse

import aiohttp
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError

from ...config import ChainConfig
from ...errors import AllEndpointsFailedError
from ...rpc.failover import Backoff, Endpoint, FailoverClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


def endpoint_label(index: int, url: str) -> str:
    """Log-safe endpoint name; paths often carry API keys."""
    host = urlparse(url).netloc or url
    return f"rpc#{index}({host})"


def all_reverted(error: AllEndpointsFailedError) -> bool:
    """True when every endpoint answered with a contract revert."""
    return bool(error.failures) and all(
        isinstance(f.cause, ContractLogicError) for f in error.failures
    )


class EvmClient:
    """Chain access with automatic fallback from primary to backup nodes."""

    def __init__(self, config: ChainConfig, backoff: Backoff | None = None) -> None:
        self.chain_id = config.chain_id
        self.timeout = config.rpc_timeout
        self.endpoints: list[Endpoint[AsyncWeb3]] = [
            Endpoint(endpoint_label(i, url), self._make_web3(url, config.rpc_timeout))
            for i, url in enumerate(config.rpc_endpoints)
        ]
        self.failover: FailoverClient[AsyncWeb3] = FailoverClient(self.endpoints, backoff)

    @staticmethod
    def _make_web3(url: str, timeout: int) -> AsyncWeb3:
        provider = AsyncWeb3.AsyncHTTPProvider(
            url, request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout)}
        )
        return AsyncWeb3(provider)

    @staticmethod
    def contract(w3: AsyncWeb3, address: str, abi: list[dict[str, Any]]) -> Any:
        return w3.eth.contract(address=AsyncWeb3.to_checksum_address(address), abi=abi)

    def endpoint(self, name: str) -> AsyncWeb3:
        for endpoint in self.endpoints:
            if endpoint.name == name:
                return endpoint.handle
        raise KeyError(f"Unknown endpoint {name}")

    def endpoint_name(self, w3: AsyncWeb3) -> str:
        for endpoint in self.endpoints:
            if endpoint.handle is w3:
                return endpoint.name
        return "unknown"

    async def call(
        self, operation: Callable[[AsyncWeb3], Awaitable[T]], description: str = ""
    ) -> T:
        """Run a read or broadcast against endpoints in priority order."""
        return await self.failover.call(operation, description=description)

    async def close(self) -> None:
        """Close the HTTP sessions cached by every provider."""
        for endpoint in self.endpoints:
            try:
                await endpoint.handle.provider.disconnect()
            except Exception as e:
                logger.warning("Error closing %s: %s", endpoint.name, e)
        logger.info("RPC sessions closed")
