"""PostgreSQL repository of liquidation candidates written by the indexer."""
from __future__ import annotations

import logging
from typing import Any

import asyncpg

from ..config import DatabaseConfig
from ..errors import RepositoryError
from ..models import CandidatePosition

logger = logging.getLogger(__name__)


class PostgresPositionRepository:
    """Read-only access to the ``liquidatable_accounts`` table.

    The connection pool is owned by the instance: open it with ``connect()``
    (or ``async with``) and release it with ``close()``.
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._pool: asyncpg.Pool | None = None
        # Table name is validated against an identifier pattern at config load.
        self._query = (
            f"SELECT user_address, health_factor FROM {config.table} "
            "ORDER BY health_factor ASC"
        )

    async def connect(self) -> None:
        if self._pool is not None:
            return
        self._pool = await asyncpg.create_pool(
            dsn=self._config.url,
            min_size=self._config.min_pool_size,
            max_size=self._config.max_pool_size,
        )
        logger.info("Database pool initialized")

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("Database pool closed")

    async def __aenter__(self) -> PostgresPositionRepository:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def list_liquidatable_users(self) -> list[CandidatePosition]:
        """Return candidates ordered by health factor, worst first.

        Raises:
            RepositoryError: pool not open or query failed.
        """
        if self._pool is None:
            raise RepositoryError("Database pool is not initialized")

        logger.info("Fetching liquidatable users")
        try:
            rows = await self._pool.fetch(self._query)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error("Error fetching liquidatable users: %s", e)
            raise RepositoryError(f"Candidate query failed: {e}") from e

        candidates = []
        for row in rows:
            health_factor = row["health_factor"]
            if health_factor is None:
                logger.warning("Skipping %s: health factor is NULL", row["user_address"])
                continue
            candidates.append(
                CandidatePosition(
                    user_address=row["user_address"],
                    health_factor=float(health_factor),
                )
            )
        logger.info("Successfully fetched %d users to be liquidated", len(candidates))
        return candidates
