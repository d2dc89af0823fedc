"""Data models: all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class CandidatePosition:
    """A user flagged by the indexer, worst health factor first."""

    user_address: str
    health_factor: float


@dataclass(frozen=True)
class Asset:
    """Single reserve within a user position (collateral or debt).

    ``balance`` is the base-unit integer rendered as a decimal string.
    ``liquidation_bonus`` is in basis points (10500 = 1.05x).
    """

    name: str
    symbol: str
    address: str
    decimals: int
    balance: str
    balance_usd: float
    price: float
    liquidation_bonus: int

    @property
    def balance_units(self) -> int:
        return int(self.balance)


@dataclass(frozen=True)
class UserPositionSnapshot:
    """Point-in-time view of one user, split into collateral and debt."""

    user_address: str
    health_factor: float
    collateral_assets: tuple[Asset, ...] = ()
    debt_assets: tuple[Asset, ...] = ()


@dataclass(frozen=True)
class TokenAmount:
    address: str
    symbol: str
    decimals: int
    amount: int


@dataclass(frozen=True)
class LiquidationOpportunity:
    """One collateral/debt pairing, valid only for the snapshot it came from."""

    collateral_token: TokenAmount
    debt_token: TokenAmount
    profit_usd: float
    seizable_usd: float = 0.0
    repay_usd: float = 0.0


@dataclass(frozen=True)
class PoolHop:
    pool_address: str
    fee_tier: int


@dataclass(frozen=True)
class SwapRoute:
    """Best-effort swap path. Empty ``hops`` means no route exists."""

    hops: tuple[PoolHop, ...] = ()
    path_tokens: tuple[str, ...] = ()
    amount_out: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.hops


@dataclass(frozen=True)
class ExecutionParams:
    """Arguments of ``executeLiquidation`` on the liquidation helper."""

    debt_token: str
    repay_amount: int
    collateral_token: str
    borrower_address: str
    fee_tier_1: int
    fee_tier_2: int = 0
    intermediate_token: str = ZERO_ADDRESS
    uses_multi_hop: bool = False


@dataclass(frozen=True)
class SubmittedTransaction:
    tx_hash: str
    endpoint: str


@dataclass(frozen=True)
class CycleSummary:
    """Counters collected over one liquidation cycle."""

    candidates: int = 0
    fetched: int = 0
    fetch_failures: int = 0
    filtered: int = 0
    unprofitable: int = 0
    no_route: int = 0
    executed: int = 0
    execution_failures: int = 0
