"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from liquidation_bot.config import (
    AppConfig,
    ChainConfig,
    DatabaseConfig,
    ExecutionConfig,
    LiquidationConfig,
    NotificationsConfig,
    ProtocolConfig,
    RouterConfig,
    SchedulerConfig,
    TelegramConfig,
)
from liquidation_bot.models import Asset, UserPositionSnapshot

# Well-formed addresses; checksumming is done by the code under test.
USER = "0x1111111111111111111111111111111111111111"
WETH = "0xfc24f770F94edBca6D6f885E12d4317320BcB401"
USDC = "0x796Ea11Fa2dD751eD01b53C372fFDB4AAa8f00F9"
WXTZ = "0xc9B53AB2679f573e480d01e0f49e2B5CFB7a3EAb"
UI_POOL_DATA_PROVIDER = "0x9F9384Ef6a1A76AE1a95dF483be4b0214fda0Ef9"
POOL_ADDRESSES_PROVIDER = "0x5ccF60c7E10547c5389E9cBFf543E5D0Db9F4feC"
LIQUIDATION_HELPER = "0x3E6c69d19Bb2ba159dC6ebfb28FD81e697363311"
QUOTER = "0x2222222222222222222222222222222222222222"
FACTORY = "0x3333333333333333333333333333333333333333"
# Throwaway key, never funded.
PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        chain_id=42793,
        rpc_endpoints=("https://rpc1.example.com/key", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_protocol_config() -> ProtocolConfig:
    return ProtocolConfig(
        ui_pool_data_provider=UI_POOL_DATA_PROVIDER,
        pool_addresses_provider=POOL_ADDRESSES_PROVIDER,
        liquidation_helper=LIQUIDATION_HELPER,
    )


@pytest.fixture()
def sample_router_config() -> RouterConfig:
    return RouterConfig(
        quoter=QUOTER,
        factory=FACTORY,
        fee_tiers=(500, 2500),
        intermediate_tokens=(WXTZ,),
    )


@pytest.fixture()
def sample_execution_config() -> ExecutionConfig:
    return ExecutionConfig(
        private_key=PRIVATE_KEY,
        confirmations=2,
        receipt_timeout=5,
        gas_limit_multiplier=1.2,
    )


@pytest.fixture()
def sample_app_config(
    sample_chain_config: ChainConfig,
    sample_protocol_config: ProtocolConfig,
    sample_router_config: RouterConfig,
    sample_execution_config: ExecutionConfig,
) -> AppConfig:
    return AppConfig(
        scheduler=SchedulerConfig(cron_expression="*/5 * * * *"),
        liquidation=LiquidationConfig(batch_size=10, flat_cost_usd=0.0),
        execution=sample_execution_config,
        chain=sample_chain_config,
        database=DatabaseConfig(url="postgresql://bot@localhost/liq"),
        protocol=sample_protocol_config,
        router=sample_router_config,
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


def _make_asset(
    symbol: str = "WETH",
    address: str = WETH,
    decimals: int = 18,
    balance: int = 10**18,
    balance_usd: float = 1000.0,
    price: float = 1000.0,
    liquidation_bonus: int = 10500,
) -> Asset:
    return Asset(
        name=symbol,
        symbol=symbol,
        address=address,
        decimals=decimals,
        balance=str(balance),
        balance_usd=balance_usd,
        price=price,
        liquidation_bonus=liquidation_bonus,
    )


@pytest.fixture()
def asset_factory():
    return _make_asset


@pytest.fixture()
def weth_collateral() -> Asset:
    """1 WETH worth $1000 with a 5% liquidation bonus."""
    return _make_asset()


@pytest.fixture()
def usdc_debt() -> Asset:
    """2000 USDC of debt."""
    return _make_asset(
        symbol="USDC",
        address=USDC,
        decimals=6,
        balance=2000 * 10**6,
        balance_usd=2000.0,
        price=1.0,
    )


@pytest.fixture()
def underwater_position(weth_collateral: Asset, usdc_debt: Asset) -> UserPositionSnapshot:
    return UserPositionSnapshot(
        user_address=USER,
        health_factor=0.8,
        collateral_assets=(weth_collateral,),
        debt_assets=(usdc_debt,),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent(f"""\
    scheduler:
      cron_expression: "*/2 * * * *"
    liquidation:
      batch_size: 5
      flat_cost_usd: 1.5
    execution:
      private_key: "${{TEST_PRIVATE_KEY}}"
      confirmations: 3
    chain:
      chain_id: 42793
      rpc_endpoints:
        - "https://rpc1.example.com"
        - "${{TEST_BACKUP_URL}}"
      rpc_timeout: 10
    database:
      url: "postgresql://bot@localhost/liq"
    protocol:
      ui_pool_data_provider: "{UI_POOL_DATA_PROVIDER}"
      pool_addresses_provider: "{POOL_ADDRESSES_PROVIDER}"
      liquidation_helper: "{LIQUIDATION_HELPER}"
    router:
      quoter: "{QUOTER}"
      factory: "{FACTORY}"
      fee_tiers: [500, 2500]
      intermediate_tokens: ["{WXTZ}"]
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: 999
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("TEST_PRIVATE_KEY", PRIVATE_KEY)
    monkeypatch.delenv("TEST_BACKUP_URL", raising=False)
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
