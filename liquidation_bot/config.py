"""Configuration loader for config.yaml with ${VAR} interpolation from the environment."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from croniter import croniter
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SchedulerConfig:
    cron_expression: str = "*/5 * * * *"


@dataclass(frozen=True)
class LiquidationConfig:
    batch_size: int = 10
    flat_cost_usd: float = 0.0


@dataclass(frozen=True)
class ExecutionConfig:
    private_key: str = ""
    confirmations: int = 2
    receipt_timeout: int = 120
    gas_limit_multiplier: float = 1.2


@dataclass(frozen=True)
class ChainConfig:
    chain_id: int = 0
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = ""
    table: str = "liquidatable_accounts"
    min_pool_size: int = 1
    max_pool_size: int = 5


@dataclass(frozen=True)
class ProtocolConfig:
    ui_pool_data_provider: str = ""
    pool_addresses_provider: str = ""
    liquidation_helper: str = ""


@dataclass(frozen=True)
class RouterConfig:
    quoter: str = ""
    factory: str = ""
    fee_tiers: tuple[int, ...] = (100, 500, 2500, 10000)
    intermediate_tokens: tuple[str, ...] = ()


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    liquidation: LiquidationConfig = field(default_factory=LiquidationConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    router: RouterConfig = field(default_factory=RouterConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")
_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_scheduler(raw: dict[str, Any]) -> SchedulerConfig:
    return SchedulerConfig(
        cron_expression=str(raw.get("cron_expression", SchedulerConfig.cron_expression)),
    )


def _build_liquidation(raw: dict[str, Any]) -> LiquidationConfig:
    return LiquidationConfig(
        batch_size=int(raw.get("batch_size", 10)),
        flat_cost_usd=float(raw.get("flat_cost_usd", 0.0)),
    )


def _build_execution(raw: dict[str, Any]) -> ExecutionConfig:
    return ExecutionConfig(
        private_key=raw.get("private_key", ""),
        confirmations=int(raw.get("confirmations", 2)),
        receipt_timeout=int(raw.get("receipt_timeout", 120)),
        gas_limit_multiplier=float(raw.get("gas_limit_multiplier", 1.2)),
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    # Unset env vars interpolate to "", drop them so a missing backup is not an endpoint.
    endpoints = tuple(url for url in raw.get("rpc_endpoints", []) if url)
    return ChainConfig(
        chain_id=int(raw.get("chain_id", 0) or 0),
        rpc_endpoints=endpoints,
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
    )


def _build_database(raw: dict[str, Any]) -> DatabaseConfig:
    return DatabaseConfig(
        url=raw.get("url", ""),
        table=raw.get("table", DatabaseConfig.table),
        min_pool_size=int(raw.get("min_pool_size", 1)),
        max_pool_size=int(raw.get("max_pool_size", 5)),
    )


def _build_protocol(raw: dict[str, Any]) -> ProtocolConfig:
    return ProtocolConfig(
        ui_pool_data_provider=raw.get("ui_pool_data_provider", ""),
        pool_addresses_provider=raw.get("pool_addresses_provider", ""),
        liquidation_helper=raw.get("liquidation_helper", ""),
    )


def _build_router(raw: dict[str, Any]) -> RouterConfig:
    return RouterConfig(
        quoter=raw.get("quoter", ""),
        factory=raw.get("factory", ""),
        fee_tiers=tuple(int(f) for f in raw.get("fee_tiers", RouterConfig.fee_tiers)),
        intermediate_tokens=tuple(raw.get("intermediate_tokens", [])),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        scheduler=_build_scheduler(raw.get("scheduler", {})),
        liquidation=_build_liquidation(raw.get("liquidation", {})),
        execution=_build_execution(raw.get("execution", {})),
        chain=_build_chain(raw.get("chain", {})),
        database=_build_database(raw.get("database", {})),
        protocol=_build_protocol(raw.get("protocol", {})),
        router=_build_router(raw.get("router", {})),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chain.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")
    if cfg.chain.chain_id <= 0:
        raise ValueError("chain.chain_id must be a positive integer")
    if not cfg.database.url:
        raise ValueError("database.url is required")
    if not _TABLE_NAME_RE.match(cfg.database.table):
        raise ValueError(f"Invalid table name '{cfg.database.table}'")

    for name in ("ui_pool_data_provider", "pool_addresses_provider", "liquidation_helper"):
        if not getattr(cfg.protocol, name):
            raise ValueError(f"protocol.{name} is required")
    if not cfg.router.quoter or not cfg.router.factory:
        raise ValueError("router.quoter and router.factory are required")
    if not cfg.router.fee_tiers:
        raise ValueError("router.fee_tiers must not be empty")

    if cfg.liquidation.batch_size < 1:
        raise ValueError("liquidation.batch_size must be at least 1")
    if cfg.liquidation.flat_cost_usd < 0:
        raise ValueError("liquidation.flat_cost_usd must not be negative")
    if cfg.execution.confirmations < 1:
        raise ValueError("execution.confirmations must be at least 1")
    if not cfg.execution.private_key:
        raise ValueError("execution.private_key is required")

    if not croniter.is_valid(cfg.scheduler.cron_expression):
        raise ValueError(
            f"Invalid cron expression '{cfg.scheduler.cron_expression}'"
        )
