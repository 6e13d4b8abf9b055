"""
Configuration management and loading.

Handles rate, table and API settings from a YAML file or the environment.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from pool_club_billing.client.session_api import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS
from pool_club_billing.core.rates import (
    DEFAULT_GRACE_THRESHOLD_MINUTES,
    DEFAULT_HOURLY_RATE,
    MIN_GRACE_THRESHOLD_MINUTES,
    RatePolicy
)
from pool_club_billing.core.tables import DEFAULT_TABLE_COUNT

CONFIG_ENV_VAR = "POOL_CLUB_CONFIG"
DEFAULT_CURRENCY = "Rs"


@dataclass(frozen=True)
class TablesConfig:
    """Layout of the club floor."""
    count: int = DEFAULT_TABLE_COUNT

    def __post_init__(self):
        """Validate the table count is positive."""
        if self.count <= 0:
            raise ValueError("tables.count must be > 0")


@dataclass(frozen=True)
class ApiConfig:
    """Connection settings for the remote session store."""
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self):
        """Validate connection settings."""
        if not self.base_url.strip():
            raise ValueError("api.base_url cannot be empty")
        if self.timeout_seconds <= 0:
            raise ValueError("api.timeout_seconds must be > 0")


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    rates: RatePolicy = field(default_factory=RatePolicy)
    tables: TablesConfig = field(default_factory=TablesConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    currency: str = DEFAULT_CURRENCY


def default_config() -> AppConfig:
    """Configuration used when no file is given."""
    return AppConfig()


def load_config(path: str) -> AppConfig:
    """Load and validate configuration from a YAML file.

    Every section is optional. Unknown keys and wrong types are rejected.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AppConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    _check_keys(raw_config, {'rates', 'tables', 'api', 'currency'}, "configuration")

    rates = _parse_rates(_section(raw_config, 'rates'))
    tables = _parse_tables(_section(raw_config, 'tables'))
    api = _parse_api(_section(raw_config, 'api'))

    currency = raw_config.get('currency', DEFAULT_CURRENCY)
    if not isinstance(currency, str) or not currency.strip():
        raise ValueError("'currency' must be a non-empty string")

    return AppConfig(rates=rates, tables=tables, api=api, currency=currency)


def resolve_config(path: Optional[str] = None) -> AppConfig:
    """Load config from an explicit path, the environment, or defaults.

    Args:
        path: Explicit config path, takes precedence over POOL_CLUB_CONFIG

    Returns:
        AppConfig
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return default_config()
    return load_config(path)


def _section(raw_config: Dict, name: str) -> Dict:
    data = raw_config.get(name, {})
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    return data


def _check_keys(data: Dict, allowed: set, path: str) -> None:
    unknown_keys = set(data.keys()) - allowed
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")


def _is_number(value: Any) -> bool:
    # bool is an int subclass, "yes" in YAML must not pass as 1
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_rates(data: Dict) -> RatePolicy:
    """Parse and validate the rates section.

    Raises:
        ValueError: If configuration is invalid
    """
    _check_keys(data, {'hourly_rate', 'grace_threshold_minutes'}, "rates")

    hourly_rate = data.get('hourly_rate', DEFAULT_HOURLY_RATE)
    if not isinstance(hourly_rate, Decimal) and not _is_number(hourly_rate):
        raise ValueError("'hourly_rate' in rates must be a number")
    if hourly_rate <= 0:
        raise ValueError("'hourly_rate' in rates must be > 0")

    grace = data.get('grace_threshold_minutes', DEFAULT_GRACE_THRESHOLD_MINUTES)
    if not isinstance(grace, int) or isinstance(grace, bool) or grace < MIN_GRACE_THRESHOLD_MINUTES:
        raise ValueError(
            f"'grace_threshold_minutes' in rates must be an integer >= {MIN_GRACE_THRESHOLD_MINUTES}"
        )

    return RatePolicy(
        hourly_rate=Decimal(str(hourly_rate)),
        grace_threshold_minutes=grace
    )


def _parse_tables(data: Dict) -> TablesConfig:
    _check_keys(data, {'count'}, "tables")

    count = data.get('count', DEFAULT_TABLE_COUNT)
    if not isinstance(count, int) or isinstance(count, bool) or count <= 0:
        raise ValueError("'count' in tables must be an integer > 0")
    return TablesConfig(count=count)


def _parse_api(data: Dict) -> ApiConfig:
    _check_keys(data, {'base_url', 'timeout_seconds'}, "api")

    base_url = data.get('base_url', DEFAULT_BASE_URL)
    if not isinstance(base_url, str) or not base_url.strip():
        raise ValueError("'base_url' in api must be a non-empty string")

    timeout = data.get('timeout_seconds', DEFAULT_TIMEOUT_SECONDS)
    if not _is_number(timeout) or timeout <= 0:
        raise ValueError("'timeout_seconds' in api must be > 0")

    return ApiConfig(base_url=base_url, timeout_seconds=float(timeout))
