"""
Configuration management and loading.

Handles monitor settings read from an optional YAML file.
"""

import math
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from claude_token_counter.core.pricing import DEFAULT_RATES, PRICING_TABLE, CategoryRates
from claude_token_counter.local.discovery import DEFAULT_SUFFIX

DEFAULT_ROOT = Path("~/.claude/projects")
DEFAULT_INTERVAL = 5.0

# Config key -> CategoryRates field
RATE_KEYS = {
    "input": "input_per_mtok",
    "output": "output_per_mtok",
    "cache_creation": "cache_creation_per_mtok",
    "cache_read": "cache_read_per_mtok",
}


@dataclass(frozen=True)
class MonitorConfig:
    """Settings for scanning and refreshing."""
    root: Path
    interval: float
    suffix: str
    rates: CategoryRates
    monthly_limit: Optional[int] = None  # Tokens per month; None disables the quota view

    def __post_init__(self):
        """Validate interval, suffix and monthly limit."""
        if not (math.isfinite(self.interval) and self.interval > 0):
            raise ValueError("interval must be > 0")
        if not self.suffix:
            raise ValueError("suffix cannot be empty")
        if self.monthly_limit is not None and self.monthly_limit < 0:
            raise ValueError("monthly_limit must be >= 0")

    def with_overrides(
        self,
        root: Optional[Path] = None,
        interval: Optional[float] = None,
        rates: Optional[CategoryRates] = None,
        monthly_limit: Optional[int] = None
    ) -> "MonitorConfig":
        """Return a copy with any non-None values replaced."""
        changes: Dict[str, Any] = {}
        if root is not None:
            changes["root"] = root
        if interval is not None:
            changes["interval"] = interval
        if rates is not None:
            changes["rates"] = rates
        if monthly_limit is not None:
            changes["monthly_limit"] = monthly_limit
        return replace(self, **changes)


def default_config() -> MonitorConfig:
    """Configuration used when no file is given."""
    return MonitorConfig(
        root=DEFAULT_ROOT.expanduser(),
        interval=DEFAULT_INTERVAL,
        suffix=DEFAULT_SUFFIX,
        rates=DEFAULT_RATES
    )


def load_monitor_config(path: str) -> MonitorConfig:
    """Load and validate monitor configuration from a YAML file.

    Keys that are not set fall back to ``default_config()``.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated MonitorConfig object

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

    allowed_top_keys = {'root', 'interval', 'suffix', 'pricing', 'monthly_limit'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    defaults = default_config()

    root = defaults.root
    if 'root' in raw_config:
        if not isinstance(raw_config['root'], str) or not raw_config['root'].strip():
            raise ValueError("'root' must be a non-empty string")
        root = Path(raw_config['root']).expanduser()

    interval = defaults.interval
    if 'interval' in raw_config:
        value = raw_config['interval']
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("'interval' must be a number > 0")
        if not (math.isfinite(value) and value > 0):
            raise ValueError("'interval' must be a number > 0")
        interval = float(value)

    suffix = defaults.suffix
    if 'suffix' in raw_config:
        if not isinstance(raw_config['suffix'], str) or not raw_config['suffix']:
            raise ValueError("'suffix' must be a non-empty string")
        suffix = raw_config['suffix']

    rates = defaults.rates
    if 'pricing' in raw_config:
        rates = _parse_pricing(raw_config['pricing'])

    monthly_limit = defaults.monthly_limit
    if 'monthly_limit' in raw_config:
        value = raw_config['monthly_limit']
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError("'monthly_limit' must be an integer >= 0")
        monthly_limit = value

    return MonitorConfig(
        root=root,
        interval=interval,
        suffix=suffix,
        rates=rates,
        monthly_limit=monthly_limit
    )


def _parse_pricing(data: Any) -> CategoryRates:
    """Parse the pricing section.

    Either ``model: <family>`` naming a PRICING_TABLE entry, or explicit
    per-million rates for any of the four categories.

    Raises:
        ValueError: If pricing is invalid
    """
    if not isinstance(data, dict):
        raise ValueError("'pricing' must be a dictionary")

    allowed_keys = {'model'} | set(RATE_KEYS)
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in pricing: {unknown_keys}")

    if 'model' in data:
        if len(data) > 1:
            raise ValueError("'pricing.model' cannot be combined with explicit rates")
        return PRICING_TABLE.get_rates(str(data['model']).lower())

    overrides = {}
    for key, field_name in RATE_KEYS.items():
        if key not in data:
            continue
        value = data[key]
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError(f"'pricing.{key}' must be a number")
        try:
            rate = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"'pricing.{key}' must be a number")
        if not rate.is_finite() or rate < 0:
            raise ValueError(f"'pricing.{key}' must be >= 0")
        overrides[field_name] = rate

    return replace(DEFAULT_RATES, **overrides)
