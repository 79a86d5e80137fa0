"""
Engine Configuration

EngineConfig is loaded from config/signals.yaml. Missing files fall back
to defaults; invalid values raise ConfigValidationError.
"""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Union
import logging

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/signals.yaml")
MIN_HISTORY_POINTS = 20


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


@dataclass
class EngineConfig:
    """
    Signal engine parameters.

    Attributes:
        cache_ttl_seconds: How long a computed signal is reused before recomputation
        history_points: Candles requested from the price-history provider
        condition_window: Most recent candles used for market conditions
        fetch_timeout_seconds: Per-symbol timeout for upstream fetches
        max_concurrency: Symbols processed at once in a batch
        exchange: ccxt exchange id for the default market-data provider
        quote_currency: Quote used to build trading pairs (BTC -> BTC/USDT)
        default_timeframe: Timeframe used when none is given
    """
    cache_ttl_seconds: float = 300.0
    history_points: int = 50
    condition_window: int = 30
    fetch_timeout_seconds: float = 10.0
    max_concurrency: int = 8
    exchange: str = "binance"
    quote_currency: str = "USDT"
    default_timeframe: str = "15min"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """
        Create EngineConfig from a dictionary.

        Raises:
            ConfigValidationError: If values are invalid
        """
        defaults = cls()
        try:
            config = cls(
                cache_ttl_seconds=float(data.get("cache_ttl_seconds", defaults.cache_ttl_seconds)),
                history_points=int(data.get("history_points", defaults.history_points)),
                condition_window=int(data.get("condition_window", defaults.condition_window)),
                fetch_timeout_seconds=float(data.get("fetch_timeout_seconds", defaults.fetch_timeout_seconds)),
                max_concurrency=int(data.get("max_concurrency", defaults.max_concurrency)),
                exchange=str(data.get("exchange", defaults.exchange)),
                quote_currency=str(data.get("quote_currency", defaults.quote_currency)),
                default_timeframe=str(data.get("default_timeframe", defaults.default_timeframe)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"Invalid engine config value: {e}") from e

        validate_engine_config(config)
        return config

    @classmethod
    def from_file(cls, config_path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> "EngineConfig":
        """
        Load engine configuration from a YAML file.

        Args:
            config_path: Path to signals.yaml

        Returns:
            EngineConfig (defaults if the file does not exist)
        """
        config_path = Path(config_path)
        if not config_path.exists():
            logger.warning(f"Config file {config_path} not found, using defaults")
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigValidationError(f"{config_path} must contain a mapping")

        # Allow the settings to live under a top-level 'signals' key
        if "signals" in data:
            data = data["signals"] or {}
            if not isinstance(data, dict):
                raise ConfigValidationError(f"'signals' section in {config_path} must be a mapping")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def validate_engine_config(config: EngineConfig) -> None:
    """
    Validate engine configuration.

    Raises:
        ConfigValidationError: If config is invalid
    """
    positive = {
        "cache_ttl_seconds": config.cache_ttl_seconds,
        "condition_window": config.condition_window,
        "fetch_timeout_seconds": config.fetch_timeout_seconds,
        "max_concurrency": config.max_concurrency,
    }
    for name, value in positive.items():
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got: {value}")

    if config.history_points < MIN_HISTORY_POINTS:
        raise ConfigValidationError(
            f"history_points must be >= {MIN_HISTORY_POINTS}, got: {config.history_points}"
        )

    if config.condition_window > config.history_points:
        logger.warning(
            f"condition_window ({config.condition_window}) exceeds history_points "
            f"({config.history_points}); the full history will be used"
        )

    if not config.quote_currency.strip():
        raise ConfigValidationError("quote_currency must be a non-empty string")
