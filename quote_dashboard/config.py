# quote_dashboard/config.py
"""
Centralized Configuration Management

Version: 1.0.0
Features:
- Local .env support via python-dotenv
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Immutable settings snapshot for the calculation engine
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Any, Dict, Tuple
from dataclasses import dataclass

# Initialize logger
logger = logging.getLogger(__name__)


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid float for {key}={raw!r}, using {default}")
        return default


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid int for {key}={raw!r}, using {default}")
        return default


def _env_thresholds(key: str, default: Tuple[float, ...]) -> Tuple[float, ...]:
    raw = os.getenv(key)
    if not raw:
        return default
    try:
        return tuple(float(x) for x in raw.split(",") if x.strip())
    except ValueError:
        logger.warning(f"Invalid threshold list for {key}={raw!r}, using defaults")
        return default


@dataclass(frozen=True)
class EngineSettings:
    """Settings consumed by the premium recognition engine"""
    on_track_pct: float = 100.0
    warning_pct: float = 80.0
    top_n: int = 5
    trend_months: int = 6
    insurer_lookback_months: int = 12
    staircase_thresholds: Tuple[float, ...] = (100000.0, 250000.0, 500000.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'on_track_pct': self.on_track_pct,
            'warning_pct': self.warning_pct,
            'top_n': self.top_n,
            'trend_months': self.trend_months,
            'insurer_lookback_months': self.insurer_lookback_months,
            'staircase_thresholds': list(self.staircase_thresholds),
        }


class Config:
    """
    Centralized configuration management

    Usage:
        from quote_dashboard.config import config

        # Engine thresholds
        settings = config.get_engine_settings()

        # Generic app settings
        top_n = config.get_app_setting("TOP_N", 5)

        # Feature flags
        if config.is_feature_enabled("DEBUG_MODE"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration from .env (if any) and the process environment"""
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._load_app_config()
        self._log_config_status()

    def _load_app_config(self):
        """Load engine and application settings"""
        defaults = EngineSettings()

        self._engine_settings = EngineSettings(
            on_track_pct=_env_float("ATTAINMENT_ON_TRACK_PCT", defaults.on_track_pct),
            warning_pct=_env_float("ATTAINMENT_WARNING_PCT", defaults.warning_pct),
            top_n=_env_int("TOP_N", defaults.top_n),
            trend_months=_env_int("TREND_MONTHS", defaults.trend_months),
            insurer_lookback_months=_env_int("INSURER_LOOKBACK_MONTHS", defaults.insurer_lookback_months),
            staircase_thresholds=_env_thresholds("STAIRCASE_THRESHOLDS", defaults.staircase_thresholds),
        )

        self._app_config = {
            # Localization
            "TIMEZONE": os.getenv("TIMEZONE", "America/Sao_Paulo"),

            # Feature flags
            "ENABLE_DEBUG_MODE": os.getenv("ENABLE_DEBUG_MODE", "false").lower() == "true",
        }
        self._app_config.update({k.upper(): v for k, v in self._engine_settings.to_dict().items()})

    def _log_config_status(self):
        """Log configuration status"""
        s = self._engine_settings
        logger.info(f"✅ Attainment tiers: on-track ≥{s.on_track_pct}%, warning ≥{s.warning_pct}%")
        logger.debug(f"Engine settings: {s.to_dict()}")

    # ==================== PUBLIC GETTERS ====================

    def get_engine_settings(self) -> EngineSettings:
        """Get the immutable engine settings snapshot"""
        return self._engine_settings

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key.upper(), default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, False)

    def reload(self):
        """Re-read the environment (used when .env changes at runtime)"""
        self._load_config()

    # ==================== PROPERTIES ====================

    @property
    def app_config(self) -> Dict[str, Any]:
        """Backward compatible property"""
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

__all__ = [
    'config',
    'Config',
    'EngineSettings',
]
