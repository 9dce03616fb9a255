"""
Static configuration management for KPiece.

Purpose
-------
Process-level settings read from environment variables (with .env support):
environment, logging, the save backend and the accrual tick period. Bad
values never crash startup; they fall back to the default and are recorded.

Responsibilities
----------------
- Parse environment variables into typed class attributes
- Validate critical settings on startup
- Create the log and save directories when they are used
- Record which values came from the environment and which were rejected

Non-Responsibilities
--------------------
- Game balance values (handled by ConfigManager + YAML)

Architecture Notes
------------------
- Class-level attributes, no instances
- Loaded on import via Config.load(); Config.validate() is called by the
  composition root
- Relative paths resolve against the project root

Environment Variables
---------------------
All optional:
- ENVIRONMENT: development | testing | staging | production
- DEBUG, LOG_LEVEL, LOG_JSON, LOG_COLORS, LOG_TO_FILE, LOGS_DIR, DATA_DIR
- CONFIG_DIR: directory holding balance YAML files
- SAVE_BACKEND: file | redis | memory (default: file)
- SAVE_PATH: JSON save file for the file backend
- REDIS_URL, SAVE_KEY: redis backend location
- ACCRUAL_INTERVAL_MS: passive income tick period (default: 1000)
- RNG_SEED: seed for draw randomness (unset = system entropy)
"""

import logging
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()

_TRUE_VALUES = frozenset({"true", "yes", "1", "on"})
_FALSE_VALUES = frozenset({"false", "no", "0", "off"})


class Environment(Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse an environment name, defaulting to development.

        Example
        -------
        >>> Environment.from_string("Production") is Environment.PRODUCTION
        True
        """
        try:
            return cls(value.lower())
        except ValueError:
            # The structured logger reads Config, so it is not available here
            logging.warning(f"Unknown environment '{value}', defaulting to development")
            return cls.DEVELOPMENT


class SaveBackend(Enum):
    """Where the economy state document is persisted."""

    FILE = "file"
    REDIS = "redis"
    MEMORY = "memory"


class _ConfigLoadMetrics:
    """Where each value came from, and which raw values were rejected."""

    def __init__(self) -> None:
        self.sources: Dict[str, str] = {}
        self.rejected: Dict[str, str] = {}
        self.last_reload: Optional[str] = None

    def from_env(self, key: str) -> None:
        self.sources[key] = "env"

    def from_default(self, key: str) -> None:
        self.sources[key] = "default"

    def reject(self, key: str, reason: str) -> None:
        self.sources[key] = "default"
        self.rejected[key] = reason

    def defaults_used(self) -> List[str]:
        return [k for k, source in self.sources.items() if source == "default"]

    def get_summary(self) -> Dict[str, Any]:
        return {
            "total_configs": len(self.sources),
            "from_environment": len(self.sources) - len(self.defaults_used()),
            "from_defaults": len(self.defaults_used()),
            "validation_errors": len(self.rejected),
            "defaults_used": self.defaults_used(),
            "last_reload": self.last_reload,
        }


class Config:
    """
    Static configuration for the KPiece economy core.

    Usage
    -----
    >>> Config.SAVE_BACKEND
    'file'
    >>> logger.info("Config loaded", extra=Config.get_config_summary())
    """

    _metrics: _ConfigLoadMetrics = _ConfigLoadMetrics()
    _validated: bool = False

    # Environment / logging
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True
    LOG_TO_FILE: bool = False

    # Directories
    PROJECT_ROOT = Path(__file__).resolve().parents[3]
    LOGS_DIR = PROJECT_ROOT / "logs"
    DATA_DIR = PROJECT_ROOT / "data"
    CONFIG_DIR = PROJECT_ROOT / "config"

    APP_NAME: str = "KPiece"
    APP_VERSION: str = "1.0.0"

    # Persistence
    SAVE_BACKEND: str = SaveBackend.FILE.value
    SAVE_PATH: Path = DATA_DIR / "kpiece-game-state.json"
    REDIS_URL: str = "redis://localhost:6379/0"
    SAVE_KEY: str = "kpiece-game-state"

    # Runtime
    ACCRUAL_INTERVAL_MS: int = 1000
    RNG_SEED: Optional[int] = None

    # =========================================================================
    # Parsers
    # =========================================================================

    @classmethod
    def _reject(cls, key: str, raw: str, default: Any, reason: str) -> Any:
        message = f"{key}='{raw}' {reason}, using default {default}"
        logging.warning(message)
        cls._metrics.reject(key, message)
        return default

    @classmethod
    def _safe_int(
        cls,
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """
        Integer from the environment, bounds-checked.

        Example
        -------
        >>> Config._safe_int("ACCRUAL_INTERVAL_MS", 1000, min_val=10)
        1000
        """
        raw = os.getenv(key)
        if raw is None:
            cls._metrics.from_default(key)
            return default

        try:
            value = int(raw)
        except ValueError:
            return cls._reject(key, raw, default, "is not a valid integer")

        if min_val is not None and value < min_val:
            return cls._reject(key, raw, default, f"is below minimum {min_val}")
        if max_val is not None and value > max_val:
            return cls._reject(key, raw, default, f"exceeds maximum {max_val}")

        cls._metrics.from_env(key)
        return value

    @classmethod
    def _safe_bool(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        """Boolean from the environment: true/false, yes/no, 1/0, on/off."""
        raw = os.getenv(key)
        if raw is None:
            cls._metrics.from_default(key)
            return default

        normalized = raw.strip().lower()
        if normalized in _TRUE_VALUES:
            cls._metrics.from_env(key)
            return True
        if normalized in _FALSE_VALUES:
            cls._metrics.from_env(key)
            return False
        return cls._reject(key, raw, default, "is not a valid boolean")

    @classmethod
    def _safe_str(cls, key: str, default: str) -> str:
        raw = os.getenv(key)
        if raw is None:
            cls._metrics.from_default(key)
            return default
        cls._metrics.from_env(key)
        return raw

    @classmethod
    def _safe_optional_int(cls, key: str) -> Optional[int]:
        """Integer from the environment, or None when unset or invalid."""
        raw = os.getenv(key)
        if raw is None:
            cls._metrics.from_default(key)
            return None
        try:
            value = int(raw)
        except ValueError:
            return cls._reject(key, raw, None, "is not a valid integer")
        cls._metrics.from_env(key)
        return value

    @classmethod
    def _safe_path(cls, key: str, default: Path) -> Path:
        """Path from the environment; relative values resolve against the project root."""
        path = Path(cls._safe_str(key, str(default)))
        return path if path.is_absolute() else cls.PROJECT_ROOT / path

    # =========================================================================
    # Loading / Validation
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """(Re)read every setting from the environment."""
        cls.ENVIRONMENT = cls._safe_str("ENVIRONMENT", "development")
        cls.DEBUG = cls._safe_bool("DEBUG", False)
        cls.LOG_LEVEL = cls._safe_str("LOG_LEVEL", "INFO")
        cls.LOG_JSON = cls._safe_bool("LOG_JSON", None)
        cls.LOG_COLORS = cls._safe_bool("LOG_COLORS", True)
        cls.LOG_TO_FILE = cls._safe_bool("LOG_TO_FILE", False)

        cls.LOGS_DIR = cls._safe_path("LOGS_DIR", cls.PROJECT_ROOT / "logs")
        cls.DATA_DIR = cls._safe_path("DATA_DIR", cls.PROJECT_ROOT / "data")
        cls.CONFIG_DIR = cls._safe_path("CONFIG_DIR", cls.PROJECT_ROOT / "config")

        cls.SAVE_BACKEND = cls._safe_str("SAVE_BACKEND", SaveBackend.FILE.value).lower()
        cls.SAVE_PATH = cls._safe_path("SAVE_PATH", cls.DATA_DIR / "kpiece-game-state.json")
        cls.REDIS_URL = cls._safe_str("REDIS_URL", "redis://localhost:6379/0")
        cls.SAVE_KEY = cls._safe_str("SAVE_KEY", "kpiece-game-state")

        cls.ACCRUAL_INTERVAL_MS = cls._safe_int(
            "ACCRUAL_INTERVAL_MS", 1000, min_val=10, max_val=3_600_000
        )
        cls.RNG_SEED = cls._safe_optional_int("RNG_SEED")

        cls._metrics.last_reload = datetime.now(timezone.utc).isoformat()

    @classmethod
    def validate(cls) -> None:
        """
        Validate critical settings once per process.

        Raises
        ------
        ConfigurationError:
            If the save backend is unknown.
        """
        if cls._validated:
            return

        from kpiece.core.exceptions import ConfigurationError

        logger = logging.getLogger(__name__)
        cls.load()

        if cls.LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            logger.warning(f"Invalid LOG_LEVEL '{cls.LOG_LEVEL}', using INFO")
            cls.LOG_LEVEL = "INFO"

        try:
            backend = SaveBackend(cls.SAVE_BACKEND)
        except ValueError:
            raise ConfigurationError(
                "SAVE_BACKEND",
                f"unknown backend '{cls.SAVE_BACKEND}' "
                f"(expected one of {[b.value for b in SaveBackend]})",
            ) from None

        if cls.LOG_TO_FILE:
            cls.LOGS_DIR.mkdir(parents=True, exist_ok=True)
        if backend is SaveBackend.FILE:
            cls.SAVE_PATH.parent.mkdir(parents=True, exist_ok=True)
        elif backend is SaveBackend.MEMORY and cls.is_production():
            logger.warning("Production environment with memory save backend; progress will be lost")

        cls._validated = True
        logger.info(f"Configuration loaded: {cls._metrics.get_summary()}")
        if cls._metrics.rejected:
            logger.warning(f"Configuration warnings: {cls._metrics.rejected}")

    # =========================================================================
    # Environment Checks
    # =========================================================================

    @classmethod
    def is_production(cls) -> bool:
        return Environment.from_string(cls.ENVIRONMENT) is Environment.PRODUCTION

    @classmethod
    def is_testing(cls) -> bool:
        return Environment.from_string(cls.ENVIRONMENT) is Environment.TESTING

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Non-sensitive settings for startup logs."""
        return {
            "environment": cls.ENVIRONMENT,
            "debug": cls.DEBUG,
            "log_level": cls.LOG_LEVEL,
            "save_backend": cls.SAVE_BACKEND,
            "save_path": str(cls.SAVE_PATH),
            "save_key": cls.SAVE_KEY,
            "accrual_interval_ms": cls.ACCRUAL_INTERVAL_MS,
            "rng_seeded": cls.RNG_SEED is not None,
            "app_version": cls.APP_VERSION,
        }


Config.load()
