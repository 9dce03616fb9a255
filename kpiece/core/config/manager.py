"""
ConfigManager: YAML-backed game balance configuration for KPiece.

Purpose
-------
- Provide hierarchical, dot-notation access to tunable balance values
  (cooldown intervals, rewards, costs, crew size).
- Back configuration with built-in defaults plus YAML overrides from the
  `CONFIG_DIR` directory.

Responsibilities
----------------
- Load and deep-merge every YAML file found under `CONFIG_DIR`.
- Serve reads from an in-memory dictionary with hit/miss counters.
- Degrade to built-in defaults when the directory or a file is missing or
  malformed.

Key Design Decisions
--------------------
- Built-in defaults are the single source of truth for key names; YAML only
  overrides values.
- Class-level state, loaded once by the composition root. Domain code never
  calls ConfigManager; the composition root turns the values into an
  `EconomyRules` object and passes that down.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional

import yaml

from kpiece.core.logging.logger import get_logger

logger = get_logger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "economy": {
        "chest": {
            "interval_ms": 60_000,
            "base_reward": 100,
        },
        "draw": {
            "free_interval_ms": 300_000,
            "diamond_cost": 10,
        },
        "crew": {
            "max_size": 5,
        },
        "progression": {
            "cost_per_level": 100,
            "hp_per_level": 10,
            "attack_per_level": 2,
            "defense_per_level": 1,
            "speed_per_level": 1,
        },
        "starting": {
            "berries": 0,
            "diamonds": 50,
        },
    },
}


@dataclass(slots=True)
class ConfigMetrics:
    gets: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    yaml_files_loaded: int = 0
    yaml_errors: int = 0


class ConfigManager:
    """
    Game balance configuration with YAML overrides.

    Examples
    --------
    >>> ConfigManager.load()
    >>> ConfigManager.get("economy.chest.interval_ms")
    60000
    >>> ConfigManager.get("economy.unknown", 7)
    7
    """

    _cache: Dict[str, Any] = {}
    _initialized: bool = False
    _metrics: ConfigMetrics = ConfigMetrics()

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: MutableMapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)  # type: ignore[index]
            else:
                target[key] = value

    @classmethod
    def load(cls, config_dir: Optional[Path] = None) -> None:
        """
        Load built-in defaults, then overlay every YAML file in `config_dir`.

        Parameters
        ----------
        config_dir:
            Directory to scan recursively. Defaults to `Config.CONFIG_DIR`.
        """
        if config_dir is None:
            from kpiece.core.config.config import Config

            config_dir = Config.CONFIG_DIR

        cls._cache = copy.deepcopy(DEFAULT_CONFIG)
        cls._metrics = ConfigMetrics()
        cls._initialized = True

        if not config_dir.exists():
            logger.warning(
                "Config directory not found; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return

        yaml_files = sorted(config_dir.rglob("*.yaml")) + sorted(config_dir.rglob("*.yml"))
        if not yaml_files:
            logger.info(
                "No YAML config files discovered; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return

        for yaml_file in yaml_files:
            try:
                with yaml_file.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle)
            except (OSError, yaml.YAMLError) as exc:
                cls._metrics.yaml_errors += 1
                logger.warning(
                    "Failed to load YAML config",
                    extra={
                        "file": str(yaml_file.relative_to(config_dir)),
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                continue

            if isinstance(data, dict):
                cls._deep_merge_dict(cls._cache, data)
                cls._metrics.yaml_files_loaded += 1
                logger.debug(
                    "Loaded YAML config",
                    extra={"file": str(yaml_file.relative_to(config_dir))},
                )
            elif data is not None:
                logger.warning(
                    "Ignoring non-dict YAML root object",
                    extra={
                        "file": str(yaml_file.relative_to(config_dir)),
                        "root_type": type(data).__name__,
                    },
                )

        logger.info(
            "YAML configs loaded",
            extra={
                "yaml_file_count": cls._metrics.yaml_files_loaded,
                "total_cache_keys": len(cls._cache),
            },
        )

    @classmethod
    def reset(cls) -> None:
        """Drop all loaded values; the next read falls back to defaults."""
        cls._cache = {}
        cls._initialized = False
        cls._metrics = ConfigMetrics()

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Parameters
        ----------
        key:
            Dot-notation config path (e.g. `"economy.draw.diamond_cost"`).
        default:
            Value returned when the key is missing.
        """
        cls._metrics.gets += 1

        if not cls._initialized:
            logger.warning(
                "ConfigManager accessed before explicit initialization; "
                "falling back to defaults only"
            )
            cls._cache = copy.deepcopy(DEFAULT_CONFIG)
            cls._initialized = True

        value: Any = cls._cache
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                cls._metrics.cache_misses += 1
                return default
            value = value[part]

        cls._metrics.cache_hits += 1
        return value if value is not None else default

    @classmethod
    def get_all_keys(cls) -> List[str]:
        """Return all top-level configuration keys currently loaded."""
        return list(cls._cache.keys())

    @classmethod
    def health_snapshot(cls) -> Dict[str, Any]:
        """Counters for diagnostics."""
        return {
            "initialized": cls._initialized,
            "gets": cls._metrics.gets,
            "cache_hits": cls._metrics.cache_hits,
            "cache_misses": cls._metrics.cache_misses,
            "yaml_files_loaded": cls._metrics.yaml_files_loaded,
            "yaml_errors": cls._metrics.yaml_errors,
        }
