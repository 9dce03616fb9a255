"""
Configuration subsystem for KPiece.

Static vs Balance Configuration
-------------------------------
**Static (Config):**
- Loaded from environment variables (.env support) at startup
- Includes: environment, logging, save backend, accrual tick period

**Balance (ConfigManager, in `kpiece.core.config.manager`):**
- Built-in defaults overlaid with YAML files from `CONFIG_DIR`
- Includes: cooldown intervals, chest reward, draw cost, crew size,
  level-up cost and stat gains

ConfigManager logs through the structured logger, which itself reads
`Config`; import it from its module to keep that dependency one-way.

Usage
-----
>>> from kpiece.core.config import Config
>>> from kpiece.core.config.manager import ConfigManager
>>> ConfigManager.get("economy.draw.diamond_cost")
10
"""

from kpiece.core.config.config import Config, Environment, SaveBackend

__all__ = [
    "Config",
    "Environment",
    "SaveBackend",
]
