"""
Configuration Schema (``pos_config.schema``).

Responsibility
--------------
Frozen dataclasses describing a parsed application configuration.
Module-specific sections are kept as plain mappings here and validated by
the owning module's own config class (e.g. ``StockTakeConfig``), so this
package never imports ``pos_modules``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings handed to ``init_engine_from_url``."""
    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("database.url is required")
        if self.pool_size <= 0:
            raise ValueError("database.pool_size must be positive")
        if self.max_overflow < 0:
            raise ValueError("database.max_overflow cannot be negative")


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"

    def __post_init__(self) -> None:
        if self.level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {sorted(VALID_LOG_LEVELS)}, "
                f"got '{self.level}'"
            )


@dataclass(frozen=True)
class AppConfig:
    """The complete parsed configuration document."""
    name: str
    version: str
    database: DatabaseSettings
    logging: LoggingSettings
    modules: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    checksum: str = ""

    def module_settings(self, module_name: str) -> dict[str, Any]:
        """Raw settings for one module; empty when the section is absent."""
        return dict(self.modules.get(module_name) or {})
