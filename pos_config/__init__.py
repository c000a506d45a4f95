"""
pos_config -- single public entrypoint for application configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    directly.  YAML loading is an implementation detail of this package.

Architecture position:
    Configuration -- sits above ``pos_kernel`` and below ``pos_modules``.
    The kernel MUST NEVER import from ``pos_config``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` / ``ValueError`` -- schema validation failures.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``POS_CONFIG_TRACE`` log entry with the config name, version and
    checksum, tying runtime behavior to an exact configuration document.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pos_config.loader import load_config
from pos_config.schema import AppConfig, DatabaseSettings, LoggingSettings

_logger = logging.getLogger("pos_kernel.config")

# Default configuration file
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> AppConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a YAML configuration file.
            Defaults to pos_config/sets/default.yaml.

    Returns:
        AppConfig -- frozen, validated configuration.

    Raises:
        FileNotFoundError: If the file is missing.
        KeyError: If a required key is missing.
        ValueError: If a section fails validation.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = load_config(path)

    _logger.info(
        "POS_CONFIG_TRACE",
        extra={
            "trace_type": "POS_CONFIG_TRACE",
            "config_name": config.name,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(path),
            "module_sections": sorted(config.modules.keys()),
        },
    )
    return config


__all__ = [
    "AppConfig",
    "DatabaseSettings",
    "LoggingSettings",
    "DEFAULT_CONFIG_PATH",
    "get_active_config",
]
