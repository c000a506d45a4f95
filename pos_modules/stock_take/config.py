"""
Stock-Take Configuration Schema.

Defines the structure and defaults for stock-take settings.
Actual values are loaded from the ``modules.stock_take`` section of the
active configuration set at runtime.
"""

from dataclasses import dataclass
from typing import Self

from pos_kernel.logging_config import get_logger

logger = get_logger("modules.stock_take.config")


@dataclass
class StockTakeConfig:
    """
    Configuration schema for the stock-take module.

    Override at instantiation with store-specific values:

        config = StockTakeConfig(
            snapshot_include_zero_stock=False,
            **get_active_config().module_settings("stock_take"),
        )
    """

    # Snapshot
    snapshot_include_zero_stock: bool = True

    # Lifecycle
    require_cancel_confirmation: bool = True
    allow_concurrent_sessions_per_location: bool = False

    # Finalize side records
    record_stock_movements: bool = True
    record_completion_notification: bool = True

    # History listing
    default_page_size: int = 20
    max_page_size: int = 100

    def __post_init__(self):
        for name in (
            "snapshot_include_zero_stock",
            "require_cancel_confirmation",
            "allow_concurrent_sessions_per_location",
            "record_stock_movements",
            "record_completion_notification",
        ):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a boolean, got {getattr(self, name)!r}")

        # Validate paging
        if self.default_page_size <= 0:
            raise ValueError("default_page_size must be positive")
        if self.max_page_size <= 0:
            raise ValueError("max_page_size must be positive")
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) cannot exceed "
                f"max_page_size ({self.max_page_size})"
            )

        logger.info(
            "stock_take_config_initialized",
            extra={
                "snapshot_include_zero_stock": self.snapshot_include_zero_stock,
                "require_cancel_confirmation": self.require_cancel_confirmation,
                "allow_concurrent_sessions_per_location": self.allow_concurrent_sessions_per_location,
                "record_stock_movements": self.record_stock_movements,
                "record_completion_notification": self.record_completion_notification,
                "default_page_size": self.default_page_size,
                "max_page_size": self.max_page_size,
            },
        )

    def page_limit(self, requested: int | None) -> int:
        """Effective page size for a listing request."""
        if requested is None or requested <= 0:
            return self.default_page_size
        return min(requested, self.max_page_size)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the shipped defaults."""
        logger.info("stock_take_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from a YAML set)."""
        logger.info(
            "stock_take_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
