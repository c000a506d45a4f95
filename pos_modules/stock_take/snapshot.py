"""
Inventory Snapshot Provider.

Captures the quantities on hand at a location when a stock take starts.
The snapshot is a read; it never writes to the store.
"""

from __future__ import annotations

from pos_kernel.domain.clock import Clock, SystemClock
from pos_kernel.logging_config import get_logger
from pos_modules.stock_take.config import StockTakeConfig
from pos_modules.stock_take.models import SnapshotEntry, StockSnapshot
from pos_modules.stock_take.store import InventoryStore

logger = get_logger("modules.stock_take.snapshot")


class InventorySnapshotProvider:
    """
    Reads a location's stock into a ``StockSnapshot``.

    Entries are ordered by product name (case-insensitive), then product id.
    Products with no name/SKU record in the store are skipped.
    """

    def __init__(
        self,
        store: InventoryStore,
        config: StockTakeConfig | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._config = config or StockTakeConfig()
        self._clock = clock or SystemClock()

    def capture(self, location: str) -> StockSnapshot:
        quantities = self._store.read_location_stock(location)
        if not self._config.snapshot_include_zero_stock:
            quantities = {pid: qty for pid, qty in quantities.items() if qty != 0}

        products = self._store.describe_products(quantities.keys())
        entries = [
            SnapshotEntry(
                product_id=pid,
                product_name=products[pid].name,
                sku=products[pid].sku,
                quantity=qty,
            )
            for pid, qty in quantities.items()
            if pid in products
        ]
        entries.sort(key=lambda e: (e.product_name.casefold(), str(e.product_id)))

        missing = len(quantities) - len(entries)
        if missing:
            logger.warning("stock_snapshot_products_missing", extra={
                "location": location,
                "missing_count": missing,
            })

        snapshot = StockSnapshot(
            location=location,
            entries=tuple(entries),
            captured_at=self._clock.now(),
        )
        logger.info("stock_snapshot_captured", extra={
            "location": location,
            "entry_count": len(snapshot.entries),
            "include_zero_stock": self._config.snapshot_include_zero_stock,
        })
        return snapshot
