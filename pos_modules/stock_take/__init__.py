"""
Stock-Take Module (``pos_modules.stock_take``).

Responsibility
--------------
Physical stock counting for one location at a time: snapshot the expected
quantities, buffer the user's counts, review the variances, and reconcile
authoritative stock on finalize.  Variance arithmetic and reconciliation
planning are delegated to ``pos_engines``.

Architecture
------------
Layer: **Modules** -- models, workflow, config schema, ORM, persistence
adapters and a thin orchestration service.  Imports from ``pos_engines``
and ``pos_kernel`` but never the reverse.

Invariants
----------
- Expected quantities are fixed when the session starts.
- Uncounted is not zero.
- Finalize is all-or-nothing; cancel never touches stock.

Failure Modes
-------------
- Typed ``PosKernelError`` subclasses for every rejected operation.
- Any exception triggers a session rollback before re-raising.
"""

from pos_modules.stock_take.buffer import UNSET, CountEntryBuffer, parse_count
from pos_modules.stock_take.config import StockTakeConfig
from pos_modules.stock_take.models import (
    CountedLine,
    MovementType,
    NotificationType,
    ProductInfo,
    SnapshotEntry,
    StockMovement,
    StockSnapshot,
    StockTakePage,
    StockTakeSession,
    StockTakeStatus,
    StockTakeSummary,
)
from pos_modules.stock_take.service import StockTakeService
from pos_modules.stock_take.snapshot import InventorySnapshotProvider
from pos_modules.stock_take.store import (
    InventoryStore,
    SqlInventoryStore,
    SqlStockTakeRepository,
    StockTakeRepository,
)
from pos_modules.stock_take.workflows import STOCK_TAKE_WORKFLOW

__all__ = [
    "UNSET",
    "CountEntryBuffer",
    "parse_count",
    "StockTakeConfig",
    "CountedLine",
    "MovementType",
    "NotificationType",
    "ProductInfo",
    "SnapshotEntry",
    "StockMovement",
    "StockSnapshot",
    "StockTakePage",
    "StockTakeSession",
    "StockTakeStatus",
    "StockTakeSummary",
    "StockTakeService",
    "InventorySnapshotProvider",
    "InventoryStore",
    "SqlInventoryStore",
    "SqlStockTakeRepository",
    "StockTakeRepository",
    "STOCK_TAKE_WORKFLOW",
]
