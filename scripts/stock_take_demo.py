#!/usr/bin/env python3
"""
Walk one stock take through start, count, review and finalize.

Drops and recreates the tables of the configured database, seeds three
products at "Main Store", then counts them and prints the variance review
and the resulting stock.

Usage:
    python3 scripts/stock_take_demo.py [config.yaml]
"""

import logging
import sys
from pathlib import Path
from uuid import uuid4

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

LOCATION = "Main Store"
W = 72

PRODUCTS = [
    # name, sku, on hand, counted
    ("Cola 330ml", "SKU-COLA", 50, 48),
    ("Salted Chips", "SKU-CHIPS", 20, 20),
    ("Mineral Water", "SKU-WATER", 30, 33),
]


def main() -> int:
    logging.disable(logging.CRITICAL)

    from pos_config import get_active_config
    from pos_kernel.db.engine import drop_tables, get_session
    from pos_modules._orm_registry import create_all_tables
    from pos_modules.bootstrap import bootstrap
    from pos_modules.stock_take.config import StockTakeConfig
    from pos_modules.stock_take.orm import ProductModel, ProductStockLocationModel
    from pos_modules.stock_take.service import StockTakeService
    from pos_modules.stock_take.store import SqlInventoryStore

    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        app_config = get_active_config(config_path)
        bootstrap(app_config, create_schema=False)
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    drop_tables()
    create_all_tables()

    actor_id = uuid4()
    session = get_session()

    try:
        product_ids = {}
        for name, sku, on_hand, _ in PRODUCTS:
            product = ProductModel(
                name=name, sku=sku, stock_quantity=on_hand, created_by_id=actor_id,
            )
            session.add(product)
            session.flush()
            session.add(ProductStockLocationModel(
                product_id=product.id,
                location=LOCATION,
                quantity=on_hand,
                created_by_id=actor_id,
            ))
            product_ids[sku] = product.id
        session.commit()

        service = StockTakeService(
            session,
            config=StockTakeConfig.from_dict(app_config.module_settings("stock_take")),
        )
        stock_take = service.start_session(LOCATION, actor_id, notes="Demo count")
        for _, sku, _, counted in PRODUCTS:
            service.set_count(stock_take.id, product_ids[sku], str(counted))

        review = service.get_variance_review(stock_take.id)
        print("=" * W)
        print(f"  Stock take {stock_take.id} at {LOCATION}")
        print("=" * W)
        print(f"  {'Product':<24}{'Expected':>10}{'Counted':>10}{'Variance':>10}")
        for line in review.lines:
            print(
                f"  {line.product_name:<24}{line.expected:>10}"
                f"{line.counted:>10}{line.variance:>+10}"
            )
        print(f"  Confirmed without change: {review.summary.confirmed_lines}")
        print()

        completed = service.finalize(stock_take.id, actor_id)
        print(f"  Status: {completed.status.value}")

        store = SqlInventoryStore(session)
        for name, sku, _, _ in PRODUCTS:
            pid = product_ids[sku]
            print(
                f"  {name:<24} location={store.get_location_stock(pid, LOCATION):>5}"
                f"  total={store.get_aggregate_stock(pid):>5}"
            )
        return 0

    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
