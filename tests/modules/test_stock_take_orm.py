"""
Round-trip and constraint tests for the stock-take ORM models.

Verifies that each frozen dataclass DTO can be persisted via from_dto(),
read back via to_dto(), and that table constraints hold.
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from pos_modules.stock_take.models import (
    CountedLine,
    MovementType,
    StockMovement,
    StockTakeSession,
    StockTakeStatus,
)
from pos_modules.stock_take.orm import (
    ProductModel,
    ProductStockLocationModel,
    StockMovementModel,
    StockTakeLineModel,
    StockTakeModel,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _session_dto(product_ids, location="Main Store"):
    return StockTakeSession(
        id=uuid4(),
        location=location,
        status=StockTakeStatus.IN_PROGRESS,
        created_at=NOW,
        created_by_id=uuid4(),
        lines=tuple(
            CountedLine(
                product_id=pid, product_name=f"P{i}", sku=f"S{i}",
                expected_quantity=10 + i, counted_quantity=None if i else 9,
                notes="checked twice" if i == 0 else None,
            )
            for i, pid in enumerate(product_ids)
        ),
        notes="quarterly",
    )


class TestStockTakeModelRoundTrip:

    def test_round_trip(self, session, test_actor_id):
        dto = _session_dto([uuid4(), uuid4()])

        session.add(StockTakeModel.from_dto(dto, created_by_id=test_actor_id))
        session.commit()
        session.expunge_all()

        loaded = session.get(StockTakeModel, dto.id).to_dto()

        assert loaded.id == dto.id
        assert loaded.location == "Main Store"
        assert loaded.status == StockTakeStatus.IN_PROGRESS
        assert loaded.created_at == NOW
        assert loaded.notes == "quarterly"
        assert loaded.lines == dto.lines

    def test_uncounted_stays_null(self, session, test_actor_id):
        dto = _session_dto([uuid4(), uuid4()])
        session.add(StockTakeModel.from_dto(dto, created_by_id=test_actor_id))
        session.commit()

        counted = session.execute(
            select(StockTakeLineModel.counted_quantity)
            .where(StockTakeLineModel.stock_take_id == dto.id)
            .order_by(StockTakeLineModel.position)
        ).scalars().all()

        assert counted == [9, None]

    def test_duplicate_product_line_rejected(self, session, test_actor_id):
        product_id = uuid4()
        dto = _session_dto([product_id])
        model = StockTakeModel.from_dto(dto, created_by_id=test_actor_id)
        model.lines.append(StockTakeLineModel.from_dto(dto.lines[0], test_actor_id, position=1))
        session.add(model)

        with pytest.raises(IntegrityError):
            session.flush()

    def test_location_is_fixed(self, session, test_actor_id):
        dto = _session_dto([uuid4()])
        session.add(StockTakeModel.from_dto(dto, created_by_id=test_actor_id))
        session.commit()

        model = session.get(StockTakeModel, dto.id)
        with pytest.raises(ValueError, match="fixed"):
            model.location = "Back Room"

    def test_blank_location_rejected(self, test_actor_id):
        with pytest.raises(ValueError):
            StockTakeModel(location="  ", created_by_id=test_actor_id)


class TestInventoryModels:

    def test_unique_product_location(self, session, seed_product, test_actor_id):
        product_id = seed_product("Cola", "SKU-COLA", {"Main Store": 5})

        session.add(ProductStockLocationModel(
            product_id=product_id, location="Main Store", quantity=1,
            created_by_id=test_actor_id,
        ))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_unique_sku(self, session, seed_product, test_actor_id):
        seed_product("Cola", "SKU-COLA", {})

        session.add(ProductModel(name="Cola Zero", sku="SKU-COLA", created_by_id=test_actor_id))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_location_row_to_snapshot_entry(self, session, seed_product):
        product_id = seed_product("Cola", "SKU-COLA", {"Main Store": 5})

        row = session.execute(
            select(ProductStockLocationModel).where(
                ProductStockLocationModel.product_id == product_id,
            )
        ).scalar_one()
        entry = row.to_dto()

        assert entry.product_name == "Cola"
        assert entry.sku == "SKU-COLA"
        assert entry.quantity == 5

    def test_movement_round_trip(self, session, seed_product, test_actor_id):
        product_id = seed_product("Cola", "SKU-COLA", {"Main Store": 5})
        movement = StockMovement(
            product_id=product_id,
            movement_type=MovementType.ADJUSTMENT,
            quantity=-2,
            reference_type="stock_take",
            reference_id=uuid4(),
            location_to="Main Store",
            notes="Stock take adjustment: missing 2 units",
        )

        session.add(StockMovementModel.from_dto(movement, created_by_id=test_actor_id))
        session.commit()

        loaded = session.execute(select(StockMovementModel)).scalar_one().to_dto()
        assert loaded == movement

    def test_stock_take_writes_adjustments_only(self):
        assert [m.value for m in MovementType] == ["ADJUSTMENT"]
