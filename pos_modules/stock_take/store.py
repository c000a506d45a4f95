"""
pos_modules.stock_take.store -- Inventory store and stock-take repository.

Responsibility:
    Define the two persistence seams a stock take depends on and provide
    their SQLAlchemy implementations:

    - ``InventoryStore``: the authoritative per-location and aggregate stock
      figures, plus the movement log written alongside them.
    - ``StockTakeRepository``: sessions, their counted lines, and completion
      notifications.

Architecture position:
    Modules -- persistence adapters over ``pos_modules.stock_take.orm``.
    Neither implementation commits; the service owns the transaction
    boundary and flushes through these adapters.

Invariants enforced:
    - Stock rows touched during a finalize are read with
      ``SELECT ... FOR UPDATE`` so concurrent finalizers serialize.
    - ``SqlStockTakeRepository.save`` never rewrites a session's location or
      its lines' expected quantities.

Failure modes:
    - LookupError from ``adjust_aggregate_stock`` / ``write_location_stock``
      when the product does not exist.
    - StockTakeNotFoundError from ``SqlStockTakeRepository.save`` when the
      session row is missing.
    - SQLAlchemyError from the session on any database failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pos_kernel.exceptions import StockTakeNotFoundError
from pos_kernel.logging_config import get_logger
from pos_modules.stock_take.models import (
    NotificationType,
    ProductInfo,
    StockMovement,
    StockTakeSession,
    StockTakeStatus,
)
from pos_modules.stock_take.orm import (
    NotificationModel,
    ProductModel,
    ProductStockLocationModel,
    StockMovementModel,
    StockTakeModel,
)

logger = get_logger("modules.stock_take.store")


# =============================================================================
# Inventory store
# =============================================================================


class InventoryStore(ABC):
    """
    Authoritative stock figures.

    Contract:
        Implementations do not commit; writes join the caller's transaction.
    Non-goals:
        Does not know about stock takes; callers decide what to write.
    """

    @abstractmethod
    def read_location_stock(self, location: str) -> Mapping[UUID, int]:
        """Quantity on hand per product at ``location``; empty if unknown."""

    @abstractmethod
    def write_location_stock(
        self,
        product_id: UUID,
        location: str,
        quantity: int,
        actor_id: UUID | None = None,
    ) -> None:
        """Set the product's quantity at ``location`` (absolute)."""

    @abstractmethod
    def adjust_aggregate_stock(
        self,
        product_id: UUID,
        delta: int,
        actor_id: UUID | None = None,
    ) -> int:
        """Add ``delta`` to the product's aggregate; return the new total."""

    @abstractmethod
    def describe_products(self, product_ids: Iterable[UUID]) -> dict[UUID, ProductInfo]:
        """Name and SKU for each known product id."""

    @abstractmethod
    def get_aggregate_stock(self, product_id: UUID) -> int | None:
        """Aggregate on hand, or None for an unknown product."""

    @abstractmethod
    def record_movement(self, movement: StockMovement, actor_id: UUID) -> None:
        """Append a movement to the stock movement log."""


class SqlInventoryStore(InventoryStore):
    """``InventoryStore`` over the ``products`` and ``product_stock_locations`` tables."""

    def __init__(self, session: Session):
        self._session = session

    def read_location_stock(self, location: str) -> dict[UUID, int]:
        rows = self._session.execute(
            select(
                ProductStockLocationModel.product_id,
                ProductStockLocationModel.quantity,
            ).where(ProductStockLocationModel.location == location)
        ).all()
        return {product_id: quantity for product_id, quantity in rows}

    def get_location_stock(self, product_id: UUID, location: str) -> int | None:
        """Quantity at one location; read-back aid for tests and the demo script."""
        return self._session.execute(
            select(ProductStockLocationModel.quantity).where(
                ProductStockLocationModel.product_id == product_id,
                ProductStockLocationModel.location == location,
            )
        ).scalar_one_or_none()

    def _lock_product(self, product_id: UUID) -> ProductModel:
        product = self._session.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .with_for_update()
        ).scalar_one_or_none()
        if product is None:
            raise LookupError(f"product {product_id} does not exist")
        return product

    def write_location_stock(
        self,
        product_id: UUID,
        location: str,
        quantity: int,
        actor_id: UUID | None = None,
    ) -> None:
        if quantity < 0:
            raise ValueError(f"location quantity cannot be negative (got {quantity})")

        row = self._session.execute(
            select(ProductStockLocationModel)
            .where(
                ProductStockLocationModel.product_id == product_id,
                ProductStockLocationModel.location == location,
            )
            .with_for_update()
        ).scalar_one_or_none()

        if row is None:
            product = self._lock_product(product_id)
            row = ProductStockLocationModel(
                product_id=product_id,
                location=location,
                quantity=quantity,
                created_by_id=actor_id or product.created_by_id,
            )
            self._session.add(row)
            previous = None
        else:
            previous = row.quantity
            row.quantity = quantity
            row.updated_by_id = actor_id

        self._session.flush()
        logger.debug("location_stock_written", extra={
            "product_id": str(product_id),
            "location": location,
            "previous_quantity": previous,
            "quantity": quantity,
        })

    def adjust_aggregate_stock(
        self,
        product_id: UUID,
        delta: int,
        actor_id: UUID | None = None,
    ) -> int:
        product = self._lock_product(product_id)
        previous = product.stock_quantity
        product.stock_quantity = previous + delta
        product.updated_by_id = actor_id
        self._session.flush()
        logger.debug("aggregate_stock_adjusted", extra={
            "product_id": str(product_id),
            "previous_quantity": previous,
            "delta": delta,
            "quantity": product.stock_quantity,
        })
        return product.stock_quantity

    def describe_products(self, product_ids: Iterable[UUID]) -> dict[UUID, ProductInfo]:
        ids = list(product_ids)
        if not ids:
            return {}
        products = self._session.execute(
            select(ProductModel).where(ProductModel.id.in_(ids))
        ).scalars().all()
        return {p.id: p.to_dto() for p in products}

    def get_aggregate_stock(self, product_id: UUID) -> int | None:
        return self._session.execute(
            select(ProductModel.stock_quantity).where(ProductModel.id == product_id)
        ).scalar_one_or_none()

    def record_movement(self, movement: StockMovement, actor_id: UUID) -> None:
        self._session.add(StockMovementModel.from_dto(movement, created_by_id=actor_id))
        self._session.flush()

    def movements_for(self, reference_type: str, reference_id: UUID) -> list[StockMovement]:
        """Movements written for one reference.  Read-back aid for tests."""
        models = self._session.execute(
            select(StockMovementModel)
            .where(
                StockMovementModel.reference_type == reference_type,
                StockMovementModel.reference_id == reference_id,
            )
            .order_by(StockMovementModel.created_at, StockMovementModel.id)
        ).scalars().all()
        return [m.to_dto() for m in models]


# =============================================================================
# Stock-take repository
# =============================================================================


class StockTakeRepository(ABC):
    """Persistence for stock-take sessions."""

    @abstractmethod
    def add(self, stock_take: StockTakeSession, actor_id: UUID) -> None:
        ...

    @abstractmethod
    def get(self, stock_take_id: UUID, for_update: bool = False) -> StockTakeSession | None:
        ...

    @abstractmethod
    def save(self, stock_take: StockTakeSession, actor_id: UUID) -> None:
        """Persist status, timestamps and counts of an existing session."""

    @abstractmethod
    def find_open(self, location: str) -> UUID | None:
        """Id of an in-progress session at ``location``, if any."""

    @abstractmethod
    def list_sessions(
        self,
        location: str | None = None,
        status: StockTakeStatus | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[StockTakeSession], int]:
        """Sessions newest first, and the total matching count."""

    @abstractmethod
    def record_notification(
        self,
        notification_type: NotificationType,
        title: str,
        message: str,
        link: str | None,
        reference_id: UUID | None,
        actor_id: UUID,
        vendor_id: UUID | None = None,
    ) -> None:
        ...


class SqlStockTakeRepository(StockTakeRepository):
    """``StockTakeRepository`` over the ``stock_takes`` and ``stock_take_lines`` tables."""

    def __init__(self, session: Session):
        self._session = session

    def _load(self, stock_take_id: UUID, for_update: bool = False) -> StockTakeModel | None:
        stmt = select(StockTakeModel).where(StockTakeModel.id == stock_take_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.execute(stmt).scalar_one_or_none()

    def add(self, stock_take: StockTakeSession, actor_id: UUID) -> None:
        self._session.add(StockTakeModel.from_dto(stock_take, created_by_id=actor_id))
        self._session.flush()

    def get(self, stock_take_id: UUID, for_update: bool = False) -> StockTakeSession | None:
        model = self._load(stock_take_id, for_update=for_update)
        return model.to_dto() if model is not None else None

    def save(self, stock_take: StockTakeSession, actor_id: UUID) -> None:
        model = self._load(stock_take.id)
        if model is None:
            raise StockTakeNotFoundError(str(stock_take.id))

        model.status = stock_take.status.value
        model.completed_at = stock_take.completed_at
        model.cancelled_at = stock_take.cancelled_at
        model.notes = stock_take.notes
        model.updated_by_id = actor_id

        by_product = {line.product_id: line for line in stock_take.lines}
        for line_model in model.lines:
            line = by_product.get(line_model.product_id)
            if line is None:
                continue
            if (
                line_model.counted_quantity != line.counted_quantity
                or line_model.notes != line.notes
            ):
                line_model.counted_quantity = line.counted_quantity
                line_model.notes = line.notes
                line_model.updated_by_id = actor_id

        self._session.flush()

    def find_open(self, location: str) -> UUID | None:
        return self._session.execute(
            select(StockTakeModel.id)
            .where(
                StockTakeModel.location == location,
                StockTakeModel.status == StockTakeStatus.IN_PROGRESS.value,
            )
            .order_by(StockTakeModel.created_at)
            .limit(1)
        ).scalar_one_or_none()

    def list_sessions(
        self,
        location: str | None = None,
        status: StockTakeStatus | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[StockTakeSession], int]:
        filters = []
        if location is not None:
            filters.append(StockTakeModel.location == location)
        if status is not None:
            filters.append(StockTakeModel.status == StockTakeStatus(status).value)

        total = self._session.execute(
            select(func.count()).select_from(StockTakeModel).where(*filters)
        ).scalar_one()

        models = self._session.execute(
            select(StockTakeModel)
            .where(*filters)
            .order_by(StockTakeModel.created_at.desc(), StockTakeModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

        return [m.to_dto() for m in models], total

    def record_notification(
        self,
        notification_type: NotificationType,
        title: str,
        message: str,
        link: str | None,
        reference_id: UUID | None,
        actor_id: UUID,
        vendor_id: UUID | None = None,
    ) -> None:
        self._session.add(NotificationModel(
            notification_type=notification_type.value,
            title=title,
            message=message,
            link=link,
            reference_id=reference_id,
            vendor_id=vendor_id,
            created_by_id=actor_id,
        ))
        self._session.flush()

    def notifications_for(self, reference_id: UUID) -> list[NotificationModel]:
        """Notifications for one reference.  Read-back aid for tests."""
        return list(self._session.execute(
            select(NotificationModel)
            .where(NotificationModel.reference_id == reference_id)
            .order_by(NotificationModel.created_at)
        ).scalars().all())
