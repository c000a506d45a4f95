"""
Module: pos_modules.stock_take.orm
Responsibility: SQLAlchemy ORM persistence models for stock takes and the
    inventory records they reconcile.  Maps frozen dataclass DTOs from
    stock_take.models to relational tables for products, per-location stock,
    sessions, counted lines, stock movements and notifications.

Architecture position: Modules > Stock take > ORM.  Inherits from TrackedBase
    (pos_kernel.db.base).

Invariants enforced:
    - Quantities are integers (BigInteger via type_annotation_map).
    - Enum fields stored as String(50) for portability and readability.
    - One stock row per (product, location); one line per (stock take, product).
    - A stock take's location cannot change once set.
    - TrackedBase provides: id (UUID PK), created_at, updated_at,
      created_by_id (NOT NULL), updated_by_id (nullable).

Failure modes:
    - IntegrityError on a duplicate (product, location) stock row or a
      duplicate product within one stock take.
    - ValueError when code assigns a different location to a persisted
      stock take.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from pos_kernel.db.base import TrackedBase


# =============================================================================
# ProductModel
# =============================================================================

class ProductModel(TrackedBase):
    """
    ORM model for sellable products.

    ``stock_quantity`` is the aggregate on hand across every location.
    """

    __tablename__ = "products"

    __table_args__ = (
        UniqueConstraint("sku", name="uq_products_sku"),
        Index("idx_products_name", "name"),
        Index("idx_products_vendor", "vendor_id"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    stock_quantity: Mapped[int] = mapped_column(nullable=False, default=0)
    vendor_id: Mapped[UUID | None] = mapped_column(nullable=True)

    locations: Mapped[list["ProductStockLocationModel"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dto(self):
        """Convert ORM model to frozen ProductInfo DTO."""
        from pos_modules.stock_take.models import ProductInfo
        return ProductInfo(product_id=self.id, name=self.name, sku=self.sku)

    def __repr__(self) -> str:
        return f"<ProductModel {self.sku} stock={self.stock_quantity}>"


# =============================================================================
# ProductStockLocationModel
# =============================================================================

class ProductStockLocationModel(TrackedBase):
    """ORM model for a product's quantity at one location."""

    __tablename__ = "product_stock_locations"

    __table_args__ = (
        UniqueConstraint(
            "product_id", "location", name="uq_product_stock_locations_product_location",
        ),
        Index("idx_product_stock_locations_location", "location"),
    )

    product_id: Mapped[UUID] = mapped_column(
        ForeignKey("products.id"), nullable=False
    )
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False, default=0)

    product: Mapped["ProductModel"] = relationship(
        back_populates="locations",
    )

    def to_dto(self):
        """
        Convert ORM model to a frozen SnapshotEntry DTO.

        Snapshot capture reads quantities with a single query; this
        per-row conversion serves tests and ad-hoc inspection.
        """
        from pos_modules.stock_take.models import SnapshotEntry
        return SnapshotEntry(
            product_id=self.product_id,
            product_name=self.product.name,
            sku=self.product.sku,
            quantity=self.quantity,
        )

    def __repr__(self) -> str:
        return (
            f"<ProductStockLocationModel product={self.product_id} "
            f"location={self.location!r} qty={self.quantity}>"
        )


# =============================================================================
# StockTakeModel
# =============================================================================

class StockTakeModel(TrackedBase):
    """
    ORM model for stock-take sessions.

    Maps to the ``StockTakeSession`` frozen dataclass.  Counted lines are
    stored in a separate child table via ``lines`` relationship.
    """

    __tablename__ = "stock_takes"

    __table_args__ = (
        Index("idx_stock_takes_location", "location"),
        Index("idx_stock_takes_status", "status"),
        Index("idx_stock_takes_created_at", "created_at"),
        Index("idx_stock_takes_vendor", "vendor_id"),
    )

    location: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="in_progress")
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    vendor_id: Mapped[UUID | None] = mapped_column(nullable=True)

    # Relationship to child lines
    lines: Mapped[list["StockTakeLineModel"]] = relationship(
        back_populates="stock_take",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="StockTakeLineModel.position",
    )

    @validates("location")
    def _validate_location(self, key, value):
        if not value or not value.strip():
            raise ValueError("stock take location is required")
        current = self.__dict__.get("location")
        if current is not None and current != value:
            raise ValueError(
                f"stock take {self.id} location is fixed at {current!r}"
            )
        return value

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from pos_modules.stock_take.models import StockTakeSession, StockTakeStatus

        return StockTakeSession(
            id=self.id,
            location=self.location,
            status=StockTakeStatus(self.status),
            created_at=self.created_at,
            created_by_id=self.created_by_id,
            lines=tuple(line.to_dto() for line in self.lines),
            completed_at=self.completed_at,
            cancelled_at=self.cancelled_at,
            notes=self.notes,
            vendor_id=self.vendor_id,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "StockTakeModel":
        """Create ORM model from frozen dataclass."""
        model = cls(
            id=dto.id,
            location=dto.location,
            status=dto.status.value,
            created_at=dto.created_at,
            completed_at=dto.completed_at,
            cancelled_at=dto.cancelled_at,
            notes=dto.notes,
            vendor_id=dto.vendor_id,
            created_by_id=created_by_id,
        )
        model.lines = [
            StockTakeLineModel.from_dto(line, created_by_id, position=index)
            for index, line in enumerate(dto.lines)
        ]
        return model

    def __repr__(self) -> str:
        return (
            f"<StockTakeModel {self.id} location={self.location!r} "
            f"status={self.status}>"
        )


# =============================================================================
# StockTakeLineModel
# =============================================================================

class StockTakeLineModel(TrackedBase):
    """
    ORM model for one product's line within a stock take.

    ``counted_quantity`` is NULL until the product is counted.
    """

    __tablename__ = "stock_take_lines"

    __table_args__ = (
        UniqueConstraint(
            "stock_take_id", "product_id", name="uq_stock_take_lines_take_product",
        ),
        Index("idx_stock_take_lines_stock_take_id", "stock_take_id"),
        Index("idx_stock_take_lines_product_id", "product_id"),
    )

    stock_take_id: Mapped[UUID] = mapped_column(
        ForeignKey("stock_takes.id"), nullable=False
    )
    product_id: Mapped[UUID] = mapped_column(nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    expected_quantity: Mapped[int] = mapped_column(nullable=False)
    counted_quantity: Mapped[int | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationship to parent stock take
    stock_take: Mapped["StockTakeModel"] = relationship(
        back_populates="lines",
    )

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from pos_modules.stock_take.models import CountedLine

        return CountedLine(
            product_id=self.product_id,
            product_name=self.product_name,
            sku=self.sku,
            expected_quantity=self.expected_quantity,
            counted_quantity=self.counted_quantity,
            notes=self.notes,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID, position: int = 0) -> "StockTakeLineModel":
        """Create ORM model from frozen dataclass."""
        return cls(
            product_id=dto.product_id,
            position=position,
            product_name=dto.product_name,
            sku=dto.sku,
            expected_quantity=dto.expected_quantity,
            counted_quantity=dto.counted_quantity,
            notes=dto.notes,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<StockTakeLineModel product={self.product_id} "
            f"expected={self.expected_quantity} counted={self.counted_quantity}>"
        )


# =============================================================================
# StockMovementModel
# =============================================================================

class StockMovementModel(TrackedBase):
    """ORM model for inventory movements (adjustments, transfers)."""

    __tablename__ = "stock_movements"

    __table_args__ = (
        Index("idx_stock_movements_product", "product_id"),
        Index("idx_stock_movements_reference", "reference_type", "reference_id"),
    )

    product_id: Mapped[UUID] = mapped_column(
        ForeignKey("products.id"), nullable=False
    )
    movement_type: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    reference_type: Mapped[str] = mapped_column(String(50), nullable=False)
    reference_id: Mapped[UUID | None] = mapped_column(nullable=True)
    location_from: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    vendor_id: Mapped[UUID | None] = mapped_column(nullable=True)

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from pos_modules.stock_take.models import MovementType, StockMovement

        return StockMovement(
            product_id=self.product_id,
            movement_type=MovementType(self.movement_type),
            quantity=self.quantity,
            reference_type=self.reference_type,
            reference_id=self.reference_id,
            location_from=self.location_from,
            location_to=self.location_to,
            notes=self.notes,
            vendor_id=self.vendor_id,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "StockMovementModel":
        """Create ORM model from frozen dataclass."""
        return cls(
            product_id=dto.product_id,
            movement_type=dto.movement_type.value,
            quantity=dto.quantity,
            reference_type=dto.reference_type,
            reference_id=dto.reference_id,
            location_from=dto.location_from,
            location_to=dto.location_to,
            notes=dto.notes,
            vendor_id=dto.vendor_id,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<StockMovementModel {self.movement_type} product={self.product_id} "
            f"qty={self.quantity}>"
        )


# =============================================================================
# NotificationModel
# =============================================================================

class NotificationModel(TrackedBase):
    """ORM model for in-app notification records. Delivery happens elsewhere."""

    __tablename__ = "notifications"

    __table_args__ = (
        Index("idx_notifications_type", "notification_type"),
        Index("idx_notifications_reference", "reference_id"),
    )

    notification_type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    reference_id: Mapped[UUID | None] = mapped_column(nullable=True)
    vendor_id: Mapped[UUID | None] = mapped_column(nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<NotificationModel {self.notification_type} {self.title!r}>"
