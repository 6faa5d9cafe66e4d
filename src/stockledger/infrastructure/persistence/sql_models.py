"""ORM rows for the ledger and the catalog tables it references.

Models:
- LocationRow / ProductRow (catalog; foreign-key targets)
- StockEntryRow (quantity per product per location)
- MovementRow (append-only movement history)
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)

from stockledger.infrastructure.persistence.database import Base


class LocationRow(Base):
    __tablename__ = "locations"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    address = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class ProductRow(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True)
    sku = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    cost = Column(Numeric(12, 2), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    min_quantity = Column(Integer, nullable=False, default=0)


class StockEntryRow(Base):
    __tablename__ = "stock_entries"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_stock_entries_quantity_non_negative"),
    )

    product_id = Column(String, ForeignKey("products.id", ondelete="RESTRICT"), primary_key=True)
    location_id = Column(String, ForeignKey("locations.id", ondelete="RESTRICT"), primary_key=True, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, nullable=True)


class MovementRow(Base):
    __tablename__ = "stock_movements"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movements_quantity_positive"),
    )

    # insertion order; breaks ties between equal timestamps
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, nullable=False, unique=True)

    # 'RECEIPT' | 'SHIPMENT' | 'ADJUSTMENT' | 'TRANSFER'
    type = Column(String, nullable=False, index=True)
    product_id = Column(String, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    from_location_id = Column(String, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=True, index=True)
    to_location_id = Column(String, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=True, index=True)
    # 'INCREASE' | 'DECREASE' for ADJUSTMENT, NULL otherwise
    adjustment = Column(String, nullable=True)
    reason = Column(Text, nullable=False, default="")
    actor_id = Column(String, nullable=False)
    idempotency_key = Column(String, nullable=True, unique=True)
    created_at = Column(DateTime, nullable=False, index=True)
