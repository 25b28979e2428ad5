from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from sop.infrastructure.db.models.catalog import Base


class StockItemModel(Base):
    __tablename__ = "stock_items"
    __table_args__ = (
        UniqueConstraint("name", "location", name="uq_stock_items_name_location"),
        CheckConstraint("quantity >= 0", name="ck_stock_items_quantity_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class StockDeductionModel(Base):
    """Marks an order whose deduction plan has been applied to stock."""

    __tablename__ = "stock_deductions"

    order_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    plan_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
