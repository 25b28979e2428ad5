from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
    true,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class MenuModel(Base):
    __tablename__ = "menus"
    __table_args__ = (UniqueConstraint("version", name="uq_menus_version"),)

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    items: Mapped[list["MenuItemModel"]] = relationship(
        back_populates="menu",
        cascade="all, delete-orphan",
        order_by="MenuItemModel.id",
    )
    addons: Mapped[list["AddonPriceModel"]] = relationship(
        back_populates="menu",
        cascade="all, delete-orphan",
        order_by="AddonPriceModel.name",
    )
    free_addons: Mapped[list["FreeAddonModel"]] = relationship(
        back_populates="menu",
        cascade="all, delete-orphan",
        order_by="FreeAddonModel.id",
    )


class MenuItemModel(Base):
    __tablename__ = "menu_items"
    __table_args__ = (UniqueConstraint("menu_id", "name", name="uq_menu_items_menu_name"),)

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    menu_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("menus.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())

    menu: Mapped[MenuModel] = relationship(back_populates="items")


class AddonPriceModel(Base):
    __tablename__ = "addon_prices"
    __table_args__ = (UniqueConstraint("menu_id", "name", name="uq_addon_prices_menu_name"),)

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    menu_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("menus.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    menu: Mapped[MenuModel] = relationship(back_populates="addons")


class FreeAddonModel(Base):
    """One row per add-on a menu item includes for free; kind is DRINK or SAUCE."""

    __tablename__ = "free_addon_policies"
    __table_args__ = (
        UniqueConstraint(
            "menu_id",
            "item_name",
            "addon_name",
            "kind",
            name="uq_free_addon_policies_entry",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    menu_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("menus.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    addon_name: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[str] = mapped_column(String(10), nullable=False)

    menu: Mapped[MenuModel] = relationship(back_populates="free_addons")


class DeductionRuleModel(Base):
    __tablename__ = "deduction_rules"
    __table_args__ = (
        UniqueConstraint(
            "source_kind",
            "source_name",
            "stock_item_name",
            name="uq_deduction_rules_source_stock",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    source_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    stock_item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    units: Mapped[int] = mapped_column(Integer, nullable=False)


class NoDeductItemModel(Base):
    __tablename__ = "no_deduct_items"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
