from __future__ import annotations

from collections import defaultdict
from datetime import timezone

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from sop.application.ports.repositories import (
    CatalogRepository,
    CatalogUnavailableError,
    DeductionConfig,
)
from sop.domain.common.ids import MenuItemId
from sop.domain.common.money import Money
from sop.domain.inventory.entities import DeductionRule, DeductionRuleTable, NoDeductList
from sop.domain.menu.entities import (
    AddonCatalogEntry,
    FreeAddonPolicy,
    Menu,
    MenuCategory,
    MenuItem,
)
from sop.domain.pricing.catalog import CatalogIntegrityError
from sop.infrastructure.db.models.catalog import (
    DeductionRuleModel,
    FreeAddonModel,
    MenuModel,
    NoDeductItemModel,
)
from sop.infrastructure.db.session import get_engine

FREE_DRINK = "DRINK"
FREE_SAUCE = "SAUCE"

RULE_SOURCE_MENU_ITEM = "MENU_ITEM"
RULE_SOURCE_ADDON = "ADDON"


class SqlAlchemyCatalogRepository(CatalogRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get_menu(self) -> Menu | None:
        statement = (
            select(MenuModel)
            .options(
                selectinload(MenuModel.items),
                selectinload(MenuModel.addons),
                selectinload(MenuModel.free_addons),
            )
            .order_by(MenuModel.version.desc())
            .limit(1)
        )

        with Session(self._engine) as session:
            menu_model = session.execute(statement).scalar_one_or_none()
            if menu_model is None:
                return None

            items = [
                MenuItem(
                    item_id=MenuItemId(item.id),
                    name=item.name,
                    category=MenuCategory.parse(item.category),
                    description=item.description,
                    price_money=Money(amount_cents=item.price_cents, currency=item.currency),
                    is_available=item.is_available,
                )
                for item in menu_model.items
            ]
            addons = [
                AddonCatalogEntry(
                    name=addon.name,
                    unit_price=Money(amount_cents=addon.price_cents, currency=addon.currency),
                )
                for addon in menu_model.addons
            ]
            policies = _to_policies(menu_model.free_addons)
            version = menu_model.version
            updated_at = menu_model.updated_at

        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)

        return Menu(
            version=version,
            items=items,
            addons=addons,
            policies=policies,
            updated_at=updated_at,
        )

    def get_deduction_config(self) -> DeductionConfig:
        try:
            return self._load_deduction_config()
        except SQLAlchemyError as exc:
            raise CatalogUnavailableError("deduction rules could not be loaded") from exc

    def _load_deduction_config(self) -> DeductionConfig:
        with Session(self._engine) as session:
            rule_models = session.execute(
                select(DeductionRuleModel).order_by(DeductionRuleModel.id)
            ).scalars()
            menu_item_rules: dict[str, list[DeductionRule]] = defaultdict(list)
            addon_rules: dict[str, list[DeductionRule]] = defaultdict(list)
            for rule in rule_models:
                target = menu_item_rules
                if rule.source_kind == RULE_SOURCE_ADDON:
                    target = addon_rules
                target[rule.source_name].append(
                    DeductionRule(
                        stock_item_name=rule.stock_item_name,
                        units_per_order_quantity=rule.units,
                    )
                )
            no_deduct_names = frozenset(session.execute(select(NoDeductItemModel.name)).scalars())

        return DeductionConfig(
            rule_table=DeductionRuleTable(
                menu_item_rules=menu_item_rules,
                addon_rules=addon_rules,
            ),
            no_deduct=NoDeductList(names=no_deduct_names),
        )


def _to_policies(rows: list[FreeAddonModel]) -> list[FreeAddonPolicy]:
    drinks: dict[str, set[str]] = defaultdict(set)
    sauces: dict[str, set[str]] = defaultdict(set)
    item_names: list[str] = []
    for row in rows:
        if row.item_name not in item_names:
            item_names.append(row.item_name)
        if row.kind == FREE_DRINK:
            drinks[row.item_name].add(row.addon_name)
        elif row.kind == FREE_SAUCE:
            sauces[row.item_name].add(row.addon_name)
        else:
            raise CatalogIntegrityError(
                f"unknown free add-on kind {row.kind!r} for {row.item_name!r}"
            )

    # FreeAddonPolicy raises PolicyConflictError when a name is both drink and sauce.
    return [
        FreeAddonPolicy(
            item_name=item_name,
            free_drinks=frozenset(drinks[item_name]),
            free_sauces=frozenset(sauces[item_name]),
        )
        for item_name in item_names
    ]
