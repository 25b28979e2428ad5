from __future__ import annotations

import logging

from sqlalchemy import delete, inspect
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from sop.domain.common.money import Money
from sop.infrastructure.config import store_currency
from sop.infrastructure.db.models.catalog import (
    AddonPriceModel,
    DeductionRuleModel,
    FreeAddonModel,
    MenuItemModel,
    MenuModel,
    NoDeductItemModel,
)
from sop.infrastructure.db.models.stock import StockItemModel
from sop.infrastructure.db.repositories.catalog_repo import (
    FREE_DRINK,
    FREE_SAUCE,
    RULE_SOURCE_ADDON,
    RULE_SOURCE_MENU_ITEM,
)
from sop.infrastructure.db.session import get_engine
from sop.infrastructure.observability.logging_config import configure_logging

logger = logging.getLogger(__name__)

MENU_ID = "men_001"
MENU_VERSION = 1

# (id, name, category, description, price in major units)
MENU_ITEMS = [
    (
        "itm_001",
        "Steak & Fries",
        "Main",
        "Premium steak served with crispy fries and signature seasoning.",
        "12.00",
    ),
    (
        "itm_002",
        "Deluxe Steak & Fries",
        "Main",
        "Premium quality steak with our signature fries and special seasoning.",
        "20.00",
    ),
    ("itm_003", "Steak Only", "Main", "Premium steak without fries.", "10.00"),
    (
        "itm_004",
        "Signature Fries",
        "Sides",
        "Our signature crispy fries with special seasoning.",
        "4.00",
    ),
    ("itm_005", "Kids Meal", "Kids", "Specially curated meal for kids.", "10.00"),
    ("itm_006", "Kids Fries", "Kids", "Small portion of our signature fries for kids.", "2.00"),
    ("itm_007", "Coke", "Drinks", "Classic Coke soft drink.", "1.50"),
    ("itm_008", "Coke Zero", "Drinks", "Zero sugar Coca-Cola soft drink.", "1.50"),
    ("itm_009", "Tango Mango", "Drinks", "Tango Mango flavored soft drink.", "1.50"),
    ("itm_010", "Sprite", "Drinks", "Refreshing Sprite soft drink.", "1.50"),
]

ADDON_PRICES = {
    "Short Rib": "6.00",
    "Lamb": "11.00",
    "Steak": "10.00",
    "Green Sauce": "0.50",
    "Red Sauce": "0.50",
    "Coke": "1.50",
    "Coke Zero": "1.50",
    "Tango Mango": "1.50",
    "Sprite": "1.50",
    "Ketchup": "0.00",
    "Mayo": "0.00",
    "Chip Seasoning": "0.00",
}

FREE_ADDONS = {
    "Kids Meal": {
        FREE_DRINK: ["Coke", "Coke Zero", "Tango Mango", "Sprite"],
        FREE_SAUCE: ["Green Sauce"],
    },
}

DRINKS = ["Coke", "Coke Zero", "Tango Mango", "Sprite"]

# (source kind, source name, stock item name, units per ordered unit)
DEDUCTION_RULES = [
    (RULE_SOURCE_MENU_ITEM, "Deluxe Steak & Fries", "Steaks", 2),
    (RULE_SOURCE_MENU_ITEM, "Steak & Fries", "Steaks", 1),
    (RULE_SOURCE_MENU_ITEM, "Steak Only", "Steaks", 1),
    (RULE_SOURCE_MENU_ITEM, "Kids Meal", "Steaks", 1),
    *[(RULE_SOURCE_MENU_ITEM, drink, drink, 1) for drink in DRINKS],
    (RULE_SOURCE_ADDON, "Steak", "Steaks", 1),
    (RULE_SOURCE_ADDON, "Short Rib", "Short Rib", 2),
    (RULE_SOURCE_ADDON, "Lamb", "Lamb", 2),
    *[(RULE_SOURCE_ADDON, drink, drink, 1) for drink in DRINKS],
]

NO_DEDUCT = ["Fries", "Chip Seasoning", "Green Sauce", "Mayo", "Ketchup"]

# (name, category, trailer quantity, lockup quantity)
STOCK = [
    ("Steaks", "Food", 10, 20),
    ("Lamb", "Food", 10, 20),
    ("Short Rib", "Food", 10, 20),
    ("Fries", "Food", 50, 100),
    ("Red Sauce", "Food", 20, 40),
    ("Green Sauce", "Food", 20, 40),
    ("Chip Seasoning", "Food", 15, 30),
    ("Ketchup", "Food", 25, 50),
    ("Mayo", "Food", 25, 50),
    ("Coke", "Drinks", 30, 60),
    ("Coke Zero", "Drinks", 30, 60),
    ("Tango Mango", "Drinks", 30, 60),
    ("Sprite", "Drinks", 30, 60),
    ("Napkins", "Essentials", 100, 200),
    ("Deluxe Boxes", "Essentials", 50, 200),
    ("Single Boxes", "Essentials", 50, 200),
    ("Takeaway Bags", "Essentials", 40, 160),
    ("Pots for Sauce", "Essentials", 20, 80),
    ("Blue Roll", "Essentials", 10, 40),
    ("Cutlery", "Essentials", 200, 800),
    ("Cilit Bang", "Essentials", 5, 20),
    ("Hand Sanitizer", "Essentials", 10, 40),
    ("Cooking Oil (20ml)", "Ingredients", 100, 400),
]
LOW_STOCK_THRESHOLD = 5

REQUIRED_TABLES = {
    "menus",
    "menu_items",
    "addon_prices",
    "free_addon_policies",
    "deduction_rules",
    "no_deduct_items",
    "stock_items",
}


def _seed_catalog(session: Session, currency: str) -> None:
    session.execute(
        insert(MenuModel)
        .values(id=MENU_ID, version=MENU_VERSION)
        .on_conflict_do_update(index_elements=[MenuModel.id], set_={"version": MENU_VERSION})
    )

    for item_id, name, category, description, price in MENU_ITEMS:
        values = {
            "menu_id": MENU_ID,
            "name": name,
            "category": category,
            "description": description,
            "price_cents": Money.from_decimal(price, currency).amount_cents,
            "currency": currency,
            "is_available": True,
        }
        session.execute(
            insert(MenuItemModel)
            .values(id=item_id, **values)
            .on_conflict_do_update(index_elements=[MenuItemModel.id], set_=values)
        )

    for index, (name, price) in enumerate(sorted(ADDON_PRICES.items()), start=1):
        values = {
            "menu_id": MENU_ID,
            "name": name,
            "price_cents": Money.from_decimal(price, currency).amount_cents,
            "currency": currency,
        }
        session.execute(
            insert(AddonPriceModel)
            .values(id=f"add_{index:03d}", **values)
            .on_conflict_do_update(index_elements=[AddonPriceModel.id], set_=values)
        )

    # Policies and rules are small; replace them wholesale.
    session.execute(delete(FreeAddonModel).where(FreeAddonModel.menu_id == MENU_ID))
    for item_name, kinds in FREE_ADDONS.items():
        for kind, addon_names in kinds.items():
            for addon_name in addon_names:
                session.add(
                    FreeAddonModel(
                        menu_id=MENU_ID,
                        item_name=item_name,
                        addon_name=addon_name,
                        kind=kind,
                    )
                )

    session.execute(delete(DeductionRuleModel))
    for source_kind, source_name, stock_item_name, units in DEDUCTION_RULES:
        session.add(
            DeductionRuleModel(
                source_kind=source_kind,
                source_name=source_name,
                stock_item_name=stock_item_name,
                units=units,
            )
        )

    session.execute(delete(NoDeductItemModel))
    session.add_all(NoDeductItemModel(name=name) for name in NO_DEDUCT)


def _seed_stock(session: Session) -> None:
    index = 0
    for location, column in (("Trailer", 2), ("Lockup", 3)):
        for row in STOCK:
            index += 1
            # Existing rows keep their live counts.
            session.execute(
                insert(StockItemModel)
                .values(
                    id=f"stk_{index:03d}",
                    name=row[0],
                    category=row[1],
                    location=location,
                    quantity=row[column],
                    low_stock_threshold=LOW_STOCK_THRESHOLD,
                )
                .on_conflict_do_nothing(
                    index_elements=[StockItemModel.name, StockItemModel.location]
                )
            )


def main() -> None:
    configure_logging()
    engine = get_engine(timeout_seconds=2.0)
    inspector = inspect(engine)
    if not REQUIRED_TABLES.issubset(set(inspector.get_table_names(schema="public"))):
        logger.warning("seed_skipped_no_schema")
        return

    currency = store_currency()
    with Session(engine) as session:
        _seed_catalog(session, currency)
        _seed_stock(session)
        session.commit()
    logger.info("seed_complete")


if __name__ == "__main__":
    main()
