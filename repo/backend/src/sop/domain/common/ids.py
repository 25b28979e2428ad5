from __future__ import annotations

from typing import NewType
from uuid import uuid4

MenuItemId = NewType("MenuItemId", str)
OrderId = NewType("OrderId", str)
StockItemId = NewType("StockItemId", str)


def new_order_id() -> OrderId:
    return OrderId(f"ord_{uuid4().hex[:12]}")
