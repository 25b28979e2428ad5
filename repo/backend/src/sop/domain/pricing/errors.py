from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UnknownItem:
    item_id: str
    line_index: int | None = None

    kind = "UNKNOWN_ITEM"

    @property
    def key(self) -> str:
        return self.item_id

    @property
    def message(self) -> str:
        return f"menu item {self.item_id} does not exist"


@dataclass(frozen=True)
class UnknownAddon:
    name: str
    item_id: str
    line_index: int | None = None

    kind = "UNKNOWN_ADDON"

    @property
    def key(self) -> str:
        return self.name

    @property
    def message(self) -> str:
        return f"add-on {self.name!r} on menu item {self.item_id} has no price"


@dataclass(frozen=True)
class InvalidAddonToken:
    token: str
    item_id: str
    line_index: int | None = None

    kind = "INVALID_ADDON"

    @property
    def key(self) -> str:
        return self.token

    @property
    def message(self) -> str:
        return f"add-on {self.token!r} on menu item {self.item_id} is malformed"


PricingError = UnknownItem | UnknownAddon | InvalidAddonToken
