"""Repair line items and their running total."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterator, Mapping

from .errors import ImageStoreError, ValidationError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
EDITABLE_FIELDS = ("description", "price")


def parse_amount(value: Any) -> Decimal:
    """Turn form input into a non-negative amount.

    Blank or unparsable input becomes zero, like an empty number field.
    """

    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    if amount < 0:
        raise ValidationError("Amount cannot be negative")
    return amount


def format_money(amount: Decimal) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount).quantize(CENT):,}"


@dataclass
class LineItem:
    id: str
    description: str = ""
    price: Decimal = Decimal("0")
    image_ref: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.description.strip()) and self.price > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "price": str(self.price),
            "image_ref": self.image_ref,
        }


class LineItemLedger:
    """Ordered repair items for one draft; never empty.

    Unknown ids are ignored by every mutator: ids are generated here, so a
    stale one only means the row was already removed.
    """

    def __init__(self, image_store: Any = None) -> None:
        self.image_store = image_store
        self._items: list[LineItem] = []
        self.add_item()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[LineItem]:
        return iter(list(self._items))

    @property
    def items(self) -> list[LineItem]:
        return list(self._items)

    def _new_id(self) -> str:
        existing = {item.id for item in self._items}
        while True:
            candidate = secrets.token_hex(6)
            if candidate not in existing:
                return candidate

    def get(self, item_id: str) -> LineItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def add_item(self) -> LineItem:
        item = LineItem(id=self._new_id())
        self._items.append(item)
        logger.debug("Line item added: %s", item.id)
        return item

    def remove_item(self, item_id: str) -> None:
        if len(self._items) <= 1:
            return
        item = self.get(item_id)
        if item is None:
            return
        self._items.remove(item)
        if item.image_ref is not None:
            self._release_image(item.image_ref)
        logger.debug("Line item removed: %s", item_id)

    def update_item(self, item_id: str, field: str, value: Any) -> None:
        self.update_fields(item_id, {field: value})

    def update_fields(self, item_id: str, changes: Mapping[str, Any]) -> None:
        """Apply several edits to one row; nothing changes if any is invalid.

        Images are not editable here, only through :meth:`attach_image`.
        """

        parsed: dict[str, Any] = {}
        for field, value in changes.items():
            if field not in EDITABLE_FIELDS:
                raise ValidationError(f"Unknown line item field: {field}")
            if field == "price":
                parsed[field] = parse_amount(value)
            else:
                parsed[field] = "" if value is None else str(value)
        item = self.get(item_id)
        if item is None:
            return
        for field, value in parsed.items():
            setattr(item, field, value)

    def total(self) -> Decimal:
        return sum((item.price for item in self._items), Decimal("0"))

    def incomplete_items(self) -> list[LineItem]:
        return [item for item in self._items if not item.is_complete]

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------
    def attach_image(self, item_id: str, upload: Any) -> str | None:
        """Upload ``upload`` for a row and remember the returned reference.

        Images are optional, so a failing store is logged and the row keeps
        whatever image it had.
        """

        item = self.get(item_id)
        if item is None or self.image_store is None:
            return None
        try:
            image_ref = self.image_store.upload(upload)
        except ImageStoreError:
            logger.warning("Image upload failed for line item %s", item_id, exc_info=True)
            return None
        if item.image_ref is not None:
            self._release_image(item.image_ref)
        item.image_ref = image_ref
        return image_ref

    def _release_image(self, image_ref: str) -> None:
        if self.image_store is None:
            return
        try:
            self.image_store.release(image_ref)
        except ImageStoreError:
            logger.warning("Could not release image %s", image_ref, exc_info=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self._items],
            "count": len(self._items),
            "total": str(self.total()),
        }
