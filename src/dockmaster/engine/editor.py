"""
Work Order Editor - the mutable working copy behind one review screen.

The editor owns a list of line items derived from a base work order. Every
edit keeps each item individually consistent (total = quantity × unit price)
and the aggregate is recomputed from scratch each time it is read.
"""
import math
from dataclasses import replace
from typing import Any, Optional

import structlog

from .models import LineItem, LineItemCategory, WorkOrder
from .pricing_engine import PricingEngine, get_engine, line_total

logger = structlog.get_logger(__name__)

EDITABLE_FIELDS = ('description', 'category', 'quantity', 'unit_price', 'part_id', 'labor_hours')

# Wire names accepted by update_item alongside the attribute names
_FIELD_ALIASES = {
    'unitPrice': 'unit_price',
    'partId': 'part_id',
    'laborHours': 'labor_hours',
}


class LineItemValidationError(ValueError):
    """Raised when an edit would produce an invalid line item."""


class LineItemIdGenerator:
    """Hands out ids for new line items: li-new-1000, li-new-1001, ..."""

    def __init__(self, prefix: str = 'li-new-', start: int = 1000):
        self.prefix = prefix
        self._next = start

    def __call__(self) -> str:
        item_id = f"{self.prefix}{self._next}"
        self._next += 1
        return item_id


class WorkOrderEditor:
    """
    Editing session for a single work order.

    The base work order is never modified; `reset_items()` returns to it and
    `commit()` replaces it with the current computed aggregate.
    """

    def __init__(
        self,
        base: WorkOrder,
        engine: Optional[PricingEngine] = None,
        id_generator: Optional[LineItemIdGenerator] = None,
    ):
        self.base = base
        self.engine = engine or get_engine()
        self._generate_id = id_generator or LineItemIdGenerator()
        self._items: list[LineItem] = list(base.line_items)

    @property
    def line_items(self) -> tuple[LineItem, ...]:
        return tuple(self._items)

    @property
    def computed_work_order(self) -> WorkOrder:
        """Aggregate over the current working list, recomputed on every read."""
        return self.engine.recompute(self.base, self._items)

    @property
    def is_dirty(self) -> bool:
        return tuple(self._items) != self.base.line_items

    def get_item(self, item_id: str) -> Optional[LineItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def update_item(self, item_id: str, **changes: Any) -> bool:
        """
        Apply field changes to the item with `item_id`.

        If quantity or unit price is among the changes, the total is
        recomputed from the post-update values of both. Quantity is clamped
        to at least 1. Returns False when no item has that id, without
        looking at the changes.
        """
        for index, item in enumerate(self._items):
            if item.id != item_id:
                continue

            fields = self._normalize_changes(changes)
            updated = replace(item, **fields)
            if 'quantity' in fields or 'unit_price' in fields:
                updated = replace(updated, total=line_total(updated.quantity, updated.unit_price))
            self._validate(updated)

            self._items[index] = updated
            logger.debug("line_item_updated", item_id=item_id, fields=sorted(fields))
            return True

        logger.debug("line_item_update_ignored", item_id=item_id)
        return False

    def remove_item(self, item_id: str) -> bool:
        """Drop the item with `item_id`. Returns False when it is absent."""
        remaining = [item for item in self._items if item.id != item_id]
        if len(remaining) == len(self._items):
            return False
        self._items = remaining
        logger.debug("line_item_removed", item_id=item_id, remaining=len(remaining))
        return True

    def add_item(self) -> LineItem:
        """Append a blank labor line and return it."""
        item = LineItem(
            id=self._generate_id(),
            description="",
            category=LineItemCategory.LABOR,
            quantity=1,
            unit_price=0.0,
            total=0.0,
        )
        self._items.append(item)
        logger.debug("line_item_added", item_id=item.id)
        return item

    def reset_items(self) -> None:
        """Discard all edits and go back to the base line items."""
        self._items = list(self.base.line_items)

    def commit(self) -> WorkOrder:
        """Freeze the current edits: the computed aggregate becomes the new base."""
        committed = self.computed_work_order
        self.base = committed
        self._items = list(committed.line_items)
        logger.info("work_order_committed", work_order_id=committed.id, total=committed.total)
        return committed

    def _normalize_changes(self, changes: dict) -> dict:
        fields = {}
        for key, value in changes.items():
            name = _FIELD_ALIASES.get(key, key)
            if name not in EDITABLE_FIELDS:
                raise LineItemValidationError(f"Field '{key}' cannot be edited")
            fields[name] = value

        try:
            if 'category' in fields:
                fields['category'] = LineItemCategory(fields['category'])
            if 'quantity' in fields:
                quantity = float(fields['quantity'])
            if 'unit_price' in fields:
                fields['unit_price'] = float(fields['unit_price'])
            if fields.get('labor_hours') is not None:
                fields['labor_hours'] = float(fields['labor_hours'])
        except (TypeError, ValueError, OverflowError) as e:
            raise LineItemValidationError(str(e)) from e

        if 'quantity' in fields:
            # is_integer() is False for nan and inf as well
            if not quantity.is_integer():
                raise LineItemValidationError(f"Quantity must be a whole number, got {fields['quantity']!r}")
            fields['quantity'] = max(1, int(quantity))
        for name in ('unit_price', 'labor_hours'):
            if fields.get(name) is not None and not math.isfinite(fields[name]):
                raise LineItemValidationError(f"{name.replace('_', ' ').capitalize()} must be a finite number")

        if 'description' in fields:
            description = fields['description']
            fields['description'] = '' if description is None else str(description)
        return fields

    @staticmethod
    def _validate(item: LineItem) -> None:
        if item.unit_price < 0 and item.category != LineItemCategory.DISCOUNT:
            raise LineItemValidationError(
                f"Line {item.id}: negative unit price is only allowed on discount lines"
            )
        if item.labor_hours is not None and item.labor_hours < 0:
            raise LineItemValidationError(f"Line {item.id}: labor hours cannot be negative")
