"""
Pricing Engine - deterministic recomputation of work order totals.

Every derived figure on a work order (subtotal, tax, total, estimated hours)
comes from here. Rounding is half-up at the cent so totals match the figures
the customer-facing estimate has always shown.
"""
import math
import re
from dataclasses import replace
from typing import Iterable, Optional

from .models import LineItem, WorkOrder

TAX_RATE = 0.07

WORK_ORDER_ID_PATTERN = re.compile(r"^WO-\d{4}-\d{4}$")

# Tolerance for comparing stored currency against recomputed currency
_CENT_TOLERANCE = 0.005


def round_currency(value: float) -> float:
    """Round to 2 decimals, halves rounding up (towards +inf)."""
    return math.floor(value * 100 + 0.5) / 100


def line_total(quantity: int, unit_price: float) -> float:
    """Extended price of a line item."""
    return round_currency(quantity * unit_price)


class PricingEngine:
    """
    Recomputes work order aggregates from their line items.

    Computation order (fixed, so totals never drift between implementations):
    1. subtotal = running sum of line totals, no intermediate rounding
    2. tax = round(subtotal * tax_rate, 2)
    3. total = round(subtotal + tax, 2)
    4. estimated hours = sum of labor hours; 0 falls back to the base estimate
    """

    def __init__(self, tax_rate: float = TAX_RATE):
        self.tax_rate = tax_rate

    def subtotal(self, line_items: Iterable[LineItem]) -> float:
        # Plain left-to-right accumulation; builtin sum() compensates on 3.12+
        subtotal = 0.0
        for item in line_items:
            subtotal += item.total
        return subtotal

    def tax(self, subtotal: float) -> float:
        return round_currency(subtotal * self.tax_rate)

    def estimated_hours(self, line_items: Iterable[LineItem], fallback: float) -> float:
        hours = 0.0
        for item in line_items:
            hours += item.labor_hours or 0
        return hours or fallback

    def recompute(self, base: WorkOrder, line_items: Iterable[LineItem]) -> WorkOrder:
        """
        Build a new aggregate from `line_items`, carrying id, schedule and
        notes over from `base`. Neither input is modified.
        """
        items = tuple(line_items)
        subtotal = self.subtotal(items)
        tax = self.tax(subtotal)
        total = round_currency(subtotal + tax)

        return replace(
            base,
            line_items=items,
            subtotal=subtotal,
            tax=tax,
            total=total,
            estimated_hours=self.estimated_hours(items, base.estimated_hours),
        )

    def audit(self, work_order: WorkOrder) -> list[str]:
        """
        Report inconsistencies in an aggregate built elsewhere (fixtures,
        model output). Returns human-readable warnings, empty when clean.
        """
        warnings = []

        if not WORK_ORDER_ID_PATTERN.match(work_order.id):
            warnings.append(f"Work order id '{work_order.id}' does not match WO-<year>-<4 digits>")

        seen_ids = set()
        for item in work_order.line_items:
            if item.id in seen_ids:
                warnings.append(f"Duplicate line item id {item.id}")
            seen_ids.add(item.id)

            if item.quantity < 1:
                warnings.append(f"Line {item.id}: quantity {item.quantity} is below 1")

            expected = line_total(item.quantity, item.unit_price)
            if abs(item.total - expected) > _CENT_TOLERANCE:
                warnings.append(
                    f"Line {item.id}: total ${item.total:.2f} != "
                    f"{item.quantity} × ${item.unit_price:.2f} (${expected:.2f})"
                )

        expected_order = self.recompute(work_order, work_order.line_items)
        for label, stored, expected in (
            ("Subtotal", work_order.subtotal, expected_order.subtotal),
            ("Tax", work_order.tax, expected_order.tax),
            ("Total", work_order.total, expected_order.total),
        ):
            if abs(stored - expected) > _CENT_TOLERANCE:
                warnings.append(f"{label} ${stored:.2f} != recomputed ${expected:.2f}")

        return warnings


_default_engine: Optional[PricingEngine] = None


def get_engine() -> PricingEngine:
    """Get the shared engine using the standard tax rate."""
    global _default_engine
    if _default_engine is None:
        _default_engine = PricingEngine()
    return _default_engine


def recompute(base: WorkOrder, line_items: Iterable[LineItem]) -> WorkOrder:
    """Recompute `base` over `line_items` with the standard tax rate."""
    return get_engine().recompute(base, line_items)


def audit(work_order: WorkOrder) -> list[str]:
    return get_engine().audit(work_order)
