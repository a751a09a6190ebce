"""
Data models for the pricing engine.

Uses frozen dataclasses so a work order handed to the editor or the engine
can never be changed in place; edits produce new values.
"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional


class LineItemCategory(str, Enum):
    """Billable unit kinds on a work order."""
    LABOR = "labor"
    PARTS = "parts"
    MATERIALS = "materials"
    ENVIRONMENTAL = "environmental"
    DISCOUNT = "discount"  # negative-amount adjustment


@dataclass(frozen=True)
class LineItem:
    """A single billable row on a work order."""
    id: str
    description: str
    category: LineItemCategory
    quantity: int
    unit_price: float
    total: float
    part_id: Optional[str] = None
    labor_hours: Optional[float] = None

    def to_dict(self) -> dict:
        """Wire format (camelCase keys, optional fields omitted when unset)."""
        data = {
            "id": self.id,
            "description": self.description,
            "category": self.category.value,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "total": self.total,
        }
        if self.part_id is not None:
            data["partId"] = self.part_id
        if self.labor_hours is not None:
            data["laborHours"] = self.labor_hours
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'LineItem':
        """Create a LineItem from its wire format. The stored total is kept as-is."""
        labor_hours = data.get("laborHours", data.get("labor_hours"))
        return cls(
            id=str(data["id"]),
            description=str(data.get("description", "")),
            category=LineItemCategory(data.get("category", "labor")),
            quantity=int(data.get("quantity", 1)),
            unit_price=float(data.get("unitPrice", data.get("unit_price", 0.0))),
            total=float(data.get("total", 0.0)),
            part_id=data.get("partId", data.get("part_id")),
            labor_hours=float(labor_hours) if labor_hours is not None else None,
        )


@dataclass(frozen=True)
class WorkOrder:
    """The billing aggregate for one service job."""
    id: str
    line_items: tuple[LineItem, ...] = field(default_factory=tuple)
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    estimated_hours: float = 0.0
    scheduled_date: str = ""
    technician_notes: str = ""

    def get_item(self, item_id: str) -> Optional[LineItem]:
        for item in self.line_items:
            if item.id == item_id:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lineItems": [item.to_dict() for item in self.line_items],
            "subtotal": self.subtotal,
            "tax": self.tax,
            "total": self.total,
            "estimatedHours": self.estimated_hours,
            "scheduledDate": self.scheduled_date,
            "technicianNotes": self.technician_notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WorkOrder':
        items = data.get("lineItems", data.get("line_items", []))
        return cls(
            id=str(data["id"]),
            line_items=tuple(LineItem.from_dict(item) for item in items),
            subtotal=float(data.get("subtotal", 0.0)),
            tax=float(data.get("tax", 0.0)),
            total=float(data.get("total", 0.0)),
            estimated_hours=float(data.get("estimatedHours", data.get("estimated_hours", 0.0))),
            scheduled_date=str(data.get("scheduledDate", data.get("scheduled_date", ""))),
            technician_notes=str(data.get("technicianNotes", data.get("technician_notes", ""))),
        )


@dataclass(frozen=True)
class MarginSummary:
    """Profitability view of a work order against the shop's target margin."""
    current_margin: float
    target_margin: float
    margin_gap: float
    meets_target: bool
    upsell_revenue: float
    discount_revenue: float
    optimized_total: float

    def to_dict(self) -> dict:
        return asdict(self)
