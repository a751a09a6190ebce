"""Engine subpackage - work order pricing, editing and margin logic."""
from .pricing_engine import PricingEngine, TAX_RATE, recompute, audit, round_currency, line_total
from .editor import WorkOrderEditor, LineItemIdGenerator, LineItemValidationError
from .models import LineItem, LineItemCategory, WorkOrder, MarginSummary

__all__ = [
    'PricingEngine', 'TAX_RATE', 'recompute', 'audit', 'round_currency', 'line_total',
    'WorkOrderEditor', 'LineItemIdGenerator', 'LineItemValidationError',
    'LineItem', 'LineItemCategory', 'WorkOrder', 'MarginSummary',
]
