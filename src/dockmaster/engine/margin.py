"""
Margin check - profitability of a work order against the shop target.

Recommendations carry an estimated revenue; negative revenue is a discount
(e.g. a loyalty adjustment) and lowers the optimized total.
"""
from typing import Iterable, Mapping, Union

from .models import MarginSummary, WorkOrder
from .pricing_engine import round_currency

DEFAULT_TARGET_MARGIN = 0.42


def _revenue(recommendation: Union[Mapping, object]) -> float:
    if isinstance(recommendation, Mapping):
        return float(recommendation.get("estimatedRevenue", recommendation.get("estimated_revenue", 0)))
    return float(getattr(recommendation, "estimated_revenue"))


def optimized_total(total: float, recommendations: Iterable) -> float:
    """Work order total with every recommendation accepted."""
    result = total
    for rec in recommendations:
        result += _revenue(rec)
    return round_currency(result)


def margin_gap(current_margin: float, target_margin: float = DEFAULT_TARGET_MARGIN) -> float:
    """Points of margin still missing (negative when above target)."""
    return round(target_margin - current_margin, 4)


def summarize(
    work_order: WorkOrder,
    current_margin: float,
    recommendations: Iterable,
    target_margin: float = DEFAULT_TARGET_MARGIN,
) -> MarginSummary:
    recs = list(recommendations)
    revenues = [_revenue(rec) for rec in recs]
    gap = margin_gap(current_margin, target_margin)

    return MarginSummary(
        current_margin=current_margin,
        target_margin=target_margin,
        margin_gap=gap,
        meets_target=gap <= 0,
        upsell_revenue=round_currency(sum(r for r in revenues if r > 0)),
        discount_revenue=round_currency(sum(r for r in revenues if r < 0)),
        optimized_total=optimized_total(work_order.total, recs),
    )
