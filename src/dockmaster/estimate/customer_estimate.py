"""
Customer-facing service estimate rendered as Markdown.
"""
from datetime import date
from typing import Optional

from ..data.schemas import Marina, Scenario
from ..engine.models import WorkOrder

VALIDITY_DAYS = 30


def format_currency(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_date(value: str) -> str:
    """ISO date (or datetime) string as 'Feb 20, 2026'; unparseable input is returned as is."""
    try:
        parsed = date.fromisoformat(value[:10])
    except (TypeError, ValueError):
        return value
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def _format_hours(hours: float) -> str:
    return f"{hours:g}"


def render_estimate(
    scenario: Scenario,
    work_order: Optional[WorkOrder] = None,
    marina: Optional[Marina] = None,
    comments: Optional[str] = None,
    issued: Optional[date] = None,
) -> str:
    """
    Markdown estimate for the customer.

    `work_order` is the effective (possibly edited) work order; without it
    the scenario's own work order is used.
    """
    extraction = scenario.stages.entity_extraction
    customer, vessel = extraction.customer, extraction.vessel
    work_order = work_order or scenario.stages.work_order.to_work_order()
    issued = issued or date.today()

    lines = []
    if marina:
        lines.append(f"# {marina.name}")
        contact = " | ".join(part for part in (marina.location, marina.phone, marina.email) if part)
        lines.append(contact)
        lines.append("")

    lines += [
        "## SERVICE ESTIMATE",
        f"Work order {work_order.id} | Issued {format_date(issued.isoformat())}",
        "",
        f"**Customer:** {customer.name}  ",
        f"**Vessel:** {vessel.name} ({vessel.year} {vessel.make} {vessel.model}, "
        f"{vessel.length:g}ft, {vessel.hull_type})",
        "",
        f"**Scheduled:** {format_date(work_order.scheduled_date)}  ",
        f"**Estimated Duration:** {_format_hours(work_order.estimated_hours)} hours",
        "",
        "| Description | Qty | Amount |",
        "|---|---:|---:|",
    ]
    for item in work_order.line_items:
        lines.append(f"| {item.description} | {item.quantity} | {format_currency(item.total)} |")

    lines += [
        "",
        f"Subtotal: {format_currency(work_order.subtotal)}  ",
        f"Tax: {format_currency(work_order.tax)}  ",
        f"**Total: {format_currency(work_order.total)}**",
    ]

    if comments and comments.strip():
        lines += ["", "### Service Writer Notes", comments.strip()]

    lines += [
        "",
        "---",
        f"This estimate is valid for {VALIDITY_DAYS} days. "
        "Actual costs may vary based on conditions found during service.",
    ]
    if marina:
        lines.append(f"{marina.name} | {marina.location} | Licensed & Insured")

    return "\n".join(lines) + "\n"
