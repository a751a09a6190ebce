"""
Proactive outreach board - AI-drafted service opportunities per vessel.

Items move draft → sent → opened → booked (or dismissed). The board filters
and orders them for review and reports a funnel against monthly averages.
"""
import json
import uuid
from dataclasses import dataclass, field, replace, asdict
from datetime import date
from pathlib import Path
from typing import Literal, Optional

import pandas as pd
import structlog

from ..data.reference_data import ReferenceData

logger = structlog.get_logger(__name__)

OutreachStatus = Literal["draft", "sent", "opened", "booked", "dismissed"]
OutreachPriority = Literal["high", "medium", "low"]
OutreachChannel = Literal["email", "whatsapp", "phone"]
TriggerType = Literal["engine_hours", "seasonal", "time_based", "parts_wear"]

STATUSES = ("draft", "sent", "opened", "booked", "dismissed")
CHANNELS = ("email", "whatsapp", "phone")
FUNNEL_STATUSES = ("draft", "sent", "opened", "booked")
PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}
STATUS_ORDER = {status: index for index, status in enumerate(STATUSES)}

STATUS_FILTERS = ("all", "to-review", "sent", "to-reply", "dismissed")
REVENUE_RANGES = ("all", "0-500", "500-1500", "1500+")


@dataclass(frozen=True)
class OutreachAnalysis:
    findings: list[str] = field(default_factory=list)
    historical_context: str = ""
    risk_factor: str = ""


@dataclass(frozen=True)
class OutreachItem:
    """A single proactive service opportunity."""
    id: str
    customer_id: str
    vessel_id: str
    title: str
    message: str
    trigger: str
    trigger_type: TriggerType
    priority: OutreachPriority
    status: OutreachStatus
    estimated_revenue: float
    channel: OutreachChannel
    created_date: str
    ai_confidence: float
    ai_reasoning: str
    due_date: Optional[str] = None
    ai_analysis: Optional[OutreachAnalysis] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "customerId": self.customer_id,
            "vesselId": self.vessel_id,
            "title": self.title,
            "message": self.message,
            "trigger": self.trigger,
            "triggerType": self.trigger_type,
            "priority": self.priority,
            "status": self.status,
            "estimatedRevenue": self.estimated_revenue,
            "channel": self.channel,
            "createdDate": self.created_date,
            "aiConfidence": self.ai_confidence,
            "aiReasoning": self.ai_reasoning,
        }
        if self.due_date:
            data["dueDate"] = self.due_date
        if self.ai_analysis:
            data["aiAnalysis"] = {
                "findings": list(self.ai_analysis.findings),
                "historicalContext": self.ai_analysis.historical_context,
                "riskFactor": self.ai_analysis.risk_factor,
            }
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'OutreachItem':
        analysis = data.get("aiAnalysis")
        return cls(
            id=data["id"],
            customer_id=data["customerId"],
            vessel_id=data["vesselId"],
            title=data["title"],
            message=data.get("message", ""),
            trigger=data.get("trigger", ""),
            trigger_type=data.get("triggerType", "time_based"),
            priority=data.get("priority", "medium"),
            status=data.get("status", "draft"),
            estimated_revenue=float(data.get("estimatedRevenue", 0)),
            channel=data.get("channel", "email"),
            created_date=data.get("createdDate", ""),
            ai_confidence=float(data.get("aiConfidence", 0)),
            ai_reasoning=data.get("aiReasoning", ""),
            due_date=data.get("dueDate"),
            ai_analysis=OutreachAnalysis(
                findings=list(analysis.get("findings", [])),
                historical_context=analysis.get("historicalContext", ""),
                risk_factor=analysis.get("riskFactor", ""),
            ) if analysis else None,
        )


@dataclass(frozen=True)
class OutreachFilters:
    status: str = "all"
    channel: str = "all"
    revenue_range: str = "all"
    priority: str = "all"

    def __post_init__(self):
        if self.status not in STATUS_FILTERS:
            raise ValueError(f"Unknown status filter '{self.status}'")
        if self.channel != "all" and self.channel not in CHANNELS:
            raise ValueError(f"Unknown channel '{self.channel}'")
        if self.revenue_range not in REVENUE_RANGES:
            raise ValueError(f"Unknown revenue range '{self.revenue_range}'")
        if self.priority != "all" and self.priority not in PRIORITY_ORDER:
            raise ValueError(f"Unknown priority '{self.priority}'")


@dataclass(frozen=True)
class FunnelMetric:
    status: str
    count: int
    revenue: float
    vs_monthly_avg: int

    def to_dict(self) -> dict:
        return asdict(self)


def matches_status_filter(status: str, status_filter: str) -> bool:
    if status_filter == "all":
        return status != "dismissed"
    if status_filter == "to-review":
        return status == "draft"
    if status_filter == "sent":
        return status == "sent"
    if status_filter == "to-reply":
        return status in ("sent", "opened")
    if status_filter == "dismissed":
        return status == "dismissed"
    raise ValueError(f"Unknown status filter '{status_filter}'")


def matches_revenue_range(revenue: float, revenue_range: str) -> bool:
    if revenue_range == "all":
        return True
    if revenue_range == "0-500":
        return 0 <= revenue <= 500
    if revenue_range == "500-1500":
        return 500 < revenue <= 1500
    if revenue_range == "1500+":
        return revenue > 1500
    raise ValueError(f"Unknown revenue range '{revenue_range}'")


class OutreachBoard:
    """In-memory outreach opportunities with filter, funnel and status actions."""

    def __init__(self, items: list[OutreachItem], monthly_averages: Optional[dict] = None):
        self._items = list(items)
        self.monthly_averages = monthly_averages or {}

    @classmethod
    def from_file(cls, path: Path) -> 'OutreachBoard':
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        items = [OutreachItem.from_dict(raw) for raw in data.get("items", [])]
        logger.info("outreach_loaded", items=len(items))
        return cls(items, data.get("monthlyAverages", {}))

    @property
    def all_items(self) -> list[OutreachItem]:
        return list(self._items)

    def get(self, item_id: str) -> Optional[OutreachItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def items(self, filters: Optional[OutreachFilters] = None) -> list[OutreachItem]:
        """Visible items for the given filters, high priority first, then by status."""
        filters = filters or OutreachFilters()
        visible = [
            item for item in self._items
            if matches_status_filter(item.status, filters.status)
            and (filters.channel == "all" or item.channel == filters.channel)
            and matches_revenue_range(item.estimated_revenue, filters.revenue_range)
            and (filters.priority == "all" or item.priority == filters.priority)
        ]
        return sorted(visible, key=lambda item: (PRIORITY_ORDER[item.priority], STATUS_ORDER[item.status]))

    def funnel_metrics(self) -> list[FunnelMetric]:
        """Count and revenue per funnel status, against the monthly average count."""
        df = pd.DataFrame(
            [{"status": item.status, "revenue": item.estimated_revenue} for item in self._items],
            columns=["status", "revenue"],
        )
        grouped = df.groupby("status")["revenue"].agg(["count", "sum"])

        metrics = []
        for status in FUNNEL_STATUSES:
            count = int(grouped.loc[status, "count"]) if status in grouped.index else 0
            revenue = float(grouped.loc[status, "sum"]) if status in grouped.index else 0.0
            avg = self.monthly_averages.get(status, {}).get("count", 0)
            metrics.append(FunnelMetric(status=status, count=count, revenue=revenue, vs_monthly_avg=count - avg))
        return metrics

    def send(self, item_id: str) -> Optional[OutreachItem]:
        return self._set_status(item_id, "sent")

    def dismiss(self, item_id: str) -> Optional[OutreachItem]:
        return self._set_status(item_id, "dismissed")

    def update_message(self, item_id: str, message: str) -> Optional[OutreachItem]:
        return self._replace(item_id, message=message)

    def add(self, item: OutreachItem) -> OutreachItem:
        """Newest opportunities go on top."""
        if self.get(item.id) is not None:
            raise ValueError(f"Outreach item '{item.id}' already exists")
        self._items.insert(0, item)
        logger.info("outreach_added", item_id=item.id, customer_id=item.customer_id)
        return item

    def _set_status(self, item_id: str, status: OutreachStatus) -> Optional[OutreachItem]:
        updated = self._replace(item_id, status=status)
        if updated:
            logger.info("outreach_status_changed", item_id=item_id, status=status)
        return updated

    def _replace(self, item_id: str, **changes) -> Optional[OutreachItem]:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                self._items[index] = replace(item, **changes)
                return self._items[index]
        return None


def create_opportunity(
    reference: ReferenceData,
    customer_id: str,
    vessel_id: str,
    title: str,
    message: str = "",
    channel: OutreachChannel = "email",
    priority: OutreachPriority = "medium",
    estimated_revenue: float = 0,
    trigger: str = "",
    today: Optional[date] = None,
    item_id: Optional[str] = None,
) -> OutreachItem:
    """
    Build a manually entered draft opportunity.

    Customer, vessel and title are required and the vessel must belong to
    the customer.
    """
    if not customer_id or not vessel_id or not title.strip():
        raise ValueError("Customer, vessel and title are required")
    if reference.get_customer(customer_id) is None:
        raise ValueError(f"Unknown customer '{customer_id}'")
    owned = {vessel.id for vessel in reference.vessels_for_customer(customer_id)}
    if vessel_id not in owned:
        raise ValueError(f"Vessel '{vessel_id}' does not belong to customer '{customer_id}'")

    created = today or date.today()
    return OutreachItem(
        id=item_id or f"outreach-{uuid.uuid4().hex[:12]}",
        customer_id=customer_id,
        vessel_id=vessel_id,
        title=title.strip(),
        message=message,
        trigger=trigger or "Manual outreach",
        trigger_type="time_based",
        priority=priority,
        status="draft",
        estimated_revenue=float(estimated_revenue or 0),
        channel=channel,
        created_date=created.isoformat(),
        ai_confidence=0.75,
        ai_reasoning=f"Manual entry: {trigger or 'User-created opportunity'}",
    )
