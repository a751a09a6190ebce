"""
Outreach API - proactive service opportunities, funnel and fleet health.
"""

from fastapi import APIRouter, Depends, HTTPException

from ..data.reference_data import ReferenceData
from ..data.schemas import CamelModel
from ..outreach.board import (
    OutreachBoard,
    OutreachChannel,
    OutreachFilters,
    OutreachPriority,
    create_opportunity,
)
from ..outreach.fleet import fleet_rows, health_counts
from .state import get_outreach_board, get_reference

router = APIRouter(prefix="/api/outreach", tags=["outreach"])


class OpportunityCreate(CamelModel):
    """Request model for a manually entered opportunity."""
    customer_id: str
    vessel_id: str
    title: str
    message: str = ""
    channel: OutreachChannel = "email"
    priority: OutreachPriority = "medium"
    estimated_revenue: float = 0
    trigger: str = ""


class MessageUpdate(CamelModel):
    message: str


@router.get("")
async def list_outreach(
    status: str = "all",
    channel: str = "all",
    revenue_range: str = "all",
    priority: str = "all",
    board: OutreachBoard = Depends(get_outreach_board),
):
    """Visible opportunities for the filters, high priority first."""
    try:
        filters = OutreachFilters(status=status, channel=channel, revenue_range=revenue_range, priority=priority)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [item.to_dict() for item in board.items(filters)]


@router.get("/funnel")
async def get_funnel(board: OutreachBoard = Depends(get_outreach_board)):
    return [
        {"status": m.status, "count": m.count, "revenue": m.revenue, "vsMonthlyAvg": m.vs_monthly_avg}
        for m in board.funnel_metrics()
    ]


@router.get("/fleet")
async def get_fleet(reference: ReferenceData = Depends(get_reference)):
    rows = fleet_rows(reference)
    return {"vessels": [row.to_dict() for row in rows], "counts": health_counts(rows)}


@router.post("")
async def create_outreach(
    data: OpportunityCreate,
    board: OutreachBoard = Depends(get_outreach_board),
    reference: ReferenceData = Depends(get_reference),
):
    """Add a manual draft opportunity at the top of the board."""
    try:
        item = create_opportunity(reference, **data.model_dump())
        board.add(item)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return item.to_dict()


@router.post("/{item_id}/send")
async def send_outreach(item_id: str, board: OutreachBoard = Depends(get_outreach_board)):
    item = board.send(item_id)
    if not item:
        raise HTTPException(status_code=404, detail=f"Outreach item '{item_id}' not found")
    return item.to_dict()


@router.post("/{item_id}/dismiss")
async def dismiss_outreach(item_id: str, board: OutreachBoard = Depends(get_outreach_board)):
    item = board.dismiss(item_id)
    if not item:
        raise HTTPException(status_code=404, detail=f"Outreach item '{item_id}' not found")
    return item.to_dict()


@router.put("/{item_id}/message")
async def update_message(item_id: str, update: MessageUpdate, board: OutreachBoard = Depends(get_outreach_board)):
    item = board.update_message(item_id, update.message)
    if not item:
        raise HTTPException(status_code=404, detail=f"Outreach item '{item_id}' not found")
    return item.to_dict()
