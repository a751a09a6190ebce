"""
Work order API - fixture scenarios, customer estimates, recomputation and
reference lookups.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import Field

from ..data.reference_data import ReferenceData
from ..data.schemas import CamelModel, LineItemSchema, WorkOrderSchema
from ..engine import audit, recompute
from ..engine.models import LineItem
from ..estimate.customer_estimate import render_estimate
from .state import get_reference

router = APIRouter(prefix="/api", tags=["work-orders"])


class RecomputeRequest(CamelModel):
    """Base work order and the edited line items to price against it."""
    work_order: WorkOrderSchema
    line_items: list[LineItemSchema] = Field(default_factory=list)


class RecomputeResponse(CamelModel):
    work_order: dict
    audit_warnings: list[str]


@router.get("/scenarios")
async def list_scenarios(reference: ReferenceData = Depends(get_reference)):
    """Summaries of the canned service scenarios."""
    return [
        {
            "id": s.id,
            "title": s.title,
            "description": s.description,
            "customerId": s.customer_id,
            "vesselId": s.vessel_id,
            "workOrderId": s.stages.work_order.id,
            "total": s.stages.work_order.total,
        }
        for s in reference.list_scenarios()
    ]


@router.get("/scenarios/{scenario_id}")
async def get_scenario(scenario_id: str, reference: ReferenceData = Depends(get_reference)):
    scenario = reference.get_scenario(scenario_id)
    if not scenario:
        raise HTTPException(status_code=404, detail=f"Scenario '{scenario_id}' not found")
    data = scenario.to_wire()
    data["auditWarnings"] = audit(scenario.stages.work_order.to_work_order())
    return data


@router.get("/scenarios/{scenario_id}/estimate", response_class=PlainTextResponse)
async def get_estimate(
    scenario_id: str,
    comments: Optional[str] = None,
    reference: ReferenceData = Depends(get_reference),
):
    """Customer estimate for the scenario's work order, as Markdown."""
    scenario = reference.get_scenario(scenario_id)
    if not scenario:
        raise HTTPException(status_code=404, detail=f"Scenario '{scenario_id}' not found")
    return render_estimate(scenario, marina=reference.marina, comments=comments)


@router.post("/work-orders/recompute", response_model=RecomputeResponse)
async def recompute_work_order(req: RecomputeRequest):
    """Price the given line items against the base work order."""
    base = req.work_order.to_work_order()
    items = [LineItem.from_dict(item.model_dump(by_alias=True, exclude_none=True)) for item in req.line_items]
    computed = recompute(base, items)
    return RecomputeResponse(work_order=computed.to_dict(), audit_warnings=audit(computed))


@router.get("/reference/customers")
async def list_customers(reference: ReferenceData = Depends(get_reference)):
    return [c.model_dump(by_alias=True) for c in reference.list_customers()]


@router.get("/reference/vessels")
async def list_vessels(customer_id: Optional[str] = None, reference: ReferenceData = Depends(get_reference)):
    vessels = reference.vessels_for_customer(customer_id) if customer_id else reference.list_vessels()
    return [v.model_dump(by_alias=True) for v in vessels]


@router.get("/reference/diagnostics")
async def find_diagnostics(
    vessel_type: Optional[str] = None,
    symptom: Optional[str] = None,
    reference: ReferenceData = Depends(get_reference),
):
    """Diagnostic patterns, optionally narrowed by vessel type and symptom."""
    return [p.model_dump(by_alias=True) for p in reference.find_patterns(vessel_type, symptom)]
