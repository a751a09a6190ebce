"""
Scenario schema - the shape of fixture scenarios and of model-generated ones.

Field names are snake_case in Python and camelCase on the wire.
"""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..engine.models import WorkOrder


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ServiceHistoryEntry(CamelModel):
    date: str
    description: str
    total: float


class Customer(CamelModel):
    id: str
    name: str
    email: str
    phone: str
    vessels: list[str] = Field(default_factory=list)
    tier: Literal["standard", "preferred", "premium"] = "standard"
    history: list[ServiceHistoryEntry] = Field(default_factory=list)


class Vessel(CamelModel):
    id: str
    name: str
    make: str
    model: str
    year: int
    length: float
    engine_type: str
    engine_hours: float
    hull_type: str
    customer_id: str


class Part(CamelModel):
    id: str
    name: str
    category: str
    cost: float
    markup: float
    supplier: str
    lead_time_days: int
    in_stock: bool


class Marina(CamelModel):
    id: str
    name: str
    location: str
    slips: int
    labor_rate: float
    margin_target: float = Field(ge=0, le=1)
    phone: str = ""
    email: str = ""


class DiagnosticPattern(CamelModel):
    vessel_type: str
    symptom: str
    common_causes: list[str] = Field(default_factory=list)
    typical_resolution: str
    avg_cost: float
    avg_hours: float


class EntityExtraction(CamelModel):
    customer: Customer
    vessel: Vessel
    service_type: str
    urgency: Literal["routine", "urgent", "emergency"]
    keywords: list[str] = Field(default_factory=list)
    request_summary: str


class DiagnosticRetrieval(CamelModel):
    patterns: list[DiagnosticPattern] = Field(default_factory=list)
    similar_cases: int = 0
    confidence: float = Field(ge=0, le=1)
    recommended_parts: list[Part] = Field(default_factory=list)


class LineItemSchema(CamelModel):
    id: str
    description: str
    category: Literal["labor", "parts", "materials", "environmental", "discount"]
    quantity: int
    unit_price: float
    total: float
    part_id: Optional[str] = None
    labor_hours: Optional[float] = None


class WorkOrderSchema(CamelModel):
    id: str
    line_items: list[LineItemSchema] = Field(default_factory=list)
    subtotal: float
    tax: float
    total: float
    estimated_hours: float
    scheduled_date: str
    technician_notes: str = ""

    def to_work_order(self) -> WorkOrder:
        """Engine aggregate carrying the stored figures unchanged."""
        return WorkOrder.from_dict(self.model_dump(by_alias=True, exclude_none=True))

    @classmethod
    def from_work_order(cls, work_order: WorkOrder) -> 'WorkOrderSchema':
        return cls.model_validate(work_order.to_dict())


class MarginRecommendation(CamelModel):
    type: Literal["upsell", "optimization", "preventive"]
    title: str
    description: str
    estimated_revenue: float
    confidence: float = Field(ge=0, le=1)


class MarginCheck(CamelModel):
    current_margin: float = Field(ge=0, le=1)
    target_margin: float = Field(ge=0, le=1)
    recommendations: list[MarginRecommendation] = Field(default_factory=list)
    optimized_total: float


class MessageSource(CamelModel):
    channel: Literal["whatsapp", "email", "phone"]
    identifier: str


class ScenarioStages(CamelModel):
    entity_extraction: EntityExtraction
    diagnostic_retrieval: DiagnosticRetrieval
    work_order: WorkOrderSchema
    margin_check: MarginCheck


class Scenario(CamelModel):
    id: str
    title: str
    description: str
    customer_request: str
    customer_id: str
    vessel_id: str
    message_source: Optional[MessageSource] = None
    suggested_reply: Optional[str] = None
    customer_confirmation: Optional[str] = None
    stages: ScenarioStages

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
