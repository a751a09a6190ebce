"""
System prompts for the scope endpoints, built from the reference data.
"""
import json

from ..data.reference_data import ReferenceData
from ..engine.pricing_engine import TAX_RATE

SCENARIO_SCHEMA = """{
  "id": string,            // unique, e.g. "scenario-ai-<timestamp>"
  "title": string,         // short title for the service
  "description": string,   // one-line summary
  "customerRequest": string, // the original customer message
  "customerId": string,    // from known customers
  "vesselId": string,      // from known vessels
  "messageSource": { "channel": "whatsapp" | "email" | "phone", "identifier": string },
  "suggestedReply": string,  // professional reply to customer
  "customerConfirmation": string, // simulated customer confirmation
  "stages": {
    "entityExtraction": {
      "customer": <full Customer object with id, name, email, phone, vessels, tier, history (array of {date,description,total})>,
      "vessel": <full Vessel object with id, name, make, model, year, length, engineType, engineHours, hullType, customerId>,
      "serviceType": string,
      "urgency": "routine" | "urgent" | "emergency",
      "keywords": string[],
      "requestSummary": string
    },
    "diagnosticRetrieval": {
      "patterns": [{ "vesselType": string, "symptom": string, "commonCauses": string[], "typicalResolution": string, "avgCost": number, "avgHours": number }],
      "similarCases": number,
      "confidence": number,
      "recommendedParts": []
    },
    "workOrder": {
      "id": string,           // e.g. "WO-2026-XXXX"
      "lineItems": [{
        "id": string,
        "description": string,
        "category": "labor" | "parts" | "materials" | "environmental" | "discount",
        "quantity": number,
        "unitPrice": number,
        "total": number,
        "partId"?: string,
        "laborHours"?: number
      }],
      "subtotal": number,
      "tax": number,          // 7% of subtotal
      "total": number,        // subtotal + tax
      "estimatedHours": number,
      "scheduledDate": string, // ISO date, a few days from now
      "technicianNotes": string
    },
    "marginCheck": {
      "currentMargin": number,  // 0.35-0.45
      "targetMargin": number,
      "recommendations": [{
        "type": "upsell" | "optimization" | "preventive",
        "title": string,
        "description": string,
        "estimatedRevenue": number,
        "confidence": number
      }],
      "optimizedTotal": number
    }
  }
}"""


def _known_entities(reference: ReferenceData) -> tuple[str, str]:
    customers = [
        customer.model_dump(by_alias=True, exclude={"history"})
        for customer in reference.list_customers()
    ]
    vessels = [vessel.model_dump(by_alias=True) for vessel in reference.list_vessels()]
    return json.dumps(customers), json.dumps(vessels)


def _default_ids(reference: ReferenceData) -> tuple[str, str]:
    customers = reference.list_customers()
    vessels = reference.vessels_for_customer(customers[0].id) if customers else []
    return (
        customers[0].id if customers else "",
        vessels[0].id if vessels else "",
    )


def build_scenario_prompt(reference: ReferenceData) -> str:
    """System prompt asking for one complete Scenario JSON document."""
    marina = reference.marina
    customers_json, vessels_json = _known_entities(reference)
    default_customer, default_vessel = _default_ids(reference)

    return f"""You are DockMaster AI, an expert marine service scoping assistant for {marina.name} in {marina.location}.

Given a customer service request, produce a complete JSON object matching the Scenario schema below. Do NOT wrap in markdown code fences - return raw JSON only.

## Pricing Rules
- Labor rate: ${marina.labor_rate:g}/hour
- Tax: {TAX_RATE * 100:g}% on subtotal
- Parts markup: 30-50% over wholesale cost
- Target margin: {marina.margin_target:g}
- Use realistic local marine service pricing

## Known Customers & Vessels
Customers: {customers_json}
Vessels: {vessels_json}

If the request mentions a known customer or vessel (by name, vessel details, or description), use their IDs. Otherwise, default to customerId "{default_customer}" and vesselId "{default_vessel}".

## Scenario JSON Schema

{SCENARIO_SCHEMA}

Generate realistic, detailed marine service data. Include at least 4 line items in the work order. Ensure subtotal equals the sum of line item totals, tax is {TAX_RATE * 100:g}% of subtotal, and total = subtotal + tax."""


def build_narrative_prompt(reference: ReferenceData) -> str:
    """System prompt for the streamed, human-readable work order."""
    marina = reference.marina
    customers_json, vessels_json = _known_entities(reference)

    return f"""You are DockMaster AI, the service writer assistant at {marina.name} in {marina.location}.

Turn the customer's request into a draft work order a technician can act on. Write plain text, no JSON.

Structure:
1. Customer and vessel (match a known customer or vessel when the request identifies one)
2. Reported problem and likely causes
3. Line items: description, quantity, unit price and line total
4. Subtotal, {TAX_RATE * 100:g}% tax and total
5. Estimated hours and technician notes

Labor is billed at ${marina.labor_rate:g}/hour. Keep every figure consistent: each line total is quantity times unit price, and the subtotal is the sum of the line totals.

Known customers: {customers_json}
Known vessels: {vessels_json}"""
