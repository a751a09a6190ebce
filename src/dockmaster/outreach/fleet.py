"""
Fleet overview - service health of every vessel the marina looks after.
"""
from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

import pandas as pd

from ..data.reference_data import ReferenceData

# Customers with no recorded service are measured from this date
DEFAULT_LAST_SERVICE = "2025-01-01"

HEALTH_STATES = ("service-due", "attention", "good")


@dataclass(frozen=True)
class FleetRow:
    vessel_id: str
    vessel_name: str
    customer_name: str
    engine_hours: float
    health: str
    days_since_service: Optional[int]

    def to_dict(self) -> dict:
        return {
            "vesselId": self.vessel_id,
            "vesselName": self.vessel_name,
            "customerName": self.customer_name,
            "engineHours": self.engine_hours,
            "health": self.health,
            "daysSinceService": self.days_since_service,
        }


def health_status(engine_hours: float, days_since_service: int) -> str:
    """'service-due', 'attention' or 'good' from engine hours and service age."""
    if engine_hours >= 1000 or days_since_service > 180:
        return "service-due"
    if engine_hours >= 500 or days_since_service > 120:
        return "attention"
    return "good"


def fleet_rows(reference: ReferenceData, today: Optional[date] = None) -> list[FleetRow]:
    """
    One row per vessel, grouped by owner. Days since service come from the
    owner's most recent history entry and are None when there is no history.
    """
    today = today or date.today()
    rows = []

    for customer in reference.list_customers():
        history = sorted(customer.history, key=lambda entry: entry.date, reverse=True)
        last_service = history[0].date if history else None
        elapsed = (today - date.fromisoformat(last_service or DEFAULT_LAST_SERVICE)).days

        for vessel in reference.vessels_for_customer(customer.id):
            rows.append(FleetRow(
                vessel_id=vessel.id,
                vessel_name=vessel.name,
                customer_name=customer.name,
                engine_hours=vessel.engine_hours,
                health=health_status(vessel.engine_hours, elapsed),
                days_since_service=elapsed if last_service else None,
            ))
    return rows


def fleet_overview(reference: ReferenceData, today: Optional[date] = None) -> pd.DataFrame:
    """Fleet rows as a table for display."""
    columns = [f for f in FleetRow.__dataclass_fields__]
    return pd.DataFrame([asdict(row) for row in fleet_rows(reference, today)], columns=columns)


def health_counts(rows: list[FleetRow]) -> dict[str, int]:
    counts = {state: 0 for state in HEALTH_STATES}
    for row in rows:
        counts[row.health] += 1
    return counts
