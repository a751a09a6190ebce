"""
Reference data - read-only fixture store for customers, vessels, diagnostic
patterns, the marina profile and the canned service scenarios.

Tables are loaded with pandas; lookups return validated schema objects.
"""
import json
from typing import Optional

import pandas as pd
import structlog

from ..config.settings import Settings, get_settings
from .schemas import Customer, DiagnosticPattern, Marina, Scenario, Vessel

logger = structlog.get_logger(__name__)

_VESSEL_TEXT_COLUMNS = ('id', 'name', 'make', 'model', 'engineType', 'hullType', 'customerId')


def _first_record(frame: pd.DataFrame) -> Optional[dict]:
    if frame.empty:
        return None
    return frame.head(1).to_dict(orient='records')[0]


class ReferenceData:
    """
    Fixture-backed reference data.

    Scenario fixtures name their customer and vessel by id; loading fills in
    the entity-extraction customer and vessel from the tables so every
    scenario is a complete, self-contained document.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

        for path in (
            self.settings.customers_file,
            self.settings.vessels_file,
            self.settings.diagnostics_file,
            self.settings.scenarios_file,
            self.settings.marina_file,
        ):
            if not path.exists():
                raise FileNotFoundError(f"Reference fixture not found at {path}")

        self.customers = pd.read_json(self.settings.customers_file, orient='records', dtype=False)
        self.vessels = pd.read_csv(
            self.settings.vessels_file,
            dtype={col: str for col in _VESSEL_TEXT_COLUMNS},
        )
        self.diagnostics = pd.read_json(self.settings.diagnostics_file, orient='records', dtype=False)

        with open(self.settings.marina_file, 'r', encoding='utf-8') as f:
            self.marina = Marina.model_validate(json.load(f))

        with open(self.settings.scenarios_file, 'r', encoding='utf-8') as f:
            raw_scenarios = json.load(f)
        self.scenarios = [self._hydrate_scenario(raw) for raw in raw_scenarios]

        logger.info(
            "reference_data_loaded",
            customers=len(self.customers),
            vessels=len(self.vessels),
            diagnostics=len(self.diagnostics),
            scenarios=len(self.scenarios),
        )

    def reload_data(self):
        """Reload all fixtures from disk."""
        self.__init__(self.settings)

    def list_customers(self) -> list[Customer]:
        return [Customer.model_validate(row) for row in self.customers.to_dict(orient='records')]

    def list_vessels(self) -> list[Vessel]:
        return [Vessel.model_validate(row) for row in self.vessels.to_dict(orient='records')]

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        record = _first_record(self.customers[self.customers['id'] == str(customer_id).strip()])
        return Customer.model_validate(record) if record else None

    def get_vessel(self, vessel_id: str) -> Optional[Vessel]:
        record = _first_record(self.vessels[self.vessels['id'] == str(vessel_id).strip()])
        return Vessel.model_validate(record) if record else None

    def vessels_for_customer(self, customer_id: str) -> list[Vessel]:
        owned = self.vessels[self.vessels['customerId'] == str(customer_id).strip()]
        return [Vessel.model_validate(row) for row in owned.to_dict(orient='records')]

    def find_patterns(self, vessel_type: Optional[str] = None, symptom: Optional[str] = None) -> list[DiagnosticPattern]:
        """Diagnostic patterns whose vessel type / symptom contain the given text (case-insensitive)."""
        df = self.diagnostics
        if vessel_type:
            df = df[df['vesselType'].str.contains(vessel_type, case=False, na=False, regex=False)]
        if symptom:
            df = df[df['symptom'].str.contains(symptom, case=False, na=False, regex=False)]
        return [DiagnosticPattern.model_validate(row) for row in df.to_dict(orient='records')]

    def list_scenarios(self) -> list[Scenario]:
        return list(self.scenarios)

    def get_scenario(self, scenario_id: str) -> Optional[Scenario]:
        for scenario in self.scenarios:
            if scenario.id == scenario_id:
                return scenario
        return None

    def _hydrate_scenario(self, raw: dict) -> Scenario:
        customer = self.get_customer(raw['customerId'])
        vessel = self.get_vessel(raw['vesselId'])
        if customer is None or vessel is None:
            raise ValueError(
                f"Scenario {raw.get('id')} references unknown customer "
                f"{raw['customerId']} or vessel {raw['vesselId']}"
            )

        extraction = dict(raw['stages']['entityExtraction'])
        extraction['customer'] = customer.model_dump(by_alias=True)
        extraction['vessel'] = vessel.model_dump(by_alias=True)

        data = dict(raw)
        data['stages'] = {**raw['stages'], 'entityExtraction': extraction}
        return Scenario.model_validate(data)


_reference: Optional[ReferenceData] = None


def get_reference_data() -> ReferenceData:
    """Get the shared reference data instance."""
    global _reference
    if _reference is None:
        _reference = ReferenceData()
    return _reference
