"""
Pytest configuration and fixtures.
"""
import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from dockmaster.config.settings import Settings
from dockmaster.data.reference_data import ReferenceData
from dockmaster.engine.models import LineItem, LineItemCategory, WorkOrder
from dockmaster.outreach.board import OutreachBoard


@pytest.fixture(scope="session")
def settings():
    """Settings pointing at the packaged fixtures, without provider keys."""
    loaded = Settings.load()
    loaded.openai_api_key = None
    loaded.anthropic_api_key = None
    return loaded


@pytest.fixture(scope="session")
def reference(settings):
    """Load the reference fixtures once for the whole run."""
    return ReferenceData(settings)


@pytest.fixture
def board(settings):
    """Fresh outreach board per test; status changes are in-memory."""
    return OutreachBoard.from_file(settings.outreach_file)


@pytest.fixture
def single_item_order():
    """One 330.00 labor line, base estimate of 2 hours."""
    item = LineItem(
        id="li-001",
        description="Engine diagnostic",
        category=LineItemCategory.LABOR,
        quantity=1,
        unit_price=330.0,
        total=330.0,
    )
    return WorkOrder(
        id="WO-2026-0001",
        line_items=(item,),
        subtotal=330.0,
        tax=23.1,
        total=353.1,
        estimated_hours=2.0,
        scheduled_date="2026-02-20",
        technician_notes="",
    )
