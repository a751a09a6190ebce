"""
Tests for the proactive outreach board and fleet overview.
"""
from datetime import date

import pytest

from dockmaster.data.schemas import Customer, Vessel
from dockmaster.outreach.board import OutreachFilters, create_opportunity
from dockmaster.outreach.fleet import fleet_overview, fleet_rows, health_counts, health_status


def ids(items):
    return [item.id for item in items]


def test_default_view_sorted_by_priority_then_status(board):
    assert ids(board.items()) == [
        "outreach-001", "outreach-005", "outreach-002", "outreach-003", "outreach-004",
    ]


@pytest.mark.parametrize("filters,expected", [
    (OutreachFilters(status="to-review"), ["outreach-001", "outreach-004"]),
    (OutreachFilters(status="to-reply"), ["outreach-002", "outreach-003"]),
    (OutreachFilters(status="sent"), ["outreach-002"]),
    (OutreachFilters(status="dismissed"), []),
    (OutreachFilters(channel="whatsapp"), ["outreach-005", "outreach-002"]),
    (OutreachFilters(revenue_range="0-500"), ["outreach-004"]),
    (OutreachFilters(revenue_range="500-1500"), ["outreach-005", "outreach-002", "outreach-003"]),
    (OutreachFilters(revenue_range="1500+"), ["outreach-001"]),
    (OutreachFilters(priority="medium"), ["outreach-002", "outreach-003"]),
    (OutreachFilters(status="to-review", priority="high"), ["outreach-001"]),
])
def test_filters(board, filters, expected):
    assert ids(board.items(filters)) == expected


@pytest.mark.parametrize("kwargs", [
    {"status": "archived"},
    {"channel": "fax"},
    {"revenue_range": "10k+"},
    {"priority": "urgent"},
])
def test_unknown_filter_values_raise(kwargs):
    with pytest.raises(ValueError):
        OutreachFilters(**kwargs)


def test_funnel_metrics(board):
    metrics = {m.status: m for m in board.funnel_metrics()}

    assert list(metrics) == ["draft", "sent", "opened", "booked"]
    assert (metrics["draft"].count, metrics["draft"].revenue, metrics["draft"].vs_monthly_avg) == (2, 3750.0, -1)
    assert (metrics["sent"].count, metrics["sent"].vs_monthly_avg) == (1, -1)
    assert (metrics["opened"].count, metrics["opened"].vs_monthly_avg) == (1, 0)
    assert (metrics["booked"].count, metrics["booked"].revenue) == (1, 600.0)


def test_send_moves_draft_into_sent(board):
    item = board.send("outreach-004")

    assert item.status == "sent"
    assert board.get("outreach-004").status == "sent"
    metrics = {m.status: m for m in board.funnel_metrics()}
    assert metrics["draft"].count == 1
    assert metrics["sent"].count == 2


def test_dismiss_hides_from_default_view(board):
    board.dismiss("outreach-001")

    assert "outreach-001" not in ids(board.items())
    assert ids(board.items(OutreachFilters(status="dismissed"))) == ["outreach-001"]


def test_actions_on_unknown_id_return_none(board):
    assert board.send("outreach-999") is None
    assert board.dismiss("outreach-999") is None
    assert board.update_message("outreach-999", "hi") is None


def test_update_message(board):
    item = board.update_message("outreach-002", "Spring slots are open.")

    assert item.message == "Spring slots are open."
    assert item.status == "sent"


def test_create_and_add_opportunity(board, reference):
    item = create_opportunity(
        reference, "cust-003", "vessel-003", "  Rigging inspection  ",
        estimated_revenue=420, today=date(2026, 3, 1), item_id="outreach-100",
    )

    assert item.status == "draft"
    assert item.title == "Rigging inspection"
    assert item.created_date == "2026-03-01"
    assert item.ai_confidence == 0.75
    assert item.ai_reasoning.startswith("Manual entry")

    board.add(item)
    assert board.all_items[0].id == "outreach-100"
    with pytest.raises(ValueError):
        board.add(item)


def test_generated_ids_are_unique(reference):
    first = create_opportunity(reference, "cust-001", "vessel-001", "Wax")
    second = create_opportunity(reference, "cust-001", "vessel-001", "Wax")

    assert first.id.startswith("outreach-")
    assert first.id != second.id


@pytest.mark.parametrize("customer_id,vessel_id,title", [
    ("", "vessel-001", "Wax"),
    ("cust-001", "", "Wax"),
    ("cust-001", "vessel-001", "   "),
    ("cust-999", "vessel-001", "Wax"),
    ("cust-001", "vessel-002", "Wax"),
])
def test_create_opportunity_validation(reference, customer_id, vessel_id, title):
    with pytest.raises(ValueError):
        create_opportunity(reference, customer_id, vessel_id, title)


def test_item_wire_round_trip(board):
    item = board.get("outreach-001")
    data = item.to_dict()

    assert data["estimatedRevenue"] == 3500
    assert data["aiAnalysis"]["riskFactor"].startswith("High")
    assert "dueDate" not in board.get("outreach-003").to_dict()


# ----------------------------------------------------------------------------
# Fleet health
# ----------------------------------------------------------------------------

@pytest.mark.parametrize("hours,days,expected", [
    (100, 30, "good"),
    (499, 120, "good"),
    (100, 121, "attention"),
    (500, 0, "attention"),
    (999, 180, "attention"),
    (100, 181, "service-due"),
    (1000, 0, "service-due"),
])
def test_health_status_thresholds(hours, days, expected):
    assert health_status(hours, days) == expected


def test_fleet_rows_from_fixtures(reference):
    rows = {row.vessel_id: row for row in fleet_rows(reference, today=date(2026, 2, 15))}

    assert rows["vessel-001"].days_since_service == 153
    assert rows["vessel-001"].health == "attention"
    assert rows["vessel-002"].days_since_service == 106
    assert rows["vessel-002"].health == "service-due"
    assert rows["vessel-003"].days_since_service == 128
    assert rows["vessel-003"].health == "service-due"
    assert health_counts(list(rows.values())) == {"service-due": 2, "attention": 1, "good": 0}


class _NoHistoryReference:
    """Just enough of ReferenceData for a customer with no service history."""

    customer = Customer(id="cust-900", name="New Owner", email="n@example.com", phone="555")
    vessel = Vessel(
        id="vessel-900", name="Fresh Start", make="Sea Ray", model="SLX", year=2025, length=28,
        engine_type="Single Mercury 300", engine_hours=40, hull_type="Deep-V", customer_id="cust-900",
    )

    def list_customers(self):
        return [self.customer]

    def vessels_for_customer(self, customer_id):
        return [self.vessel] if customer_id == self.customer.id else []


def test_fleet_without_history_uses_default_date():
    rows = fleet_rows(_NoHistoryReference(), today=date(2025, 3, 1))

    assert rows[0].days_since_service is None
    assert rows[0].health == "good"

    late = fleet_rows(_NoHistoryReference(), today=date(2025, 9, 1))
    assert late[0].health == "service-due"


def test_fleet_overview_frame(reference):
    df = fleet_overview(reference, today=date(2026, 2, 15))

    assert len(df) == 3
    assert set(df["health"]) == {"attention", "service-due"}
    assert df.loc[df["vessel_id"] == "vessel-002", "customer_name"].iloc[0] == "Maria Santos"
