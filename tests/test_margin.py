import pytest

from dockmaster.engine.margin import margin_gap, optimized_total, summarize


@pytest.mark.parametrize("scenario_id,expected", [
    ("scenario-engine", 2761.65),
    ("scenario-electrical", 3140.23),
    ("scenario-hull", 7501.95),
])
def test_optimized_total_matches_fixture(reference, scenario_id, expected):
    stages = reference.get_scenario(scenario_id).stages
    work_order = stages.work_order.to_work_order()

    assert optimized_total(work_order.total, stages.margin_check.recommendations) == expected
    assert stages.margin_check.optimized_total == expected


def test_optimized_total_accepts_wire_dicts():
    recs = [{"estimatedRevenue": 100}, {"estimated_revenue": -25.5}]
    assert optimized_total(1000.0, recs) == 1074.5


def test_margin_gap():
    assert margin_gap(0.38, 0.42) == 0.04
    assert margin_gap(0.44, 0.42) == -0.02


def test_summarize_below_target(reference):
    stages = reference.get_scenario("scenario-engine").stages
    margin = stages.margin_check

    summary = summarize(stages.work_order.to_work_order(), margin.current_margin,
                        margin.recommendations, margin.target_margin)

    assert summary.meets_target is False
    assert summary.margin_gap == 0.04
    assert summary.upsell_revenue == 505.0
    assert summary.discount_revenue == -250.0
    assert summary.optimized_total == 2761.65


def test_summarize_above_target(reference):
    stages = reference.get_scenario("scenario-hull").stages
    margin = stages.margin_check

    summary = summarize(stages.work_order.to_work_order(), margin.current_margin, margin.recommendations)

    assert summary.meets_target is True
    assert summary.discount_revenue == 0
    assert summary.to_dict()["optimized_total"] == 7501.95
