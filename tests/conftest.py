from __future__ import annotations

import pytest

NOW = "2024-03-01T08:00:00Z"


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def manpower_rows():
    return [
        {"date": "2024-01-01", "discipline": "Civil", "planned_headcount": "10", "actual_headcount": "8"},
        {"date": "2024-01-01", "discipline": "Civil", "planned_headcount": "5", "actual_headcount": "5"},
        {"date": "2024-01-01", "discipline": "MEP", "planned_headcount": "20", "actual_headcount": "15"},
    ]


@pytest.fixture
def equipment_rows():
    return [
        {"timestamp": "2024-01-01", "discipline": "Civil", "equipment_id": "EX-01", "status": "active", "hours_idle": "0"},
        {"timestamp": "2024-01-01", "discipline": "Civil", "equipment_id": "EX-02", "status": "Idle", "hours_idle": "4"},
        {"timestamp": "2024-01-02", "discipline": "MEP", "equipment_id": "CR-01", "status": " BREAKDOWN ", "hours_idle": ""},
        {"timestamp": "2024-01-02", "discipline": "MEP", "equipment_id": "CR-02", "status": "Active", "hours_idle": "2.5"},
    ]


@pytest.fixture
def progress_rows():
    return [
        {"date": "2024-01-01", "discipline": "Civil", "planned_progress_pct": "50", "actual_progress_pct": "40"},
        {"date": "2024-01-08", "discipline": "Civil", "planned_progress_pct": "60", "actual_progress_pct": "60"},
        {"date": "2024-01-08", "discipline": "MEP", "planned_progress_pct": "30", "actual_progress_pct": "33"},
    ]


@pytest.fixture
def cost_rows():
    return [
        {"date": "2024-02-01", "discipline": "Civil", "budget_amount": "1000", "actual_spend": "1200", "cost_code": "C-100"},
        {"date": "2024-02-02", "discipline": "MEP", "budget_amount": "2000", "actual_spend": "1500", "cost_code": "M-200"},
    ]
