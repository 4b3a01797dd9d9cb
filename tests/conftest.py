import pytest

from tests.helpers import constant_series


@pytest.fixture
def sample_scenario_dict() -> dict:
    return {
        "run": {"mode": "retirement"},
        "data": {"prices_csv": "prices.csv", "inflation_csv": "inflation.csv"},
        "retirement": {
            "initial_balance": 1_000_000,
            "start_month": "2000-01",
            "duration_years": 5,
            "withdrawal": {
                "mode": "guardrails",
                "rate_pct": 5,
                "frequency": "monthly",
                "guardrails": {"min_pct": 3, "max_pct": 6, "min_dollar": ""},
            },
        },
        "dca": {
            "initial_lump_sum": 1000,
            "monthly_contribution": 500,
            "start_month": "2000-01",
            "end_month": "2001-12",
        },
        "inflation": {"amount": 1000, "start_year": 2000, "duration_years": 3},
    }


@pytest.fixture
def growth_series():
    """Ten years of steady +1% months starting 2000-01."""
    return constant_series(120, 0.01)
