import pytest

from tests.helpers import clone_scenario, write_scenario
from pcalc.schema import load_scenario
from pcalc.validate import validate_scenario


def _run_validation(tmp_path, sample_scenario_dict, mutator, mode=None):
    data = clone_scenario(sample_scenario_dict)
    mutator(data)
    path = write_scenario(tmp_path, data)
    return validate_scenario(load_scenario(path), mode)


def test_sample_scenario_validates_in_every_mode(tmp_path, sample_scenario_dict):
    scenario = load_scenario(write_scenario(tmp_path, sample_scenario_dict))
    for mode in ("retirement", "dca", "inflation", "inflation_sweep"):
        assert validate_scenario(scenario, mode).errors == []
    assert validate_scenario(scenario, "sweep").is_valid


@pytest.mark.parametrize(
    ("mutator", "expected_error"),
    [
        (
            lambda d: d["run"].update({"mode": "monte_carlo"}),
            "run.mode: 'monte_carlo' is not valid; expected one of [dca, inflation, inflation_sweep, retirement, sweep]",
        ),
        (
            lambda d: d["retirement"].update({"initial_balance": 0}),
            "retirement.initial_balance: must be > 0",
        ),
        (
            lambda d: d["retirement"].update({"duration_years": 0}),
            "retirement.duration_years: must be > 0",
        ),
        (
            lambda d: d["retirement"].update({"start_month": "2000-13"}),
            "retirement.start_month: '2000-13' is not valid; expected YYYY-MM",
        ),
        (
            lambda d: d["retirement"].pop("start_month"),
            "retirement.start_month: month is required",
        ),
        (
            lambda d: d["retirement"]["withdrawal"].update({"rate_pct": -4}),
            "retirement.withdrawal.rate_pct: must be > 0",
        ),
        (
            lambda d: d["retirement"]["withdrawal"].update({"frequency": "weekly"}),
            "retirement.withdrawal.frequency: 'weekly' is not valid; expected one of [annual, monthly]",
        ),
        (
            lambda d: d["retirement"]["withdrawal"].update({"mode": "yolo"}),
            "retirement.withdrawal.mode: 'yolo' is not valid; expected one of [guardrails, inflation_adjusted, percent_of_initial]",
        ),
        (
            lambda d: d["retirement"]["withdrawal"].pop("guardrails"),
            "retirement.withdrawal.guardrails: required when mode is 'guardrails'",
        ),
        (
            lambda d: d["retirement"]["withdrawal"]["guardrails"].update({"min_pct": 7}),
            "retirement.withdrawal.guardrails.min_pct/retirement.withdrawal.guardrails.max_pct: min_pct must be <= max_pct",
        ),
        (
            lambda d: d["retirement"]["withdrawal"]["guardrails"].update({"min_pct": -1}),
            "retirement.withdrawal.guardrails.min_pct: must be >= 0",
        ),
        (
            lambda d: d["retirement"]["withdrawal"]["guardrails"].update({"min_dollar": -5}),
            "retirement.withdrawal.guardrails.min_dollar: must be >= 0",
        ),
        (
            lambda d: d["retirement"]["withdrawal"].update({"mode": "inflation_adjusted", "annual_inflation_pct": 120}),
            "retirement.withdrawal.annual_inflation_pct: must be between -50 and 100",
        ),
        (
            lambda d: d.pop("retirement"),
            "retirement: section is required for 'retirement' mode",
        ),
    ],
)
def test_retirement_validation_errors(tmp_path, sample_scenario_dict, mutator, expected_error):
    result = _run_validation(tmp_path, sample_scenario_dict, mutator)
    assert expected_error in result.errors


@pytest.mark.parametrize(
    ("mode", "mutator", "expected_error"),
    [
        ("dca", lambda d: d["dca"].update({"monthly_contribution": 0}), "dca.monthly_contribution: must be > 0"),
        ("dca", lambda d: d["dca"].update({"initial_lump_sum": -1}), "dca.initial_lump_sum: must be >= 0"),
        (
            "dca",
            lambda d: d["dca"].update({"start_month": "2002-01"}),
            "dca.start_month/dca.end_month: start_month must be <= end_month",
        ),
        ("inflation", lambda d: d["inflation"].update({"amount": 0}), "inflation.amount: must be > 0"),
        ("inflation", lambda d: d["inflation"].pop("start_year"), "inflation.start_year: required for 'inflation' mode"),
        ("inflation_sweep", lambda d: d["inflation"].update({"duration_years": 0}), "inflation.duration_years: must be > 0"),
        ("dca", lambda d: d.pop("dca"), "dca: section is required for 'dca' mode"),
    ],
)
def test_other_mode_validation_errors(tmp_path, sample_scenario_dict, mode, mutator, expected_error):
    result = _run_validation(tmp_path, sample_scenario_dict, mutator, mode)
    assert expected_error in result.errors


def test_inflation_sweep_does_not_need_start_year(tmp_path, sample_scenario_dict):
    result = _run_validation(tmp_path, sample_scenario_dict, lambda d: d["inflation"].pop("start_year"), "inflation_sweep")
    assert result.is_valid


def test_starting_rate_outside_guardrails_warns(tmp_path, sample_scenario_dict):
    result = _run_validation(
        tmp_path, sample_scenario_dict, lambda d: d["retirement"]["withdrawal"].update({"rate_pct": 8})
    )
    assert result.is_valid
    assert any("starting rate will be clamped" in warning for warning in result.warnings)


def test_unused_policy_fields_warn(tmp_path, sample_scenario_dict):
    def _mutate(d):
        d["retirement"]["withdrawal"].update({"mode": "percent_of_initial", "annual_inflation_pct": 2})

    result = _run_validation(tmp_path, sample_scenario_dict, _mutate)
    assert result.is_valid
    assert "retirement.withdrawal.annual_inflation_pct: only used by 'inflation_adjusted' mode; ignored" in result.warnings
    assert "retirement.withdrawal.guardrails: only used by 'guardrails' mode; ignored" in result.warnings


def test_sweep_ignores_start_month_with_warning(tmp_path, sample_scenario_dict):
    result = _run_validation(tmp_path, sample_scenario_dict, lambda d: None, "sweep")
    assert result.is_valid
    assert "retirement.start_month: sweep runs start from every January; ignored" in result.warnings


@pytest.mark.parametrize(
    ("mutator", "expected_error"),
    [
        (
            lambda d: d["run"].update({"mode": ["retirement"]}),
            "run.mode: '['retirement']' is not valid; expected one of [dca, inflation, inflation_sweep, retirement, sweep]",
        ),
        (
            lambda d: d["retirement"]["withdrawal"].update({"mode": {"kind": "guardrails"}}),
            "retirement.withdrawal.mode: '{'kind': 'guardrails'}' is not valid; expected one of [guardrails, inflation_adjusted, percent_of_initial]",
        ),
        (
            lambda d: d["retirement"]["withdrawal"].update({"frequency": ["monthly"]}),
            "retirement.withdrawal.frequency: '['monthly']' is not valid; expected one of [annual, monthly]",
        ),
    ],
)
def test_non_string_enum_values_are_reported(tmp_path, sample_scenario_dict, mutator, expected_error):
    result = _run_validation(tmp_path, sample_scenario_dict, mutator)
    assert expected_error in result.errors
