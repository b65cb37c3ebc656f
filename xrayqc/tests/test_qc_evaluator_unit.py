import dataclasses
import math

import pytest

from xrayqc.qc import (
    InsufficientDataError,
    KvTestInput,
    LimitsConfig,
    LinearityPoint,
    LinearityTestInput,
    RepeatabilityTestInput,
    evaluate_kv_test,
    evaluate_linearity_test,
    evaluate_repeatability_test,
    evaluate_session,
)

DEFAULT_LIMITS = LimitsConfig()


def _points(pairs: list[tuple[float, float]]) -> list[LinearityPoint]:
    return [LinearityPoint(mas=mas, dose=dose) for mas, dose in pairs]


def test_default_limits_match_service_defaults() -> None:
    assert DEFAULT_LIMITS.kv_deviation_limit_pct == 10.0
    assert DEFAULT_LIMITS.kv_absolute_limit_kv == 5.0
    assert DEFAULT_LIMITS.repeatability_cv_limit == 0.05
    assert DEFAULT_LIMITS.linearity_r_squared_limit == 0.98


def test_evaluate_kv_test_reference_scenario() -> None:
    result = evaluate_kv_test(
        [80.1, 79.8, 80.3],
        80,
        LimitsConfig(kv_deviation_limit_pct=10, kv_absolute_limit_kv=5),
    )
    assert result.nominal_kv == 80.0
    assert result.readings == (80.1, 79.8, 80.3)
    assert result.mean == pytest.approx(80.0667, abs=1e-4)
    assert result.sd == pytest.approx(0.2517, abs=1e-4)
    assert result.cv == pytest.approx(0.00314, abs=1e-5)
    assert result.deviation_pct == pytest.approx(0.0833, abs=1e-4)
    assert result.passed is True


def test_evaluate_kv_test_fails_on_absolute_limit_even_when_relative_passes() -> None:
    limits = LimitsConfig(kv_deviation_limit_pct=10, kv_absolute_limit_kv=0.5)
    result = evaluate_kv_test([1001.0, 1001.0, 1001.0], 1000, limits)
    assert result.deviation_pct == pytest.approx(0.1)
    assert result.passed is False


def test_evaluate_kv_test_fails_on_relative_limit_even_when_absolute_passes() -> None:
    result = evaluate_kv_test([44.5, 44.5, 44.5], 40, DEFAULT_LIMITS)
    assert abs(result.mean - 40) <= DEFAULT_LIMITS.kv_absolute_limit_kv
    assert result.deviation_pct == pytest.approx(11.25)
    assert result.passed is False


def test_evaluate_kv_test_reports_signed_deviation_but_checks_absolute() -> None:
    result = evaluate_kv_test([76.0, 76.0, 76.0], 80, DEFAULT_LIMITS)
    assert result.deviation_pct == pytest.approx(-5.0)
    assert result.sd == 0.0
    assert result.cv == 0.0
    assert result.passed is True


def test_evaluate_kv_test_zero_nominal_cannot_pass() -> None:
    result = evaluate_kv_test([0.0, 0.0, 0.0], 0, DEFAULT_LIMITS)
    assert result.deviation_pct == 0.0
    assert result.cv == 0.0
    assert result.passed is False


def test_evaluate_kv_test_rejects_two_finite_readings() -> None:
    with pytest.raises(InsufficientDataError) as exc_info:
        evaluate_kv_test([80.1, math.nan, 79.9], 80, DEFAULT_LIMITS)
    assert exc_info.value.test_name == "kv"
    assert exc_info.value.required == 3
    assert exc_info.value.received == 2


def test_evaluate_kv_test_filters_non_numeric_entries_before_counting() -> None:
    with pytest.raises(InsufficientDataError):
        evaluate_kv_test([80.1, "abc", 79.9], 80, DEFAULT_LIMITS)


def test_evaluate_kv_test_rejects_extra_readings() -> None:
    with pytest.raises(InsufficientDataError) as exc_info:
        evaluate_kv_test([80.0, 80.1, 79.9, 80.2], 80, DEFAULT_LIMITS)
    assert exc_info.value.received == 4


def test_evaluate_repeatability_test_reference_scenario() -> None:
    result = evaluate_repeatability_test(
        [10.0, 10.2, 9.9],
        2,
        LimitsConfig(repeatability_cv_limit=0.05),
    )
    assert result.nominal_mas == 2.0
    assert result.mean == pytest.approx(10.0333, abs=1e-4)
    assert result.sd == pytest.approx(0.1528, abs=1e-4)
    assert result.cv == pytest.approx(0.0153, abs=1e-4)
    assert result.passed is True


def test_evaluate_repeatability_test_fails_above_cv_limit() -> None:
    result = evaluate_repeatability_test([10.0, 12.0, 8.0], 2, DEFAULT_LIMITS)
    assert result.sd == pytest.approx(2.0)
    assert result.cv == pytest.approx(0.2)
    assert result.passed is False


def test_evaluate_repeatability_test_nominal_mas_does_not_affect_verdict() -> None:
    low = evaluate_repeatability_test([10.0, 10.2, 9.9], 0.5, DEFAULT_LIMITS)
    high = evaluate_repeatability_test([10.0, 10.2, 9.9], 50, DEFAULT_LIMITS)
    assert low.passed == high.passed
    assert low.cv == high.cv


def test_evaluate_repeatability_test_rejects_missing_reading() -> None:
    with pytest.raises(InsufficientDataError) as exc_info:
        evaluate_repeatability_test([10.0, math.inf], 2, DEFAULT_LIMITS)
    assert exc_info.value.test_name == "repeatability"
    assert exc_info.value.received == 1


def test_evaluate_linearity_test_perfect_proportional_fit() -> None:
    result = evaluate_linearity_test(_points([(1, 2), (2, 4), (3, 6)]), DEFAULT_LIMITS)
    assert result.slope == pytest.approx(2.0)
    assert result.r_squared == pytest.approx(1.0)
    assert result.passed is True


def test_evaluate_linearity_test_flat_dose_uses_perfect_fit_convention() -> None:
    result = evaluate_linearity_test(_points([(1, 5), (2, 5), (3, 5)]), DEFAULT_LIMITS)
    assert result.r_squared == 1.0
    assert result.passed is True


@pytest.mark.parametrize("dose", [0.1, 0.7, 3.3])
def test_evaluate_linearity_test_flat_fractional_dose_passes(dose: float) -> None:
    result = evaluate_linearity_test(_points([(1, dose), (2, dose), (3, dose)]), DEFAULT_LIMITS)
    assert result.r_squared == 1.0
    assert result.passed is True


def test_evaluate_linearity_test_realistic_series() -> None:
    result = evaluate_linearity_test(
        _points([(1, 2.1), (2, 3.9), (3, 6.2), (4, 7.8)]),
        DEFAULT_LIMITS,
    )
    assert result.slope == pytest.approx(1.99)
    assert result.r_squared == pytest.approx(0.99487, abs=1e-4)
    assert result.passed is True
    assert len(result.data_points) == 4


def test_evaluate_linearity_test_fails_below_r_squared_limit() -> None:
    result = evaluate_linearity_test(_points([(1, 10), (2, 11), (3, 12)]), DEFAULT_LIMITS)
    assert result.r_squared < DEFAULT_LIMITS.linearity_r_squared_limit
    assert result.passed is False


def test_evaluate_linearity_test_drops_invalid_points() -> None:
    result = evaluate_linearity_test(
        _points([(0, 1), (-1, 2), (math.nan, 3), (2, math.inf), (1, 2), (2, 4)]),
        DEFAULT_LIMITS,
    )
    assert [(item.mas, item.dose) for item in result.data_points] == [(1.0, 2.0), (2.0, 4.0)]


def test_evaluate_linearity_test_rejects_single_valid_point() -> None:
    with pytest.raises(InsufficientDataError) as exc_info:
        evaluate_linearity_test(_points([(0, 1), (1, 2), (3, math.nan)]), DEFAULT_LIMITS)
    assert exc_info.value.test_name == "linearity"
    assert exc_info.value.required == 2
    assert exc_info.value.received == 1


def test_evaluate_session_overall_is_and_of_three_tests() -> None:
    kv_input = KvTestInput(nominal_kv=80, readings=[80.1, 79.8, 80.3])
    rep_input = RepeatabilityTestInput(nominal_mas=2, readings=[10.0, 10.2, 9.9])

    passing = evaluate_session(
        kv_input,
        rep_input,
        LinearityTestInput(data_points=_points([(1, 2), (2, 4), (3, 6)])),
        DEFAULT_LIMITS,
    )
    assert passing.overall_passed is True

    failing = evaluate_session(
        kv_input,
        rep_input,
        LinearityTestInput(data_points=_points([(1, 10), (2, 11), (3, 12)])),
        DEFAULT_LIMITS,
    )
    assert failing.kv_test.passed is True
    assert failing.repeatability_test.passed is True
    assert failing.linearity_test.passed is False
    assert failing.overall_passed is False


def test_evaluate_session_propagates_insufficient_data() -> None:
    with pytest.raises(InsufficientDataError) as exc_info:
        evaluate_session(
            KvTestInput(nominal_kv=80, readings=[80.1, 79.8, 80.3]),
            RepeatabilityTestInput(nominal_mas=2, readings=[10.0]),
            LinearityTestInput(data_points=_points([(1, 2), (2, 4)])),
            DEFAULT_LIMITS,
        )
    assert exc_info.value.test_name == "repeatability"


def test_results_are_immutable_snapshots() -> None:
    readings = [80.1, 79.8, 80.3]
    result = evaluate_kv_test(readings, 80, DEFAULT_LIMITS)
    readings[0] = 200.0
    assert result.readings == (80.1, 79.8, 80.3)
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.passed = False  # type: ignore[misc]
