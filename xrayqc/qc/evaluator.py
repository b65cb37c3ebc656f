from __future__ import annotations

"""
Evaluate the three mobile X-ray QC protocols against tolerance limits.

Design intent:
- Pure input -> result functions; no config lookups, no I/O, no caching.
- Reject incomplete input with InsufficientDataError before any statistic is built.
- Keep the displayed (signed) kV deviation separate from the absolute pass check.
"""

import math
from typing import Iterable, Sequence

from xrayqc.qc import stats
from xrayqc.qc.models import (
    KV_READINGS_REQUIRED,
    LINEARITY_POINTS_REQUIRED,
    REPEATABILITY_READINGS_REQUIRED,
    InsufficientDataError,
    KvTestInput,
    KvTestResult,
    LimitsConfig,
    LinearityPoint,
    LinearityTestInput,
    LinearityTestResult,
    RepeatabilityTestInput,
    RepeatabilityTestResult,
    SessionEvaluation,
)


def evaluate_kv_test(
    readings: Iterable[object],
    nominal_kv: float,
    limits: LimitsConfig,
) -> KvTestResult:
    values = _require_exact_readings(readings, test_name="kv", required=KV_READINGS_REQUIRED)
    nominal = float(nominal_kv)

    m = stats.mean(values)
    sd = stats.sample_sd(values, m)
    return KvTestResult(
        nominal_kv=nominal,
        readings=tuple(values),
        mean=m,
        sd=sd,
        cv=stats.coefficient_of_variation(sd, m),
        deviation_pct=stats.percent_deviation(m, nominal),
        passed=_kv_within_limits(m, nominal, limits),
    )


def evaluate_repeatability_test(
    readings: Iterable[object],
    nominal_mas: float,
    limits: LimitsConfig,
) -> RepeatabilityTestResult:
    values = _require_exact_readings(
        readings,
        test_name="repeatability",
        required=REPEATABILITY_READINGS_REQUIRED,
    )

    m = stats.mean(values)
    sd = stats.sample_sd(values, m)
    cv = stats.coefficient_of_variation(sd, m)
    return RepeatabilityTestResult(
        nominal_mas=float(nominal_mas),
        readings=tuple(values),
        mean=m,
        sd=sd,
        cv=cv,
        passed=cv <= limits.repeatability_cv_limit,
    )


def evaluate_linearity_test(
    data_points: Iterable[LinearityPoint],
    limits: LimitsConfig,
) -> LinearityTestResult:
    points = valid_linearity_points(data_points)
    if len(points) < LINEARITY_POINTS_REQUIRED:
        raise InsufficientDataError(
            "linearity",
            LINEARITY_POINTS_REQUIRED,
            len(points),
            message=(
                f"linearity test requires at least {LINEARITY_POINTS_REQUIRED} points "
                f"with finite dose and mAs > 0, received {len(points)}."
            ),
        )

    fit = stats.regression_through_origin(
        [item.mas for item in points],
        [item.dose for item in points],
    )
    return LinearityTestResult(
        data_points=tuple(points),
        slope=fit.slope,
        r_squared=fit.r_squared,
        passed=fit.r_squared >= limits.linearity_r_squared_limit,
    )


def evaluate_session(
    kv_input: KvTestInput,
    repeatability_input: RepeatabilityTestInput,
    linearity_input: LinearityTestInput,
    limits: LimitsConfig,
) -> SessionEvaluation:
    kv_test = evaluate_kv_test(kv_input.readings, kv_input.nominal_kv, limits)
    repeatability_test = evaluate_repeatability_test(
        repeatability_input.readings,
        repeatability_input.nominal_mas,
        limits,
    )
    linearity_test = evaluate_linearity_test(linearity_input.data_points, limits)
    return SessionEvaluation(
        kv_test=kv_test,
        repeatability_test=repeatability_test,
        linearity_test=linearity_test,
        overall_passed=kv_test.passed and repeatability_test.passed and linearity_test.passed,
    )


def valid_linearity_points(data_points: Iterable[LinearityPoint]) -> list[LinearityPoint]:
    out: list[LinearityPoint] = []
    for item in data_points:
        mas_values = stats.finite_values([item.mas])
        dose_values = stats.finite_values([item.dose])
        if not mas_values or not dose_values:
            continue
        if mas_values[0] <= 0:
            continue
        out.append(LinearityPoint(mas=mas_values[0], dose=dose_values[0]))
    return out


def _require_exact_readings(
    readings: Iterable[object],
    *,
    test_name: str,
    required: int,
) -> Sequence[float]:
    values = stats.finite_values(readings)
    if len(values) != required:
        raise InsufficientDataError(test_name, required, len(values))
    return values


def _kv_within_limits(measured_mean: float, nominal: float, limits: LimitsConfig) -> bool:
    absolute_dev = abs(measured_mean - nominal)
    # A zero nominal has no meaningful relative deviation.
    relative_dev_pct = (absolute_dev / nominal) * 100.0 if nominal != 0 else math.inf
    return (
        relative_dev_pct <= limits.kv_deviation_limit_pct
        and absolute_dev <= limits.kv_absolute_limit_kv
    )
