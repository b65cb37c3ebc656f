from __future__ import annotations

"""
Numeric building blocks shared by the QC test rules.

Design intent:
- One formula per statistic: sample SD uses Bessel's correction (n - 1).
- Resolve zero denominators by convention (0 or 1), never by raising.
- Operate on already-typed reals; string parsing lives in intake.
"""

import math
import numbers
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np


@dataclass(frozen=True)
class RegressionFit:
    slope: float
    r_squared: float
    ss_total: float
    ss_residual: float


def finite_values(values: Iterable[object]) -> list[float]:
    out: list[float] = []
    for item in values:
        # bool is an int subclass; a checkbox value is not a reading.
        if isinstance(item, bool) or not isinstance(item, numbers.Real):
            continue
        value = float(item)
        if math.isfinite(value):
            out.append(value)
    return out


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float)))


def sample_sd(values: Sequence[float], center: float | None = None) -> float:
    n = len(values)
    if n < 2:
        return 0.0
    arr = np.asarray(values, dtype=float)
    m = float(np.mean(arr)) if center is None else float(center)
    return float(np.sqrt(np.sum((arr - m) ** 2) / (n - 1)))


def coefficient_of_variation(sd: float, center: float) -> float:
    if center == 0:
        return 0.0
    return sd / center


def percent_deviation(measured: float, nominal: float) -> float:
    """Signed deviation of ``measured`` from ``nominal`` in percent (0 when nominal is 0)."""
    if nominal == 0:
        return 0.0
    return ((measured - nominal) / nominal) * 100.0


def regression_through_origin(mas: Sequence[float], dose: Sequence[float]) -> RegressionFit:
    """
    Fit dose = slope * mAs with no intercept.

    R² compares residuals against the spread around the mean dose. A flat dose
    series (zero total variance) is reported as a perfect fit, R² = 1.
    """
    x = np.asarray(mas, dtype=float)
    y = np.asarray(dose, dtype=float)
    if x.shape != y.shape:
        raise ValueError("mas and dose must have the same length.")
    if x.size == 0:
        raise ValueError("regression needs at least one point.")

    sum_xx = float(np.dot(x, x))
    if sum_xx == 0:
        raise ValueError("regression through the origin is undefined when all mAs are zero.")
    slope = float(np.dot(x, y)) / sum_xx

    y_mean = float(np.mean(y))
    ss_total = float(np.sum((y - y_mean) ** 2))
    ss_residual = float(np.sum((y - slope * x) ** 2))
    # Identical doses can leave float noise in ss_total; test the data itself.
    flat = bool(np.ptp(y) == 0)
    if flat:
        ss_total = 0.0
    r_squared = 1.0 if flat else 1.0 - ss_residual / ss_total
    return RegressionFit(
        slope=slope,
        r_squared=r_squared,
        ss_total=ss_total,
        ss_residual=ss_residual,
    )
