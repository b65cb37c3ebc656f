from __future__ import annotations

"""
Typed value objects exchanged with the QC evaluator.

Design intent:
- Keep every evaluation input and result immutable once built.
- Carry tolerance limits as an explicit value, never as ambient state.
- Store readings as tuples so a result is a snapshot of its inputs.
"""

from dataclasses import dataclass
from typing import Sequence

DEFAULT_KV_DEVIATION_LIMIT_PCT = 10.0
DEFAULT_KV_ABSOLUTE_LIMIT_KV = 5.0
DEFAULT_REPEATABILITY_CV_LIMIT = 0.05
DEFAULT_LINEARITY_R_SQUARED_LIMIT = 0.98

KV_READINGS_REQUIRED = 3
REPEATABILITY_READINGS_REQUIRED = 3
LINEARITY_POINTS_REQUIRED = 2


class InsufficientDataError(ValueError):
    """Raised when a test receives too few (or too many) valid data points."""

    def __init__(self, test_name: str, required: int, received: int, message: str | None = None):
        if message is None:
            message = (
                f"{test_name} test requires {required} valid values, received {received}."
            )
        super().__init__(message)
        self.test_name = test_name
        self.required = required
        self.received = received
        self.message = message


@dataclass(frozen=True)
class LimitsConfig:
    kv_deviation_limit_pct: float = DEFAULT_KV_DEVIATION_LIMIT_PCT
    kv_absolute_limit_kv: float = DEFAULT_KV_ABSOLUTE_LIMIT_KV
    repeatability_cv_limit: float = DEFAULT_REPEATABILITY_CV_LIMIT
    linearity_r_squared_limit: float = DEFAULT_LINEARITY_R_SQUARED_LIMIT


@dataclass(frozen=True)
class LinearityPoint:
    mas: float
    dose: float


@dataclass(frozen=True)
class KvTestInput:
    nominal_kv: float
    readings: Sequence[float]


@dataclass(frozen=True)
class RepeatabilityTestInput:
    nominal_mas: float
    readings: Sequence[float]


@dataclass(frozen=True)
class LinearityTestInput:
    data_points: Sequence[LinearityPoint]


@dataclass(frozen=True)
class KvTestResult:
    nominal_kv: float
    readings: tuple[float, ...]
    mean: float
    sd: float
    cv: float
    deviation_pct: float
    passed: bool


@dataclass(frozen=True)
class RepeatabilityTestResult:
    nominal_mas: float
    readings: tuple[float, ...]
    mean: float
    sd: float
    cv: float
    passed: bool


@dataclass(frozen=True)
class LinearityTestResult:
    data_points: tuple[LinearityPoint, ...]
    slope: float
    r_squared: float
    passed: bool


@dataclass(frozen=True)
class SessionEvaluation:
    kv_test: KvTestResult
    repeatability_test: RepeatabilityTestResult
    linearity_test: LinearityTestResult
    overall_passed: bool
