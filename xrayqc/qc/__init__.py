"""
QC evaluation boundary for the X-ray QC service.

Design intent:
- Turn typed readings plus explicit limits into immutable pass/fail results.
- Stay free of storage, config and transport concerns.
"""
from .evaluator import (
    evaluate_kv_test,
    evaluate_linearity_test,
    evaluate_repeatability_test,
    evaluate_session,
)
from .models import (
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

__all__ = [
    "InsufficientDataError",
    "KvTestInput",
    "KvTestResult",
    "LimitsConfig",
    "LinearityPoint",
    "LinearityTestInput",
    "LinearityTestResult",
    "RepeatabilityTestInput",
    "RepeatabilityTestResult",
    "SessionEvaluation",
    "evaluate_kv_test",
    "evaluate_linearity_test",
    "evaluate_repeatability_test",
    "evaluate_session",
]
