from __future__ import annotations

"""
Format stored QC sessions into fixed-precision report text.

Design intent:
- Apply display precision only at render time; stored values stay full precision.
- Keep report output deterministic so it can be diffed and printed as-is.
- Mirror the section order clinicians expect: machine, kV, repeatability, linearity, verdict.
"""

from typing import Sequence

from xrayqc.internal_core.contracts import (
    KvTestRecord,
    LinearityTestRecord,
    QcSessionRecord,
    QcSettings,
    RepeatabilityTestRecord,
)

PASS_LABEL = "PASS"
FAIL_LABEL = "FAIL"
ALL_PASSED_BANNER = "ALL TESTS PASSED"
SOME_FAILED_BANNER = "ONE OR MORE TESTS FAILED"

_MACHINE_FIELDS = (
    ("Hospital", "hospital"),
    ("Room", "room"),
    ("Model", "model"),
    ("Serial Number", "serial"),
    ("Tube Serial", "tube_serial"),
    ("Detector Serial", "detector_serial"),
    ("Technician", "tech_name"),
    ("Test Date", "date"),
)


def verdict_label(passed: bool) -> str:
    return PASS_LABEL if passed else FAIL_LABEL


def overall_banner(passed: bool) -> str:
    return ALL_PASSED_BANNER if passed else SOME_FAILED_BANNER


def format_kv_summary(test: KvTestRecord) -> dict[str, str]:
    return {
        "nominal": f"{_format_plain(test.nominal_kv)} kV",
        "mean": f"{test.mean:.2f} kV",
        "sd": f"{test.sd:.2f}",
        "cv": f"{test.cv:.4f}",
        "deviation": f"{test.deviation_pct:.2f}%",
        "verdict": verdict_label(test.passed),
    }


def format_repeatability_summary(test: RepeatabilityTestRecord) -> dict[str, str]:
    return {
        "nominal": f"{_format_plain(test.nominal_mas)} mAs",
        "mean": f"{test.mean:.2f} uGy",
        "sd": f"{test.sd:.3f}",
        "cv": f"{test.cv:.4f}",
        "verdict": verdict_label(test.passed),
    }


def format_linearity_summary(test: LinearityTestRecord) -> dict[str, str]:
    return {
        "slope": f"{test.slope:.4f}",
        "r_squared": f"{test.r_squared:.4f}",
        "verdict": verdict_label(test.passed),
    }


def render_session_report(session: QcSessionRecord, settings: QcSettings | None = None) -> str:
    lines: list[str] = ["X-Ray QC Report", "Mobile X-Ray Machine Quality Control"]
    if settings is not None and settings.hospital_logo:
        lines.append("[hospital logo on file]")
    lines.append("")

    lines.append("Machine Information")
    for label, attr in _MACHINE_FIELDS:
        lines.append(f"  {label}: {getattr(session, attr)}")
    lines.append("")

    kv = format_kv_summary(session.kv_test)
    lines.append("kV Accuracy & Repeatability")
    lines.append(f"  Nominal kV: {kv['nominal']}")
    lines.extend(_reading_rows("Measured kV", session.kv_test.readings))
    lines.append(
        f"  Mean: {kv['mean']} | SD: {kv['sd']} | CV: {kv['cv']} | Deviation: {kv['deviation']}"
    )
    lines.append(f"  Result: {kv['verdict']}")
    lines.append("")

    rep = format_repeatability_summary(session.repeatability_test)
    lines.append("Output Repeatability")
    lines.append(f"  Nominal mAs: {rep['nominal']}")
    lines.extend(_reading_rows("Dose (uGy)", session.repeatability_test.readings))
    lines.append(f"  Mean: {rep['mean']} | SD: {rep['sd']} | CV: {rep['cv']}")
    lines.append(f"  Result: {rep['verdict']}")
    lines.append("")

    lin = format_linearity_summary(session.linearity_test)
    lines.append("Output Linearity")
    for point in session.linearity_test.data_points:
        lines.append(f"  mAs {point.mas:.1f}: {point.dose:.2f} uGy")
    lines.append(f"  Slope: {lin['slope']} | R^2: {lin['r_squared']}")
    lines.append(f"  Result: {lin['verdict']}")
    lines.append("")

    lines.append(f"Overall Result: {overall_banner(session.overall_passed)}")
    return "\n".join(lines)


def render_history_line(session: QcSessionRecord) -> str:
    return (
        f"#{session.id} {session.date} {session.hospital} / {session.model} "
        f"({session.serial}) tech={session.tech_name} "
        f"kV={verdict_label(session.kv_test.passed)} "
        f"rep={verdict_label(session.repeatability_test.passed)} "
        f"lin={verdict_label(session.linearity_test.passed)} "
        f"overall={verdict_label(session.overall_passed)}"
    )


def _reading_rows(label: str, readings: Sequence[float]) -> list[str]:
    return [f"  Exposure {index}: {value:.2f} ({label})" for index, value in enumerate(readings, start=1)]


def _format_plain(value: float) -> str:
    return f"{value:g}"
