from __future__ import annotations

"""
Normalize raw data-entry values into typed, finite QC inputs.

Design intent:
- Own the text -> number step so the evaluator only ever sees reals.
- Mirror browser form semantics: a leading numeric prefix counts ("80.5kV").
- Drop blanks and garbage silently; the evaluator enforces counts.
"""

import math
import numbers
import re
from typing import Any, Iterable, Mapping

from xrayqc.qc.models import LinearityPoint

DEFAULT_NOMINAL_KV = 80.0
DEFAULT_NOMINAL_MAS = 2.0
DEFAULT_LINEARITY_MAS_STATIONS = (1.0, 2.0, 3.0, 4.0)
READINGS_PER_TEST = 3

_FLOAT_PREFIX_RE = re.compile(r"^[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_number(raw: Any) -> float:
    if raw is None or isinstance(raw, bool):
        return math.nan
    if isinstance(raw, numbers.Real):
        return float(raw)

    match = _FLOAT_PREFIX_RE.match(str(raw).lstrip())
    if not match:
        return math.nan
    token = match.group(0)
    if token.lstrip("+-") == "Infinity":
        return -math.inf if token.startswith("-") else math.inf
    return float(token)


def parse_readings(raw_values: Iterable[Any]) -> list[float]:
    out: list[float] = []
    for raw in raw_values:
        value = parse_number(raw)
        if math.isfinite(value):
            out.append(value)
    return out


def parse_linearity_rows(rows: Iterable[Mapping[str, Any]]) -> list[LinearityPoint]:
    points: list[LinearityPoint] = []
    for row in rows:
        mas = parse_number(row.get("mas"))
        dose = parse_number(row.get("dose"))
        if not (math.isfinite(mas) and math.isfinite(dose)):
            continue
        if mas <= 0:
            continue
        points.append(LinearityPoint(mas=mas, dose=dose))
    return points


def blank_linearity_rows() -> list[dict[str, str]]:
    return [{"mas": _format_station(mas), "dose": ""} for mas in DEFAULT_LINEARITY_MAS_STATIONS]


def _format_station(mas: float) -> str:
    return str(int(mas)) if float(mas).is_integer() else str(mas)
