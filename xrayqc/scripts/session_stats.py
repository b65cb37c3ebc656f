from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from xrayqc.internal_core.contracts import QcSessionRecord
from xrayqc.internal_core.json_file import read_json
from xrayqc.report.formatting import render_history_line

TEST_KEYS = ("kv_test", "repeatability_test", "linearity_test")


def _format_rate(n: int, d: int) -> str:
    if d <= 0:
        return "n/a"
    return f"{(100.0 * n / d):.1f}% ({n}/{d})"


def load_sessions(path: Path) -> list[QcSessionRecord]:
    payload = read_json(path, {})
    records = [QcSessionRecord.model_validate(raw) for raw in payload.get("sessions", [])]
    records.sort(key=lambda item: (item.created_at, item.id), reverse=True)
    return records


def summarize(sessions: list[QcSessionRecord]) -> dict[str, Any]:
    passed_by_test = {key: 0 for key in TEST_KEYS}
    overall_passed = 0
    failed: list[QcSessionRecord] = []

    for session in sessions:
        for key in TEST_KEYS:
            if getattr(session, key).passed:
                passed_by_test[key] += 1
        if session.overall_passed:
            overall_passed += 1
        else:
            failed.append(session)

    return {
        "total": len(sessions),
        "passed_by_test": passed_by_test,
        "overall_passed": overall_passed,
        "failed_sessions": failed,
    }


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Summarize pass rates from a persisted xrayqc sessions.json"
    )
    parser.add_argument(
        "--sessions-path",
        default="./data/sessions.json",
        help="Path to the sessions file written by the service (default: ./data/sessions.json)",
    )
    parser.add_argument(
        "--list-failures",
        action="store_true",
        help="Print one line per session that failed at least one test.",
    )
    args = parser.parse_args()

    path = Path(args.sessions_path).expanduser()
    if not path.exists():
        raise SystemExit(f"sessions file not found: {path}")

    stats = summarize(load_sessions(path))
    total = stats["total"]

    print(f"sessions_path: {path}")
    print(f"sessions: {total}")
    print(f"kv_pass_rate: {_format_rate(stats['passed_by_test']['kv_test'], total)}")
    print(
        "repeatability_pass_rate: "
        + _format_rate(stats["passed_by_test"]["repeatability_test"], total)
    )
    print(
        "linearity_pass_rate: "
        + _format_rate(stats["passed_by_test"]["linearity_test"], total)
    )
    print(f"overall_pass_rate: {_format_rate(stats['overall_passed'], total)}")

    if args.list_failures:
        for session in stats["failed_sessions"]:
            print(render_history_line(session))


if __name__ == "__main__":
    main()
