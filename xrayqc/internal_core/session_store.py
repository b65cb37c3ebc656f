from __future__ import annotations

import logging
import time
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional

from .contracts import QcSessionDraft, QcSessionRecord
from .json_file import read_json, write_json_atomic

logger = logging.getLogger(__name__)


def _matches(record: QcSessionRecord, term: str) -> bool:
    return (
        term in record.hospital.lower()
        or term in record.model.lower()
        or term in record.tech_name.lower()
        or term in record.date
    )


class InMemorySessionStore:
    def __init__(self, persist_path: Optional[Path] = None):
        self._persist_path = persist_path
        self._lock = RLock()
        self._sessions: Dict[int, QcSessionRecord] = {}
        self._next_id = 1
        if persist_path is not None:
            self._load(persist_path)

    def add_session(self, draft: QcSessionDraft) -> QcSessionRecord:
        with self._lock:
            record = QcSessionRecord(
                **draft.model_dump(),
                id=self._next_id,
                created_at=time.time(),
            )
            sessions = dict(self._sessions)
            sessions[record.id] = record
            self._commit(sessions, self._next_id + 1)
        logger.info(
            "qc_session_created id=%s serial=%s overall_passed=%s",
            record.id,
            record.serial,
            record.overall_passed,
        )
        return record

    def get_session(self, session_id: int) -> QcSessionRecord:
        with self._lock:
            record = self._sessions.get(session_id)
            if record is None:
                raise KeyError(f"Unknown session_id: {session_id}")
            return record.model_copy(deep=True)

    def list_sessions(self, query: Optional[str] = None) -> List[QcSessionRecord]:
        term = (query or "").strip().lower()
        with self._lock:
            records = list(self._sessions.values())
        if term:
            records = [item for item in records if _matches(item, term)]
        records.sort(key=lambda item: (item.created_at, item.id), reverse=True)
        return [item.model_copy(deep=True) for item in records]

    def replace_session(self, session_id: int, draft: QcSessionDraft) -> QcSessionRecord:
        with self._lock:
            existing = self._sessions.get(session_id)
            if existing is None:
                raise KeyError(f"Unknown session_id: {session_id}")
            record = QcSessionRecord(
                **draft.model_dump(),
                id=existing.id,
                created_at=existing.created_at,
            )
            sessions = dict(self._sessions)
            sessions[session_id] = record
            self._commit(sessions, self._next_id)
        logger.info(
            "qc_session_reevaluated id=%s overall_passed=%s",
            record.id,
            record.overall_passed,
        )
        return record

    def delete_session(self, session_id: int) -> None:
        with self._lock:
            if session_id not in self._sessions:
                raise KeyError(f"Unknown session_id: {session_id}")
            sessions = {key: item for key, item in self._sessions.items() if key != session_id}
            self._commit(sessions, self._next_id)

    def clear_sessions(self) -> int:
        with self._lock:
            removed = len(self._sessions)
            self._commit({}, self._next_id)
        logger.info("qc_sessions_cleared count=%s", removed)
        return removed

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _load(self, path: Path) -> None:
        payload: Dict[str, Any] = read_json(path, {})
        for raw in payload.get("sessions", []):
            record = QcSessionRecord.model_validate(raw)
            self._sessions[record.id] = record
        highest = max(self._sessions, default=0)
        self._next_id = max(int(payload.get("next_id", 1)), highest + 1)

    def _commit(self, sessions: Dict[int, QcSessionRecord], next_id: int) -> None:
        # Memory only changes once the file write has succeeded.
        if self._persist_path is not None:
            payload = {
                "next_id": next_id,
                "sessions": [item.model_dump(mode="json") for item in sessions.values()],
            }
            try:
                write_json_atomic(self._persist_path, payload)
            except OSError:
                logger.exception("failed to persist sessions path=%s", self._persist_path)
                raise
        self._sessions = sessions
        self._next_id = next_id
