from __future__ import annotations

"""
HTTP surface for the X-ray QC service.

Design intent:
- Keep API orchestration thin and typed.
- Delegate parsing to intake, verdicts to qc, and persistence to internal_core stores.
- Map InsufficientDataError to a client error; it is never a server fault.
"""

import logging
from typing import Any, Optional, Union

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt

from xrayqc.intake.parsing import (
    DEFAULT_NOMINAL_KV,
    DEFAULT_NOMINAL_MAS,
    READINGS_PER_TEST,
    blank_linearity_rows,
    parse_linearity_rows,
    parse_readings,
)
from xrayqc.internal_core import InMemorySessionStore, SettingsStore, load_config
from xrayqc.internal_core.contracts import (
    KvTestRecord,
    LinearityTestRecord,
    MachineInfo,
    QcSessionDraft,
    QcSessionRecord,
    QcSettings,
    RepeatabilityTestRecord,
    build_session_draft,
)
from xrayqc.qc import (
    InsufficientDataError,
    KvTestInput,
    LimitsConfig,
    LinearityTestInput,
    RepeatabilityTestInput,
    evaluate_kv_test,
    evaluate_linearity_test,
    evaluate_repeatability_test,
    evaluate_session,
)
from xrayqc.report.formatting import (
    format_kv_summary,
    format_linearity_summary,
    format_repeatability_summary,
    overall_banner,
    render_session_report,
)

# Strict members keep JSON booleans as bool so intake can drop them.
RawValue = Union[StrictBool, StrictInt, StrictFloat, str, None]


class KvTestRequest(BaseModel):
    nominal_kv: float = Field(default=DEFAULT_NOMINAL_KV, gt=0, allow_inf_nan=False)
    readings: list[RawValue] = Field(default_factory=list, max_length=32)


class RepeatabilityTestRequest(BaseModel):
    nominal_mas: float = Field(default=DEFAULT_NOMINAL_MAS, gt=0, allow_inf_nan=False)
    readings: list[RawValue] = Field(default_factory=list, max_length=32)


class LinearityRowInput(BaseModel):
    mas: RawValue = None
    dose: RawValue = None


class LinearityTestRequest(BaseModel):
    data: list[LinearityRowInput] = Field(default_factory=list, max_length=64)


class KvTestResponse(BaseModel):
    result: KvTestRecord
    display: dict[str, str] = Field(default_factory=dict)


class RepeatabilityTestResponse(BaseModel):
    result: RepeatabilityTestRecord
    display: dict[str, str] = Field(default_factory=dict)


class LinearityTestResponse(BaseModel):
    result: LinearityTestRecord
    display: dict[str, str] = Field(default_factory=dict)


class SessionCreateRequest(BaseModel):
    machine: MachineInfo
    kv_test: KvTestRequest
    repeatability_test: RepeatabilityTestRequest
    linearity_test: LinearityTestRequest


class SessionResponse(BaseModel):
    session: QcSessionRecord
    overall: str


class SessionListResponse(BaseModel):
    sessions: list[QcSessionRecord] = Field(default_factory=list)
    total: int = Field(ge=0)
    summary: dict[str, Any] = Field(default_factory=dict)


class DeleteResponse(BaseModel):
    deleted: int = Field(ge=0)


class FormDefaultsResponse(BaseModel):
    nominal_kv: float
    nominal_mas: float
    readings_per_test: int
    linearity_rows: list[dict[str, str]] = Field(default_factory=list)


_CONFIG = load_config()

app = FastAPI(title="xrayqc service")
logger = logging.getLogger(__name__)
logging.getLogger("xrayqc").setLevel(_CONFIG.XRAYQC_LOG_LEVEL.upper())

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(_CONFIG.XRAYQC_CORS_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_session_store() -> InMemorySessionStore:
    existing = getattr(app.state, "session_store", None)
    if isinstance(existing, InMemorySessionStore):
        return existing
    created = InMemorySessionStore(persist_path=_CONFIG.sessions_path())
    setattr(app.state, "session_store", created)
    return created


def _get_settings_store() -> SettingsStore:
    existing = getattr(app.state, "settings_store", None)
    if isinstance(existing, SettingsStore):
        return existing
    created = SettingsStore(
        defaults=QcSettings.from_limits(_CONFIG.default_limits()),
        persist_path=_CONFIG.settings_path(),
    )
    setattr(app.state, "settings_store", created)
    return created


def _current_limits() -> LimitsConfig:
    return _get_settings_store().get_settings().to_limits()


def _insufficient_data(exc: InsufficientDataError) -> HTTPException:
    logger.info(
        "qc_input_rejected test=%s required=%s received=%s",
        exc.test_name,
        exc.required,
        exc.received,
    )
    return HTTPException(status_code=400, detail=str(exc))


def _unknown_session(session_id: int) -> HTTPException:
    return HTTPException(status_code=404, detail=f"QC session not found: {session_id}")


def _evaluate_draft(payload: SessionCreateRequest) -> QcSessionDraft:
    evaluation = evaluate_session(
        KvTestInput(
            nominal_kv=payload.kv_test.nominal_kv,
            readings=parse_readings(payload.kv_test.readings),
        ),
        RepeatabilityTestInput(
            nominal_mas=payload.repeatability_test.nominal_mas,
            readings=parse_readings(payload.repeatability_test.readings),
        ),
        LinearityTestInput(
            data_points=parse_linearity_rows(
                [row.model_dump() for row in payload.linearity_test.data]
            ),
        ),
        _current_limits(),
    )
    return build_session_draft(payload.machine, evaluation)


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/qc/form-defaults", response_model=FormDefaultsResponse)
async def form_defaults() -> FormDefaultsResponse:
    return FormDefaultsResponse(
        nominal_kv=DEFAULT_NOMINAL_KV,
        nominal_mas=DEFAULT_NOMINAL_MAS,
        readings_per_test=READINGS_PER_TEST,
        linearity_rows=blank_linearity_rows(),
    )


@app.get("/settings", response_model=QcSettings)
def get_settings() -> QcSettings:
    return _get_settings_store().get_settings()


@app.put("/settings", response_model=QcSettings)
def put_settings(payload: QcSettings) -> QcSettings:
    return _get_settings_store().update_settings(payload)


@app.post("/qc/kv", response_model=KvTestResponse)
def qc_kv(payload: KvTestRequest) -> KvTestResponse:
    try:
        result = evaluate_kv_test(
            parse_readings(payload.readings),
            payload.nominal_kv,
            _current_limits(),
        )
    except InsufficientDataError as exc:
        raise _insufficient_data(exc) from exc
    record = KvTestRecord.from_result(result)
    return KvTestResponse(result=record, display=format_kv_summary(record))


@app.post("/qc/repeatability", response_model=RepeatabilityTestResponse)
def qc_repeatability(payload: RepeatabilityTestRequest) -> RepeatabilityTestResponse:
    try:
        result = evaluate_repeatability_test(
            parse_readings(payload.readings),
            payload.nominal_mas,
            _current_limits(),
        )
    except InsufficientDataError as exc:
        raise _insufficient_data(exc) from exc
    record = RepeatabilityTestRecord.from_result(result)
    return RepeatabilityTestResponse(result=record, display=format_repeatability_summary(record))


@app.post("/qc/linearity", response_model=LinearityTestResponse)
def qc_linearity(payload: LinearityTestRequest) -> LinearityTestResponse:
    try:
        result = evaluate_linearity_test(
            parse_linearity_rows([row.model_dump() for row in payload.data]),
            _current_limits(),
        )
    except InsufficientDataError as exc:
        raise _insufficient_data(exc) from exc
    record = LinearityTestRecord.from_result(result)
    return LinearityTestResponse(result=record, display=format_linearity_summary(record))


@app.post("/sessions", response_model=SessionResponse, status_code=201)
def create_session(payload: SessionCreateRequest) -> SessionResponse:
    try:
        draft = _evaluate_draft(payload)
    except InsufficientDataError as exc:
        raise _insufficient_data(exc) from exc
    record = _get_session_store().add_session(draft)
    return SessionResponse(session=record, overall=overall_banner(record.overall_passed))


@app.get("/sessions", response_model=SessionListResponse)
def list_sessions(q: Optional[str] = Query(default=None, max_length=200)) -> SessionListResponse:
    store = _get_session_store()
    sessions = store.list_sessions(query=q)
    return SessionListResponse(
        sessions=sessions,
        total=len(sessions),
        summary={
            "query": (q or "").strip(),
            "stored": store.count(),
            "failed": sum(1 for item in sessions if not item.overall_passed),
        },
    )


@app.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: int) -> SessionResponse:
    try:
        record = _get_session_store().get_session(session_id)
    except KeyError as exc:
        raise _unknown_session(session_id) from exc
    return SessionResponse(session=record, overall=overall_banner(record.overall_passed))


@app.put("/sessions/{session_id}", response_model=SessionResponse)
def reevaluate_session(session_id: int, payload: SessionCreateRequest) -> SessionResponse:
    try:
        draft = _evaluate_draft(payload)
    except InsufficientDataError as exc:
        raise _insufficient_data(exc) from exc
    try:
        record = _get_session_store().replace_session(session_id, draft)
    except KeyError as exc:
        raise _unknown_session(session_id) from exc
    return SessionResponse(session=record, overall=overall_banner(record.overall_passed))


@app.delete("/sessions/{session_id}", response_model=DeleteResponse)
def delete_session(session_id: int) -> DeleteResponse:
    try:
        _get_session_store().delete_session(session_id)
    except KeyError as exc:
        raise _unknown_session(session_id) from exc
    return DeleteResponse(deleted=1)


@app.delete("/sessions", response_model=DeleteResponse)
def clear_sessions() -> DeleteResponse:
    return DeleteResponse(deleted=_get_session_store().clear_sessions())


@app.get("/sessions/{session_id}/report", response_class=PlainTextResponse)
def session_report(session_id: int) -> str:
    try:
        record = _get_session_store().get_session(session_id)
    except KeyError as exc:
        raise _unknown_session(session_id) from exc
    return render_session_report(record, _get_settings_store().get_settings())
