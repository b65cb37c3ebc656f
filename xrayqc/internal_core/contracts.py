from __future__ import annotations

import datetime as _dt
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from xrayqc.qc.models import (
    DEFAULT_KV_ABSOLUTE_LIMIT_KV,
    DEFAULT_KV_DEVIATION_LIMIT_PCT,
    DEFAULT_LINEARITY_R_SQUARED_LIMIT,
    DEFAULT_REPEATABILITY_CV_LIMIT,
    KvTestResult,
    LimitsConfig,
    LinearityTestResult,
    RepeatabilityTestResult,
    SessionEvaluation,
)


def _today_iso() -> str:
    return _dt.date.today().isoformat()


class QcSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    hospital_logo: str = ""
    kv_deviation_limit_pct: float = Field(
        default=DEFAULT_KV_DEVIATION_LIMIT_PCT, gt=0, allow_inf_nan=False
    )
    kv_absolute_limit_kv: float = Field(
        default=DEFAULT_KV_ABSOLUTE_LIMIT_KV, gt=0, allow_inf_nan=False
    )
    repeatability_cv_limit: float = Field(default=DEFAULT_REPEATABILITY_CV_LIMIT, ge=0.0, le=1.0)
    linearity_r_squared_limit: float = Field(
        default=DEFAULT_LINEARITY_R_SQUARED_LIMIT, ge=0.0, le=1.0
    )

    def to_limits(self) -> LimitsConfig:
        return LimitsConfig(
            kv_deviation_limit_pct=self.kv_deviation_limit_pct,
            kv_absolute_limit_kv=self.kv_absolute_limit_kv,
            repeatability_cv_limit=self.repeatability_cv_limit,
            linearity_r_squared_limit=self.linearity_r_squared_limit,
        )

    @classmethod
    def from_limits(cls, limits: LimitsConfig, hospital_logo: str = "") -> "QcSettings":
        return cls(
            hospital_logo=hospital_logo,
            kv_deviation_limit_pct=limits.kv_deviation_limit_pct,
            kv_absolute_limit_kv=limits.kv_absolute_limit_kv,
            repeatability_cv_limit=limits.repeatability_cv_limit,
            linearity_r_squared_limit=limits.linearity_r_squared_limit,
        )


class MachineInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    hospital: str = Field(max_length=200)
    room: str = Field(max_length=200)
    model: str = Field(max_length=200)
    serial: str = Field(max_length=200)
    tube_serial: str = Field(max_length=200)
    detector_serial: str = Field(max_length=200)
    tech_name: str = Field(max_length=200)
    date: str = Field(default_factory=_today_iso)

    @field_validator(
        "hospital", "room", "model", "serial", "tube_serial", "detector_serial", "tech_name"
    )
    @classmethod
    def _require_text(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("field is required")
        return trimmed

    @field_validator("date")
    @classmethod
    def _require_iso_date(cls, value: str) -> str:
        trimmed = value.strip()
        _dt.date.fromisoformat(trimmed)
        return trimmed


class KvTestRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nominal_kv: float
    readings: List[float] = Field(default_factory=list)
    mean: float
    sd: float
    cv: float
    deviation_pct: float
    passed: bool

    @classmethod
    def from_result(cls, result: KvTestResult) -> "KvTestRecord":
        return cls(
            nominal_kv=result.nominal_kv,
            readings=list(result.readings),
            mean=result.mean,
            sd=result.sd,
            cv=result.cv,
            deviation_pct=result.deviation_pct,
            passed=result.passed,
        )


class RepeatabilityTestRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nominal_mas: float
    readings: List[float] = Field(default_factory=list)
    mean: float
    sd: float
    cv: float
    passed: bool

    @classmethod
    def from_result(cls, result: RepeatabilityTestResult) -> "RepeatabilityTestRecord":
        return cls(
            nominal_mas=result.nominal_mas,
            readings=list(result.readings),
            mean=result.mean,
            sd=result.sd,
            cv=result.cv,
            passed=result.passed,
        )


class LinearityPointRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mas: float
    dose: float


class LinearityTestRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    data_points: List[LinearityPointRecord] = Field(default_factory=list)
    slope: float
    r_squared: float
    passed: bool

    @classmethod
    def from_result(cls, result: LinearityTestResult) -> "LinearityTestRecord":
        return cls(
            data_points=[
                LinearityPointRecord(mas=item.mas, dose=item.dose) for item in result.data_points
            ],
            slope=result.slope,
            r_squared=result.r_squared,
            passed=result.passed,
        )


class QcSessionDraft(MachineInfo):
    kv_test: KvTestRecord
    repeatability_test: RepeatabilityTestRecord
    linearity_test: LinearityTestRecord
    overall_passed: bool


class QcSessionRecord(QcSessionDraft):
    id: int
    created_at: float


def build_session_draft(machine: MachineInfo, evaluation: SessionEvaluation) -> QcSessionDraft:
    return QcSessionDraft(
        **machine.model_dump(),
        kv_test=KvTestRecord.from_result(evaluation.kv_test),
        repeatability_test=RepeatabilityTestRecord.from_result(evaluation.repeatability_test),
        linearity_test=LinearityTestRecord.from_result(evaluation.linearity_test),
        overall_passed=evaluation.overall_passed,
    )
