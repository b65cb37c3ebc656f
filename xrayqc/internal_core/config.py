from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from xrayqc.qc.models import (
    DEFAULT_KV_ABSOLUTE_LIMIT_KV,
    DEFAULT_KV_DEVIATION_LIMIT_PCT,
    DEFAULT_LINEARITY_R_SQUARED_LIMIT,
    DEFAULT_REPEATABILITY_CV_LIMIT,
    LimitsConfig,
)

SESSIONS_FILENAME = "sessions.json"
SETTINGS_FILENAME = "settings.json"


def _project_root() -> Path:
    # xrayqc/internal_core/config.py -> xrayqc -> repo root
    return Path(__file__).resolve().parents[2]


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


def _getenv_list(name: str, default: list[str]) -> list[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def _resolve_data_dir(raw: str) -> Optional[Path]:
    raw = raw.strip()
    if not raw:
        return None
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = _project_root() / path
    return path.resolve()


@dataclass(frozen=True)
class ServiceConfig:
    XRAYQC_DATA_DIR: str
    XRAYQC_LOG_LEVEL: str
    XRAYQC_KV_DEVIATION_LIMIT_PCT: float
    XRAYQC_KV_ABSOLUTE_LIMIT_KV: float
    XRAYQC_REPEATABILITY_CV_LIMIT: float
    XRAYQC_LINEARITY_R_SQUARED_LIMIT: float
    XRAYQC_CORS_ORIGINS: tuple[str, ...]

    def data_dir_path(self) -> Optional[Path]:
        return _resolve_data_dir(self.XRAYQC_DATA_DIR)

    def sessions_path(self) -> Optional[Path]:
        data_dir = self.data_dir_path()
        return None if data_dir is None else data_dir / SESSIONS_FILENAME

    def settings_path(self) -> Optional[Path]:
        data_dir = self.data_dir_path()
        return None if data_dir is None else data_dir / SETTINGS_FILENAME

    def default_limits(self) -> LimitsConfig:
        return LimitsConfig(
            kv_deviation_limit_pct=self.XRAYQC_KV_DEVIATION_LIMIT_PCT,
            kv_absolute_limit_kv=self.XRAYQC_KV_ABSOLUTE_LIMIT_KV,
            repeatability_cv_limit=self.XRAYQC_REPEATABILITY_CV_LIMIT,
            linearity_r_squared_limit=self.XRAYQC_LINEARITY_R_SQUARED_LIMIT,
        )


def load_config() -> ServiceConfig:
    return ServiceConfig(
        XRAYQC_DATA_DIR=_getenv_str("XRAYQC_DATA_DIR", ""),
        XRAYQC_LOG_LEVEL=_getenv_str("XRAYQC_LOG_LEVEL", "INFO"),
        XRAYQC_KV_DEVIATION_LIMIT_PCT=_getenv_float(
            "XRAYQC_KV_DEVIATION_LIMIT_PCT", DEFAULT_KV_DEVIATION_LIMIT_PCT
        ),
        XRAYQC_KV_ABSOLUTE_LIMIT_KV=_getenv_float(
            "XRAYQC_KV_ABSOLUTE_LIMIT_KV", DEFAULT_KV_ABSOLUTE_LIMIT_KV
        ),
        XRAYQC_REPEATABILITY_CV_LIMIT=_getenv_float(
            "XRAYQC_REPEATABILITY_CV_LIMIT", DEFAULT_REPEATABILITY_CV_LIMIT
        ),
        XRAYQC_LINEARITY_R_SQUARED_LIMIT=_getenv_float(
            "XRAYQC_LINEARITY_R_SQUARED_LIMIT", DEFAULT_LINEARITY_R_SQUARED_LIMIT
        ),
        XRAYQC_CORS_ORIGINS=tuple(_getenv_list("XRAYQC_CORS_ORIGINS", ["*"])),
    )
