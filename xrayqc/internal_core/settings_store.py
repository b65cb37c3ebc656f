from __future__ import annotations

import logging
from pathlib import Path
from threading import RLock
from typing import Optional

from .contracts import QcSettings
from .json_file import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class SettingsStore:
    def __init__(self, defaults: QcSettings, persist_path: Optional[Path] = None):
        self._defaults = defaults
        self._persist_path = persist_path
        self._lock = RLock()
        self._settings: Optional[QcSettings] = None
        if persist_path is not None:
            raw = read_json(persist_path, None)
            if raw is not None:
                self._settings = QcSettings.model_validate(raw)

    def get_settings(self) -> QcSettings:
        with self._lock:
            current = self._settings if self._settings is not None else self._defaults
            return current.model_copy()

    def update_settings(self, settings: QcSettings) -> QcSettings:
        with self._lock:
            if self._persist_path is not None:
                try:
                    write_json_atomic(self._persist_path, settings.model_dump(mode="json"))
                except OSError:
                    logger.exception("failed to persist settings path=%s", self._persist_path)
                    raise
            self._settings = settings.model_copy()
        logger.info(
            "qc_settings_updated kv_pct=%s kv_abs=%s cv=%s r2=%s",
            settings.kv_deviation_limit_pct,
            settings.kv_absolute_limit_kv,
            settings.repeatability_cv_limit,
            settings.linearity_r_squared_limit,
        )
        return settings.model_copy()
