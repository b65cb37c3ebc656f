from pathlib import Path

from xrayqc.internal_core.config import load_config
from xrayqc.qc import LimitsConfig

_ENV_NAMES = (
    "XRAYQC_DATA_DIR",
    "XRAYQC_LOG_LEVEL",
    "XRAYQC_KV_DEVIATION_LIMIT_PCT",
    "XRAYQC_KV_ABSOLUTE_LIMIT_KV",
    "XRAYQC_REPEATABILITY_CV_LIMIT",
    "XRAYQC_LINEARITY_R_SQUARED_LIMIT",
    "XRAYQC_CORS_ORIGINS",
)


def _clear_env(monkeypatch) -> None:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_load_config_defaults_are_memory_only(monkeypatch) -> None:
    _clear_env(monkeypatch)
    cfg = load_config()
    assert cfg.XRAYQC_LOG_LEVEL == "INFO"
    assert cfg.XRAYQC_CORS_ORIGINS == ("*",)
    assert cfg.data_dir_path() is None
    assert cfg.sessions_path() is None
    assert cfg.settings_path() is None
    assert cfg.default_limits() == LimitsConfig()


def test_load_config_reads_env_overrides(monkeypatch, tmp_path) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("XRAYQC_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("XRAYQC_KV_ABSOLUTE_LIMIT_KV", "2.5")
    monkeypatch.setenv("XRAYQC_LINEARITY_R_SQUARED_LIMIT", "0.95")
    monkeypatch.setenv("XRAYQC_CORS_ORIGINS", "http://localhost:5173, https://qc.example.org")

    cfg = load_config()
    assert cfg.sessions_path() == Path(tmp_path).resolve() / "sessions.json"
    assert cfg.settings_path() == Path(tmp_path).resolve() / "settings.json"
    assert cfg.default_limits() == LimitsConfig(
        kv_absolute_limit_kv=2.5,
        linearity_r_squared_limit=0.95,
    )
    assert cfg.XRAYQC_CORS_ORIGINS == ("http://localhost:5173", "https://qc.example.org")


def test_relative_data_dir_resolves_against_project_root(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("XRAYQC_DATA_DIR", "data")
    data_dir = load_config().data_dir_path()
    assert data_dir is not None
    assert data_dir.name == "data"
    assert (data_dir.parent / "xrayqc").is_dir()
