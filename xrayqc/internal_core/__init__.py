from .config import ServiceConfig, load_config
from .session_store import InMemorySessionStore
from .settings_store import SettingsStore

__all__ = ["ServiceConfig", "load_config", "InMemorySessionStore", "SettingsStore"]
