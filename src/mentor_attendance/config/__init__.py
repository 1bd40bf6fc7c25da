from .logging import configure_logging
from .settings import Settings, load_settings, refresh_settings

__all__ = ["Settings", "configure_logging", "load_settings", "refresh_settings"]
