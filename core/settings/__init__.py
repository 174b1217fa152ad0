# Settings package
from core.settings.modules import (
    AdvisorySettings,
    AppSettings,
    DatabaseSettings,
    OrchestratorSettings,
    RedisSettings,
    SiteSettings,
    get_app_settings,
)

__all__ = [
    "get_app_settings",
    "AppSettings",
    "AdvisorySettings",
    "DatabaseSettings",
    "OrchestratorSettings",
    "RedisSettings",
    "SiteSettings",
]
