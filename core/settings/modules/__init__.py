# Settings modules
from .advisory_settings import AdvisorySettings
from .app_settings import AppSettings, get_app_settings
from .database_settings import DatabaseSettings
from .orchestrator_settings import OrchestratorSettings
from .redis_settings import RedisSettings
from .site_settings import SiteSettings

__all__ = [
    "AppSettings",
    "get_app_settings",
    "AdvisorySettings",
    "DatabaseSettings",
    "OrchestratorSettings",
    "RedisSettings",
    "SiteSettings",
]
