from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from core.settings.modules.advisory_settings import AdvisorySettings
from core.settings.modules.database_settings import DatabaseSettings
from core.settings.modules.orchestrator_settings import OrchestratorSettings
from core.settings.modules.redis_settings import RedisSettings
from core.settings.modules.site_settings import SiteSettings


class AppSettings(BaseModel):
    """Application settings aggregator."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    orchestrator: OrchestratorSettings
    site: SiteSettings
    advisory: AdvisorySettings
    redis: RedisSettings
    database: DatabaseSettings


@lru_cache()
def get_app_settings() -> AppSettings:
    return AppSettings(
        orchestrator=OrchestratorSettings(),
        site=SiteSettings(),
        advisory=AdvisorySettings(),
        redis=RedisSettings(),
        database=DatabaseSettings(),
    )
