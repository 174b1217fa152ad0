"""
Orchestrator wiring.

Builds the production adapters from AppSettings and assembles a
RunOrchestrator around them.
"""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from core.application.interfaces import IAdvisoryService, IStoragePort, ITargetSessionPort
from core.infrastructure.adapters.advisory import AnthropicAdvisoryService
from core.infrastructure.bus import RedisAgentTransport
from core.infrastructure.database.config import create_engine, get_session_factory, init_database
from core.infrastructure.storage import SqlKeyValueStore
from core.settings import AppSettings, get_app_settings

from .orchestrator import RunOrchestrator
from .state_machine import create_state_machine_with_recovery

logger = logging.getLogger(__name__)


# =============================================================================
# DEPENDENCIES
# =============================================================================

async def get_storage(settings: AppSettings, engine: AsyncEngine | None = None) -> IStoragePort:
    """Create the SQL key/value store, creating its table if needed."""
    engine = engine or create_engine(settings.database)
    await init_database(engine)
    logger.info("Created SqlKeyValueStore instance")
    return SqlKeyValueStore(get_session_factory(engine))


def get_agent_transport(settings: AppSettings) -> RedisAgentTransport:
    # Connects lazily on the first request
    transport = RedisAgentTransport(
        settings.redis,
        reply_timeout_seconds=settings.orchestrator.operation_timeout_seconds,
    )
    logger.info(f"Created RedisAgentTransport instance ({settings.redis.url})")
    return transport


def get_advisory_service(settings: AppSettings) -> IAdvisoryService | None:
    """Return the Anthropic service, or None to run heuristic-only."""
    if not (settings.advisory.enabled and settings.advisory.api_key):
        logger.info("Advisory service not configured, substitutions are heuristic-only")
        return None
    return AnthropicAdvisoryService(settings.advisory)


async def build_orchestrator(
    session: ITargetSessionPort,
    settings: AppSettings | None = None,
    *,
    engine: AsyncEngine | None = None,
) -> RunOrchestrator:
    """
    Assemble a RunOrchestrator on the production adapters.

    The persisted run state is reloaded first, so an interrupted run is
    flagged for recovery.

    Args:
        session: Page session driven by the run (owned by the caller)
        settings: Application settings (loaded from the environment if None)
        engine: Database engine to reuse (built from settings if None)

    Returns:
        RunOrchestrator instance
    """
    settings = settings or get_app_settings()
    storage = await get_storage(settings, engine)
    state_machine = await create_state_machine_with_recovery(
        storage,
        max_error_count=settings.orchestrator.max_retries,
        staleness_seconds=settings.orchestrator.staleness_seconds,
    )
    return RunOrchestrator(
        state_machine=state_machine,
        storage=storage,
        agent_transport=get_agent_transport(settings),
        session=session,
        advisory=get_advisory_service(settings),
        settings=settings.orchestrator,
        site=settings.site,
    )
