"""Shared fixtures: a small simulated shop wired to an orchestrator."""

import pytest

from core.infrastructure.adapters.agents import InProcessAgentTransport, SimulatedShopAgent
from core.infrastructure.adapters.session import SimulatedTargetSession
from core.infrastructure.storage import InMemoryStore
from core.settings import OrchestratorSettings, SiteSettings
from orchestration import RunOrchestrator, StateMachine
from tests.shop_data import make_catalog, make_orders, make_slots

TARGET_ID = "tab-1"


@pytest.fixture
def settings() -> OrchestratorSettings:
    """Orchestrator settings without the human-paced waits."""
    return OrchestratorSettings(
        phase_timeout_seconds=5.0,
        operation_timeout_seconds=2.0,
        reorder_settle_seconds=0.0,
        reorder_retry_delay_seconds=0.0,
    )


@pytest.fixture
def site() -> SiteSettings:
    return SiteSettings()


@pytest.fixture
def storage() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def target_id() -> str:
    return TARGET_ID


@pytest.fixture
def shop_kwargs() -> dict:
    """Override in a test module to reshape the simulated shop."""
    return {}


@pytest.fixture
def shop(shop_kwargs) -> SimulatedShopAgent:
    kwargs = {"orders": make_orders(), "catalog": make_catalog(), "slots": make_slots()}
    kwargs.update(shop_kwargs)
    return SimulatedShopAgent(**kwargs)


@pytest.fixture
def transport(shop) -> InProcessAgentTransport:
    transport = InProcessAgentTransport()
    transport.register(TARGET_ID, shop)
    return transport


@pytest.fixture
def session(site) -> SimulatedTargetSession:
    session = SimulatedTargetSession()
    session.open(TARGET_ID, site.base_url)
    return session


@pytest.fixture
def state_machine(storage, settings) -> StateMachine:
    return StateMachine(storage, max_error_count=settings.max_retries)


@pytest.fixture
def make_orchestrator(state_machine, storage, transport, session, settings, site):
    """Build an orchestrator on the shared fixtures; keyword arguments override them."""

    def factory(**overrides) -> RunOrchestrator:
        kwargs = {
            "state_machine": state_machine,
            "storage": storage,
            "agent_transport": transport,
            "session": session,
            "settings": settings,
            "site": site,
        }
        kwargs.update(overrides)
        return RunOrchestrator(**kwargs)

    return factory


@pytest.fixture
def orchestrator(make_orchestrator) -> RunOrchestrator:
    return make_orchestrator()
