"""
End-to-End Demo: Rebuild a Grocery Cart

This demonstrates the complete workflow:
1. Check the shopper is logged in
2. Replay the last orders onto the cart (replace, then merge)
3. Scan the cart and compare it with the replayed orders
4. Propose substitutes for unavailable items
5. Rank delivery slots against stored preferences
6. Hand a review pack to the shopper

Uses simulated implementations (no browser, Redis or LLM needed).
Nothing is ever submitted: checkout stays with the shopper.
"""
import asyncio
import logging

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from core.application.serialization import dump_entity
from core.domain.entities import (
    DeliverySlot,
    OrderDetail,
    OrderItem,
    OrderSummary,
    ProductInfo,
    SlotPreferences,
)
from core.domain.enums import ItemAvailability, RemainingCapacity
from core.infrastructure.adapters.advisory import MockAdvisoryService
from core.infrastructure.adapters.agents import InProcessAgentTransport, SimulatedShopAgent
from core.infrastructure.adapters.session import SimulatedTargetSession
from core.infrastructure.storage import InMemoryStore
from core.settings import OrchestratorSettings, SiteSettings
from orchestration import RunOrchestrator, create_state_machine_with_recovery
from orchestration.state import USER_PREFERENCES_KEY

TARGET_ID = "tab-1"


def build_shop() -> SimulatedShopAgent:
    """A small shop with two past orders and one discontinued product."""
    orders = [
        OrderDetail(
            summary=OrderSummary(order_id="A-1001", date="2026-09-20", total=14.47, item_count=3),
            items=[
                OrderItem("p-milk", "Mimosa Leite Meio Gordo 1L", 0.89, 6, "Mimosa", "Laticínios"),
                OrderItem("p-coffee", "Delta Café Moído 250g", 3.49, 1, "Delta", "Café"),
            ],
        ),
        OrderDetail(
            summary=OrderSummary(order_id="A-1002", date="2026-10-04", total=9.36, item_count=2),
            items=[
                OrderItem("p-milk", "Mimosa Leite Meio Gordo 1L", 0.89, 2, "Mimosa", "Laticínios"),
                OrderItem("p-yogurt", "Danone Iogurte Natural 4x120g", 1.99, 2, "Danone", "Iogurtes"),
            ],
        ),
    ]
    catalog = [
        ProductInfo("p-milk", "Mimosa Leite Meio Gordo 1L", 0.95, ItemAvailability.AVAILABLE,
                    "Mimosa", ["Laticínios", "Leite"], 4.6),
        ProductInfo("p-coffee", "Delta Café Moído 250g", 3.49, ItemAvailability.AVAILABLE,
                    "Delta", ["Mercearia", "Café"], 4.8),
        ProductInfo("p-yogurt", "Danone Iogurte Natural 4x120g", 1.99, ItemAvailability.OUT_OF_STOCK,
                    "Danone", ["Laticínios", "Iogurtes"], 4.4),
        ProductInfo("p-yogurt-2", "Danone Iogurte Natural Açucarado 4x120g", 2.09,
                    ItemAvailability.AVAILABLE, "Danone", ["Laticínios", "Iogurtes"], 4.2),
        ProductInfo("p-yogurt-3", "Auchan Iogurte Natural 8x120g", 1.79, ItemAvailability.LOW_STOCK,
                    "Auchan", ["Laticínios", "Iogurtes"], 3.9),
    ]
    slots = [
        DeliverySlot("s-1", "2026-10-17", "friday", "18:00", "20:00", 4.99, True,
                     remaining_capacity=RemainingCapacity.HIGH),
        DeliverySlot("s-2", "2026-10-18", "saturday", "11:00", "13:00", 2.99, True,
                     remaining_capacity=RemainingCapacity.MEDIUM),
        DeliverySlot("s-3", "2026-10-19", "sunday", "09:00", "11:00", 0.0, True, True,
                     remaining_capacity=RemainingCapacity.LOW),
        DeliverySlot("s-4", "2026-10-19", "sunday", "12:00", "14:00", 1.99, False),
    ]
    return SimulatedShopAgent(orders=orders, catalog=catalog, slots=slots, user_name="Ana")


async def demo_full_run():
    """Demo: one run from order history to review pack."""

    print("\n" + "="*80)
    print("DEMO: Rebuild cart from the last orders")
    print("="*80 + "\n")

    # =========================================================================
    # SETUP: Create simulated dependencies
    # =========================================================================
    print("📦 Setting up simulated dependencies...")

    site = SiteSettings()
    settings = OrchestratorSettings(reorder_settle_seconds=0.1, reorder_retry_delay_seconds=0.1)

    storage = InMemoryStore({
        USER_PREFERENCES_KEY: dump_entity(
            SlotPreferences(preferred_days=("saturday",), preferred_time_start="10:00",
                            preferred_time_end="13:00")
        ),
    })
    shop = build_shop()
    transport = InProcessAgentTransport()
    transport.register(TARGET_ID, shop)
    session = SimulatedTargetSession(load_seconds=0.05)
    session.open(TARGET_ID, site.base_url)

    print("✅ Simulated dependencies ready\n")

    # =========================================================================
    # CREATE ORCHESTRATOR
    # =========================================================================
    print("🏗️ Creating orchestrator...")

    state_machine = await create_state_machine_with_recovery(
        storage,
        max_error_count=settings.max_retries,
        staleness_seconds=settings.staleness_seconds,
    )
    orchestrator = RunOrchestrator(
        state_machine=state_machine,
        storage=storage,
        agent_transport=transport,
        session=session,
        advisory=MockAdvisoryService(),
        settings=settings,
        site=site,
    )
    orchestrator.subscribe(
        lambda state, previous: print(
            f"   → {state.status.value}"
            f"{' / ' + state.phase.value if state.phase else ''}"
            f"{' / ' + state.step if state.step else ''}"
        )
        if (state.status, state.phase, state.step) != (previous.status, previous.phase, previous.step)
        else None
    )

    decision = await orchestrator.recover_interrupted_run()
    print(f"✅ Orchestrator ready (recovery: {decision.outcome.value})\n")

    # =========================================================================
    # EXECUTE RUN
    # =========================================================================
    print("🚀 Starting run...\n")
    print("-" * 80)

    state = await orchestrator.start_run(TARGET_ID)
    await state_machine.flush()

    print("-" * 80)
    print(f"\n📊 Final status: {state.status.value}")

    if state.error:
        print(f"   Error: {state.error.code} {state.error.message}")
        return None

    pack = await orchestrator.get_review_pack()
    if pack is None:
        print("   No review pack available")
        return None

    print(f"   Run ID: {pack.run_id}")
    print(f"   Items in cart: {pack.stats.total_items}")
    print(f"   Unavailable: {pack.stats.unavailable_items}")
    print(f"   Cart changes: {pack.diff_summary}")

    for proposal in pack.substitutions:
        print(
            f"   🔄 {proposal.original_item.name} → {proposal.substitute.name} "
            f"(score {proposal.score:.2f}, {proposal.reason})"
        )
        if proposal.rationale:
            print(f"      💬 {proposal.rationale}")

    recommendation = pack.slot_recommendation
    if recommendation and recommendation.recommended:
        best = recommendation.recommended[0]
        print(
            f"   🚚 Best slot: {best.slot.day_of_week} {best.slot.date} "
            f"{best.slot.time_start}-{best.slot.time_end} ({best.score:.0f}/100, {best.reason})"
        )
        if recommendation.best_free_slot:
            free = recommendation.best_free_slot.slot
            print(f"   🆓 Best free slot: {free.day_of_week} {free.time_start}-{free.time_end}")

    print(f"   ⏱️ Took {pack.stats.execution_time_ms} ms")

    orchestrator.approve_review()
    await state_machine.flush()

    print("\n" + "="*80)
    print("✅ Review approved - complete checkout in the browser yourself.")
    print("="*80 + "\n")

    return pack


async def main():
    """Run all demos."""

    print("\n" + "🎯"*40)
    print("CARTPILOT END-TO-END DEMO")
    print("🎯"*40)

    try:
        await demo_full_run()
    except Exception as e:
        logger.error(f"Demo failed: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    asyncio.run(main())
