"""
Tests for the simulated page agent and page session used by tests and demos.
"""
import asyncio

import pytest

from core.application.dtos import AgentAction, ErrorCode, create_request
from core.domain.entities import CartItem
from core.domain.enums import ItemAvailability, ReorderMode
from core.infrastructure.adapters.agents import InProcessAgentTransport, SimulatedShopAgent
from core.infrastructure.adapters.session import SimulatedTargetSession
from tests.shop_data import make_catalog, make_orders, make_slots


@pytest.fixture
def shop():
    return SimulatedShopAgent(orders=make_orders(), catalog=make_catalog(), slots=make_slots())


async def _send(shop, action, payload=None):
    return await shop(create_request(action, payload))


class TestSimulatedShopAgent:
    """Test request handling."""

    @pytest.mark.asyncio
    async def test_history_is_newest_first_and_limited(self, shop):
        response = await _send(shop, AgentAction.ORDER_EXTRACT_HISTORY, {"limit": 1})

        assert [o["orderId"] for o in response.data["orders"]] == ["A-2"]

    @pytest.mark.asyncio
    async def test_unknown_order_detail(self, shop):
        response = await _send(shop, AgentAction.ORDER_EXTRACT_DETAIL, {"orderId": "nope"})

        assert response.success is False
        assert response.error_code == ErrorCode.ELEMENT_NOT_FOUND

    @pytest.mark.asyncio
    async def test_replace_then_merge(self, shop):
        await _send(shop, AgentAction.ORDER_REORDER, {"orderId": "A-1", "mode": "replace"})
        await _send(shop, AgentAction.ORDER_REORDER, {"orderId": "A-2", "mode": "merge"})

        quantities = {pid: item.quantity for pid, item in shop.cart.items()}
        assert quantities == {"p-milk": 3, "p-yogurt": 1, "p-bread": 1}
        assert shop.reorders == [("A-1", ReorderMode.REPLACE), ("A-2", ReorderMode.MERGE)]
        assert shop.cart["p-yogurt"].availability == ItemAvailability.OUT_OF_STOCK

    @pytest.mark.asyncio
    async def test_replace_clears_existing_cart(self):
        shop = SimulatedShopAgent(
            orders=make_orders(),
            catalog=make_catalog(),
            initial_cart=[CartItem("p-old", "Old", 1.0, 1, ItemAvailability.AVAILABLE)],
        )

        await _send(shop, AgentAction.ORDER_REORDER, {"orderId": "A-2", "mode": "replace"})

        assert set(shop.cart) == {"p-milk", "p-bread"}

    @pytest.mark.asyncio
    async def test_expand_before_reorder(self, shop):
        shop.expand_before_reorder = True

        first = await _send(shop, AgentAction.ORDER_REORDER, {"orderId": "A-1", "mode": "replace"})
        second = await _send(shop, AgentAction.ORDER_REORDER, {"orderId": "A-1", "mode": "replace"})

        assert first.data == {"clicked": False, "expanded": True}
        assert second.data == {"clicked": True, "expanded": False}

    @pytest.mark.asyncio
    async def test_cart_scan_can_skip_out_of_stock(self, shop):
        await _send(shop, AgentAction.ORDER_REORDER, {"orderId": "A-1", "mode": "replace"})

        response = await _send(shop, AgentAction.CART_SCAN, {"includeOutOfStock": False})

        assert [i["productId"] for i in response.data["items"]] == ["p-milk"]

    @pytest.mark.asyncio
    async def test_search_ranks_by_token_hits(self, shop):
        response = await _send(shop, AgentAction.SEARCH_PRODUCTS, {"query": "Danone Iogurte Natural", "maxResults": 2})

        assert [p["productId"] for p in response.data["products"]] == ["p-yogurt", "p-yogurt-2"]

    @pytest.mark.asyncio
    async def test_slots(self, shop):
        response = await _send(shop, AgentAction.SLOTS_EXTRACT)

        assert [s["id"] for s in response.data["slots"]] == ["s-1", "s-2", "s-3", "s-4"]

    @pytest.mark.asyncio
    async def test_failure_injection(self, shop):
        shop.fail_next(AgentAction.LOGIN_CHECK, ErrorCode.PAGE_NOT_READY, times=2)
        shop.raise_next(AgentAction.CART_SCAN, ConnectionError("gone"))

        first = await _send(shop, AgentAction.LOGIN_CHECK)
        second = await _send(shop, AgentAction.LOGIN_CHECK)
        third = await _send(shop, AgentAction.LOGIN_CHECK)
        with pytest.raises(ConnectionError):
            await _send(shop, AgentAction.CART_SCAN)

        assert [first.success, second.success, third.success] == [False, False, True]
        assert third.data == {"isLoggedIn": True, "userName": "Test Shopper"}
        assert shop.count(AgentAction.LOGIN_CHECK) == 3

    @pytest.mark.asyncio
    async def test_transport_routes_to_registered_agent(self, shop):
        transport = InProcessAgentTransport()
        transport.register("tab-1", shop)

        response = await transport.send("tab-1", create_request(AgentAction.LOGIN_CHECK))

        assert response.success is True
        with pytest.raises(ConnectionError):
            await transport.send("tab-2", create_request(AgentAction.LOGIN_CHECK))


class TestSimulatedTargetSession:
    """Test navigation and page loading."""

    @pytest.mark.asyncio
    async def test_get_returns_copy(self):
        session = SimulatedTargetSession()
        session.open("tab-1", "https://shop.example/")

        target = await session.get("tab-1")
        target.url = "changed"

        assert (await session.get("tab-1")).url == "https://shop.example/"
        assert await session.get("missing") is None

    @pytest.mark.asyncio
    async def test_navigate_records_and_loads(self):
        session = SimulatedTargetSession(load_seconds=0.02)
        session.open("tab-1", "https://shop.example/")

        await session.navigate("tab-1", "https://shop.example/cart")
        assert (await session.get("tab-1")).loading is True

        await session.wait_for_load("tab-1", timeout=1.0)

        target = await session.get("tab-1")
        assert target.loading is False
        assert target.url == "https://shop.example/cart"
        assert session.navigations == [("tab-1", "https://shop.example/cart")]

    @pytest.mark.asyncio
    async def test_wait_for_load_times_out(self):
        session = SimulatedTargetSession()
        session.open("tab-1", "https://shop.example/", loading=True)

        with pytest.raises(asyncio.TimeoutError):
            await session.wait_for_load("tab-1", timeout=0.02)

    @pytest.mark.asyncio
    async def test_closed_target(self):
        session = SimulatedTargetSession()
        session.open("tab-1", "https://shop.example/")
        session.close("tab-1")

        with pytest.raises(ConnectionError):
            await session.navigate("tab-1", "https://shop.example/cart")
        with pytest.raises(ConnectionError):
            await session.wait_for_load("tab-1", timeout=0.1)
