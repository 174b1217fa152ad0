"""
Simulated Shop Agent.

Stands in for the DOM-extraction agent for testing and demos. It keeps a
small in-memory shop (order history, catalog, live cart, delivery slots)
and answers agent requests the way the real page agent would.
"""
import asyncio
import logging
from collections import defaultdict, deque
from typing import Any, Deque, Dict, Iterable, List, Optional, Tuple, Type

from pydantic import BaseModel

from core.application.dtos import (
    AgentAction,
    AgentRequest,
    AgentResponse,
    ErrorCode,
    create_error_response,
    create_success_response,
)
from core.application.dtos.agent_dto import (
    CartItemDTO,
    DeliverySlotDTO,
    OrderDetailDTO,
    OrderSummaryDTO,
    ProductDTO,
)
from core.application.serialization import dump_entity
from core.domain.entities import CartItem, DeliverySlot, OrderDetail, ProductInfo
from core.domain.enums import ItemAvailability, ReorderMode


logger = logging.getLogger(__name__)


def _wire(dto_cls: Type[BaseModel], entity: Any) -> Dict[str, Any]:
    return dto_cls.model_validate(dump_entity(entity)).to_wire()


class SimulatedShopAgent:
    """
    In-memory page agent.

    Reorder semantics follow the shop's "order again" button:
    ``replace`` empties the cart first, ``merge`` adds quantities onto
    existing lines. Products missing from the catalog come back
    out-of-stock.

    Failure injection:
        fail_next(action, code)   -> next call returns an error response
        raise_next(action, exc)   -> next call raises ``exc``
        delay(action, seconds)    -> every call sleeps first
    """

    def __init__(
        self,
        orders: Iterable[OrderDetail] = (),
        catalog: Iterable[ProductInfo] = (),
        slots: Iterable[DeliverySlot] = (),
        logged_in: bool = True,
        user_name: Optional[str] = "Test Shopper",
        initial_cart: Iterable[CartItem] = (),
        expand_before_reorder: bool = False,
    ):
        """
        Initialize simulated shop.

        Args:
            orders: Past orders, any order
            catalog: Products with their live price and availability
            slots: Delivery slots offered on the delivery page
            logged_in: Whether the shopper is logged in
            user_name: Name reported by login.check
            initial_cart: Cart contents before the run
            expand_before_reorder: First reorder of each order only expands
                the order card (``expanded`` without ``clicked``)
        """
        self.orders: Dict[str, OrderDetail] = {o.summary.order_id: o for o in orders}
        self.catalog: Dict[str, ProductInfo] = {p.product_id: p for p in catalog}
        self.slots: List[DeliverySlot] = list(slots)
        self.logged_in = logged_in
        self.user_name = user_name
        self.cart: Dict[str, CartItem] = {item.product_id: item for item in initial_cart}
        self.expand_before_reorder = expand_before_reorder

        self.requests: List[AgentRequest] = []
        self.reorders: List[Tuple[str, ReorderMode]] = []
        self._expanded: set = set()
        self._failures: Dict[AgentAction, Deque[Tuple[str, str]]] = defaultdict(deque)
        self._exceptions: Dict[AgentAction, Deque[BaseException]] = defaultdict(deque)
        self._delays: Dict[AgentAction, float] = {}

        self._handlers = {
            AgentAction.LOGIN_CHECK: self._login_check,
            AgentAction.ORDER_EXTRACT_HISTORY: self._extract_history,
            AgentAction.ORDER_EXTRACT_DETAIL: self._extract_detail,
            AgentAction.ORDER_REORDER: self._reorder,
            AgentAction.CART_SCAN: self._scan_cart,
            AgentAction.SEARCH_PRODUCTS: self._search_products,
            AgentAction.SLOTS_EXTRACT: self._extract_slots,
        }

    # ------------------------------------------------------------------
    # Failure injection
    # ------------------------------------------------------------------

    def fail_next(
        self,
        action: AgentAction,
        code: str = ErrorCode.PAGE_NOT_READY,
        message: str = "Simulated failure",
        times: int = 1,
    ) -> None:
        for _ in range(times):
            self._failures[action].append((code, message))

    def raise_next(self, action: AgentAction, exc: BaseException, times: int = 1) -> None:
        for _ in range(times):
            self._exceptions[action].append(exc)

    def delay(self, action: AgentAction, seconds: float) -> None:
        self._delays[action] = seconds

    def count(self, action: AgentAction) -> int:
        return sum(1 for r in self.requests if r.action == action)

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def __call__(self, request: AgentRequest) -> AgentResponse:
        self.requests.append(request)

        seconds = self._delays.get(request.action)
        if seconds:
            await asyncio.sleep(seconds)

        if self._exceptions[request.action]:
            raise self._exceptions[request.action].popleft()

        if self._failures[request.action]:
            code, message = self._failures[request.action].popleft()
            logger.info(f"Simulated {request.action.value} failure: {code}")
            return create_error_response(request.id, code, message)

        handler = self._handlers.get(request.action)
        if handler is None:
            return create_error_response(
                request.id, ErrorCode.INVALID_REQUEST, f"Unsupported action {request.action}"
            )
        return handler(request, request.payload or {})

    def _login_check(self, request: AgentRequest, payload: Dict[str, Any]) -> AgentResponse:
        data = {"isLoggedIn": self.logged_in}
        if self.logged_in and self.user_name:
            data["userName"] = self.user_name
        return create_success_response(request.id, data)

    def _extract_history(self, request: AgentRequest, payload: Dict[str, Any]) -> AgentResponse:
        limit = int(payload.get("limit", 10))
        newest_first = sorted(
            (o.summary for o in self.orders.values()),
            key=lambda s: s.placed_at,
            reverse=True,
        )
        orders = [_wire(OrderSummaryDTO, s) for s in newest_first[:limit]]
        return create_success_response(request.id, {"orders": orders})

    def _extract_detail(self, request: AgentRequest, payload: Dict[str, Any]) -> AgentResponse:
        order = self.orders.get(payload.get("orderId", ""))
        if order is None:
            return create_error_response(
                request.id, ErrorCode.ELEMENT_NOT_FOUND, f"Order {payload.get('orderId')} not found"
            )
        return create_success_response(request.id, {"order": _wire(OrderDetailDTO, order)})

    def _reorder(self, request: AgentRequest, payload: Dict[str, Any]) -> AgentResponse:
        order_id = payload.get("orderId", "")
        order = self.orders.get(order_id)
        if order is None:
            return create_error_response(
                request.id, ErrorCode.ELEMENT_NOT_FOUND, f"Order {order_id} not found"
            )

        if self.expand_before_reorder and order_id not in self._expanded:
            self._expanded.add(order_id)
            return create_success_response(request.id, {"clicked": False, "expanded": True})

        mode = ReorderMode(payload.get("mode", ReorderMode.MERGE.value))
        if mode == ReorderMode.REPLACE:
            self.cart.clear()

        for item in order.items:
            product = self.catalog.get(item.product_id)
            existing = self.cart.get(item.product_id)
            quantity = item.quantity + (existing.quantity if existing else 0)
            self.cart[item.product_id] = CartItem(
                product_id=item.product_id,
                name=item.name,
                price=product.price if product else item.unit_price,
                quantity=quantity,
                availability=(
                    product.availability if product else ItemAvailability.OUT_OF_STOCK
                ),
                brand=item.brand or (product.brand if product else None),
                category=item.category,
                unit=product.unit if product else None,
            )

        self.reorders.append((order_id, mode))
        logger.info(f"Reordered {order_id} ({mode.value}), cart has {len(self.cart)} lines")
        return create_success_response(request.id, {"clicked": True, "expanded": False})

    def _scan_cart(self, request: AgentRequest, payload: Dict[str, Any]) -> AgentResponse:
        include_out_of_stock = payload.get("includeOutOfStock", True)
        items = [
            _wire(CartItemDTO, item)
            for item in self.cart.values()
            if include_out_of_stock or not item.is_unavailable
        ]
        return create_success_response(request.id, {"items": items})

    def _search_products(self, request: AgentRequest, payload: Dict[str, Any]) -> AgentResponse:
        tokens = [t for t in str(payload.get("query", "")).lower().split() if t]
        max_results = int(payload.get("maxResults", 10))

        matches = []
        for product in self.catalog.values():
            haystack = f"{product.brand or ''} {product.name}".lower()
            hits = sum(1 for t in tokens if t in haystack)
            if hits:
                matches.append((hits, product))

        # sorted() is stable: equal hit counts keep catalog order
        matches.sort(key=lambda m: m[0], reverse=True)
        products = [_wire(ProductDTO, p) for _, p in matches[:max_results]]
        return create_success_response(request.id, {"products": products})

    def _extract_slots(self, request: AgentRequest, payload: Dict[str, Any]) -> AgentResponse:
        slots = [_wire(DeliverySlotDTO, s) for s in self.slots]
        return create_success_response(request.id, {"slots": slots})
