"""
Page agent wire DTOs.

Requests and responses exchanged with the DOM-extraction agent. The wire
format is camelCase JSON; every model also accepts snake_case field names.
"""

import secrets
import string
import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cartpilot_sdk.utils.datetime import utc_now
from core.domain.entities import (
    CartItem,
    DeliverySlot,
    LoginState,
    OrderDetail,
    OrderItem,
    OrderSummary,
    ProductInfo,
)
from core.domain.enums import ItemAvailability, RemainingCapacity, ReorderMode


class AgentAction(str, Enum):
    """Operations the page agent understands."""

    LOGIN_CHECK = "login.check"
    ORDER_EXTRACT_HISTORY = "order.extractHistory"
    ORDER_EXTRACT_DETAIL = "order.extractDetail"
    ORDER_REORDER = "order.reorder"
    CART_SCAN = "cart.scan"
    SEARCH_PRODUCTS = "search.products"
    SLOTS_EXTRACT = "slots.extract"


class ErrorCode:
    """Closed set of error codes carried by agent responses and run errors."""

    UNKNOWN = "UNKNOWN"
    TIMEOUT = "TIMEOUT"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_STATE = "INVALID_STATE"
    ELEMENT_NOT_FOUND = "ELEMENT_NOT_FOUND"
    PAGE_NOT_READY = "PAGE_NOT_READY"
    WRONG_PAGE = "WRONG_PAGE"
    NETWORK_ERROR = "NETWORK_ERROR"
    API_ERROR = "API_ERROR"
    NOT_LOGGED_IN = "NOT_LOGGED_IN"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    CONTEXT_LOST = "CONTEXT_LOST"
    TARGET_NOT_FOUND = "TARGET_NOT_FOUND"
    UNKNOWN_PHASE = "UNKNOWN_PHASE"


TRANSIENT_ERROR_CODES = frozenset(
    {ErrorCode.TIMEOUT, ErrorCode.NETWORK_ERROR, ErrorCode.PAGE_NOT_READY}
)


class WireModel(BaseModel):
    """Base for camelCase wire payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_message_id() -> str:
    """Unique correlation id: ``msg-<epoch ms>-<7 random chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(7))
    return f"msg-{int(time.time() * 1000)}-{suffix}"


class AgentRequest(WireModel):
    """Request sent to the page agent."""

    id: str = Field(default_factory=generate_message_id)
    action: AgentAction
    payload: Optional[Dict[str, Any]] = None
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))


class ResponseErrorDTO(WireModel):
    code: str = ErrorCode.UNKNOWN
    message: str = ""
    details: Optional[Any] = None


class AgentResponse(WireModel):
    """Response from the page agent, correlated by ``id``."""

    id: str
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[ResponseErrorDTO] = None
    timing: Optional[float] = None

    @property
    def error_code(self) -> str:
        return self.error.code if self.error else ErrorCode.UNKNOWN

    @property
    def error_message(self) -> str:
        return self.error.message if self.error else "Agent reported failure"


def create_request(action: AgentAction, payload: Optional[Dict[str, Any]] = None) -> AgentRequest:
    return AgentRequest(action=action, payload=payload)


def create_success_response(
    request_id: str, data: Dict[str, Any], timing: Optional[float] = None
) -> AgentResponse:
    return AgentResponse(id=request_id, success=True, data=data, timing=timing)


def create_error_response(request_id: str, code: str, message: str) -> AgentResponse:
    return AgentResponse(
        id=request_id,
        success=False,
        error=ResponseErrorDTO(code=code, message=message),
    )


# --- Request payloads ---


class OrderHistoryPayload(WireModel):
    limit: int = 10


class OrderDetailPayload(WireModel):
    order_id: str


class ReorderPayload(WireModel):
    order_id: str
    mode: ReorderMode


class CartScanPayload(WireModel):
    include_out_of_stock: bool = True


class SearchProductsPayload(WireModel):
    query: str
    max_results: int = 10


# --- Response payloads ---


class LoginCheckData(WireModel):
    is_logged_in: bool
    user_name: Optional[str] = None

    def to_entity(self, detected_on_url: Optional[str] = None) -> LoginState:
        return LoginState(
            is_logged_in=self.is_logged_in,
            user_name=self.user_name,
            login_timestamp=utc_now() if self.is_logged_in else None,
            detected_on_url=detected_on_url,
        )


class OrderSummaryDTO(WireModel):
    order_id: str
    date: str
    total: float = 0.0
    item_count: int = 0
    status: str = "unknown"
    detail_url: Optional[str] = None

    def to_entity(self) -> OrderSummary:
        return OrderSummary(
            order_id=self.order_id,
            date=self.date,
            total=self.total,
            item_count=self.item_count,
            status=self.status,
            detail_url=self.detail_url,
        )


class OrderHistoryData(WireModel):
    orders: List[OrderSummaryDTO] = Field(default_factory=list)

    def to_entities(self) -> List[OrderSummary]:
        return [order.to_entity() for order in self.orders]


class OrderItemDTO(WireModel):
    product_id: str
    name: str
    unit_price: float
    quantity: int
    brand: Optional[str] = None
    category: Optional[str] = None

    def to_entity(self) -> OrderItem:
        return OrderItem(
            product_id=self.product_id,
            name=self.name,
            unit_price=self.unit_price,
            quantity=self.quantity,
            brand=self.brand,
            category=self.category,
        )


class OrderDetailDTO(WireModel):
    summary: OrderSummaryDTO
    items: List[OrderItemDTO] = Field(default_factory=list)

    def to_entity(self) -> OrderDetail:
        return OrderDetail(
            summary=self.summary.to_entity(),
            items=[item.to_entity() for item in self.items],
        )


class OrderDetailData(WireModel):
    order: OrderDetailDTO


class ReorderData(WireModel):
    clicked: bool
    expanded: bool = False


class CartItemDTO(WireModel):
    product_id: str
    name: str
    price: float
    quantity: int
    availability: ItemAvailability = ItemAvailability.UNKNOWN
    brand: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    image_url: Optional[str] = None

    def to_entity(self) -> CartItem:
        return CartItem(
            product_id=self.product_id,
            name=self.name,
            price=self.price,
            quantity=self.quantity,
            availability=self.availability,
            brand=self.brand,
            category=self.category,
            unit=self.unit,
            image_url=self.image_url,
        )


class CartScanData(WireModel):
    items: List[CartItemDTO] = Field(default_factory=list)

    def to_entities(self) -> List[CartItem]:
        return [item.to_entity() for item in self.items]


class ProductDTO(WireModel):
    product_id: str
    name: str
    price: float
    availability: ItemAvailability = ItemAvailability.UNKNOWN
    brand: Optional[str] = None
    category_path: List[str] = Field(default_factory=list)
    rating: Optional[float] = None
    url: Optional[str] = None
    unit: Optional[str] = None

    def to_entity(self) -> ProductInfo:
        return ProductInfo(
            product_id=self.product_id,
            name=self.name,
            price=self.price,
            availability=self.availability,
            brand=self.brand,
            category_path=list(self.category_path),
            rating=self.rating,
            url=self.url,
            unit=self.unit,
        )


class SearchProductsData(WireModel):
    products: List[ProductDTO] = Field(default_factory=list)

    def to_entities(self) -> List[ProductInfo]:
        return [product.to_entity() for product in self.products]


class DeliverySlotDTO(WireModel):
    slot_id: str = Field(alias="id")
    date: str
    day_of_week: str
    time_start: str
    time_end: str
    fee: float = 0.0
    available: bool = True
    is_free: bool = False
    remaining_capacity: Optional[RemainingCapacity] = None

    def to_entity(self) -> DeliverySlot:
        return DeliverySlot(
            slot_id=self.slot_id,
            date=self.date,
            day_of_week=self.day_of_week.lower(),
            time_start=self.time_start,
            time_end=self.time_end,
            fee=self.fee,
            available=self.available,
            is_free=self.is_free or self.fee == 0,
            remaining_capacity=self.remaining_capacity,
        )


class SlotsExtractData(WireModel):
    slots: List[DeliverySlotDTO] = Field(default_factory=list)

    def to_entities(self) -> List[DeliverySlot]:
        return [slot.to_entity() for slot in self.slots]
