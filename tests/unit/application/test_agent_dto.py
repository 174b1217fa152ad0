"""
Tests for the agent wire DTOs.
"""
import re

import pytest
from pydantic import ValidationError

from core.application.dtos import (
    TRANSIENT_ERROR_CODES,
    AgentAction,
    AgentResponse,
    CartScanData,
    ErrorCode,
    LoginCheckData,
    ReorderPayload,
    SlotsExtractData,
    create_error_response,
    create_request,
    generate_message_id,
)
from core.domain.enums import ItemAvailability, RemainingCapacity, ReorderMode


class TestMessages:
    """Test request/response envelopes."""

    def test_message_id_format(self):
        assert re.fullmatch(r"msg-\d+-[0-9a-z]{7}", generate_message_id())

    def test_message_ids_are_unique(self):
        assert len({generate_message_id() for _ in range(200)}) == 200

    def test_request_wire_format(self):
        request = create_request(AgentAction.ORDER_REORDER, ReorderPayload(order_id="A-1", mode=ReorderMode.MERGE).to_wire())

        wire = request.to_wire()

        assert wire["action"] == "order.reorder"
        assert wire["payload"] == {"orderId": "A-1", "mode": "merge"}
        assert isinstance(wire["timestamp"], int)

    def test_error_response(self):
        response = create_error_response("msg-1", ErrorCode.ELEMENT_NOT_FOUND, "no button")

        assert response.success is False
        assert response.error_code == ErrorCode.ELEMENT_NOT_FOUND
        assert response.error_message == "no button"

    def test_failure_without_error_block(self):
        response = AgentResponse(id="msg-1", success=False)

        assert response.error_code == ErrorCode.UNKNOWN

    def test_transient_codes(self):
        assert TRANSIENT_ERROR_CODES == {
            ErrorCode.TIMEOUT,
            ErrorCode.NETWORK_ERROR,
            ErrorCode.PAGE_NOT_READY,
        }


class TestPayloads:
    """Test response payload parsing."""

    def test_login_check(self):
        data = LoginCheckData.model_validate({"isLoggedIn": True, "userName": "Ana"})

        login = data.to_entity(detected_on_url="https://www.example-grocer.pt/")

        assert login.is_logged_in is True
        assert login.user_name == "Ana"
        assert login.login_timestamp is not None
        assert login.detected_on_url == "https://www.example-grocer.pt/"

    def test_logged_out_has_no_timestamp(self):
        login = LoginCheckData.model_validate({"isLoggedIn": False}).to_entity()

        assert login.login_timestamp is None

    def test_cart_scan_ignores_unknown_fields(self):
        data = CartScanData.model_validate(
            {
                "items": [
                    {
                        "productId": "p-1",
                        "name": "Leite",
                        "price": 0.89,
                        "quantity": 2,
                        "availability": "out-of-stock",
                        "domSelector": "#row-1",
                    }
                ]
            }
        )

        item = data.to_entities()[0]
        assert item.availability == ItemAvailability.OUT_OF_STOCK
        assert item.is_unavailable is True

    def test_cart_scan_rejects_bad_availability(self):
        with pytest.raises(ValidationError):
            CartScanData.model_validate(
                {"items": [{"productId": "p-1", "name": "x", "price": 1, "quantity": 1, "availability": "gone"}]}
            )

    def test_slots_use_id_and_normalize(self):
        data = SlotsExtractData.model_validate(
            {
                "slots": [
                    {
                        "id": "s-1",
                        "date": "2026-10-24",
                        "dayOfWeek": "Saturday",
                        "timeStart": "10:00",
                        "timeEnd": "12:00",
                        "fee": 0,
                        "remainingCapacity": "low",
                    }
                ]
            }
        )

        slot = data.to_entities()[0]
        assert slot.slot_id == "s-1"
        assert slot.day_of_week == "saturday"
        assert slot.available is True
        assert slot.is_free is True
        assert slot.remaining_capacity == RemainingCapacity.LOW
