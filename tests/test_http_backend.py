"""
Tests for the HTTP order backend, using a mocked requests session.
"""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from ordersync.backends.http_backend import HttpOrderBackend
from ordersync.backends.models import DebitRequest, ReconciliationRequest
from ordersync.errors import RemoteUnavailable, ValidationError


def response(status_code=200, payload=None):
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = payload
    mock.text = str(payload)
    mock.url = "http://orders.test"
    return mock


class TestHttpOrderBackend:
    """Request shaping and error mapping."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.session = MagicMock()
        self.backend = HttpOrderBackend("http://orders.test/", session=self.session, timeout_seconds=3)

    def last_call(self):
        args, kwargs = self.session.request.call_args
        return args[0], args[1], kwargs

    def test_reconcile_accepted_means_started(self):
        self.session.request.return_value = response(202)

        result = asyncio.run(self.backend.reconcile(ReconciliationRequest(date_from="01/03/2025")))

        method, url, kwargs = self.last_call()
        assert result.started is True
        assert method == "POST"
        assert url == "http://orders.test/functions/v1/sync-orders"
        assert kwargs["json"] == {"dateFrom": "01/03/2025", "dateTo": ""}
        assert kwargs["timeout"] == 3

    def test_reconcile_immediate_payload(self):
        self.session.request.return_value = response(200, {
            "items": [{"id": "i1", "order_id": "o1", "sku": "A", "quantity": 1}],
            "orders": [{"id": "o1", "number": "PED-1"}],
        })

        result = asyncio.run(self.backend.reconcile(ReconciliationRequest()))

        assert result.items[0].sku == "A"
        assert result.orders[0].number == "PED-1"

    def test_reconcile_client_error_becomes_error_payload(self):
        self.session.request.return_value = response(400, {"error": "bad range"})
        result = asyncio.run(self.backend.reconcile(ReconciliationRequest()))
        assert result.error is not None

    def test_network_error_is_remote_unavailable(self):
        self.session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(RemoteUnavailable):
            asyncio.run(self.backend.read_products())

    def test_server_error_is_remote_unavailable(self):
        self.session.request.return_value = response(503)
        with pytest.raises(RemoteUnavailable):
            asyncio.run(self.backend.reconcile(ReconciliationRequest()))

    def test_local_read_respects_limit(self):
        rows = [{"id": f"r{i}", "order_number": "PED-1", "sku": "A"} for i in range(5)]
        self.session.request.return_value = response(200, rows)

        items = asyncio.run(self.backend.read_local_items(limit=3))

        _, _, kwargs = self.last_call()
        assert kwargs["params"] == {"limit": 3}
        assert len(items) == 3

    def test_local_read_accepts_discount_lines(self):
        rows = [
            {"id": "r1", "order_number": "PED-1", "sku": "A", "quantity": 1, "unit_price": 30, "line_total": 30},
            {"id": "r2", "order_number": "PED-1", "sku": "DESCONTO", "quantity": 1,
             "unit_price": -7.5, "line_total": -7.5},
        ]
        self.session.request.return_value = response(200, rows)

        items = asyncio.run(self.backend.read_local_items())

        assert [item.line_total for item in items] == [30, -7.5]

    def test_mapping_read_requests_active_rows(self):
        self.session.request.return_value = response(200, [{"order_sku": "A", "kit_sku": "K", "multiplier": 2}])

        mappings = asyncio.run(self.backend.read_sku_mappings())

        _, _, kwargs = self.last_call()
        assert kwargs["params"] == {"active": "true"}
        assert mappings[0].multiplier == 2

    def test_edit_rejected_is_validation_error(self):
        self.session.request.return_value = response(422, {"message": "invalid"})
        with pytest.raises(ValidationError):
            asyncio.run(self.backend.edit_item({"id": "i1", "notes": "x"}))

    def test_edit_sends_patch_without_id(self):
        self.session.request.return_value = response(200, {"ok": True})

        asyncio.run(self.backend.edit_item({"id": "i1", "notes": "x"}))

        method, url, kwargs = self.last_call()
        assert method == "PATCH"
        assert url.endswith("/rest/v1/order-items/i1")
        assert kwargs["json"] == {"notes": "x"}

    def test_debit_payload(self):
        self.session.request.return_value = response(200, {"ok": True})
        request = DebitRequest(
            id="i1", order_number="PED-1", order_sku="A", kit_sku="K",
            multiplier=2, order_quantity=3, kit_quantity=6,
        )

        asyncio.run(self.backend.process_item(request))

        _, url, kwargs = self.last_call()
        assert url.endswith("/functions/v1/debit-stock")
        assert kwargs["json"]["items"][0]["kit_quantity"] == 6
