"""
Tests for the reconciliation client and the wire models it uses.
"""

import asyncio

from conftest import Gated

from ordersync.backends.models import (
    RawItem,
    RawOrder,
    ReconciliationRequest,
    ReconciliationResponse,
    join_line_items,
)
from ordersync.errors import RemoteUnavailable
from ordersync.models import FilterSpec, SyncOutcomeKind
from ordersync.services.remote_sync import RemoteSyncClient


def immediate_response():
    return ReconciliationResponse(
        items=[
            RawItem(id="i1", order_id="o1", sku="CAM-P", quantity=2, unit_price=10),
            RawItem(id="i2", order_number="PED-2", sku="CAL-M", quantity=1, unit_price=50, line_total=45),
            RawItem(id="i3", order_id="missing", sku="X"),
        ],
        orders=[
            RawOrder(id="o1", number="PED-1", customer_name="Ana", order_date="14/03/2025",
                     status="aprovado", total=20),
            RawOrder(id="o2", number="PED-2", customer_name="Bia", order_date="2025-03-15", status="enviado"),
        ],
    )


class TestRequest:
    """Request built from the active filters."""

    def test_dates_sent_day_first_with_wire_names(self):
        request = ReconciliationRequest.from_filters(
            FilterSpec(date_from="2025-03-01", date_to="2025-03-31", statuses=["Entregue"])
        )
        assert request.to_payload() == {
            "dateFrom": "01/03/2025",
            "dateTo": "31/03/2025",
            "statuses": ["entregue"],
        }

    def test_statuses_omitted_when_unrestricted(self):
        payload = ReconciliationRequest.from_filters(FilterSpec(date_from="2025-03-01")).to_payload()
        assert "statuses" not in payload


class TestJoin:
    """Joining raw items with their orders."""

    def test_join_by_order_id_or_number(self):
        response = immediate_response()
        lines = join_line_items(response.items, response.orders)

        assert [line.id for line in lines] == ["i1", "i2"]
        first, second = lines
        assert first.order_number == "PED-1"
        assert first.customer_name == "Ana"
        assert first.order_date == "2025-03-14"
        assert first.line_total == 20
        assert second.order_number == "PED-2"
        assert second.line_total == 45


class TestRemoteSyncClient:
    """Classification into immediate, started or failed."""

    def test_immediate(self, backend):
        backend.reconcile_replies = [immediate_response()]
        outcome = asyncio.run(RemoteSyncClient(backend).invoke(FilterSpec()))

        assert outcome.kind is SyncOutcomeKind.IMMEDIATE
        assert len(outcome.items) == 2

    def test_immediate_with_no_rows(self, backend):
        backend.reconcile_replies = [ReconciliationResponse(items=[], orders=[])]
        outcome = asyncio.run(RemoteSyncClient(backend).invoke(FilterSpec()))
        assert outcome.kind is SyncOutcomeKind.IMMEDIATE
        assert outcome.items == []

    def test_started(self, backend):
        backend.reconcile_replies = [ReconciliationResponse(started=True)]
        outcome = asyncio.run(RemoteSyncClient(backend).invoke(FilterSpec()))
        assert outcome.kind is SyncOutcomeKind.STARTED

    def test_error_payload(self, backend):
        backend.reconcile_replies = [ReconciliationResponse(error="integration token expired")]
        outcome = asyncio.run(RemoteSyncClient(backend).invoke(FilterSpec()))

        assert outcome.kind is SyncOutcomeKind.FAILED
        assert outcome.error == "integration token expired"

    def test_transport_failure(self, backend):
        backend.reconcile_replies = [RemoteUnavailable("connection refused")]
        outcome = asyncio.run(RemoteSyncClient(backend).invoke(FilterSpec()))

        assert outcome.kind is SyncOutcomeKind.FAILED
        assert "connection refused" in outcome.error

    def test_unrecognized_payload(self, backend):
        backend.reconcile_replies = [ReconciliationResponse(message="nothing to do")]
        outcome = asyncio.run(RemoteSyncClient(backend).invoke(FilterSpec()))
        assert outcome.kind is SyncOutcomeKind.FAILED

    def test_slow_call_times_out(self, backend):
        async def run():
            backend.reconcile_replies = [Gated(asyncio.Event(), ReconciliationResponse(started=True))]
            return await RemoteSyncClient(backend, timeout_seconds=0.01).invoke(FilterSpec())

        outcome = asyncio.run(run())
        assert outcome.kind is SyncOutcomeKind.FAILED
        assert "timed out" in outcome.error


    def test_refund_line_with_negative_price(self, backend):
        backend.reconcile_replies = [ReconciliationResponse(
            items=[
                RawItem(id="i1", order_number="PED-1", sku="CAM-P", quantity=1, unit_price=20),
                RawItem(id="i2", order_number="PED-1", sku="DESCONTO", quantity=1, unit_price=-5),
            ],
            orders=[RawOrder(number="PED-1", total=15)],
        )]
        outcome = asyncio.run(RemoteSyncClient(backend).invoke(FilterSpec()))

        assert outcome.kind is SyncOutcomeKind.IMMEDIATE
        assert [line.line_total for line in outcome.items] == [20, -5]

    def test_malformed_rows_become_failure(self, backend):
        bad_item = RawItem.model_construct(
            id="i1", order_id=None, order_number="PED-1", sku="A", description="",
            quantity=1.0, unit_price=1.0, line_total="not a number",
        )
        backend.reconcile_replies = [ReconciliationResponse.model_construct(
            items=[bad_item], orders=[RawOrder(number="PED-1")], started=False, error=None, message=None,
        )]
        outcome = asyncio.run(RemoteSyncClient(backend).invoke(FilterSpec()))

        assert outcome.kind is SyncOutcomeKind.FAILED
        assert "Malformed" in outcome.error
