"""
Test configuration and fixtures for pytest tests.

Provides an isolated working directory (config, logs and database live under
``tmp_path``) and an in-memory order backend that counts its calls.
"""

import asyncio
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence, Union

import pytest

from ordersync.backends.base import LOCAL_READ_LIMIT, OrderBackend
from ordersync.backends.models import DebitRequest, ReconciliationRequest, ReconciliationResponse
from ordersync.config import reset_config_manager
from ordersync.database import create_database_manager
from ordersync.errors import ValidationError
from ordersync.models import OrderLineItem, ProcessingRecord, Product, SkuMapping
from ordersync.utils import reset_loggers


@pytest.fixture(autouse=True)
def isolated_workdir(tmp_path, monkeypatch):
    """Run every test in its own directory with fresh global config and loggers."""
    monkeypatch.chdir(tmp_path)
    reset_loggers()
    reset_config_manager()
    yield tmp_path
    reset_loggers()
    reset_config_manager()


@pytest.fixture
def db_manager(tmp_path):
    return create_database_manager(str(tmp_path / "data" / "test.db"))


def make_item(number: str = "PED-1000", sku: str = "CAM-P", **overrides) -> OrderLineItem:
    """Build a joined order line with sensible defaults."""
    data: Dict[str, Any] = {
        "id": f"{number}-{sku}",
        "order_id": number,
        "order_number": number,
        "sku": sku,
        "description": "Camiseta",
        "quantity": 1,
        "unit_price": 10.0,
        "line_total": 10.0,
        "customer_name": "Cliente",
        "order_date": "2025-03-10",
        "status": "aprovado",
        "order_total": 10.0,
    }
    data.update(overrides)
    return OrderLineItem(**data)


def make_items(count: int, prefix: str = "PED-2", start: int = 0) -> List[OrderLineItem]:
    return [make_item(f"{prefix}{start + i:03d}", sku=f"SKU-{i}") for i in range(count)]


class Gated:
    """Reconciliation response released only once ``event`` is set."""

    def __init__(self, event: asyncio.Event, response: Union[ReconciliationResponse, Exception]):
        self.event = event
        self.response = response


Reply = Union[ReconciliationResponse, Exception, Gated]


class FakeBackend(OrderBackend):
    """
    In-memory order backend.

    ``reconcile_replies`` and ``local_reads`` are consumed in order; the last
    entry repeats once the others are used up.
    """

    def __init__(self) -> None:
        super().__init__("fake")
        self.calls: Counter = Counter()
        self.reconcile_replies: List[Reply] = [ReconciliationResponse(started=True)]
        self.local_reads: List[Union[List[OrderLineItem], Exception]] = [[]]
        self.mappings: List[SkuMapping] = []
        self.products: List[Product] = []
        self.records: List[ProcessingRecord] = []
        self.aux_error: Optional[Exception] = None
        self.write_error: Optional[Exception] = None
        self.requests: List[ReconciliationRequest] = []
        self.debits: List[DebitRequest] = []
        self.edits: List[Dict[str, Any]] = []

    @staticmethod
    def _next(queue: Sequence):
        return queue.pop(0) if len(queue) > 1 else queue[0]

    async def reconcile(self, request: ReconciliationRequest) -> ReconciliationResponse:
        self.calls["reconcile"] += 1
        self.requests.append(request)
        reply = self._next(self.reconcile_replies)
        if isinstance(reply, Gated):
            await reply.event.wait()
            reply = reply.response
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def read_local_items(self, limit: int = LOCAL_READ_LIMIT) -> List[OrderLineItem]:
        self.calls["read_local_items"] += 1
        result = self._next(self.local_reads)
        if isinstance(result, Exception):
            raise result
        return list(result)[:limit]

    async def read_sku_mappings(self) -> List[SkuMapping]:
        self.calls["read_sku_mappings"] += 1
        if self.aux_error:
            raise self.aux_error
        return list(self.mappings)

    async def read_products(self) -> List[Product]:
        self.calls["read_products"] += 1
        return list(self.products)

    async def read_processing_history(self) -> List[ProcessingRecord]:
        self.calls["read_processing_history"] += 1
        return list(self.records)

    async def edit_item(self, patch: Dict[str, Any]) -> Dict[str, Any]:
        self.calls["edit_item"] += 1
        if self.write_error:
            raise self.write_error
        self.edits.append(patch)
        return {"ok": True}

    async def process_item(self, request: DebitRequest) -> Dict[str, Any]:
        self.calls["process_item"] += 1
        if self.write_error:
            raise self.write_error
        if request.order_number == "REJECT":
            raise ValidationError("rejected by backend")
        self.debits.append(request)
        return {"ok": True}

    async def get_order_details(self, order_number: str) -> Dict[str, Any]:
        self.calls["get_order_details"] += 1
        return {"number": order_number}

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


class FakeTimer:
    """Fake sleep and monotonic clock advancing together."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def clock(self) -> float:
        return self.now


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def timer():
    return FakeTimer()
