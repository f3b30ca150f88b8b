"""
Client for the remote reconciliation procedure.

Calls the procedure once and classifies the answer as an immediate result,
a started background job, or a failure.
"""

import asyncio

from ..backends.base import OrderBackend
from ..backends.models import ReconciliationRequest, ReconciliationResponse, join_line_items
from ..errors import BackendError
from ..models import FilterSpec, SyncOutcome
from ..utils import get_logger


class RemoteSyncClient:
    """Invokes reconciliation with a short timeout."""

    def __init__(self, backend: OrderBackend, timeout_seconds: float = 6.0) -> None:
        """
        Initialize remote sync client.

        Args:
            backend: Order backend
            timeout_seconds: Time allowed for the reconciliation call itself
        """
        self.backend = backend
        self.timeout_seconds = timeout_seconds
        self.logger = get_logger("remote_sync")

    def classify(self, response: ReconciliationResponse) -> SyncOutcome:
        """Turn a raw response into exactly one outcome."""
        if response.error:
            return SyncOutcome.failed(response.error)
        if response.items is not None and response.orders is not None:
            return SyncOutcome.immediate(join_line_items(response.items, response.orders))
        if response.started:
            return SyncOutcome.started()
        return SyncOutcome.failed(response.message or "Unrecognized reconciliation response")

    async def invoke(self, filters: FilterSpec) -> SyncOutcome:
        """
        Call the reconciliation procedure for the given filters.

        Never raises; transport problems and malformed payloads become a
        FAILED outcome.
        """
        request = ReconciliationRequest.from_filters(filters)
        self.logger.info(f"Invoking reconciliation {request.to_payload()}")

        try:
            response = await asyncio.wait_for(self.backend.reconcile(request), self.timeout_seconds)
        except asyncio.TimeoutError:
            self.logger.warning(f"Reconciliation timed out after {self.timeout_seconds}s")
            return SyncOutcome.failed(f"Reconciliation timed out after {self.timeout_seconds}s")
        except BackendError as e:
            self.logger.warning(f"Reconciliation failed: {e}")
            return SyncOutcome.failed(str(e))

        try:
            outcome = self.classify(response)
        except ValueError as e:
            # pydantic validation errors are ValueErrors
            self.logger.warning(f"Malformed reconciliation payload: {e}")
            return SyncOutcome.failed(f"Malformed reconciliation payload: {e}")

        self.logger.info(f"Reconciliation outcome: {outcome.kind.value}")
        return outcome
