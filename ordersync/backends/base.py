"""
Base order backend interface.

Defines the abstract interface every order-management backend must implement.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..errors import BackendError, ValidationError
from ..models.inventory import ProcessingRecord, Product, SkuMapping
from ..models.order import OrderLineItem
from ..models.sync import BulkResult
from .models import DebitRequest, ReconciliationRequest, ReconciliationResponse

# Maximum rows returned by the authoritative local read
LOCAL_READ_LIMIT = 5000


class OrderBackend(ABC):
    """Abstract base class for order-management backends."""

    def __init__(self, backend_name: str):
        """
        Initialize backend.

        Args:
            backend_name: Name of the backend (used in logs and audit entries)
        """
        self.backend_name = backend_name

    @abstractmethod
    async def reconcile(self, request: ReconciliationRequest) -> ReconciliationResponse:
        """
        Invoke the remote reconciliation procedure once.

        Args:
            request: Date range and statuses to reconcile

        Returns:
            Immediate items and orders, a started flag, or an error payload

        Raises:
            RemoteUnavailable: on network or transport failure
        """
        pass

    @abstractmethod
    async def read_local_items(self, limit: int = LOCAL_READ_LIMIT) -> List[OrderLineItem]:
        """
        Read the authoritative joined item+order rows.

        Args:
            limit: Maximum number of rows

        Returns:
            Order line items for the current filter context
        """
        pass

    @abstractmethod
    async def read_sku_mappings(self) -> List[SkuMapping]:
        """Read all active SKU mappings."""
        pass

    @abstractmethod
    async def read_products(self) -> List[Product]:
        """Read all inventory products."""
        pass

    @abstractmethod
    async def read_processing_history(self) -> List[ProcessingRecord]:
        """Read the processing history."""
        pass

    @abstractmethod
    async def edit_item(self, patch: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply an edit to one order line.

        Args:
            patch: Fields to change; must include ``id``

        Returns:
            Backend confirmation payload

        Raises:
            ValidationError: if the backend rejects the edit
        """
        pass

    @abstractmethod
    async def process_item(self, request: DebitRequest) -> Dict[str, Any]:
        """
        Debit inventory for one order line.

        Raises:
            ValidationError: if the backend rejects the debit
        """
        pass

    async def process_items(self, requests: List[DebitRequest]) -> BulkResult:
        """
        Debit inventory for several order lines.

        Args:
            requests: Debit payloads

        Returns:
            BulkResult with the processed count and per-line errors
        """
        processed = 0
        errors = []
        for request in requests:
            try:
                await self.process_item(request)
                processed += 1
            except (ValidationError, BackendError) as e:
                errors.append({"id": request.id, "reason": str(e)})

        return BulkResult(success=not errors, processed=processed, errors=errors)

    @abstractmethod
    async def get_order_details(self, order_number: str) -> Dict[str, Any]:
        """Fetch the full details of one order."""
        pass
