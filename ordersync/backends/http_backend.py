"""
HTTP order backend.

Talks to the order-management REST API with ``requests``. Blocking calls run
in a worker thread so the event loop stays responsive.
"""

import asyncio
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import BackendError, RemoteUnavailable, ValidationError
from ..models.inventory import ProcessingRecord, Product, SkuMapping
from ..models.order import OrderLineItem
from ..utils import get_logger
from .base import LOCAL_READ_LIMIT, OrderBackend
from .models import DebitRequest, ReconciliationRequest, ReconciliationResponse

# Reads are safe to retry; writes are never retried
READ_MAX_RETRIES = 2
READ_BACKOFF_FACTOR = 0.5


def _build_session(api_key: Optional[str]) -> requests.Session:
    """Create a session with retry on idempotent reads and auth headers."""
    session = requests.Session()
    retry_strategy = Retry(
        total=READ_MAX_RETRIES,
        backoff_factor=READ_BACKOFF_FACTOR,
        status_forcelist=[502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False
    )
    adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=4, pool_maxsize=8)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.headers.update({"Accept": "application/json"})
    if api_key:
        session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "apikey": api_key,
        })
    return session


class HttpOrderBackend(OrderBackend):
    """Order backend reached over HTTP."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 15.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize HTTP backend.

        Args:
            base_url: Root URL of the order API
            api_key: API key sent as bearer token
            timeout_seconds: Per-request timeout
            session: Preconfigured session (mainly for testing)
        """
        super().__init__("http")
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or _build_session(api_key)
        self.logger = get_logger("http_backend")

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Perform one blocking HTTP request.

        Raises:
            RemoteUnavailable: network failure, timeout or 5xx
            ValidationError: 4xx
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, timeout=self.timeout_seconds, **kwargs)
        except requests.RequestException as e:
            self.logger.warning(f"{method} {url} failed: {e}")
            raise RemoteUnavailable(str(e)) from e

        if response.status_code >= 500:
            raise RemoteUnavailable(f"{method} {url} returned {response.status_code}")
        if response.status_code >= 400:
            raise ValidationError(f"{method} {url} returned {response.status_code}: {response.text[:200]}")
        return response

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Invalid JSON from {response.url}") from e

    async def _call(self, method: str, path: str, **kwargs) -> requests.Response:
        return await asyncio.to_thread(self._request, method, path, **kwargs)

    async def reconcile(self, request: ReconciliationRequest) -> ReconciliationResponse:
        """Invoke the reconciliation function; HTTP 202 means the job was started."""
        try:
            response = await self._call("POST", "functions/v1/sync-orders", json=request.to_payload())
        except ValidationError as e:
            return ReconciliationResponse(error=str(e))

        if response.status_code == 202:
            return ReconciliationResponse(started=True)
        return ReconciliationResponse.model_validate(self._json(response))

    async def read_local_items(self, limit: int = LOCAL_READ_LIMIT) -> List[OrderLineItem]:
        response = await self._call("GET", "rest/v1/order-items", params={"limit": limit})
        rows = self._json(response) or []
        return [OrderLineItem.model_validate(row) for row in rows[:limit]]

    async def read_sku_mappings(self) -> List[SkuMapping]:
        response = await self._call("GET", "rest/v1/sku-mappings", params={"active": "true"})
        return [SkuMapping.model_validate(row) for row in self._json(response) or []]

    async def read_products(self) -> List[Product]:
        response = await self._call("GET", "rest/v1/products")
        return [Product.model_validate(row) for row in self._json(response) or []]

    async def read_processing_history(self) -> List[ProcessingRecord]:
        response = await self._call("GET", "rest/v1/processing-history")
        return [ProcessingRecord.model_validate(row) for row in self._json(response) or []]

    async def edit_item(self, patch: Dict[str, Any]) -> Dict[str, Any]:
        item_id = patch.get("id")
        if not item_id:
            raise ValidationError("Edit patch must include the item id")
        body = {key: value for key, value in patch.items() if key != "id"}
        response = await self._call("PATCH", f"rest/v1/order-items/{item_id}", json=body)
        return self._json(response) or {}

    async def process_item(self, request: DebitRequest) -> Dict[str, Any]:
        response = await self._call("POST", "functions/v1/debit-stock", json={"items": [request.model_dump()]})
        return self._json(response) or {}

    async def get_order_details(self, order_number: str) -> Dict[str, Any]:
        response = await self._call("GET", f"functions/v1/order-details/{order_number}")
        return self._json(response) or {}
