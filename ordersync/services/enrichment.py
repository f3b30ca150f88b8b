"""
Enrichment of order lines with mapping, inventory and processing history.

The three auxiliary tables are read once per pass and joined in memory.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..backends.base import OrderBackend
from ..models import EnrichedItem, OrderLineItem, ProcessingRecord, Product, SkuMapping
from ..utils import get_logger


@dataclass
class AuxiliaryTables:
    """In-memory lookup tables for one enrichment pass."""

    mappings: Dict[str, SkuMapping] = field(default_factory=dict)
    products: Dict[str, Product] = field(default_factory=dict)
    processing: Dict[Tuple[str, str], ProcessingRecord] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        mappings: Sequence[SkuMapping],
        products: Sequence[Product],
        records: Sequence[ProcessingRecord]
    ) -> "AuxiliaryTables":
        """
        Index the raw reads.

        Inactive mappings are skipped. When several records exist for the
        same (order number, SKU), a debited record wins.
        """
        processing: Dict[Tuple[str, str], ProcessingRecord] = {}
        for record in records:
            key = (record.order_number, record.sku)
            existing = processing.get(key)
            if existing is None or (record.is_debited and not existing.is_debited):
                processing[key] = record

        return cls(
            mappings={m.order_sku: m for m in mappings if m.active},
            products={p.sku: p for p in products},
            processing=processing,
        )


def enrich_item(item: OrderLineItem, tables: AuxiliaryTables) -> EnrichedItem:
    """
    Join one line with the auxiliary tables.

    Kit SKU and multiplier come from the processing record when present,
    then from the live mapping, then default to the line SKU and 1.
    """
    mapping = tables.mappings.get(item.sku)
    record = tables.processing.get((item.order_number, item.sku))

    kit_sku = (
        (record.kit_sku if record else None)
        or (mapping.kit_sku if mapping else None)
        or item.sku
        or None
    )
    if record and record.multiplier:
        multiplier = record.multiplier
    elif mapping:
        multiplier = mapping.multiplier
    else:
        multiplier = 1.0

    product = tables.products.get(kit_sku) if kit_sku else None

    data = item.model_dump(exclude=set(EnrichedItem.model_fields) - set(OrderLineItem.model_fields))
    return EnrichedItem(
        **data,
        kit_sku=kit_sku,
        kit_multiplier=multiplier,
        mapped_sku=kit_sku if kit_sku and kit_sku != item.sku else None,
        has_mapping=mapping is not None or bool(record and record.kit_sku),
        product_name=product.name if product else None,
        product_category=product.category if product else None,
        stock_on_hand=product.quantity_on_hand if product else None,
        already_processed=bool(record and record.is_debited),
    )


def pass_through(items: Sequence[OrderLineItem]) -> List[EnrichedItem]:
    """
    Return items without joining any table.

    Items that were already enriched keep their previous enrichment.
    """
    result = []
    for item in items:
        if isinstance(item, EnrichedItem):
            result.append(item)
        else:
            result.append(EnrichedItem(**item.model_dump(), enriched=False))
    return result


class EnrichmentPipeline:
    """Loads the auxiliary tables from the backend and applies them to order lines."""

    def __init__(self, backend: OrderBackend) -> None:
        """
        Initialize enrichment pipeline.

        Args:
            backend: Order backend serving the auxiliary reads
        """
        self.backend = backend
        self.logger = get_logger("enrichment")
        self.tables: Optional[AuxiliaryTables] = None
        self.degraded = False

    async def load_tables(self) -> Optional[AuxiliaryTables]:
        """
        Read mappings, products and processing history, one request each.

        Returns:
            The loaded tables, or None when any read failed
        """
        try:
            mappings, products, records = await asyncio.gather(
                self.backend.read_sku_mappings(),
                self.backend.read_products(),
                self.backend.read_processing_history(),
            )
        except Exception as e:
            self.degraded = True
            self.logger.warning(f"Enrichment degraded, auxiliary read failed: {e}")
            return None

        self.tables = AuxiliaryTables.build(mappings, products, records)
        self.degraded = False
        self.logger.debug(
            f"Loaded {len(self.tables.mappings)} mappings, {len(self.tables.products)} products, "
            f"{len(self.tables.processing)} processing records"
        )
        return self.tables

    def apply(self, items: Sequence[OrderLineItem]) -> List[EnrichedItem]:
        """Enrich with the last loaded tables; pass through when none are loaded."""
        if self.tables is None:
            return pass_through(items)
        return [enrich_item(item, self.tables) for item in items]

    async def enrich(self, items: Sequence[OrderLineItem]) -> List[EnrichedItem]:
        """
        Reload the auxiliary tables and enrich ``items``.

        A failed read degrades to pass-through instead of raising.
        """
        tables = await self.load_tables()
        if tables is None:
            return pass_through(items)
        return [enrich_item(item, tables) for item in items]
