"""
Canonical order status vocabulary.

The backend stores statuses as lowercase, accent-free strings. The UI shows
title-cased labels. ``STATUS_LABELS`` is the single table translating
between the two; filtering, metrics and display all go through it.
"""

import unicodedata
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional


class OrderStatus(str, Enum):
    """Canonical (stored) order statuses."""
    EM_ABERTO = "em aberto"
    APROVADO = "aprovado"
    PREPARANDO_ENVIO = "preparando envio"
    EM_SEPARACAO = "em separacao"
    FATURADO = "faturado"
    PRONTO_PARA_ENVIO = "pronto para envio"
    ENVIADO = "enviado"
    ENTREGUE = "entregue"
    NAO_ENTREGUE = "nao entregue"
    CANCELADO = "cancelado"


STATUS_LABELS: Dict[OrderStatus, str] = {
    OrderStatus.EM_ABERTO: "Em Aberto",
    OrderStatus.APROVADO: "Aprovado",
    OrderStatus.PREPARANDO_ENVIO: "Preparando Envio",
    OrderStatus.EM_SEPARACAO: "Em Separação",
    OrderStatus.FATURADO: "Faturado",
    OrderStatus.PRONTO_PARA_ENVIO: "Pronto para Envio",
    OrderStatus.ENVIADO: "Enviado",
    OrderStatus.ENTREGUE: "Entregue",
    OrderStatus.NAO_ENTREGUE: "Não Entregue",
    OrderStatus.CANCELADO: "Cancelado",
}

# Metric buckets
PENDING_STATUSES: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.EM_ABERTO,
    OrderStatus.APROVADO,
    OrderStatus.PREPARANDO_ENVIO,
})
APPROVED_STATUSES: FrozenSet[OrderStatus] = frozenset({OrderStatus.APROVADO})
SHIPPED_STATUSES: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.ENVIADO,
    OrderStatus.ENTREGUE,
})
DELIVERED_STATUSES: FrozenSet[OrderStatus] = frozenset({OrderStatus.ENTREGUE})

# Statuses in which stock may be debited for an order line
DEBITABLE_STATUSES: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.APROVADO,
    OrderStatus.PREPARANDO_ENVIO,
    OrderStatus.FATURADO,
    OrderStatus.PRONTO_PARA_ENVIO,
    OrderStatus.EM_SEPARACAO,
    OrderStatus.ENTREGUE,
})


def _fold(value: str) -> str:
    """Lowercase, trim and strip accents."""
    decomposed = unicodedata.normalize("NFKD", value.strip().lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


_BY_FOLDED: Dict[str, OrderStatus] = {}
for _status, _label in STATUS_LABELS.items():
    _BY_FOLDED[_fold(_status.value)] = _status
    _BY_FOLDED[_fold(_label)] = _status


def canonical_status(value: Optional[str]) -> str:
    """
    Map a UI label or stored value to its canonical stored value.

    Unknown statuses are folded (lowercase, no accents) and returned as-is
    so they still compare case-insensitively.
    """
    if not value:
        return ""
    folded = _fold(value)
    status = _BY_FOLDED.get(folded)
    return status.value if status else folded


def status_label(value: Optional[str]) -> str:
    """Map a stored status to its UI label; unknown values pass through."""
    if not value:
        return ""
    status = _BY_FOLDED.get(_fold(value))
    return STATUS_LABELS[status] if status else value


def status_in(value: Optional[str], statuses: Iterable[str]) -> bool:
    """Case-insensitive membership of ``value`` in ``statuses`` via the canonical table."""
    canonical = canonical_status(value)
    return any(canonical == canonical_status(s) for s in statuses)
