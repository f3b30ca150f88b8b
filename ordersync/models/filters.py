"""
Filters for the order line view.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.dates import current_month_range, to_iso_date


class FilterSpec(BaseModel):
    """User filters applied locally to the cached order lines."""

    search: str = ""
    date_from: Optional[str] = None  # YYYY-MM-DD, inclusive
    date_to: Optional[str] = None  # YYYY-MM-DD, inclusive
    statuses: List[str] = Field(default_factory=list)

    @field_validator('date_from', 'date_to', mode='before')
    @classmethod
    def normalize_date(cls, v: Any) -> Optional[str]:
        """Accept YYYY-MM-DD or DD/MM/YYYY."""
        return to_iso_date(v)

    @field_validator('search', mode='before')
    @classmethod
    def strip_search(cls, v: Any) -> str:
        return (v or "").strip()

    @classmethod
    def default(cls, today: Optional[date] = None) -> "FilterSpec":
        """Current calendar month, every status, no search."""
        first, last = current_month_range(today)
        return cls(date_from=first, date_to=last)

    def merged(self, partial: Dict[str, Any]) -> "FilterSpec":
        """Return new filters with ``partial`` applied on top of this one."""
        data = self.model_dump()
        data.update(partial)
        return FilterSpec.model_validate(data)
