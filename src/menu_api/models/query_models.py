"""List query models.

A ``ListQuery`` is the parsed form of the query string accepted by listing
endpoints: filter conditions plus projection, sort order and page window.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_SORT = "-created_at"


class FilterOperator(str, Enum):
    """Comparison operators recognized in ``field[op]`` query keys."""

    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"


@dataclass(frozen=True)
class FilterCondition:
    """A single ``field <operator> value`` comparison."""

    field: str
    operator: FilterOperator
    value: Any


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass
class ListQuery:
    """Parsed listing request.

    Attributes:
        filters: Comparisons every returned item must satisfy
        fields: Projected field names, None for all fields
        sort: Ordered sort keys, highest priority first
        page: 1-based page number
        limit: Page size
    """

    filters: list[FilterCondition] = field(default_factory=list)
    fields: list[str] | None = None
    sort: list[SortKey] = field(default_factory=list)
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        """Number of matching items before the page window."""
        return (self.page - 1) * self.limit


class PageLink(BaseModel):
    page: int
    limit: int


class Pagination(BaseModel):
    """Navigation descriptors for a page of results."""

    next: PageLink | None = None
    prev: PageLink | None = None

    def to_response(self) -> dict[str, Any]:
        """Serialize, omitting absent links."""
        return self.model_dump(exclude_none=True)
