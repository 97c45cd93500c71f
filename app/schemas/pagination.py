"""Page requests and pagination metadata shared by every listing."""

from dataclasses import dataclass
from math import ceil
from typing import Any, Literal, Self

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

type SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True, slots=True)
class PageRequest:
    """
    A normalized page request.

    Parameters
    ----------
    page : int
        1-based page number.
    limit : int
        Page size, already clamped to the endpoint maximum.
    search : str
        Trimmed, lower-cased free-text term (empty when absent).
    sort_field : str
        An allow-listed field name.
    sort_order : SortOrder
        ``"asc"`` or ``"desc"``.
    """

    page: int = 1
    limit: int = 10
    search: str = ""
    sort_field: str = "created_at"
    sort_order: SortOrder = "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_query(
        cls,
        page: int | None = None,
        limit: int | None = None,
        search: str | None = None,
        sort: str | None = None,
        order: str | None = None,
        *,
        default_limit: int,
        max_limit: int,
        allowed_sorts: tuple[str, ...] = (),
        default_sort: str = "created_at",
    ) -> Self:
        """
        Build a request from raw query values, never rejecting them.

        Pages below 1 become 1, limits are clamped to ``[1, max_limit]`` (a
        missing or zero limit means ``default_limit``) and a sort field
        outside ``allowed_sorts`` falls back to ``default_sort`` descending.
        """
        sort_field, sort_order = default_sort, "desc"
        if sort and sort in allowed_sorts:
            sort_field = sort
            sort_order = "asc" if (order or "").lower() == "asc" else "desc"
        return cls(
            page=max(page or 1, 1),
            limit=min(max(limit, 1), max_limit) if limit else default_limit,
            search=(search or "").strip().lower(),
            sort_field=sort_field,
            sort_order=sort_order,
        )

    def slice[T](self, items: list[T]) -> list[T]:
        """Cut this page out of an already filtered, in-memory list."""
        return items[self.offset : self.offset + self.limit]


class Pagination(BaseModel):
    """Pagination block of a listing response, serialized in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_page: int
    total_pages: int
    total: int
    limit: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> Self:
        total_pages = max(1, ceil(total / limit))
        return cls(
            current_page=page,
            total_pages=total_pages,
            total=total,
            limit=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )

    @classmethod
    def for_request(cls, request: PageRequest, total: int) -> Self:
        return cls.build(request.page, request.limit, total)

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
