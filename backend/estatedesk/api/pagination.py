"""
List/filter/paginate contract shared by every "list X" route.

    params: ListQuery
    ...
    items, pagination = await paginate(db, stmt, params, CONTACT_SORT_FIELDS)

Sorting is restricted to a per-resource allow-list keyed by the camelCase
field name clients send in `sortBy`; anything else is rejected.
"""

import math
from dataclasses import dataclass
from typing import Annotated, Any, Literal

from fastapi import Depends, Query
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from estatedesk.config import get_settings
from estatedesk.errors import BadRequestError
from estatedesk.schemas.base import Pagination

settings = get_settings()


@dataclass(frozen=True)
class ListParams:
    page: int
    limit: int
    sort_by: str
    order: Literal["asc", "desc"]

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def list_params(
    page: Annotated[int, Query(ge=1)] = settings.pagination_default_page,
    limit: Annotated[int, Query(ge=1, le=settings.pagination_max_limit)] = settings.pagination_default_limit,
    sort_by: Annotated[str, Query(alias="sortBy")] = "createdAt",
    order: Literal["asc", "desc"] = "desc",
) -> ListParams:
    return ListParams(page=page, limit=limit, sort_by=sort_by, order=order)


ListQuery = Annotated[ListParams, Depends(list_params)]


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit)


async def paginate(
    db: AsyncSession,
    stmt: Select,
    params: ListParams,
    sortable: dict[str, Any],
) -> tuple[list[Any], Pagination]:
    """
    Count the rows matched by stmt, then fetch one ordered page of them.

    `sortable` maps allowed sortBy values to columns. The primary key of the
    selected entity breaks ties so pages do not overlap.
    """
    column = sortable.get(params.sort_by)
    if column is None:
        allowed = ", ".join(sorted(sortable))
        raise BadRequestError(f"Cannot sort by '{params.sort_by}'. Allowed: {allowed}")

    total = await db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0

    items: list[Any] = []
    # Pages past the end are empty without a query, so huge page numbers never reach OFFSET
    if params.offset < total:
        entity = stmt.column_descriptions[0]["entity"]
        direction = column.asc() if params.order == "asc" else column.desc()
        page_stmt = stmt.order_by(direction, entity.id).offset(params.offset).limit(params.limit)
        result = await db.execute(page_stmt)
        items = list(result.scalars().all())

    return items, Pagination(
        total=total,
        page=params.page,
        limit=params.limit,
        pages=page_count(total, params.limit),
    )
