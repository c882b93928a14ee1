"""Order listing endpoints (read-only)."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.exceptions import NotFoundError
from core.filters import OrderFilter
from core.pagination import PageRequest
from core.repositories import OrderRepository
from core.validators import (
    validate_date_range,
    validate_datetime,
    validate_platform,
)
from ._deps import limiter, ok, get_orders

router = APIRouter()


@router.get("/orders")
@limiter.limit("30/minute")
async def list_orders(
    request: Request,
    platform: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    orders: OrderRepository = Depends(get_orders),
):
    """
    Page through orders, newest conversion first.

    The summary block aggregates the whole filtered set, not just the page.
    """
    paging = PageRequest.from_query(page, limit)
    start = validate_datetime(startDate, "startDate")
    end = validate_datetime(endDate, "endDate", end_of_day=True)
    validate_date_range(start, end)

    filters = OrderFilter(
        platform=validate_platform(platform),
        status=(status or "").strip() or None,
        start=start,
        end=end,
    )
    rows = await orders.find_many(filters, offset=paging.offset, limit=paging.limit)
    total = await orders.count(filters)
    totals = await orders.aggregate(filters)

    return ok({
        "orders": [order.to_dict() for order in rows],
        "pagination": paging.meta(total),
        "summary": totals.to_summary(),
    })


@router.get("/orders/{order_id}")
@limiter.limit("60/minute")
async def get_order(
    request: Request,
    order_id: str,
    orders: OrderRepository = Depends(get_orders),
):
    order = await orders.get(order_id)
    if order is None:
        raise NotFoundError("Order", order_id)
    return ok(order.to_dict())
