# routes/order.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.config import ORDERS_DEFAULT_LIMIT
from storefront.database.database import get_db
from storefront.database.dependencies import get_admin, get_current_customer_email
from storefront.models.schemas.base import ErrorResponse
from storefront.models.schemas.order import (
    OrderCreate,
    OrderCreatedResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from storefront.services.order import OrderService
from storefront.services.status import OrderStatusService


ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}

router = APIRouter(prefix="/orders", tags=["orders"], responses=ERROR_RESPONSES)
admin_router = APIRouter(prefix="/admin", tags=["admin"], responses=ERROR_RESPONSES)


@router.post("", response_model=OrderCreatedResponse, status_code=201)
async def create_order(
    data: OrderCreate,
    db: Session = Depends(get_db)
):
    """Create a new order with its items."""
    service = OrderService(db)
    order = await service.create(data)
    return OrderCreatedResponse(order=OrderResponse.model_validate(order))


@router.get("", response_model=List[OrderResponse])
async def list_my_orders(
    limit: int = ORDERS_DEFAULT_LIMIT,
    offset: int = 0,
    email: str = Depends(get_current_customer_email),
    db: Session = Depends(get_db)
):
    """List the authenticated customer's orders, newest first."""
    service = OrderService(db)
    orders = await service.list_orders(customer_email=email, limit=limit, offset=offset)
    return [OrderResponse.model_validate(order) for order in orders]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    db: Session = Depends(get_db)
):
    """Get a specific order by ID."""
    service = OrderService(db)
    order = await service.get(order_id)
    return OrderResponse.model_validate(order)


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    _admin: str = Depends(get_admin),
    db: Session = Depends(get_db)
):
    """Move an order to a new status (admin only)."""
    service = OrderStatusService(db)
    order = await service.update_status(order_id, data.status, data.notes)
    return OrderResponse.model_validate(order)


@admin_router.get("/orders", response_model=List[OrderResponse])
async def list_orders(
    status: Optional[str] = None,
    customer_email: Optional[str] = Query(default=None, alias="customerEmail"),
    limit: int = ORDERS_DEFAULT_LIMIT,
    offset: int = 0,
    _admin: str = Depends(get_admin),
    db: Session = Depends(get_db)
):
    """List all orders, optionally filtered by status or customer email."""
    service = OrderService(db)
    orders = await service.list_orders(
        customer_email=customer_email,
        status=status,
        limit=limit,
        offset=offset,
    )
    return [OrderResponse.model_validate(order) for order in orders]
