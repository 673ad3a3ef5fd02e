"""
Order API Endpoints

    - GET    /api/orders                            List all orders
    - GET    /api/orders/user/{user_id}             Orders of a user id
    - GET    /api/orders/firebase/{firebase_uid}    Paginated order history
    - GET    /api/orders/{order_id}                 Single order
    - POST   /api/orders                            Checkout
    - POST   /api/orders/{order_id}/auto-update-status
    - PATCH  /api/orders/{order_id}                 Manual status change
    - DELETE /api/orders/{order_id}
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from app.schemas import (
    MessageResponse,
    OrderCreate,
    OrderPage,
    OrderResponse,
    OrderStatusUpdate,
    Pagination,
)
from app.services.orders import OrderService, get_order_service, page_count

router = APIRouter(prefix="/api/orders", tags=["Orders"])

ERROR_RESPONSES = {
    400: {"description": "Validation Error"},
    404: {"description": "Order not found"},
}


@router.get("", response_model=List[OrderResponse], summary="List Orders")
async def list_orders(
    service: OrderService = Depends(get_order_service),
) -> List[OrderResponse]:
    """All orders, newest first."""
    orders = await service.list_all()
    return [OrderResponse.model_validate(order) for order in orders]


@router.get("/user/{user_id}", response_model=List[OrderResponse])
async def list_user_orders(
    user_id: str,
    service: OrderService = Depends(get_order_service),
) -> List[OrderResponse]:
    orders = await service.list_by_user(user_id)
    return [OrderResponse.model_validate(order) for order in orders]


@router.get(
    "/firebase/{firebase_uid}",
    response_model=OrderPage,
    summary="Order History",
)
async def list_firebase_user_orders(
    firebase_uid: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: OrderService = Depends(get_order_service),
) -> OrderPage:
    """Paginated order history of a signed-in user, newest first."""
    orders, total = await service.list_by_firebase_uid(firebase_uid, page, limit)
    return OrderPage(
        orders=[OrderResponse.model_validate(order) for order in orders],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=page_count(total, limit),
        ),
    )


@router.get("/{order_id}", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Get a specific order by ID."""
    order = await service.get(order_id)
    return OrderResponse.model_validate(order)


@router.post(
    "",
    response_model=OrderResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
    summary="Checkout",
)
async def create_order(
    order_data: OrderCreate,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """
    Place a new order.

    The server assigns the id, order number, ``createdAt`` and the initial
    ``processing`` status. The submitted total is stored as is.
    """
    order = await service.create(order_data)
    return OrderResponse.model_validate(order)


@router.post(
    "/{order_id}/auto-update-status",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    summary="Auto-advance Status",
)
async def auto_update_order_status(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """
    Advance an in-progress order based on the time since checkout.

    processing -> preparing after 1 minute, preparing -> outForDelivery after
    5 minutes, outForDelivery -> delivered after 15 minutes.
    """
    order = await service.auto_update_status(order_id)
    return OrderResponse.model_validate(order)


@router.patch(
    "/{order_id}",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    summary="Set Status",
)
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Set the status of an order to any of the known values."""
    order = await service.update_status(order_id, payload.status)
    return OrderResponse.model_validate(order)


@router.delete("/{order_id}", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def delete_order(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> MessageResponse:
    await service.delete(order_id)
    return MessageResponse(message="Order deleted successfully")
