"""Order Routes — create an order from a quote, read one order, list the caller's orders.

Invariants:
    - POST returns 201 with {id, order_id, order_number, reference, status}
    - Failures surface as FiatRampError and are rendered by the global handler
    - Caller identity threaded explicitly into every workflow call
    - A malformed order id reads as 404, same as an unknown one
"""

import logging
import uuid

from fastapi import APIRouter, Depends, status

from fiatramp.api.dependencies import get_caller_identity, get_order_workflow
from fiatramp.config import get_settings
from fiatramp.core.errors import OrderNotFoundError
from fiatramp.schemas.order import (
    OrderCreate, OrderCreatedResponse, OrderListResponse, OrderResponse,
)
from fiatramp.services.order_workflow import OrderWorkflow

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix=f"/api/{get_settings().api_version}/orders", tags=["orders"],
)


@router.post(
    "", response_model=OrderCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    body: OrderCreate,
    workflow: OrderWorkflow = Depends(get_order_workflow),
    caller_id: uuid.UUID | None = Depends(get_caller_identity),
):
    """Lock the referenced quote into a new order."""
    receipt = await workflow.create_order(body.quote_id, caller_id)
    return OrderCreatedResponse.from_receipt(receipt)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    workflow: OrderWorkflow = Depends(get_order_workflow),
    caller_id: uuid.UUID | None = Depends(get_caller_identity),
):
    orders = await workflow.list_user_orders(caller_id)
    return OrderListResponse(
        orders=[OrderResponse.from_order(o) for o in orders],
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    workflow: OrderWorkflow = Depends(get_order_workflow),
    caller_id: uuid.UUID | None = Depends(get_caller_identity),
):
    """Order projection, including the reference string."""
    try:
        parsed_id = uuid.UUID(order_id)
    except ValueError:
        raise OrderNotFoundError(order_id)
    order = await workflow.get_order(parsed_id, caller_id)
    return OrderResponse.from_order(order)
