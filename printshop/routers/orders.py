import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from printshop.core.config import DEBUG
from printshop.core.deps import get_db, get_optional_user
from printshop.core.exceptions import ValidationError, ServiceError
from printshop.models.auth_models import User
from printshop.models.shop_schemas import OrderCreate
from printshop.services import order_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Orders"])


def validate_order(body: OrderCreate):
    if not body.items:
        raise ValidationError("Order items are required")

    for item in body.items:
        if not item.name or not item.name.strip():
            raise ValidationError("Each order item must have a name")

    customer = body.customerInfo
    if not customer or not (customer.name or "").strip() or not (customer.email or "").strip():
        raise ValidationError("Customer name and email are required")


@router.post("/orders", status_code=201)
def create_order(
    body: OrderCreate,
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    validate_order(body)

    try:
        order_id = order_service.create_order(db, body, user_id=user.id if user else None)
    except SQLAlchemyError as e:
        raise ServiceError(
            "Failed to create order. Please try again.",
            extra={"error": str(e)} if DEBUG else None,
        )

    # the order is committed from here on; a failed read-back only changes the response shape
    try:
        order = order_service.serialize_order(order_service.get_order(db, order_id))
    except SQLAlchemyError:
        logger.exception("Order %s created but could not be read back", order_id)
        order = None

    return {
        "success": True,
        "orderId": order_id,
        "order": order,
        "message": "Order placed successfully!",
    }


@router.get("/orders")
def list_orders(db: Session = Depends(get_db)):
    orders = order_service.list_orders(db)
    return {"success": True, "orders": [order_service.serialize_order(o) for o in orders]}
