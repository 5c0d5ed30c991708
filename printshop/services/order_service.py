"""
Order persistence.

An order header and all of its items are written in one transaction on
one session; readers never see an order without its items.
"""
import json
import logging
import uuid
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from printshop.database import transaction
from printshop.models.shop_models import Order, OrderItem
from printshop.models.shop_schemas import OrderCreate, CartItem, DeliveryInfo, Preferences

logger = logging.getLogger(__name__)


def _parse_options(raw):
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Unreadable options JSON on order item: %r", raw)
        return {}


def serialize_item(item: OrderItem) -> dict:
    return {
        "id": item.id,
        "order_id": item.order_id,
        "product_name": item.product_name,
        "product_description": item.product_description,
        "product_icon": item.product_icon,
        "quantity": item.quantity,
        "options": _parse_options(item.options),
        "created_at": item.created_at,
    }


def serialize_order(order: Order) -> dict:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "customer_phone": order.customer_phone,
        "customer_company": order.customer_company,
        "customer_address": order.customer_address,
        "delivery_type": order.delivery_type,
        "delivery_address": order.delivery_address,
        "delivery_date": order.delivery_date,
        "delivery_time": order.delivery_time,
        "special_instructions": order.special_instructions,
        "urgency": order.urgency,
        "contact_method": order.contact_method,
        "preferred_contact_time": order.preferred_contact_time,
        "status": order.status,
        "total_amount": float(order.total_amount or 0),
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "items": [serialize_item(i) for i in order.items],
    }


def build_item(order_id: str, item: CartItem) -> OrderItem:
    return OrderItem(
        order_id=order_id,
        product_name=item.name.strip(),
        product_description=item.description,
        product_icon=item.icon,
        quantity=item.quantity,
        options=json.dumps(item.options if item.options is not None else {}),
    )


def create_order(db: Session, body: OrderCreate, user_id: Optional[int] = None) -> str:
    """
    Insert the header, then every item in input order, then commit.

    The body must already be validated. The id is generated before the
    transaction starts so it can be logged even when the insert fails.
    Any database error rolls back the whole order and is re-raised.
    """
    order_id = str(uuid.uuid4())
    customer = body.customerInfo
    delivery = body.deliveryInfo or DeliveryInfo()
    prefs = body.preferences or Preferences()

    logger.info("Creating order %s with %d item(s)", order_id, len(body.items))

    try:
        with transaction(db):
            db.add(Order(
                id=order_id,
                user_id=user_id,
                customer_name=customer.name.strip(),
                customer_email=customer.email.strip(),
                customer_phone=customer.phone,
                customer_company=customer.company,
                customer_address=customer.address,
                delivery_type=delivery.deliveryType,
                delivery_address=delivery.deliveryAddress,
                delivery_date=delivery.deliveryDate,
                delivery_time=delivery.deliveryTime,
                special_instructions=delivery.specialInstructions,
                urgency=prefs.urgency,
                contact_method=prefs.contactMethod,
                preferred_contact_time=prefs.preferredContactTime,
                status="pending",
                total_amount=0,
            ))
            db.flush()

            for item in body.items:
                db.add(build_item(order_id, item))
                db.flush()
    except SQLAlchemyError:
        logger.exception("Order %s rolled back", order_id)
        raise

    logger.info("Order %s committed", order_id)
    return order_id


def get_order(db: Session, order_id: str) -> Optional[Order]:
    return (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.id == order_id)
        .first()
    )


def list_orders(db: Session, user=None, status: Optional[str] = None) -> List[Order]:
    q = db.query(Order).options(selectinload(Order.items))
    if user is not None:
        q = q.filter(or_(Order.user_id == user.id, Order.customer_email == user.email))
    if status:
        q = q.filter(Order.status == status)
    return q.order_by(Order.created_at.desc(), Order.id).all()


def update_status(db: Session, order_id: str, status: str) -> bool:
    with transaction(db):
        updated = (
            db.query(Order)
            .filter(Order.id == order_id)
            .update({Order.status: status}, synchronize_session=False)
        )
    return updated == 1


def delete_order(db: Session, order_id: str) -> bool:
    with transaction(db):
        order = get_order(db, order_id)
        if order is None:
            return False
        # items go with the order through the relationship cascade
        db.delete(order)
    logger.info("Order %s deleted", order_id)
    return True


def delete_orders_by_status(db: Session, status: str) -> int:
    with transaction(db):
        orders = list_orders(db, status=status)
        for order in orders:
            db.delete(order)
    logger.info("Deleted %d order(s) with status %s", len(orders), status)
    return len(orders)
