import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from printshop.core.deps import get_db, require_admin
from printshop.core.exceptions import ValidationError, AuthenticationError, NotFoundError
from printshop.core.security import SessionClaims, create_admin_token
from printshop.database import transaction
from printshop.models.auth_models import User, ROLE_ADMIN, USER_STATUSES
from printshop.models.shop_models import ContactMessage, ORDER_STATUSES, CONTACT_STATUSES
from printshop.models.shop_schemas import AdminLoginBody, StatusUpdate
from printshop.routers.auth import authenticate
from printshop.services import order_service, user_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])


# ----------------- LOGIN -----------------
@router.post("/login")
def admin_login(body: AdminLoginBody, db: Session = Depends(get_db)):

    try:
        user = authenticate(db, body.email.strip(), body.password)
    except AuthenticationError:
        raise AuthenticationError("Invalid admin credentials")

    if user.role != ROLE_ADMIN:
        raise AuthenticationError("Invalid admin credentials")

    logger.info("Admin login successful: %s", user.email)

    return {
        "success": True,
        "message": "Admin login successful",
        "token": create_admin_token(user),
        "user": {"id": user.id, "name": user.name, "email": user.email, "role": user.role},
    }


# ----------------- ORDERS -----------------
@router.get("/orders")
def list_orders(status: Optional[str] = None, db: Session = Depends(get_db), admin: SessionClaims = Depends(require_admin)):
    orders = order_service.list_orders(db, status=status)
    logger.info("Admin %s fetched %d order(s)", admin.email, len(orders))
    return {"success": True, "orders": [order_service.serialize_order(o) for o in orders]}


@router.get("/orders/{order_id}")
def get_order(order_id: str, db: Session = Depends(get_db), admin: SessionClaims = Depends(require_admin)):
    order = order_service.get_order(db, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return {"success": True, "order": order_service.serialize_order(order)}


@router.put("/orders/{order_id}/status")
def update_order_status(
    order_id: str,
    body: StatusUpdate,
    db: Session = Depends(get_db),
    admin: SessionClaims = Depends(require_admin),
):
    if body.status not in ORDER_STATUSES:
        raise ValidationError("Invalid status")

    if not order_service.update_status(db, order_id, body.status):
        raise NotFoundError("Order not found")

    logger.info("Admin %s set order %s to %s", admin.email, order_id, body.status)
    return {"success": True, "message": "Order status updated successfully"}


@router.delete("/orders/status/{status}")
def delete_orders_by_status(status: str, db: Session = Depends(get_db), admin: SessionClaims = Depends(require_admin)):
    if status not in ORDER_STATUSES:
        raise ValidationError("Invalid status")

    deleted = order_service.delete_orders_by_status(db, status)
    if not deleted:
        return {"success": True, "message": "No orders found with this status", "deletedCount": 0}

    return {
        "success": True,
        "message": f"Deleted {deleted} orders with status: {status}",
        "deletedCount": deleted,
    }


@router.delete("/orders/{order_id}")
def delete_order(order_id: str, db: Session = Depends(get_db), admin: SessionClaims = Depends(require_admin)):
    if not order_service.delete_order(db, order_id):
        raise NotFoundError("Order not found")
    return {"success": True, "message": "Order deleted successfully"}


# ----------------- USERS -----------------
@router.get("/users")
def list_users(role: Optional[str] = None, db: Session = Depends(get_db), admin: SessionClaims = Depends(require_admin)):
    q = db.query(User)
    if role:
        q = q.filter(User.role == role)
    users = q.order_by(User.created_at.desc(), User.id.desc()).all()
    return {"success": True, "users": [user_service.serialize_user(u) for u in users]}


@router.put("/users/{user_id}/status")
def update_user_status(
    user_id: int,
    body: StatusUpdate,
    db: Session = Depends(get_db),
    admin: SessionClaims = Depends(require_admin),
):
    if body.status not in USER_STATUSES:
        raise ValidationError("Invalid status")

    if not user_service.update_status(db, user_id, body.status):
        raise NotFoundError("User not found")

    return {"success": True, "message": "User status updated successfully"}


@router.delete("/users/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), admin: SessionClaims = Depends(require_admin)):
    if not user_service.delete_user(db, user_id):
        raise NotFoundError("User not found")
    return {"success": True, "message": "User and all related data deleted successfully"}


# ----------------- CONTACTS -----------------
@router.get("/contacts")
def list_contacts(db: Session = Depends(get_db), admin: SessionClaims = Depends(require_admin)):
    rows = db.query(ContactMessage).order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc()).all()
    contacts = [
        {
            "id": c.id,
            "name": c.name,
            "email": c.email,
            "phone": c.phone,
            "company": c.company,
            "subject": c.subject,
            "message": c.message,
            "service_type": c.service_type,
            "status": c.status,
            "created_at": c.created_at,
            "updated_at": c.updated_at,
        }
        for c in rows
    ]
    return {"success": True, "contacts": contacts}


@router.put("/contacts/{contact_id}/status")
def update_contact_status(
    contact_id: int,
    body: StatusUpdate,
    db: Session = Depends(get_db),
    admin: SessionClaims = Depends(require_admin),
):
    if body.status not in CONTACT_STATUSES:
        raise ValidationError("Invalid status")

    with transaction(db):
        updated = (
            db.query(ContactMessage)
            .filter(ContactMessage.id == contact_id)
            .update({ContactMessage.status: body.status}, synchronize_session=False)
        )
    if not updated:
        raise NotFoundError("Contact message not found")

    return {"success": True, "message": "Contact status updated successfully"}
