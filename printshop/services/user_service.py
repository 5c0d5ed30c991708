import logging

from sqlalchemy.orm import Session

from printshop.database import transaction
from printshop.models.auth_models import User
from printshop.services import order_service

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "company": user.company,
        "role": user.role,
        "status": user.status,
        "email_verified": bool(user.email_verified),
        "created_at": user.created_at,
    }


def delete_user(db: Session, user_id: int) -> bool:
    """
    Remove a user together with everything hanging off it: the orders shown
    in their order history (and those orders' items), saved addresses and
    outstanding verification/reset tokens. All or nothing.
    """
    with transaction(db):
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            return False

        orders = order_service.list_orders(db, user=user)
        for order in orders:
            db.delete(order)
        db.flush()

        # addresses and tokens follow through the relationship cascades
        db.delete(user)

    logger.info("User %s deleted with %d order(s)", user_id, len(orders))
    return True


def update_status(db: Session, user_id: int, status: str) -> bool:
    with transaction(db):
        updated = (
            db.query(User)
            .filter(User.id == user_id)
            .update({User.status: status}, synchronize_session=False)
        )
    return updated == 1
