import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from printshop.core.deps import get_db
from printshop.core.exceptions import ValidationError
from printshop.models.shop_models import ContactMessage
from printshop.models.shop_schemas import ContactCreate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Contact"])


@router.post("/contact", status_code=201)
def submit_contact(body: ContactCreate, db: Session = Depends(get_db)):

    # only the name is required
    if not body.name or not body.name.strip():
        raise ValidationError("Name is required")

    msg = ContactMessage(
        name=body.name.strip(),
        email=body.email or None,
        phone=body.phone or None,
        company=body.company or None,
        subject=body.subject or None,
        message=body.message or None,
        service_type=body.serviceType or None,
        status="new",
    )
    db.add(msg)
    db.commit()

    logger.info("Contact message %s received from %s", msg.id, msg.name)

    return {"success": True, "message": "Contact message sent successfully", "id": msg.id}
