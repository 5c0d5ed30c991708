import logging

from printshop.database import Base, SessionLocal, engine, transaction
from printshop.models import auth_models, shop_models  # noqa: F401  (register tables)
from printshop.models.shop_models import Product

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    ("Visiting Cards", "Professional visiting cards for business networking", "Business Cards", "💼"),
    ("Pamphlets & Posters", "High-quality pamphlets and posters for marketing", "Marketing", "📄"),
    ("Garment Tags", "Custom garment tags and labels", "Labels", "🏷️"),
    ("Files", "Professional file folders and organizers", "Office Supplies", "📁"),
    ("Letter Heads", "Custom letterhead designs for business correspondence", "Stationery", "📝"),
    ("Envelopes", "Custom envelopes for professional mailing", "Stationery", "✉️"),
    ("Digital Paper Printing", "High-quality digital printing services", "Printing", "🖨️"),
    ("ATM Pouches", "Secure ATM pouches and banking supplies", "Banking", "🏦"),
    ("Bill Books", "Professional bill books and invoices", "Business", "📋"),
    ("Stickers", "Custom stickers and labels for various purposes", "Labels", "🏷️"),
]


def seed_products(db) -> int:
    if db.query(Product).count():
        return 0
    with transaction(db):
        for name, description, category, icon in SAMPLE_PRODUCTS:
            db.add(Product(name=name, description=description, category=category, icon=icon))
    logger.info("Inserted %d sample products", len(SAMPLE_PRODUCTS))
    return len(SAMPLE_PRODUCTS)


def init_db(bind=None):
    """Create missing tables and seed the product catalogue once."""
    Base.metadata.create_all(bind=bind or engine)

    db = SessionLocal(bind=bind) if bind is not None else SessionLocal()
    try:
        seed_products(db)
    finally:
        db.close()
