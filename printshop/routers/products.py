from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from printshop.core.deps import get_db
from printshop.models.shop_models import Product

router = APIRouter(tags=["Products"])


def serialize_product(p: Product) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "category": p.category,
        "icon": p.icon,
        "image_url": p.image_url,
    }


@router.get("/products")
def list_products(db: Session = Depends(get_db)):
    products = db.query(Product).order_by(Product.name).all()
    return {"success": True, "products": [serialize_product(p) for p in products]}
