from datetime import date
from typing import Any, List, Optional

from pydantic import BaseModel, field_validator

from printshop.models.shop_models import (
    DELIVERY_TYPES, URGENCY_LEVELS, CONTACT_METHODS, CONTACT_TIMES,
)


def _one_of(value, allowed, default):
    return value if value in allowed else default


# -------- Orders --------
class CartItem(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    quantity: int = 1
    options: Optional[Any] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, v):
        try:
            v = int(v)
        except (TypeError, ValueError, OverflowError):
            return 1
        return v if v >= 1 else 1


class CustomerInfo(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    address: Optional[str] = None


class DeliveryInfo(BaseModel):
    deliveryType: str = "pickup"
    deliveryAddress: Optional[str] = None
    deliveryDate: Optional[date] = None
    deliveryTime: Optional[str] = None
    specialInstructions: Optional[str] = None

    @field_validator("deliveryType", mode="before")
    @classmethod
    def known_delivery_type(cls, v):
        return _one_of(v, DELIVERY_TYPES, "pickup")

    @field_validator("deliveryDate", mode="before")
    @classmethod
    def blank_date(cls, v):
        return v or None


class Preferences(BaseModel):
    urgency: str = "normal"
    contactMethod: str = "phone"
    preferredContactTime: str = "anytime"

    @field_validator("urgency", mode="before")
    @classmethod
    def known_urgency(cls, v):
        return _one_of(v, URGENCY_LEVELS, "normal")

    @field_validator("contactMethod", mode="before")
    @classmethod
    def known_contact_method(cls, v):
        return _one_of(v, CONTACT_METHODS, "phone")

    @field_validator("preferredContactTime", mode="before")
    @classmethod
    def known_contact_time(cls, v):
        return _one_of(v, CONTACT_TIMES, "anytime")


class OrderCreate(BaseModel):
    items: Optional[List[CartItem]] = None
    customerInfo: Optional[CustomerInfo] = None
    deliveryInfo: Optional[DeliveryInfo] = None
    preferences: Optional[Preferences] = None


# -------- Contact --------
class ContactCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    serviceType: Optional[str] = None


# -------- Admin --------
class AdminLoginBody(BaseModel):
    email: str
    password: str


class StatusUpdate(BaseModel):
    status: str
