import random
import string
from datetime import datetime
from typing import Optional

from .errors import ValidationError

ORDER_STATUSES = ("pending", "confirmed", "preparing", "ready", "delivered", "cancelled")
TERMINAL_STATUSES = frozenset({"delivered", "cancelled"})

# Suggested next step for the admin panel. Not enforced.
NEXT_STATUS = {
    "pending": "confirmed",
    "confirmed": "preparing",
    "preparing": "ready",
    "ready": "delivered",
}

# Admins may move an open order to any status, skipping or going back.
# Delivered and cancelled orders are closed.
TRANSITIONS = {
    current: (frozenset() if current in TERMINAL_STATUSES else frozenset(ORDER_STATUSES))
    for current in ORDER_STATUSES
}

# "delivery" is the generic home delivery sent by older admin and tracking pages
DELIVERY_TYPES = ("pickup", "delivery", "free", "express", "same-day")
ADDRESSLESS_DELIVERY_TYPES = frozenset({"pickup"})

TRACKING_ADDRESS_LENGTH = 30


def is_allowed_transition(current: str, new: str) -> bool:
    return new in TRANSITIONS.get(current, frozenset())


def check_transition(current: str, new: str) -> None:
    if new not in ORDER_STATUSES:
        raise ValidationError("Invalid status")
    if not is_allowed_transition(current, new):
        raise ValidationError(f"Order is already {current} and can no longer change status")


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    millis = int(now.timestamp() * 1000)
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=5))
    return f"ORD-{millis}-{suffix}"


def requires_address(delivery_type: str) -> bool:
    return delivery_type not in ADDRESSLESS_DELIVERY_TYPES


def partial_address(address: Optional[str]) -> Optional[str]:
    """Keep at most half of the address, never more than TRACKING_ADDRESS_LENGTH characters."""
    if not address:
        return None
    keep = min(TRACKING_ADDRESS_LENGTH, len(address) // 2)
    return address[:keep].rstrip() + "..."


def public_item(item: dict) -> dict:
    name = item.get("name") or item.get("plant_name")
    return {
        "name": name,
        "name_en": item.get("name_en") or name,
        "name_tr": name,  # the base name is Turkish
        "name_az": item.get("name_az") or name,
        "name_ru": item.get("name_ru") or name,
        "quantity": item.get("quantity"),
        "price": item.get("price"),
        "image_url": item.get("image_url"),
    }


def redacted_view(order) -> dict:
    """What an anonymous visitor may see when tracking an order.

    Contact details, notes and the full delivery address are left out.
    """
    return {
        "order_number": order.order_number,
        "status": order.status,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "delivery_type": order.delivery_type,
        "delivery_address": partial_address(order.delivery_address),
        "order_items": [public_item(item) for item in (order.order_items or [])],
        "subtotal": order.subtotal,
        "delivery_fee": order.delivery_fee,
        "total": order.total,
    }
