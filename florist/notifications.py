import logging

from telegram import Bot
from telegram.error import TelegramError

from .config import settings

logger = logging.getLogger(__name__)


def format_order_message(order_details: dict) -> str:
    message = "🌿 *New order!*\n\n"
    message += f"*Order:* `{order_details['order_number']}`\n"
    message += f"*Customer:* {order_details['customer_name']}\n"
    message += f"*Phone:* `{order_details['customer_phone']}`\n"
    message += f"*Delivery:* {order_details['delivery_type']}\n"
    if order_details.get("delivery_address"):
        message += f"*Address:*\n`{order_details['delivery_address']}`\n"
    message += "\n*Items:*\n"
    for item in order_details["items"]:
        message += f"  - *{item['name']}* x{item['quantity']} ({item['price']:.2f})\n"
    message += f"\n*Total:* {order_details['total']:.2f}"
    if order_details.get("notes"):
        message += f"\n\n*Notes:*\n_{order_details['notes']}_"
    return message


def order_details(order) -> dict:
    return {
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "delivery_type": order.delivery_type,
        "delivery_address": order.delivery_address,
        "items": order.order_items,
        "total": order.total,
        "notes": order.notes,
    }


async def send_new_order_notification(order_details: dict):
    token = settings.TOKEN
    chat_id = settings.CHAT_ID

    if not token or not chat_id:
        logger.warning("Telegram token or chat_id for admin not configured. Skipping order notification.")
        return

    bot = Bot(token=token)
    try:
        await bot.send_message(chat_id=chat_id, text=format_order_message(order_details), parse_mode="Markdown")
    except TelegramError as e:
        logger.error(f"Failed to send Telegram order notification: {e}")
