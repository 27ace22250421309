import logging
from urllib.parse import quote

from django.conf import settings
from django.utils import timezone

from store.services.discounts import as_utc

logger = logging.getLogger(__name__)

PAYMENT_METHOD_LABELS = {
    'bank_transfer': 'Bank Transfer',
    'dana': 'DANA',
    'gopay': 'GoPay',
}


def payment_method_label(method):
    return PAYMENT_METHOD_LABELS.get(method, method)


def format_price(amount):
    """95000 -> 'Rp 95.000'"""
    return f"Rp {amount:,}".replace(',', '.')


class WhatsAppChannel:
    """Turns an order summary into a WhatsApp click-to-chat link for the store."""

    def __init__(self, base_url=None):
        self.base_url = (base_url or settings.CHECKOUT_WHATSAPP_BASE_URL).rstrip('/')

    def format_message(self, summary, ordered_at=None):
        ordered_at = ordered_at or timezone.now()
        customer = summary['customer']
        lines = [
            f"*NEW ORDER - {summary['store']['name'].upper()}*",
            "",
            "*Customer Information:*",
            f"- Name: {customer['name']}",
            f"- Email: {customer['email']}",
            f"- Phone: {customer['phone']}",
            "",
            "*Shipping Address:*",
            f"{customer['village']}, {customer['district']}",
            f"{customer['regency']}, {customer['province']}",
            f"Postal Code: {customer['postal_code']}",
            "",
            f"*Payment Method:* {payment_method_label(customer['payment_method'])}",
            "",
            "*Order Details:*",
        ]
        for index, item in enumerate(summary['items'], start=1):
            lines += [
                "",
                f"{index}. *{item['name']}*",
                f"   - SKU: {item['sku'] or '-'}",
                f"   - Quantity: {item['quantity']}",
                f"   - Price: {format_price(item['unit_price'])}",
                f"   - Subtotal: {format_price(item['subtotal'])}",
            ]
        lines += [
            "",
            f"*Total Amount:* {format_price(summary['subtotal'])}",
            "",
            f"*Order Date:* {timezone.localtime(as_utc(ordered_at)).strftime('%d/%m/%Y %H:%M')}",
            "",
            "Please confirm this order and provide payment instructions.",
            "Thank you!",
        ]
        return "\n".join(lines)

    def build_url(self, wa_number, message):
        number = ''.join(ch for ch in str(wa_number) if ch.isdigit())
        return f"{self.base_url}/{number}?text={quote(message, safe='')}"

    def send(self, summary, ordered_at=None):
        """Nothing is transmitted; the shopper's client opens the returned link."""
        url = self.build_url(summary['store']['wa_number'], self.format_message(summary, ordered_at))
        logger.info(
            f"WhatsApp checkout link built for store {summary['store']['slug']} "
            f"({len(summary['items'])} line(s), total {summary['subtotal']})"
        )
        return url
