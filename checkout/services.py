import logging

from store.exceptions import CatalogValidationError, NotFoundError, OutOfStockError
from store.models import Variant

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = (
    'name', 'email', 'phone',
    'province', 'regency', 'district', 'village', 'postal_code',
    'payment_method',
)


class CheckoutService:

    @staticmethod
    def cart_store_or_error(cart, store_id):
        cart_store = cart.store(store_id)
        if cart_store is None:
            raise CatalogValidationError({'store': "There are no items from this store in the cart"})
        return cart_store

    @staticmethod
    def recheck_stock(cart_store):
        """
        Stock was only checked when items were added; check again before the
        order leaves. Variants deleted since then, or moved to another
        product, count as gone.
        """
        variant_ids = [item.variant_id for item in cart_store.items]
        variants = Variant.objects.select_related('product').in_bulk(variant_ids)

        for item in cart_store.items:
            variant = variants.get(item.variant_id)
            if variant is None or variant.product_id != item.product_id:
                raise NotFoundError(f"'{item.name}' is no longer available.")
            if variant.stock < item.quantity:
                logger.info(
                    f"Checkout blocked for store {cart_store.id}: variant {variant.pk} has "
                    f"{variant.stock} in stock, {item.quantity} requested"
                )
                raise OutOfStockError(f"Only {variant.stock} left in stock for '{item.name}'.")

    @staticmethod
    def build_order_summary(cart, store, customer):
        """
        Plain payload describing one store's order, ready for a notification
        channel: store contact, ordered lines, subtotal and customer details.
        """
        cart_store = CheckoutService.cart_store_or_error(cart, store.pk)
        return {
            'store': {
                'id': store.pk,
                'name': store.name,
                'slug': store.slug,
                'wa_number': store.wa_number,
            },
            'items': [
                {
                    'name': item.name,
                    'sku': item.sku,
                    'quantity': item.quantity,
                    'unit_price': item.price,
                    'subtotal': item.subtotal,
                }
                for item in cart_store.items
            ],
            'subtotal': cart_store.subtotal,
            'customer': {field: customer.get(field, '') for field in CUSTOMER_FIELDS},
        }
