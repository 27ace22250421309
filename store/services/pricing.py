import logging

from store.exceptions import CatalogValidationError

logger = logging.getLogger(__name__)


def resolve_unit_price(product, variant):
    """
    Effective unit price of `variant` before discounts.

    price_absolute, when set, replaces the base price outright (a delta set
    alongside it is ignored). Otherwise price_delta is added to the base
    price, clamped at zero. With neither override the base price applies.
    """
    if variant.product_id != product.id:
        raise CatalogValidationError(
            {'variant': f"Variant {variant.id} belongs to product {variant.product_id}, not {product.id}"}
        )

    if variant.price_absolute is not None:
        return variant.price_absolute

    if variant.price_delta is not None:
        price = product.base_price + variant.price_delta
        if price < 0:
            logger.warning(
                f"Variant {variant.id} of product {product.id} has price delta {variant.price_delta} "
                f"below base price {product.base_price}; clamping unit price to 0"
            )
            return 0
        return price

    return product.base_price
