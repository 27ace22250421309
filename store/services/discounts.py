"""
Layer global, store and product discounts on top of a unit price.

Ordering: priority descending, ties broken PRODUCT > STORE > GLOBAL, then by
the order discounts were supplied in (stable sort). The first discount always
applies; every later one applies only if it is stackable.
"""
from dataclasses import dataclass
from datetime import timezone as dt_timezone
from typing import Tuple

from django.db.models import Q
from django.utils import timezone

from store.exceptions import CatalogValidationError
from .snapshots import DiscountSnapshot, discount_snapshot

GLOBAL = 'GLOBAL'
STORE = 'STORE'
PRODUCT = 'PRODUCT'

PERCENT = 'PERCENT'
FIXED = 'FIXED'

SCOPE_SPECIFICITY = {PRODUCT: 2, STORE: 1, GLOBAL: 0}


@dataclass(frozen=True)
class DiscountOutcome:
    unit_price: int
    final_price: int
    applied: Tuple[DiscountSnapshot, ...] = ()
    skipped: Tuple[DiscountSnapshot, ...] = ()

    @property
    def savings(self):
        return self.unit_price - self.final_price


def as_utc(moment):
    """Naive datetimes are taken to already be UTC."""
    if timezone.is_naive(moment):
        return timezone.make_aware(moment, dt_timezone.utc)
    return moment.astimezone(dt_timezone.utc)


def is_active(discount, now):
    """Half-open window: start_at <= now < end_at."""
    now = as_utc(now)
    return as_utc(discount.start_at) <= now < as_utc(discount.end_at)


def targets(discount, product, store):
    if discount.scope == GLOBAL:
        return True
    if discount.scope == STORE:
        return discount.store_id == store.id
    if discount.scope == PRODUCT:
        return discount.product_id == product.id
    return False


def candidate_discounts(discounts, product, store, now):
    """Active discounts targeting this product, in application order."""
    candidates = [d for d in discounts if targets(d, product, store) and is_active(d, now)]
    return sorted(candidates, key=lambda d: (-d.priority, -SCOPE_SPECIFICITY[d.scope]))


def apply_one(discount, price):
    if discount.discount_type == PERCENT:
        return price - (price * discount.value) // 100
    if discount.discount_type == FIXED:
        return max(price - discount.value, 0)
    raise CatalogValidationError({'discount_type': f"Unknown discount type {discount.discount_type}"})


def select_discounts(product, store, unit_price, now, discounts):
    """
    Walk the candidates and report which discounts were applied or skipped.
    `now` must be passed in; nothing here reads the clock.
    """
    if product.store_id != store.id:
        raise CatalogValidationError({'store': f"Product {product.id} does not belong to store {store.id}"})

    running = unit_price
    applied, skipped = [], []
    for index, discount in enumerate(candidate_discounts(discounts, product, store, now)):
        if index > 0 and not discount.stackable:
            skipped.append(discount)
            continue
        running = apply_one(discount, running)
        applied.append(discount)

    return DiscountOutcome(
        unit_price=unit_price,
        final_price=max(int(round(running)), 0),
        applied=tuple(applied),
        skipped=tuple(skipped),
    )


def apply_discounts(product, store, unit_price, now, discounts):
    """Final price of one unit after every applicable discount."""
    return select_discounts(product, store, unit_price, now, discounts).final_price


def load_discounts(product, now=None):
    """
    Fetch every discount that could target `product` (a snapshot or model
    instance) as snapshots, oldest first. With `now`, only discounts active at
    that instant are returned.
    """
    from store.models import Discount

    queryset = Discount.objects.filter(
        Q(scope=GLOBAL)
        | Q(scope=STORE, store_id=product.store_id)
        | Q(scope=PRODUCT, product_id=product.id)
    )
    if now is not None:
        now = as_utc(now)
        queryset = queryset.filter(start_at__lte=now, end_at__gt=now)
    return [discount_snapshot(discount) for discount in queryset.order_by('created_at', 'id')]
