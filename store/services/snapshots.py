"""
Immutable views of catalog rows.

The pricing and variant engines only ever see these dataclasses, never ORM
instances, so they can be exercised without a database and cannot trigger
lazy queries halfway through a computation.
"""
from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property
from typing import FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class OptionValueRef:
    id: int
    name: str


@dataclass(frozen=True)
class OptionTypeSnapshot:
    id: int
    name: str
    values: Tuple[OptionValueRef, ...] = ()
    position: int = 0

    @property
    def value_ids(self):
        return tuple(value.id for value in self.values)


@dataclass(frozen=True)
class VariantSnapshot:
    id: int
    product_id: int
    stock: int = 0
    sku: Optional[str] = None
    price_absolute: Optional[int] = None
    price_delta: Optional[int] = None
    option_value_ids: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def in_stock(self):
        return self.stock > 0


@dataclass(frozen=True)
class StoreSnapshot:
    id: int
    name: str = ''
    slug: str = ''
    wa_number: str = ''


@dataclass(frozen=True)
class ProductSnapshot:
    id: int
    store_id: int
    base_price: int
    name: str = ''
    slug: str = ''
    option_types: Tuple[OptionTypeSnapshot, ...] = ()
    variants: Tuple[VariantSnapshot, ...] = ()
    image_url: Optional[str] = None

    @cached_property
    def value_type_ids(self):
        """option value id -> owning option type id"""
        return {
            value.id: option_type.id
            for option_type in self.option_types
            for value in option_type.values
        }

    @property
    def option_type_ids(self):
        return tuple(option_type.id for option_type in self.option_types)

    def variant(self, variant_id):
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None


@dataclass(frozen=True)
class DiscountSnapshot:
    id: int
    scope: str
    discount_type: str
    value: int
    priority: int
    stackable: bool
    start_at: datetime
    end_at: datetime
    store_id: Optional[int] = None
    product_id: Optional[int] = None


# ------------------------------------------
# ORM -> snapshot
# ------------------------------------------
def store_snapshot(store):
    return StoreSnapshot(id=store.pk, name=store.name, slug=store.slug, wa_number=store.wa_number)


def variant_snapshot(variant):
    return VariantSnapshot(
        id=variant.pk,
        product_id=variant.product_id,
        stock=variant.stock,
        sku=variant.sku,
        price_absolute=variant.price_absolute,
        price_delta=variant.price_delta,
        option_value_ids=frozenset(value.pk for value in variant.option_values.all()),
    )


def product_snapshot(product):
    """
    Build a snapshot of a product with its option graph and variants.
    Use with `catalog.product_queryset()` to avoid N+1 queries.
    """
    option_types = tuple(
        OptionTypeSnapshot(
            id=option_type.pk,
            name=option_type.name,
            position=option_type.position,
            values=tuple(OptionValueRef(id=value.pk, name=value.name) for value in option_type.values.all()),
        )
        for option_type in product.option_types.all()
    )
    images = list(product.images.all())
    return ProductSnapshot(
        id=product.pk,
        store_id=product.store_id,
        base_price=product.base_price,
        name=product.name,
        slug=product.slug,
        option_types=option_types,
        variants=tuple(variant_snapshot(variant) for variant in product.variants.all()),
        image_url=images[0].url if images else None,
    )


def discount_snapshot(discount):
    return DiscountSnapshot(
        id=discount.pk,
        scope=discount.scope,
        discount_type=discount.discount_type,
        value=discount.value,
        priority=discount.priority,
        stackable=discount.stackable,
        start_at=discount.start_at,
        end_at=discount.end_at,
        store_id=discount.store_id,
        product_id=discount.product_id,
    )
