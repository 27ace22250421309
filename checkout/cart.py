"""
Multi-store shopping cart as pure state transitions.

Every operation takes a Cart and returns a new one; nothing here touches the
session or the database. Subtotals and totals are derived from the item list
on access, so they can never drift from it. Stores whose last item goes away
are dropped from the cart.
"""
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from store.exceptions import CatalogValidationError
from store.services.discounts import apply_discounts
from store.services.pricing import resolve_unit_price


def item_key(product_id, variant_id):
    return f"{product_id}-{variant_id}"


@dataclass(frozen=True)
class CartItem:
    id: str
    product_id: int
    variant_id: int
    store_id: int
    quantity: int
    price: int
    name: str = ''
    slug: str = ''
    sku: Optional[str] = None
    image: Optional[str] = None

    @property
    def subtotal(self):
        return self.price * self.quantity

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'variant_id': self.variant_id,
            'store_id': self.store_id,
            'quantity': self.quantity,
            'price': self.price,
            'name': self.name,
            'slug': self.slug,
            'sku': self.sku,
            'image': self.image,
            'subtotal': self.subtotal,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=item_key(data['product_id'], data['variant_id']),
            product_id=data['product_id'],
            variant_id=data['variant_id'],
            store_id=data['store_id'],
            quantity=_positive_quantity(data['quantity']),
            price=data['price'],
            name=data.get('name', ''),
            slug=data.get('slug', ''),
            sku=data.get('sku'),
            image=data.get('image'),
        )


@dataclass(frozen=True)
class CartStore:
    id: int
    name: str = ''
    slug: str = ''
    items: Tuple[CartItem, ...] = ()

    @property
    def subtotal(self):
        return sum(item.subtotal for item in self.items)

    @property
    def total_items(self):
        return sum(item.quantity for item in self.items)

    def item(self, item_id):
        return next((item for item in self.items if item.id == item_id), None)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'items': [item.to_dict() for item in self.items],
            'subtotal': self.subtotal,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            slug=data.get('slug', ''),
            items=tuple(CartItem.from_dict(item) for item in data.get('items', [])),
        )


@dataclass(frozen=True)
class Cart:
    stores: Tuple[CartStore, ...] = ()

    @property
    def total_items(self):
        return sum(store.total_items for store in self.stores)

    @property
    def total_amount(self):
        return sum(store.subtotal for store in self.stores)

    @property
    def is_empty(self):
        return not self.stores

    def store(self, store_id):
        return next((store for store in self.stores if store.id == store_id), None)

    def to_dict(self):
        return {
            'stores': [store.to_dict() for store in self.stores],
            'total_items': self.total_items,
            'total_amount': self.total_amount,
        }

    @classmethod
    def from_dict(cls, data):
        """Rebuild a cart from `to_dict()` output; stored totals are ignored and recomputed."""
        if not data:
            return cls()
        try:
            stores = tuple(CartStore.from_dict(store) for store in data.get('stores', []))
        except (KeyError, TypeError, AttributeError) as e:
            raise CatalogValidationError({'cart': f"Malformed cart data: {e}"})
        return _normalize(stores)


def _positive_quantity(quantity):
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise CatalogValidationError({'quantity': "Quantity must be a positive integer"})
    return quantity


def _normalize(stores):
    return Cart(stores=tuple(store for store in stores if store.items))


def _replace_store(cart, updated):
    return _normalize(updated if store.id == updated.id else store for store in cart.stores)


# ------------------------------------------
# Transitions
# ------------------------------------------
def add_item(cart, store, product, variant, quantity, *, now, discounts=()):
    """
    Add `quantity` units of `variant` (snapshots of store, product and
    variant). The unit price is captured now, after discounts, and kept for
    the life of the line; adding the same variant again only raises the
    quantity.
    """
    quantity = _positive_quantity(quantity)
    if product.store_id != store.id:
        raise CatalogValidationError({'store': f"Product {product.id} does not belong to store {store.id}"})

    key = item_key(product.id, variant.id)
    cart_store = cart.store(store.id)

    if cart_store is not None:
        existing = cart_store.item(key)
        if existing is not None:
            items = tuple(
                replace(item, quantity=item.quantity + quantity) if item.id == key else item
                for item in cart_store.items
            )
            return _replace_store(cart, replace(cart_store, items=items))

    unit_price = resolve_unit_price(product, variant)
    item = CartItem(
        id=key,
        product_id=product.id,
        variant_id=variant.id,
        store_id=store.id,
        quantity=quantity,
        price=apply_discounts(product, store, unit_price, now, discounts),
        name=product.name,
        slug=product.slug,
        sku=variant.sku,
        image=product.image_url,
    )

    if cart_store is None:
        new_store = CartStore(id=store.id, name=store.name, slug=store.slug, items=(item,))
        return _normalize(cart.stores + (new_store,))
    return _replace_store(cart, replace(cart_store, items=cart_store.items + (item,)))


def remove_item(cart, store_id, item_id):
    """Unknown store or item ids leave the cart unchanged."""
    cart_store = cart.store(store_id)
    if cart_store is None or cart_store.item(item_id) is None:
        return cart
    items = tuple(item for item in cart_store.items if item.id != item_id)
    return _replace_store(cart, replace(cart_store, items=items))


def set_quantity(cart, store_id, item_id, quantity):
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise CatalogValidationError({'quantity': "Quantity must be an integer"})
    if quantity <= 0:
        return remove_item(cart, store_id, item_id)

    cart_store = cart.store(store_id)
    if cart_store is None or cart_store.item(item_id) is None:
        return cart
    items = tuple(
        replace(item, quantity=quantity) if item.id == item_id else item
        for item in cart_store.items
    )
    return _replace_store(cart, replace(cart_store, items=items))


def clear_store(cart, store_id):
    return _normalize(store for store in cart.stores if store.id != store_id)


def clear(cart=None):
    return Cart()


# ------------------------------------------
# Queries
# ------------------------------------------
def _find(cart, product_id, variant_id):
    key = item_key(product_id, variant_id)
    for store in cart.stores:
        item = store.item(key)
        if item is not None:
            return item
    return None


def is_in_cart(cart, product_id, variant_id):
    return _find(cart, product_id, variant_id) is not None


def item_quantity(cart, product_id, variant_id):
    item = _find(cart, product_id, variant_id)
    return item.quantity if item else 0
