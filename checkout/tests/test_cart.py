from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase

from checkout.cart import (
    Cart, add_item, clear, clear_store, is_in_cart, item_quantity, remove_item, set_quantity,
)
from store.exceptions import CatalogValidationError
from store.services.snapshots import DiscountSnapshot, ProductSnapshot, StoreSnapshot, VariantSnapshot

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=dt_timezone.utc)


class CartTestCase(SimpleTestCase):

    def setUp(self):
        self.fashion = StoreSnapshot(id=1, name="Fashion Store", slug="fashion-store")
        self.tech = StoreSnapshot(id=2, name="Tech Hub", slug="tech-hub")
        self.blue_m = VariantSnapshot(id=11, product_id=10, stock=20, sku="CLASSI-BLU-M-0001")
        self.blue_l = VariantSnapshot(id=12, product_id=10, stock=20, price_delta=5000)
        self.shirt = ProductSnapshot(
            id=10, store_id=1, base_price=100000, name="Classic T-Shirt", slug="classic-t-shirt",
            variants=(self.blue_m, self.blue_l), image_url="https://cdn.example.com/tee.png",
        )
        self.watch_variant = VariantSnapshot(id=21, product_id=20, stock=3, price_absolute=2500000)
        self.watch = ProductSnapshot(id=20, store_id=2, base_price=2000000, name="Smartwatch Pro", variants=(self.watch_variant,))

    def _add(self, cart, store, product, variant, quantity, discounts=()):
        return add_item(cart, store, product, variant, quantity, now=NOW, discounts=discounts)


class AddItemTests(CartTestCase):

    def test_repeated_add_aggregates_into_one_line(self):
        cart = self._add(Cart(), self.fashion, self.shirt, self.blue_m, 2)
        cart = self._add(cart, self.fashion, self.shirt, self.blue_m, 3)

        [store] = cart.stores
        [item] = store.items
        self.assertEqual(item.id, "10-11")
        self.assertEqual(item.quantity, 5)
        self.assertEqual(store.subtotal, 500000)
        self.assertEqual((cart.total_items, cart.total_amount), (5, 500000))

    def test_line_captures_resolved_price_and_display_fields(self):
        cart = self._add(Cart(), self.fashion, self.shirt, self.blue_l, 1)
        item = cart.stores[0].items[0]
        self.assertEqual(item.price, 105000)
        self.assertEqual(item.image, "https://cdn.example.com/tee.png")
        self.assertEqual(item.name, "Classic T-Shirt")

    def test_price_snapshot_includes_discounts(self):
        sale = DiscountSnapshot(
            id=1, scope='STORE', discount_type='PERCENT', value=10, priority=0, stackable=False,
            start_at=NOW - timedelta(days=1), end_at=NOW + timedelta(days=1), store_id=1,
        )
        cart = self._add(Cart(), self.fashion, self.shirt, self.blue_m, 1, discounts=[sale])
        self.assertEqual(cart.stores[0].items[0].price, 90000)

    def test_existing_line_keeps_its_price(self):
        cart = self._add(Cart(), self.fashion, self.shirt, self.blue_m, 1)
        repriced = ProductSnapshot(id=10, store_id=1, base_price=150000, variants=(self.blue_m,))
        cart = self._add(cart, self.fashion, repriced, self.blue_m, 1)
        self.assertEqual(cart.stores[0].items[0].price, 100000)
        self.assertEqual(cart.total_amount, 200000)

    def test_stores_are_grouped_in_order_added(self):
        cart = self._add(Cart(), self.tech, self.watch, self.watch_variant, 1)
        cart = self._add(cart, self.fashion, self.shirt, self.blue_m, 2)
        self.assertEqual([store.id for store in cart.stores], [2, 1])
        self.assertEqual(cart.total_items, 3)
        self.assertEqual(cart.total_amount, 2500000 + 200000)

    def test_quantity_must_be_positive_integer(self):
        for quantity in (0, -1, 1.5, True):
            with self.assertRaises(CatalogValidationError):
                self._add(Cart(), self.fashion, self.shirt, self.blue_m, quantity)

    def test_product_of_another_store(self):
        with self.assertRaises(CatalogValidationError):
            self._add(Cart(), self.tech, self.shirt, self.blue_m, 1)

    def test_cart_is_not_mutated(self):
        original = self._add(Cart(), self.fashion, self.shirt, self.blue_m, 1)
        self._add(original, self.fashion, self.shirt, self.blue_m, 4)
        self.assertEqual(original.total_items, 1)


class CartMutationTests(CartTestCase):

    def setUp(self):
        super().setUp()
        cart = self._add(Cart(), self.fashion, self.shirt, self.blue_m, 2)
        cart = self._add(cart, self.fashion, self.shirt, self.blue_l, 1)
        self.cart = self._add(cart, self.tech, self.watch, self.watch_variant, 1)

    def test_remove_item(self):
        cart = remove_item(self.cart, 1, "10-11")
        self.assertEqual([item.id for item in cart.store(1).items], ["10-12"])
        self.assertEqual(cart.total_amount, 105000 + 2500000)

    def test_removing_last_item_drops_the_store(self):
        cart = remove_item(self.cart, 2, "20-21")
        self.assertIsNone(cart.store(2))
        self.assertEqual(len(cart.stores), 1)

    def test_remove_unknown_item_is_a_no_op(self):
        self.assertEqual(remove_item(self.cart, 1, "99-99"), self.cart)
        self.assertEqual(remove_item(self.cart, 99, "10-11"), self.cart)

    def test_set_quantity(self):
        cart = set_quantity(self.cart, 1, "10-11", 7)
        self.assertEqual(item_quantity(cart, 10, 11), 7)
        self.assertEqual(cart.store(1).subtotal, 7 * 100000 + 105000)

    def test_set_quantity_zero_removes(self):
        self.assertEqual(set_quantity(self.cart, 1, "10-11", 0), remove_item(self.cart, 1, "10-11"))
        self.assertFalse(is_in_cart(set_quantity(self.cart, 2, "20-21", -3), 20, 21))

    def test_clear_store(self):
        cart = clear_store(self.cart, 1)
        self.assertEqual([store.id for store in cart.stores], [2])
        self.assertEqual(cart.total_amount, 2500000)

    def test_clear(self):
        self.assertTrue(clear(self.cart).is_empty)

    def test_queries(self):
        self.assertTrue(is_in_cart(self.cart, 10, 12))
        self.assertFalse(is_in_cart(self.cart, 10, 99))
        self.assertEqual(item_quantity(self.cart, 10, 11), 2)
        self.assertEqual(item_quantity(self.cart, 10, 99), 0)

    def test_serialization_recomputes_totals(self):
        data = self.cart.to_dict()
        data['total_amount'] = 1
        data['stores'][0]['subtotal'] = 1
        restored = Cart.from_dict(data)
        self.assertEqual(restored, self.cart)
        self.assertEqual(restored.to_dict()['total_amount'], self.cart.total_amount)

    def test_malformed_data(self):
        with self.assertRaises(CatalogValidationError):
            Cart.from_dict({'stores': [{'id': 1, 'items': [{'product_id': 1}]}]})
