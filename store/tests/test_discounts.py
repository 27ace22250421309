from datetime import datetime, timedelta, timezone as dt_timezone

from django.contrib import admin
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import RequestFactory, SimpleTestCase, TestCase

from store.exceptions import CatalogValidationError
from store.models import Discount, Product, Store
from store.services.discounts import apply_discounts, load_discounts, select_discounts
from store.services.snapshots import DiscountSnapshot, ProductSnapshot, StoreSnapshot

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=dt_timezone.utc)


def discount(id, scope='GLOBAL', discount_type='PERCENT', value=10, priority=0, stackable=True,
             start_at=NOW - timedelta(days=1), end_at=NOW + timedelta(days=1), store_id=None, product_id=None):
    return DiscountSnapshot(
        id=id, scope=scope, discount_type=discount_type, value=value, priority=priority,
        stackable=stackable, start_at=start_at, end_at=end_at, store_id=store_id, product_id=product_id,
    )


class ApplyDiscountsTests(SimpleTestCase):

    def setUp(self):
        self.store = StoreSnapshot(id=1)
        self.product = ProductSnapshot(id=10, store_id=1, base_price=100000)

    def _final(self, discounts, price=100000, now=NOW):
        return apply_discounts(self.product, self.store, price, now, discounts)

    def test_no_discounts_leaves_price(self):
        self.assertEqual(self._final([]), 100000)

    def test_higher_priority_first_then_non_stackable_skipped(self):
        a = discount(1, scope='GLOBAL', priority=200, stackable=True, discount_type='PERCENT', value=5)
        b = discount(2, scope='PRODUCT', product_id=10, priority=50, stackable=False, discount_type='FIXED', value=20000)

        outcome = select_discounts(self.product, self.store, 100000, NOW, [b, a])
        self.assertEqual(outcome.final_price, 95000)
        self.assertEqual(outcome.applied, (a,))
        self.assertEqual(outcome.skipped, (b,))
        self.assertEqual(outcome.savings, 5000)

    def test_first_discount_applies_even_if_not_stackable(self):
        only = discount(1, stackable=False, discount_type='FIXED', value=1000)
        self.assertEqual(self._final([only]), 99000)

    def test_priority_tie_prefers_more_specific_scope(self):
        global_pct = discount(1, scope='GLOBAL', value=10)
        product_fixed = discount(2, scope='PRODUCT', product_id=10, discount_type='FIXED', value=20000)
        # product first: (100000 - 20000) * 0.9
        self.assertEqual(self._final([global_pct, product_fixed]), 72000)

    def test_full_tie_keeps_input_order(self):
        fixed = discount(1, discount_type='FIXED', value=10000)
        half = discount(2, value=50)
        self.assertEqual(self._final([fixed, half]), 45000)
        self.assertEqual(self._final([half, fixed]), 40000)

    def test_percent_rounds_the_reduction_down(self):
        self.assertEqual(self._final([discount(1, value=33)], price=1001), 671)

    def test_fixed_never_goes_below_zero(self):
        self.assertEqual(self._final([discount(1, discount_type='FIXED', value=500)], price=300), 0)

    def test_window_is_half_open(self):
        starts_now = discount(1, value=10, start_at=NOW, end_at=NOW + timedelta(hours=1))
        ends_now = discount(2, value=50, start_at=NOW - timedelta(hours=1), end_at=NOW)
        self.assertEqual(self._final([starts_now, ends_now]), 90000)

    def test_naive_datetimes_are_utc(self):
        naive_now = NOW.replace(tzinfo=None)
        active = discount(1, value=10, start_at=naive_now - timedelta(minutes=1), end_at=naive_now + timedelta(minutes=1))
        self.assertEqual(self._final([active], now=naive_now), 90000)

    def test_other_targets_are_ignored(self):
        other_store = discount(1, scope='STORE', store_id=2, value=50)
        other_product = discount(2, scope='PRODUCT', product_id=11, value=50)
        own_store = discount(3, scope='STORE', store_id=1, value=10)
        self.assertEqual(self._final([other_store, other_product, own_store]), 90000)

    def test_store_mismatch_is_rejected(self):
        with self.assertRaises(CatalogValidationError):
            apply_discounts(self.product, StoreSnapshot(id=2), 100000, NOW, [])


class DiscountModelTests(TestCase):

    def setUp(self):
        self.store = Store.objects.create(name="Tech Hub", wa_number="628555123456")
        self.other_store = Store.objects.create(name="Fashion Store", wa_number="628123456789")
        self.product = Product.objects.create(store=self.store, name="Smartwatch Pro", base_price=2500000)
        self.other_product = Product.objects.create(store=self.other_store, name="Jeans", base_price=350000)
        self.window = {'start_at': NOW - timedelta(days=1), 'end_at': NOW + timedelta(days=1)}

    def test_scope_must_match_target(self):
        with self.assertRaises(ValidationError):
            Discount.objects.create(scope='STORE', discount_type='PERCENT', value=10, **self.window)
        with self.assertRaises(ValidationError):
            Discount.objects.create(scope='GLOBAL', discount_type='PERCENT', value=10, store=self.store, **self.window)

    def test_percent_above_hundred_is_rejected(self):
        with self.assertRaises(ValidationError):
            Discount.objects.create(scope='GLOBAL', discount_type='PERCENT', value=120, **self.window)

    def test_empty_window_is_rejected(self):
        with self.assertRaises(ValidationError):
            Discount.objects.create(scope='GLOBAL', discount_type='FIXED', value=10, start_at=NOW, end_at=NOW)

    def test_existing_discount_cannot_be_edited(self):
        created = Discount.objects.create(scope='GLOBAL', discount_type='PERCENT', value=10, **self.window)
        created.value = 250
        with self.assertRaises(ValidationError):
            created.save()
        self.assertEqual(Discount.objects.get(pk=created.pk).value, 10)

    def test_admin_cannot_change_discounts(self):
        created = Discount.objects.create(scope='GLOBAL', discount_type='PERCENT', value=10, **self.window)
        request = RequestFactory().get('/admin/store/discount/')
        request.user = get_user_model().objects.create_superuser(email='root@example.com', password='pass123')
        discount_admin = admin.site._registry[Discount]
        self.assertFalse(discount_admin.has_change_permission(request, created))
        self.assertTrue(discount_admin.has_view_permission(request, created))
        self.assertTrue(discount_admin.has_delete_permission(request, created))

    def test_load_discounts_returns_candidates_for_product(self):
        global_discount = Discount.objects.create(scope='GLOBAL', discount_type='PERCENT', value=5, **self.window)
        store_discount = Discount.objects.create(scope='STORE', store=self.store, discount_type='PERCENT', value=10, **self.window)
        product_discount = Discount.objects.create(scope='PRODUCT', product=self.product, discount_type='FIXED', value=1000, **self.window)
        Discount.objects.create(scope='STORE', store=self.other_store, discount_type='PERCENT', value=10, **self.window)
        Discount.objects.create(scope='PRODUCT', product=self.other_product, discount_type='PERCENT', value=10, **self.window)
        Discount.objects.create(
            scope='GLOBAL', discount_type='PERCENT', value=90,
            start_at=NOW - timedelta(days=10), end_at=NOW - timedelta(days=5),
        )

        loaded = load_discounts(self.product, now=NOW)
        self.assertEqual(
            [snapshot.id for snapshot in loaded],
            [global_discount.pk, store_discount.pk, product_discount.pk],
        )
        self.assertEqual(len(load_discounts(self.product)), 4)
