from django.test import SimpleTestCase

from store.exceptions import CatalogValidationError
from store.services.pricing import resolve_unit_price
from store.services.snapshots import ProductSnapshot, VariantSnapshot


class ResolveUnitPriceTests(SimpleTestCase):

    def setUp(self):
        self.product = ProductSnapshot(id=1, store_id=1, base_price=10000)

    def _variant(self, **prices):
        return VariantSnapshot(id=7, product_id=1, stock=1, **prices)

    def test_absolute_wins_over_delta(self):
        self.assertEqual(resolve_unit_price(self.product, self._variant(price_absolute=5000, price_delta=-1000)), 5000)

    def test_delta_applies_to_base(self):
        self.assertEqual(resolve_unit_price(self.product, self._variant(price_delta=-1000)), 9000)

    def test_no_override_uses_base(self):
        self.assertEqual(resolve_unit_price(self.product, self._variant()), 10000)

    def test_zero_absolute_is_an_override(self):
        self.assertEqual(resolve_unit_price(self.product, self._variant(price_absolute=0)), 0)

    def test_negative_result_is_clamped_and_logged(self):
        with self.assertLogs('store.services.pricing', level='WARNING'):
            self.assertEqual(resolve_unit_price(self.product, self._variant(price_delta=-20000)), 0)

    def test_variant_of_another_product(self):
        other = VariantSnapshot(id=8, product_id=2, stock=1)
        with self.assertRaises(CatalogValidationError):
            resolve_unit_price(self.product, other)
