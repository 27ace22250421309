from django.test import SimpleTestCase

from store.exceptions import CatalogValidationError
from store.services.snapshots import OptionTypeSnapshot, OptionValueRef, ProductSnapshot, VariantSnapshot
from store.services.variants import (
    AVAILABLE, INCOMPLETE, INVALID, RELAXES_SELECTION, RESOLVED, UNAVAILABLE,
    resolve_variant, selection_from_variant,
)

COLOR, SIZE = 1, 2
BLUE, BLACK = 11, 12
M, L = 21, 22


def shirt(stock, product_id=100):
    """Color{Blue,Black} x Size{M,L}; `stock` maps (color, size) -> units"""
    variants = tuple(
        VariantSnapshot(id=index, product_id=product_id, stock=units, option_value_ids=frozenset(values))
        for index, (values, units) in enumerate(stock.items(), start=1)
    )
    return ProductSnapshot(
        id=product_id,
        store_id=1,
        base_price=100000,
        option_types=(
            OptionTypeSnapshot(id=COLOR, name='Color', values=(OptionValueRef(BLUE, 'Blue'), OptionValueRef(BLACK, 'Black'))),
            OptionTypeSnapshot(id=SIZE, name='Size', values=(OptionValueRef(M, 'M'), OptionValueRef(L, 'L')), position=1),
        ),
        variants=variants,
    )


class AvailabilityPruningTests(SimpleTestCase):
    """Only Blue/M is in stock"""

    def setUp(self):
        self.product = shirt({(BLUE, M): 4, (BLUE, L): 0, (BLACK, M): 0, (BLACK, L): 0})

    def test_no_selection(self):
        resolution = resolve_variant(self.product, {})
        self.assertEqual(resolution.status, INCOMPLETE)
        self.assertEqual(resolution.missing_option_types, (COLOR, SIZE))
        self.assertEqual(resolution.available_values, {COLOR: (BLUE,), SIZE: (M,)})
        self.assertTrue(resolution.can_complete)

    def test_after_choosing_blue(self):
        resolution = resolve_variant(self.product, {COLOR: BLUE})
        self.assertEqual(resolution.available_values, {SIZE: (M,)})
        self.assertTrue(resolution.can_complete)

    def test_after_choosing_black(self):
        resolution = resolve_variant(self.product, {COLOR: BLACK})
        self.assertEqual(resolution.available_values, {SIZE: ()})
        self.assertFalse(resolution.can_complete)
        self.assertEqual(resolution.value_states[SIZE], {M: RELAXES_SELECTION, L: UNAVAILABLE})

    def test_complete_black_selection_is_a_result_not_an_error(self):
        resolution = resolve_variant(self.product, {COLOR: BLACK, SIZE: L})
        self.assertEqual(resolution.status, RESOLVED)
        self.assertFalse(resolution.purchasable)
        self.assertFalse(resolution.can_complete)


class ResolveVariantTests(SimpleTestCase):

    def setUp(self):
        self.product = shirt({(BLUE, M): 0, (BLUE, L): 5, (BLACK, M): 3})

    def test_resolves_regardless_of_pick_order(self):
        first = resolve_variant(self.product, {COLOR: BLUE, SIZE: L})
        second = resolve_variant(self.product, {SIZE: L, COLOR: BLUE})
        self.assertEqual(first.status, RESOLVED)
        self.assertEqual(first.variant, second.variant)
        self.assertTrue(first.purchasable)

    def test_missing_combination_is_invalid(self):
        resolution = resolve_variant(self.product, {COLOR: BLACK, SIZE: L})
        self.assertEqual(resolution.status, INVALID)
        self.assertIsNone(resolution.variant)

    def test_selected_type_states_use_the_other_choices(self):
        resolution = resolve_variant(self.product, {COLOR: BLUE, SIZE: M})
        self.assertEqual(resolution.value_states[COLOR], {BLUE: RELAXES_SELECTION, BLACK: AVAILABLE})
        self.assertEqual(resolution.value_states[SIZE], {M: RELAXES_SELECTION, L: AVAILABLE})
        self.assertFalse(resolution.purchasable)

    def test_round_trip_through_selection(self):
        for variant in self.product.variants:
            resolution = resolve_variant(self.product, selection_from_variant(self.product, variant))
            self.assertEqual(resolution.variant, variant)

    def test_selection_is_not_modified(self):
        selection = {COLOR: BLACK, SIZE: L}
        resolve_variant(self.product, selection)
        self.assertEqual(selection, {COLOR: BLACK, SIZE: L})

    def test_unknown_option_type(self):
        with self.assertRaises(CatalogValidationError):
            resolve_variant(self.product, {99: BLUE})

    def test_value_from_another_type(self):
        with self.assertRaises(CatalogValidationError):
            resolve_variant(self.product, {COLOR: M})


class OptionlessProductTests(SimpleTestCase):

    def test_single_variant_matches_empty_selection(self):
        variant = VariantSnapshot(id=1, product_id=5, stock=2)
        product = ProductSnapshot(id=5, store_id=1, base_price=5000, variants=(variant,))

        resolution = resolve_variant(product, {})
        self.assertEqual(resolution.status, RESOLVED)
        self.assertEqual(resolution.variant, variant)
        self.assertTrue(resolution.purchasable)
