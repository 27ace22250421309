from django.test import SimpleTestCase

from store.exceptions import CatalogValidationError
from store.services.combinations import CartesianProduct, SingleVariant, generate_combinations


class GenerateCombinationsTests(SimpleTestCase):

    def test_no_option_types_is_one_empty_combination(self):
        result = generate_combinations([])
        self.assertIsInstance(result, SingleVariant)
        self.assertEqual(list(result), [()])

    def test_count_is_product_of_value_counts(self):
        result = generate_combinations([
            {'id': 'color', 'values': ['Blue', 'Black']},
            {'id': 'size', 'values': ['S', 'M', 'L']},
            {'id': 'fit', 'values': ['Slim', 'Regular']},
        ])
        self.assertIsInstance(result, CartesianProduct)
        self.assertEqual(len(result), 12)
        self.assertEqual(len({frozenset(combination) for combination in result}), 12)

    def test_first_type_varies_slowest(self):
        result = generate_combinations([
            {'id': 'c', 'values': ['Blue', 'Black']},
            {'id': 's', 'values': ['M', 'L']},
        ])
        self.assertEqual(list(result), [
            (('c', 'Blue'), ('s', 'M')),
            (('c', 'Blue'), ('s', 'L')),
            (('c', 'Black'), ('s', 'M')),
            (('c', 'Black'), ('s', 'L')),
        ])

    def test_blank_values_are_ignored(self):
        result = generate_combinations([{'id': 'size', 'values': ['M', '', '  ', 'L']}])
        self.assertEqual(list(result), [(('size', 'M'),), (('size', 'L'),)])

    def test_type_without_values_collapses_and_is_reported(self):
        result = generate_combinations([
            {'id': 'color', 'values': ['Blue']},
            {'id': 'size', 'values': ['']},
        ])
        self.assertEqual(len(result), 0)
        self.assertEqual(result.empty_option_types, ('size',))
        with self.assertRaises(CatalogValidationError):
            result.require_any()
