import random
import re
from unittest import mock

from django.test import SimpleTestCase

from store.services.sku import generate_sku, generate_variant_sku


class GenerateSkuTests(SimpleTestCase):

    def setUp(self):
        self.rng = mock.Mock()
        self.rng.randint.return_value = 427

    def test_product_and_option_codes(self):
        self.assertEqual(generate_sku("Classic T-Shirt", ["Blue", "XL"], rng=self.rng), "CLASSI-BLU-XL-0427")
        self.rng.randint.assert_called_once_with(0, 9999)

    def test_empty_option_codes_are_dropped(self):
        self.assertEqual(generate_sku("Mug", ["", "!!", "red"], rng=self.rng), "MUG-RED-0427")

    def test_without_options(self):
        self.assertEqual(generate_sku("Slim Fit Jeans", [], rng=self.rng), "SLIMFI-0427")

    def test_suffix_is_four_digits(self):
        sku = generate_sku("Smartwatch Pro", ["Leather"], rng=random.Random(7))
        self.assertRegex(sku, re.compile(r"^SMARTW-LEA-\d{4}$"))

    def test_variant_sku_keeps_mapping_order_and_skips_blanks(self):
        sku = generate_variant_sku("Hoodie", {"Size": "L", "Fit": " ", "Color": "Grey"}, rng=self.rng)
        self.assertEqual(sku, "HOODIE-L-GRE-0427")
