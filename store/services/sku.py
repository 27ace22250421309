import random
import re

_NON_ALNUM = re.compile(r'[^A-Z0-9]')

PRODUCT_CODE_LENGTH = 6
OPTION_CODE_LENGTH = 3


def _code(text, length):
    return _NON_ALNUM.sub('', (text or '').upper())[:length]


def generate_sku(product_name, option_values, rng=random):
    """
    Human-legible SKU: PRODUCT-OPT-OPT-NNNN.

    generate_sku("Classic T-Shirt", ["Blue", "XL"]) -> "CLASSI-BLU-XL-0427"

    Option values are used in the order given; the caller keeps it stable
    (normally the product's option type order). The numeric suffix is random,
    so uniqueness is enforced at persistence time, not here.
    """
    option_codes = [
        code[:OPTION_CODE_LENGTH]
        for code in (_NON_ALNUM.sub('', (value or '').upper()) for value in option_values)
        if code
    ]
    suffix = f"{rng.randint(0, 9999):04d}"
    return '-'.join([_code(product_name, PRODUCT_CODE_LENGTH), *option_codes, suffix])


def generate_variant_sku(product_name, options, rng=random):
    """Same as generate_sku, taking an ordered {option type name: value} mapping."""
    values = [value for value in options.values() if value and value.strip()]
    return generate_sku(product_name, values, rng=rng)
