"""
Cartesian expansion of a product's option types into variant combinations.
"""
from dataclasses import dataclass
from itertools import product as cartesian
from typing import Any, Tuple

from store.exceptions import CatalogValidationError


@dataclass(frozen=True)
class Combinations:
    """
    Result of generate_combinations.

    items: tuple of combinations; each combination is a tuple of
    (option_type_id, value) pairs in input option type order.
    empty_option_types: ids of types that had no non-blank value left, which
    collapses the product to zero combinations.
    """
    items: Tuple[Tuple[Tuple[Any, str], ...], ...]
    empty_option_types: Tuple[Any, ...] = ()

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def require_any(self):
        """Raise when there is nothing to turn into variants."""
        if not self.items:
            raise CatalogValidationError({
                'option_types': f"Option types without any value: {list(self.empty_option_types)}"
            })
        return self


@dataclass(frozen=True)
class SingleVariant(Combinations):
    """A product without option types: exactly one, empty, combination."""


@dataclass(frozen=True)
class CartesianProduct(Combinations):
    """Full cartesian product over one or more option types."""


def _field(option_type, name):
    if isinstance(option_type, dict):
        return option_type[name]
    return getattr(option_type, name)


def generate_combinations(option_types):
    """
    Expand `option_types` (ordered; each with `id` and ordered `values`,
    as dicts or objects) into combinations.

    The first option type varies slowest, the last fastest:

        [{'id': 'c', 'values': ['Blue', 'Black']}, {'id': 's', 'values': ['M', 'L']}]
        -> (('c','Blue'),('s','M')), (('c','Blue'),('s','L')),
           (('c','Black'),('s','M')), (('c','Black'),('s','L'))
    """
    if not option_types:
        return SingleVariant(items=((),))

    axes = []
    empty = []
    for option_type in option_types:
        type_id = _field(option_type, 'id')
        values = [value for value in _field(option_type, 'values') if value and str(value).strip()]
        if not values:
            empty.append(type_id)
        axes.append([(type_id, value) for value in values])

    return CartesianProduct(items=tuple(cartesian(*axes)), empty_option_types=tuple(empty))
