"""
Resolve a shopper's (possibly partial) option selection against a product's
variants.

A variant's identity is the set of its option value ids, so matching is a
set comparison and never depends on the order options were picked in.
The resolver is a pure query: it never clears or rewrites a selection.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from store.exceptions import CatalogValidationError
from .snapshots import VariantSnapshot

RESOLVED = 'RESOLVED'
INVALID = 'INVALID'
INCOMPLETE = 'INCOMPLETE'

# Per-value states used to render option pickers
AVAILABLE = 'AVAILABLE'                  # an in-stock variant agrees with every other current choice
RELAXES_SELECTION = 'RELAXES_SELECTION'  # in stock somewhere, but only if other choices change
UNAVAILABLE = 'UNAVAILABLE'              # no in-stock variant carries this value at all


@dataclass(frozen=True)
class VariantResolution:
    status: str
    variant: Optional[VariantSnapshot] = None
    missing_option_types: Tuple[Any, ...] = ()
    available_values: Dict[Any, Tuple[Any, ...]] = field(default_factory=dict)
    value_states: Dict[Any, Dict[Any, str]] = field(default_factory=dict)
    can_complete: bool = False

    @property
    def is_resolved(self):
        return self.status == RESOLVED

    @property
    def is_incomplete(self):
        return self.status == INCOMPLETE

    @property
    def is_invalid(self):
        return self.status == INVALID

    @property
    def purchasable(self):
        return self.is_resolved and self.variant.in_stock


def _validate_selection(product, selection):
    known_types = set(product.option_type_ids)
    for type_id, value_id in selection.items():
        if type_id not in known_types:
            raise CatalogValidationError({'selection': f"Option type {type_id} does not belong to product {product.id}"})
        if product.value_type_ids.get(value_id) != type_id:
            raise CatalogValidationError({'selection': f"Option value {value_id} does not belong to option type {type_id}"})


def _value_states(product, selection):
    in_stock = [variant for variant in product.variants if variant.in_stock]
    states = {}
    for option_type in product.option_types:
        others = frozenset(value for type_id, value in selection.items() if type_id != option_type.id)
        type_states = {}
        for value_id in option_type.value_ids:
            carriers = [variant for variant in in_stock if value_id in variant.option_value_ids]
            if any(others <= variant.option_value_ids for variant in carriers):
                type_states[value_id] = AVAILABLE
            elif carriers:
                type_states[value_id] = RELAXES_SELECTION
            else:
                type_states[value_id] = UNAVAILABLE
        states[option_type.id] = type_states
    return states


def resolve_variant(product, selection):
    """
    Resolve `selection` ({option_type_id: option_value_id}) on `product`
    (a ProductSnapshot).

    RESOLVED   every option type chosen and a variant carries exactly those
               values (it may still be out of stock, see `purchasable`)
    INVALID    every option type chosen but no variant carries that set
    INCOMPLETE some option types still unchosen; `available_values` lists,
               per unchosen type, the values that still lead to stock
    """
    selection = dict(selection or {})
    _validate_selection(product, selection)

    chosen = frozenset(selection.values())
    states = _value_states(product, selection)
    can_complete = any(variant.in_stock and chosen <= variant.option_value_ids for variant in product.variants)
    missing = tuple(type_id for type_id in product.option_type_ids if type_id not in selection)

    if missing:
        available = {
            type_id: tuple(value_id for value_id, state in states[type_id].items() if state == AVAILABLE)
            for type_id in missing
        }
        return VariantResolution(
            status=INCOMPLETE,
            missing_option_types=missing,
            available_values=available,
            value_states=states,
            can_complete=can_complete,
        )

    match = next((variant for variant in product.variants if variant.option_value_ids == chosen), None)
    return VariantResolution(
        status=RESOLVED if match else INVALID,
        variant=match,
        value_states=states,
        can_complete=can_complete,
    )


def selection_from_variant(product, variant):
    """The selection a variant answers to: {option_type_id: option_value_id}."""
    return {product.value_type_ids[value_id]: value_id for value_id in variant.option_value_ids}
