"""
URL slugs for stores, products and categories.

Each entity type has its own namespace, so a store and a product may share a
slug. Collisions are resolved by appending -1, -2, ... to the base slug.
"""
import logging
import re

from django.apps import apps

logger = logging.getLogger(__name__)

FALLBACK_SLUG = 'unnamed'

SLUG_MODELS = {
    'product': 'store.Product',
    'store': 'store.Store',
    'category': 'store.Category',
}

_DISALLOWED = re.compile(r'[^a-z0-9\s-]')
_WHITESPACE = re.compile(r'\s+')
_HYPHENS = re.compile(r'-+')


def slugify_name(name):
    """
    Normalize a display name without checking uniqueness.
    "  Red Shirt!! (XL) " -> "red-shirt-xl"
    """
    slug = (name or '').lower()
    slug = _DISALLOWED.sub('', slug)
    slug = _WHITESPACE.sub('-', slug.strip())
    slug = _HYPHENS.sub('-', slug)
    return slug.strip('-')


def slug_exists(slug, entity_type, exclude_id=None):
    """Default existence lookup against the ORM."""
    try:
        model = apps.get_model(SLUG_MODELS[entity_type])
    except KeyError:
        raise ValueError(f"Unknown slug entity type: {entity_type}")

    queryset = model.objects.filter(slug=slug)
    if exclude_id is not None:
        queryset = queryset.exclude(pk=exclude_id)
    return queryset.exists()


def generate_unique_slug(name, entity_type, exclude_id=None, exists=slug_exists, start=0):
    """
    Return the first free slug for `name` within `entity_type`.

    `exclude_id` lets an entity keep its own slug when renamed. `exists` is
    the lookup collaborator (slug, entity_type, exclude_id) -> bool. `start`
    skips counters already known to collide, used when a concurrent insert
    won the race for a slug that passed this check.
    """
    base_slug = slugify_name(name) or FALLBACK_SLUG

    counter = start
    candidate = base_slug if counter == 0 else f"{base_slug}-{counter}"
    while exists(candidate, entity_type, exclude_id):
        counter += 1
        candidate = f"{base_slug}-{counter}"

    if counter:
        logger.debug(f"Slug '{base_slug}' taken for {entity_type}, using '{candidate}'")
    return candidate
