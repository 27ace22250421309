from django.utils.translation import gettext_lazy as _
from rest_framework.exceptions import APIException


class CatalogError(APIException):
    """Base class for every catalog/pricing engine failure."""
    status_code = 400
    default_detail = _('Catalog operation failed.')
    default_code = 'catalog_error'


class CatalogValidationError(CatalogError):
    """
    Malformed input to a generator or resolver: a variant paired with the
    wrong product, a non-positive cart quantity, a discount whose scope and
    target disagree.
    """
    status_code = 400
    default_detail = _('Invalid catalog data.')
    default_code = 'validation_error'


class NotFoundError(CatalogError):
    status_code = 404
    default_detail = _('The requested item is no longer available.')
    default_code = 'not_found'


class ConflictError(CatalogError):
    """Slug or SKU uniqueness violation, or a referential guard (store still owns products)."""
    status_code = 409
    default_detail = _('This value is already in use.')
    default_code = 'conflict'


class OutOfStockError(CatalogError):
    status_code = 409
    default_detail = _('This variant is out of stock, please choose another.')
    default_code = 'out_of_stock'


class IncompleteSelectionError(CatalogError):
    """Raised only at the commit-to-cart boundary; the resolver reports it as a result."""
    status_code = 400
    default_detail = _('Please select all variant options.')
    default_code = 'incomplete_selection'
