from django.db.models import Q
from django.db.models.signals import m2m_changed, post_delete, pre_save
from django.dispatch import receiver
import logging

from .models import OptionValue, Product, Variant
from .services.catalog import CatalogService

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Product)
def log_product_changes(sender, instance, **kwargs):
    """
    Audit trail for status and base price changes. Cart lines keep the price
    they were added at, so a price change here only affects new additions.
    """
    if not instance.pk:
        return
    previous = Product.objects.filter(pk=instance.pk).values('status', 'base_price').first()
    if previous is None:
        return
    if previous['status'] != instance.status:
        logger.info(f"Product '{instance.name}' status changed from {previous['status']} to {instance.status}")
    if previous['base_price'] != instance.base_price:
        logger.info(
            f"Product '{instance.name}' base price changed from {previous['base_price']} to {instance.base_price}"
        )


@receiver(pre_save, sender=Variant)
def log_stock_depletion(sender, instance, **kwargs):
    if not instance.pk:
        return
    previous_stock = Variant.objects.filter(pk=instance.pk).values_list('stock', flat=True).first()
    if previous_stock and instance.stock == 0:
        logger.info(f"Variant {instance.sku or instance.pk} of product {instance.product_id} is now out of stock")


@receiver(post_delete, sender=Product)
def log_product_deleted(sender, instance, **kwargs):
    logger.info(f"Product '{instance.name}' ({instance.slug}) deleted from store {instance.store_id}")


def _check_option_values(variant, added_ids):
    values = (
        OptionValue.objects.filter(Q(pk__in=added_ids) | Q(variants=variant))
        .select_related('option_type')
        .distinct()
    )
    CatalogService.validate_variant_options(variant.product, list(values))


@receiver(m2m_changed, sender=Variant.option_values.through)
def guard_variant_option_values(sender, instance, action, reverse, pk_set, **kwargs):
    """
    A variant only carries values of its own product's option types, at most
    one per type, whichever side of the relation the values are added from.
    """
    if action != 'pre_add' or not pk_set:
        return
    if reverse:
        for variant in Variant.objects.filter(pk__in=pk_set).select_related('product'):
            _check_option_values(variant, {instance.pk})
    else:
        _check_option_values(instance, pk_set)
