import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from .models import Discount

logger = logging.getLogger("store.tasks")


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_kwargs={
        'max_retries': 3,
        'countdown': 60,
    },
    retry_backoff=True,
    retry_backoff_max=300,
    retry_jitter=True,
    name="store.purge_expired_discounts"
)
def purge_expired_discounts(self, grace_days=None):
    """
    Delete discounts whose window closed more than `grace_days` ago
    (DISCOUNT_PURGE_GRACE_DAYS by default). Expired discounts never apply, so
    this only keeps the candidate query small.
    """
    grace_days = settings.DISCOUNT_PURGE_GRACE_DAYS if grace_days is None else grace_days
    cutoff = timezone.now() - timedelta(days=grace_days)

    expired = Discount.objects.filter(end_at__lte=cutoff)
    count = expired.count()
    if count:
        expired.delete()
    logger.info(f"[PurgeExpiredDiscounts] Removed {count} discount(s) that ended before {cutoff.isoformat()}")
    return {"status": "success", "deleted": count}
