import logging
import time

import cloudinary.uploader
from django.conf import settings

from store.exceptions import CatalogValidationError

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = 'data:image/'


def upload_image(url, index=0):
    """
    Push an inline `data:image/...;base64,` payload to Cloudinary and return
    its public URL. Anything else is already hosted and returned unchanged.
    """
    if not url.startswith(DATA_URI_PREFIX):
        return url

    public_id = f"product-{int(time.time() * 1000)}-{index}"
    try:
        result = cloudinary.uploader.upload(
            url,
            folder=settings.CLOUDINARY_UPLOAD_FOLDER,
            public_id=public_id,
            resource_type='image',
        )
    except Exception as e:
        logger.error(f"Failed to upload product image {public_id}: {str(e)}", exc_info=True)
        raise CatalogValidationError({'images': f"Image {index} could not be uploaded"})

    logger.info(f"Uploaded product image {public_id} to {result.get('secure_url')}")
    return result['secure_url']


def process_images(images):
    """Upload inline images and return url/alt/order dicts sorted by order."""
    processed = [
        {
            'url': upload_image(image['url'], index),
            'alt': image.get('alt') or '',
            'order': image.get('order', index),
        }
        for index, image in enumerate(images or [])
    ]
    return sorted(processed, key=lambda image: image['order'])
