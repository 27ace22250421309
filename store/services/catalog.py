import logging
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, ProtectedError, Sum
from django.utils import timezone

from store.exceptions import CatalogValidationError, ConflictError, NotFoundError, OutOfStockError
from store.models import (
    Category, Discount, OptionType, OptionValue, Product, ProductImage, Store, Variant,
)
from .combinations import generate_combinations
from .discounts import load_discounts, select_discounts
from .pricing import resolve_unit_price
from .sku import generate_sku
from .slugs import FALLBACK_SLUG, generate_unique_slug, slugify_name
from .snapshots import product_snapshot, store_snapshot
from .uploads import process_images

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_DAYS = 30


def product_queryset():
    """Products with everything a ProductSnapshot needs, in a fixed number of queries."""
    return Product.objects.select_related('store').prefetch_related(
        'images',
        'categories',
        'option_types__values',
        'variants__option_values',
    )


def _next_slug_start(name, slug):
    base_slug = slugify_name(name) or FALLBACK_SLUG
    suffix = slug[len(base_slug):].lstrip('-')
    return int(suffix) + 1 if suffix.isdigit() else 1


def save_with_unique_slug(instance, entity_type):
    """
    Save `instance` under a fresh unique slug. The existence check can race
    with a concurrent insert, so the unique constraint decides and a lost
    race retries from the next counter inside a savepoint.
    """
    start = 0
    for attempt in range(settings.SLUG_MAX_RETRIES):
        instance.slug = generate_unique_slug(instance.name, entity_type, exclude_id=instance.pk, start=start)
        try:
            with transaction.atomic():
                instance.save()
            return instance
        except IntegrityError:
            logger.warning(f"Slug '{instance.slug}' for {entity_type} taken concurrently (attempt {attempt + 1})")
            start = _next_slug_start(instance.name, instance.slug)

    raise ConflictError({'slug': f"Could not allocate a unique slug for '{instance.name}'"})


def sku_exists(sku, exclude_id=None):
    queryset = Variant.objects.filter(sku=sku)
    if exclude_id is not None:
        queryset = queryset.exclude(pk=exclude_id)
    return queryset.exists()


def save_with_generated_sku(variant, product_name, option_names, taken):
    """
    Give `variant` a generated SKU and save it. A collision (with the database
    or with `taken`, the SKUs already handed out in this batch) draws a new
    random suffix, up to SKU_MAX_RETRIES times.
    """
    for attempt in range(settings.SKU_MAX_RETRIES):
        variant.sku = generate_sku(product_name, option_names)
        if variant.sku in taken or sku_exists(variant.sku):
            logger.debug(f"Generated SKU {variant.sku} already in use (attempt {attempt + 1})")
            continue
        try:
            with transaction.atomic():
                variant.save()
        except IntegrityError:
            logger.warning(f"Generated SKU {variant.sku} taken concurrently (attempt {attempt + 1})")
            continue
        taken.add(variant.sku)
        return variant

    raise ConflictError({'sku': f"Could not generate a unique SKU for '{product_name}'"})


class CatalogService:
    """
    Transactional writes of the catalog graph. Everything here validates
    before it touches the database and raises catalog errors the API layer
    turns into standardized responses.
    """

    # ------------------------------------------
    # Validation
    # ------------------------------------------
    @staticmethod
    def validate_variant_options(product, option_values):
        """
        A variant may only carry values of its own product's option types, and
        at most one value per type.
        """
        seen_types = set()
        for value in option_values:
            option_type = value.option_type
            if option_type.product_id != product.pk:
                raise CatalogValidationError(
                    {'option_values': f"'{value.name}' belongs to another product's option type '{option_type.name}'"}
                )
            if option_type.pk in seen_types:
                raise CatalogValidationError(
                    {'option_values': f"More than one value given for option type '{option_type.name}'"}
                )
            seen_types.add(option_type.pk)
        return option_values

    @staticmethod
    def ensure_purchasable(variant, quantity, already_in_cart=0):
        """Commit-to-cart guard: the variant must have stock for the whole requested quantity."""
        if quantity <= 0:
            raise CatalogValidationError({'quantity': "Quantity must be a positive integer"})
        if variant.stock <= 0:
            raise OutOfStockError()
        if quantity + already_in_cart > variant.stock:
            raise OutOfStockError(f"Only {variant.stock} left in stock for this variant.")
        return variant

    @staticmethod
    def _categories(category_ids):
        category_ids = list(dict.fromkeys(category_ids or []))
        if not category_ids:
            raise CatalogValidationError({'categories': "A product needs at least one category"})
        categories = list(Category.objects.filter(pk__in=category_ids))
        if len(categories) != len(category_ids):
            missing = set(category_ids) - {category.pk for category in categories}
            raise NotFoundError(f"Categories not found: {sorted(missing)}")
        return categories

    @staticmethod
    def _check_supplied_skus(variants_data, exclude_id=None):
        skus = [variant.get('sku') for variant in variants_data if variant.get('sku')]
        duplicates = {sku for sku in skus if skus.count(sku) > 1}
        if duplicates:
            raise ConflictError({'sku': f"SKU used more than once: {sorted(duplicates)}"})
        for sku in skus:
            if sku_exists(sku, exclude_id=exclude_id):
                raise ConflictError({'sku': f"SKU '{sku}' already exists"})

    # ------------------------------------------
    # Stores
    # ------------------------------------------
    @staticmethod
    @transaction.atomic
    def create_store(data):
        store = Store(**data)
        return save_with_unique_slug(store, 'store')

    @staticmethod
    @transaction.atomic
    def update_store(store, data):
        renamed = 'name' in data and data['name'] != store.name
        for field, value in data.items():
            setattr(store, field, value)
        if renamed:
            return save_with_unique_slug(store, 'store')
        store.save()
        return store

    @staticmethod
    def delete_store(store):
        try:
            store.delete()
        except ProtectedError:
            raise ConflictError("Cannot delete store with existing products.")
        logger.info(f"Store {store.slug} deleted")

    # ------------------------------------------
    # Products
    # ------------------------------------------
    @staticmethod
    @transaction.atomic
    def create_product(store, data):
        """
        Create a product with its categories, images, option types and
        variants in one transaction.

        `data['option_types']` is an ordered list of {name, values}. Variants
        are either given in `data['variants']` (each with `options`, a
        {option type name: value name} mapping) or, when omitted, generated as
        the full cartesian product of the option values, with
        `data['default_stock']` units each and no price override.
        """
        categories = CatalogService._categories(data.get('categories'))
        variants_data = data.get('variants') or []
        CatalogService._check_supplied_skus(variants_data)
        images = process_images(data.get('images'))

        product = Product(
            store=store,
            name=data['name'],
            description=data.get('description', ''),
            base_price=data['base_price'],
            status=data.get('status', Product.Status.ACTIVE),
        )
        save_with_unique_slug(product, 'product')
        product.categories.set(categories)

        ProductImage.objects.bulk_create(
            [ProductImage(product=product, **image) for image in images]
        )

        option_types = CatalogService._create_option_graph(product, data.get('option_types') or [])
        if variants_data:
            CatalogService._create_explicit_variants(product, option_types, variants_data)
        else:
            CatalogService._create_generated_variants(product, option_types, data.get('default_stock', 0))

        logger.info(
            f"Product {product.slug} created in store {store.slug} "
            f"with {product.variants.count()} variant(s)"
        )
        return product_queryset().get(pk=product.pk)

    @staticmethod
    def _create_option_graph(product, option_types_data):
        """Returns [(OptionType, {value name: OptionValue})] in input order."""
        names = [option_type['name'] for option_type in option_types_data]
        if len(set(names)) != len(names):
            raise CatalogValidationError({'option_types': "Option type names must be unique per product"})

        created = []
        for position, option_type_data in enumerate(option_types_data):
            # blank values are dropped, repeated names collapse to one value
            value_names = list(dict.fromkeys(
                value.strip() for value in option_type_data.get('values', []) if value and value.strip()
            ))
            if not value_names:
                raise CatalogValidationError(
                    {'option_types': f"Option type '{option_type_data['name']}' needs at least one value"}
                )
            option_type = OptionType.objects.create(product=product, name=option_type_data['name'], position=position)
            values = [
                OptionValue.objects.create(option_type=option_type, name=name, position=index)
                for index, name in enumerate(value_names)
            ]
            created.append((option_type, {value.name: value for value in values}))
        return created

    @staticmethod
    def _create_generated_variants(product, option_types, stock):
        combinations = generate_combinations([
            {'id': option_type.pk, 'values': list(values)} for option_type, values in option_types
        ]).require_any()

        values_by_type = {option_type.pk: values for option_type, values in option_types}
        taken = set()
        for combination in combinations:
            option_values = [values_by_type[type_id][name] for type_id, name in combination]
            variant = Variant(product=product, stock=stock)
            save_with_generated_sku(variant, product.name, [value.name for value in option_values], taken)
            variant.option_values.set(option_values)

    @staticmethod
    def _create_explicit_variants(product, option_types, variants_data):
        lookup = {option_type.name: values for option_type, values in option_types}
        identities = set()
        taken = set()
        for variant_data in variants_data:
            options = variant_data.get('options') or {}
            option_values = []
            for type_name, value_name in options.items():
                if type_name not in lookup:
                    raise CatalogValidationError({'variants': f"Unknown option type '{type_name}'"})
                if value_name not in lookup[type_name]:
                    raise CatalogValidationError(
                        {'variants': f"Unknown value '{value_name}' for option type '{type_name}'"}
                    )
                option_values.append(lookup[type_name][value_name])

            if len(option_values) != len(option_types):
                raise CatalogValidationError(
                    {'variants': "Every variant must pick one value for each option type"}
                )
            identity = frozenset(value.pk for value in option_values)
            if identity in identities:
                raise CatalogValidationError({'variants': f"Duplicate variant for options {options}"})
            identities.add(identity)

            variant = Variant(
                product=product,
                stock=variant_data.get('stock', 0),
                price_absolute=variant_data.get('price_absolute'),
                price_delta=variant_data.get('price_delta'),
            )
            if variant_data.get('sku'):
                variant.sku = variant_data['sku']
                try:
                    with transaction.atomic():
                        variant.save()
                except IntegrityError:
                    raise ConflictError({'sku': f"SKU '{variant.sku}' already exists"})
                taken.add(variant.sku)
            else:
                # options are ordered by option type position for a stable SKU
                ordered = sorted(option_values, key=lambda value: value.option_type.position)
                save_with_generated_sku(variant, product.name, [value.name for value in ordered], taken)
            variant.option_values.set(option_values)

    @staticmethod
    @transaction.atomic
    def update_product(product, data):
        """Rename (re-slugging under the product's own id), reprice, restatus, recategorize."""
        renamed = 'name' in data and data['name'] != product.name
        for field in ('name', 'description', 'base_price', 'status'):
            if field in data:
                setattr(product, field, data[field])

        if renamed:
            save_with_unique_slug(product, 'product')
        else:
            product.save()

        if 'categories' in data:
            product.categories.set(CatalogService._categories(data['categories']))

        if 'images' in data:
            product.images.all().delete()
            ProductImage.objects.bulk_create(
                [ProductImage(product=product, **image) for image in process_images(data['images'])]
            )

        logger.info(f"Product {product.slug} updated: {sorted(data)}")
        return product_queryset().get(pk=product.pk)

    @staticmethod
    @transaction.atomic
    def update_variant(variant, data):
        """Stock, price overrides (None clears one) and SKU."""
        sku = data.get('sku')
        if sku and sku != variant.sku and sku_exists(sku, exclude_id=variant.pk):
            raise ConflictError({'sku': f"SKU '{sku}' already exists"})

        for field in ('stock', 'price_absolute', 'price_delta'):
            if field in data:
                setattr(variant, field, data[field])
        if 'sku' in data:
            variant.sku = data['sku'] or None

        try:
            with transaction.atomic():
                variant.save()
        except IntegrityError:
            raise ConflictError({'sku': f"SKU '{variant.sku}' already exists"})

        logger.info(f"Variant {variant.pk} of product {variant.product_id} updated: {sorted(data)}")
        return variant

    # ------------------------------------------
    # Discounts
    # ------------------------------------------
    @staticmethod
    def create_discount(data):
        discount = Discount(**data)
        try:
            discount.save()
        except DjangoValidationError as e:
            raise CatalogValidationError(e.message_dict)
        logger.info(f"Discount {discount.pk} created: {discount}")
        return discount

    # ------------------------------------------
    # Pricing
    # ------------------------------------------
    @staticmethod
    def quote(product, variant_id, now=None, discounts=None, store=None):
        """
        Unit and final price of one variant of a snapshot product, together
        with the discounts that produced the final price. Pass `store` (a
        StoreSnapshot) when quoting several variants of one product.
        """
        now = now or timezone.now()
        variant = product.variant(variant_id)
        if variant is None:
            raise NotFoundError(f"Variant {variant_id} not found for product {product.id}")

        if store is None:
            store = store_snapshot(Store.objects.get(pk=product.store_id))
        if discounts is None:
            discounts = load_discounts(product, now=now)
        unit_price = resolve_unit_price(product, variant)
        return select_discounts(product, store, unit_price, now, discounts)

    @staticmethod
    def snapshot(product_id=None, slug=None, active_only=False):
        """
        Snapshot of one product by id or slug. With `active_only`, draft and
        archived products and products of inactive stores are not found.
        """
        lookup = {'pk': product_id} if product_id is not None else {'slug': slug}
        queryset = product_queryset()
        if active_only:
            queryset = queryset.filter(status=Product.Status.ACTIVE, store__is_active=True)
        try:
            return product_snapshot(queryset.get(**lookup))
        except Product.DoesNotExist:
            raise NotFoundError("Product not found.")

    # ------------------------------------------
    # Storefront / Dashboard
    # ------------------------------------------
    @staticmethod
    def home_feed(store_limit=6, product_limit=8):
        """Landing page: oldest active stores, newest active products and headline counts."""
        stores = (
            Store.objects.filter(is_active=True)
            .annotate(product_count=Count('products'))
            .order_by('created_at', 'id')[:store_limit]
        )
        products = (
            product_queryset()
            .filter(status=Product.Status.ACTIVE, store__is_active=True)
            .order_by('-created_at', '-id')[:product_limit]
        )
        return {
            'stores': list(stores),
            'featured_products': list(products),
            'stats': {
                'total_stores': Store.objects.count(),
                'total_products': Product.objects.filter(status=Product.Status.ACTIVE).count(),
                'active_stores': Store.objects.filter(is_active=True).count(),
            },
        }

    @staticmethod
    def dashboard_stats(now=None):
        now = now or timezone.now()
        since = now - timedelta(days=RECENT_ACTIVITY_DAYS)
        return {
            'total_stores': Store.objects.count(),
            'total_products': Product.objects.count(),
            'total_categories': Category.objects.count(),
            'active_stores': Store.objects.filter(is_active=True).count(),
            'active_products': Product.objects.filter(status=Product.Status.ACTIVE).count(),
            'total_stock': Variant.objects.aggregate(total=Sum('stock'))['total'] or 0,
            'recent_activity': {
                'new_stores': Store.objects.filter(created_at__gte=since).count(),
                'new_products': Product.objects.filter(created_at__gte=since).count(),
            },
        }
