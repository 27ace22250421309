from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from authentication.models import CustomUser
from .services.slugs import generate_unique_slug


def default_store_theme():
    return dict(settings.DEFAULT_STORE_THEME)


# ==========================================
# Store Model
# ==========================================
class Store(models.Model):
    """
    An independently themed storefront. Owns products; cannot be deleted
    while it still owns any (Product.store is PROTECT).
    """
    THEME_KEYS = ('primary', 'secondary', 'accent', 'bg', 'fg')

    slug = models.SlugField(max_length=255, unique=True, blank=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    theme = models.JSONField(default=default_store_theme, help_text="Five named colors: primary, secondary, accent, bg, fg")
    wa_number = models.CharField(max_length=32, help_text="WhatsApp contact number in international format, digits only")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = generate_unique_slug(self.name, 'store', exclude_id=self.pk)
        super().save(*args, **kwargs)

    @property
    def owning_store_id(self):
        return self.pk

    def __str__(self):
        return self.name


# ==========================================
# Category Model
# ==========================================
class Category(models.Model):
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True, blank=True)
    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "Categories"
        ordering = ['name']

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = generate_unique_slug(self.name, 'category', exclude_id=self.pk)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


# ==========================================
# Product Model
# ==========================================
class Product(models.Model):
    class Status(models.TextChoices):
        DRAFT = 'DRAFT', 'Draft'
        ACTIVE = 'ACTIVE', 'Active'
        ARCHIVED = 'ARCHIVED', 'Archived'

    store = models.ForeignKey(Store, on_delete=models.PROTECT, related_name='products')
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True, blank=True)
    description = models.TextField(blank=True, help_text="Markdown")
    base_price = models.PositiveIntegerField(help_text="Whole currency units, no fractional part")
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    categories = models.ManyToManyField(Category, through='ProductCategory', related_name='products')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status'], name='product_status_idx'),
        ]

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = generate_unique_slug(self.name, 'product', exclude_id=self.pk)
        super().save(*args, **kwargs)

    @property
    def owning_store_id(self):
        return self.store_id

    def __str__(self):
        return self.name


class ProductCategory(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='product_categories')
    category = models.ForeignKey(Category, on_delete=models.CASCADE, related_name='product_categories')

    class Meta:
        unique_together = ('product', 'category')

    def __str__(self):
        return f"{self.product} in {self.category}"


# ==========================================
# Product Image Model
# ==========================================
class ProductImage(models.Model):
    """
    Image reference only: url/alt/order. Bytes live in the blob store.
    """
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='images')
    url = models.URLField(max_length=1000)
    alt = models.CharField(max_length=255, blank=True)
    order = models.PositiveIntegerField(default=0, help_text="Display sequence, 0 is the primary image")

    class Meta:
        ordering = ['order', 'id']

    def __str__(self):
        return f"Image {self.order} for {self.product.name}"


# ==========================================
# Option Types, Values and Variants
# ==========================================
class OptionType(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='option_types')
    name = models.CharField(max_length=100)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']
        unique_together = ('product', 'name')

    def __str__(self):
        return f"{self.product.name}: {self.name}"


class OptionValue(models.Model):
    option_type = models.ForeignKey(OptionType, on_delete=models.CASCADE, related_name='values')
    name = models.CharField(max_length=100)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']
        unique_together = ('option_type', 'name')

    def __str__(self):
        return f"{self.option_type.name}={self.name}"


class Variant(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='variants')
    sku = models.CharField(max_length=64, unique=True, null=True, blank=True)
    stock = models.PositiveIntegerField(default=0)
    price_absolute = models.IntegerField(null=True, blank=True, help_text="Replaces the product base price when set")
    price_delta = models.IntegerField(null=True, blank=True, help_text="Added to the base price when no absolute price is set")
    option_values = models.ManyToManyField(OptionValue, related_name='variants', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']
        constraints = [
            models.CheckConstraint(condition=Q(price_absolute__isnull=True) | Q(price_absolute__gte=0), name='variant_price_absolute_non_negative'),
        ]

    @property
    def owning_store_id(self):
        return self.product.store_id

    @property
    def in_stock(self):
        return self.stock > 0

    def __str__(self):
        return self.sku or f"{self.product.name} variant #{self.pk}"


# ==========================================
# Discount Model
# ==========================================
class Discount(models.Model):
    """
    Price reduction at global, store or product scope. Active in the
    half-open window [start_at, end_at). Created and deleted, never edited.
    """
    class Scope(models.TextChoices):
        GLOBAL = 'GLOBAL', 'Global'
        STORE = 'STORE', 'Store'
        PRODUCT = 'PRODUCT', 'Product'

    class Type(models.TextChoices):
        PERCENT = 'PERCENT', 'Percent'
        FIXED = 'FIXED', 'Fixed amount'

    scope = models.CharField(max_length=10, choices=Scope.choices)
    discount_type = models.CharField(max_length=10, choices=Type.choices)
    value = models.PositiveIntegerField(help_text="Percent 0-100 or a fixed amount in whole currency units")
    priority = models.IntegerField(default=0, help_text="Higher is considered first")
    stackable = models.BooleanField(default=False)
    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    store = models.ForeignKey(Store, on_delete=models.CASCADE, null=True, blank=True, related_name='discounts')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, null=True, blank=True, related_name='discounts')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(scope='GLOBAL', store__isnull=True, product__isnull=True)
                    | Q(scope='STORE', store__isnull=False, product__isnull=True)
                    | Q(scope='PRODUCT', store__isnull=True, product__isnull=False)
                ),
                name='discount_scope_matches_target',
            ),
            models.CheckConstraint(condition=Q(end_at__gt=models.F('start_at')), name='discount_window_not_empty'),
        ]
        indexes = [
            models.Index(fields=['scope', 'end_at'], name='discount_scope_end_idx'),
        ]

    def clean(self):
        errors = {}
        if self.scope == self.Scope.GLOBAL and (self.store_id or self.product_id):
            errors['scope'] = "A global discount cannot reference a store or product."
        elif self.scope == self.Scope.STORE and (not self.store_id or self.product_id):
            errors['store'] = "A store discount must reference exactly one store and no product."
        elif self.scope == self.Scope.PRODUCT and (not self.product_id or self.store_id):
            errors['product'] = "A product discount must reference exactly one product and no store."

        if self.discount_type == self.Type.PERCENT and self.value is not None and self.value > 100:
            errors['value'] = "A percent discount must be between 0 and 100."

        if self.start_at and self.end_at and self.end_at <= self.start_at:
            errors['end_at'] = "end_at must be after start_at."

        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Discounts cannot be edited; delete this one and create a new one.")
        self.clean()
        super().save(*args, **kwargs)

    @property
    def owning_store_id(self):
        if self.scope == self.Scope.STORE:
            return self.store_id
        if self.scope == self.Scope.PRODUCT:
            return self.product.store_id
        return None

    def __str__(self):
        target = self.store or self.product or 'all stores'
        return f"{self.get_discount_type_display()} {self.value} ({self.scope}, {target})"


# ==========================================
# Per-store role overrides
# ==========================================
class StoreRole(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='store_roles')
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='roles')
    role = models.CharField(max_length=20, choices=CustomUser.Role.choices)

    class Meta:
        unique_together = ('user', 'store')

    def __str__(self):
        return f"{self.user.email} is {self.role} of {self.store.name}"
