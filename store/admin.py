from django import forms
from django.contrib import admin
from .exceptions import CatalogValidationError
from .models import (
    Store, Category, Product, ProductImage, OptionType, OptionValue, Variant, Discount, StoreRole,
)
from .services.catalog import CatalogService, save_with_unique_slug


class ReslugOnRenameMixin:
    """Renaming in the admin re-slugs the object, same as the API does."""
    slug_entity_type = None

    def save_model(self, request, obj, form, change):
        if change and 'name' in form.changed_data:
            save_with_unique_slug(obj, self.slug_entity_type)
        else:
            super().save_model(request, obj, form, change)


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 0


class OptionTypeInline(admin.TabularInline):
    model = OptionType
    extra = 0


class VariantInline(admin.TabularInline):
    model = Variant
    extra = 0
    fields = ('sku', 'stock', 'price_absolute', 'price_delta')


@admin.register(Store)
class StoreAdmin(ReslugOnRenameMixin, admin.ModelAdmin):
    slug_entity_type = 'store'
    list_display = ('name', 'slug', 'wa_number', 'is_active', 'created_at')
    list_filter = ('is_active', 'created_at')
    search_fields = ('name', 'description')
    readonly_fields = ('slug', 'created_at', 'updated_at')


@admin.register(Category)
class CategoryAdmin(ReslugOnRenameMixin, admin.ModelAdmin):
    slug_entity_type = 'category'
    list_display = ('name', 'slug', 'created_at')
    search_fields = ('name',)
    readonly_fields = ('slug',)


@admin.register(Product)
class ProductAdmin(ReslugOnRenameMixin, admin.ModelAdmin):
    slug_entity_type = 'product'
    list_display = ('name', 'store', 'base_price', 'status', 'created_at')
    list_filter = ('status', 'store', 'categories')
    search_fields = ('name', 'description', 'variants__sku')
    readonly_fields = ('slug', 'created_at', 'updated_at')
    inlines = [ProductImageInline, OptionTypeInline, VariantInline]
    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'slug', 'store', 'status')
        }),
        ('Details', {
            'fields': ('description', 'base_price')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(OptionValue)
class OptionValueAdmin(admin.ModelAdmin):
    list_display = ('name', 'option_type', 'position')
    search_fields = ('name', 'option_type__name', 'option_type__product__name')


class VariantAdminForm(forms.ModelForm):
    class Meta:
        model = Variant
        fields = '__all__'

    def clean(self):
        cleaned_data = super().clean()
        product = cleaned_data.get('product')
        option_values = cleaned_data.get('option_values')
        if product is not None and option_values is not None:
            try:
                CatalogService.validate_variant_options(product, list(option_values.select_related('option_type')))
            except CatalogValidationError as e:
                raise forms.ValidationError({'option_values': e.detail['option_values']})
        return cleaned_data


@admin.register(Variant)
class VariantAdmin(admin.ModelAdmin):
    form = VariantAdminForm
    list_display = ('sku', 'product', 'stock', 'price_absolute', 'price_delta')
    search_fields = ('sku', 'product__name')
    filter_horizontal = ('option_values',)


@admin.register(Discount)
class DiscountAdmin(admin.ModelAdmin):
    """Discounts are immutable: add or delete, never change."""
    list_display = ('scope', 'discount_type', 'value', 'priority', 'stackable', 'start_at', 'end_at')
    list_filter = ('scope', 'discount_type', 'stackable')
    readonly_fields = ('created_at',)

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(StoreRole)
class StoreRoleAdmin(admin.ModelAdmin):
    list_display = ('user', 'store', 'role')
    list_filter = ('role', 'store')
    search_fields = ('user__email', 'store__name')
