import re

from rest_framework import serializers

from .models import Category, Discount, OptionType, OptionValue, Product, ProductImage, Store, Variant
from .services.pricing import resolve_unit_price

WA_NUMBER_RE = re.compile(r'^\d{8,15}$')
HEX_COLOR_RE = re.compile(r'^#[0-9a-fA-F]{6}$')


# ---------------------------
# Store Serializer
# ---------------------------
class StoreSerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Store
        fields = [
            'id', 'slug', 'name', 'description', 'theme', 'wa_number',
            'is_active', 'product_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['slug', 'created_at', 'updated_at']

    def get_product_count(self, obj):
        annotated = getattr(obj, 'product_count', None)
        if annotated is not None:
            return annotated
        return obj.products.count()

    def validate_wa_number(self, value):
        value = value.replace('+', '').replace(' ', '')
        if not WA_NUMBER_RE.match(value):
            raise serializers.ValidationError("WhatsApp number must be 8-15 digits in international format.")
        return value

    def validate_theme(self, value):
        if not isinstance(value, dict) or set(value) != set(Store.THEME_KEYS):
            raise serializers.ValidationError(f"Theme must define exactly: {', '.join(Store.THEME_KEYS)}.")
        bad = [key for key, color in value.items() if not HEX_COLOR_RE.match(str(color))]
        if bad:
            raise serializers.ValidationError(f"Not a #rrggbb color: {', '.join(sorted(bad))}.")
        return value


# ---------------------------
# Category Serializer
# ---------------------------
class CategorySerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'description', 'product_count', 'created_at']
        read_only_fields = ['slug', 'created_at']

    def get_product_count(self, obj):
        return obj.products.count()


# ---------------------------
# Product graph (read)
# ---------------------------
class ProductImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductImage
        fields = ['id', 'url', 'alt', 'order']


class OptionValueSerializer(serializers.ModelSerializer):
    class Meta:
        model = OptionValue
        fields = ['id', 'name', 'position']


class OptionTypeSerializer(serializers.ModelSerializer):
    values = OptionValueSerializer(many=True, read_only=True)

    class Meta:
        model = OptionType
        fields = ['id', 'name', 'position', 'values']


class VariantSerializer(serializers.ModelSerializer):
    option_values = serializers.SerializerMethodField()
    unit_price = serializers.SerializerMethodField()
    in_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Variant
        fields = [
            'id', 'sku', 'stock', 'in_stock', 'price_absolute', 'price_delta',
            'unit_price', 'option_values'
        ]

    def get_option_values(self, obj):
        return sorted(value.pk for value in obj.option_values.all())

    def get_unit_price(self, obj):
        return resolve_unit_price(obj.product, obj)


class ProductSerializer(serializers.ModelSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True)
    store_slug = serializers.CharField(source='store.slug', read_only=True)
    categories = serializers.SerializerMethodField()
    primary_image = serializers.SerializerMethodField()
    in_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'store', 'store_name', 'store_slug', 'name', 'slug', 'base_price',
            'status', 'categories', 'primary_image', 'in_stock', 'created_at', 'updated_at'
        ]
        ref_name = "CatalogProductSerializer"

    # prefetched relations are read through .all() so list views stay at a fixed query count
    def get_categories(self, obj):
        return [category.slug for category in obj.categories.all()]

    def get_primary_image(self, obj):
        images = list(obj.images.all())
        return images[0].url if images else None

    def get_in_stock(self, obj):
        return any(variant.stock > 0 for variant in obj.variants.all())


class ProductDetailSerializer(ProductSerializer):
    images = ProductImageSerializer(many=True, read_only=True)
    option_types = OptionTypeSerializer(many=True, read_only=True)
    variants = VariantSerializer(many=True, read_only=True)

    class Meta(ProductSerializer.Meta):
        fields = ProductSerializer.Meta.fields + ['description', 'images', 'option_types', 'variants']
        ref_name = "CatalogProductDetailSerializer"


# ---------------------------
# Product graph (write)
# ---------------------------
class ImageInputSerializer(serializers.Serializer):
    # hosted URL or an inline data:image/... payload that gets uploaded
    url = serializers.CharField()
    alt = serializers.CharField(required=False, allow_blank=True, default='')
    order = serializers.IntegerField(required=False, min_value=0)


class OptionTypeInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    values = serializers.ListField(child=serializers.CharField(allow_blank=True, max_length=100), allow_empty=False)


class VariantInputSerializer(serializers.Serializer):
    sku = serializers.CharField(required=False, allow_blank=True, max_length=64)
    stock = serializers.IntegerField(required=False, min_value=0, default=0)
    price_absolute = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    price_delta = serializers.IntegerField(required=False, allow_null=True)
    options = serializers.DictField(child=serializers.CharField(), required=False, default=dict)


class ProductCreateSerializer(serializers.Serializer):
    store = serializers.PrimaryKeyRelatedField(queryset=Store.objects.all())
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    base_price = serializers.IntegerField(min_value=0)
    status = serializers.ChoiceField(choices=Product.Status.choices, default=Product.Status.ACTIVE)
    categories = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    images = ImageInputSerializer(many=True, required=False, default=list)
    option_types = OptionTypeInputSerializer(many=True, required=False, default=list)
    variants = VariantInputSerializer(many=True, required=False, default=list)
    default_stock = serializers.IntegerField(required=False, min_value=0, default=0)


class ProductUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    base_price = serializers.IntegerField(min_value=0, required=False)
    status = serializers.ChoiceField(choices=Product.Status.choices, required=False)
    categories = serializers.ListField(child=serializers.IntegerField(), allow_empty=False, required=False)
    images = ImageInputSerializer(many=True, required=False)


class VariantUpdateSerializer(serializers.Serializer):
    sku = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    stock = serializers.IntegerField(required=False, min_value=0)
    price_absolute = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    price_delta = serializers.IntegerField(required=False, allow_null=True)


# ---------------------------
# Variant selection
# ---------------------------
class SelectionSerializer(serializers.Serializer):
    """{"selection": {"<option type id>": <option value id>, ...}}"""
    selection = serializers.DictField(child=serializers.IntegerField(), required=False, default=dict)

    def validate_selection(self, value):
        try:
            return {int(type_id): value_id for type_id, value_id in value.items()}
        except ValueError:
            raise serializers.ValidationError("Option type ids must be integers.")


def resolution_payload(resolution, quote=None):
    """JSON-ready view of a VariantResolution, with prices when a variant was resolved."""
    payload = {
        'status': resolution.status,
        'variant': None,
        'purchasable': resolution.purchasable,
        'can_complete': resolution.can_complete,
        'missing_option_types': list(resolution.missing_option_types),
        'available_values': {
            str(type_id): list(values) for type_id, values in resolution.available_values.items()
        },
        'value_states': {
            str(type_id): {str(value_id): state for value_id, state in states.items()}
            for type_id, states in resolution.value_states.items()
        },
    }
    if resolution.variant is not None:
        variant = resolution.variant
        payload['variant'] = {
            'id': variant.id,
            'sku': variant.sku,
            'stock': variant.stock,
            'in_stock': variant.in_stock,
        }
    if quote is not None:
        payload['pricing'] = quote_payload(quote)
    return payload


def quote_payload(quote):
    return {
        'unit_price': quote.unit_price,
        'final_price': quote.final_price,
        'savings': quote.savings,
        'applied_discounts': [discount.id for discount in quote.applied],
        'skipped_discounts': [discount.id for discount in quote.skipped],
    }


# ---------------------------
# Discount Serializer
# ---------------------------
class DiscountSerializer(serializers.ModelSerializer):
    """Discounts are created and deleted only; the model enforces the scope/target rules."""

    class Meta:
        model = Discount
        fields = [
            'id', 'scope', 'discount_type', 'value', 'priority', 'stackable',
            'start_at', 'end_at', 'store', 'product', 'created_at'
        ]
        read_only_fields = ['created_at']
