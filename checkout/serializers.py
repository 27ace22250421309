from rest_framework import serializers

from .notifications import PAYMENT_METHOD_LABELS


class AddToCartSerializer(serializers.Serializer):
    """
    Either a concrete `variant_id` or a complete option `selection`
    ({"<option type id>": <option value id>}) identifying the variant.
    """
    product_id = serializers.IntegerField()
    variant_id = serializers.IntegerField(required=False)
    selection = serializers.DictField(child=serializers.IntegerField(), required=False)
    quantity = serializers.IntegerField(min_value=1, default=1)

    def validate_selection(self, value):
        try:
            return {int(type_id): value_id for type_id, value_id in value.items()}
        except ValueError:
            raise serializers.ValidationError("Option type ids must be integers.")


class UpdateQuantitySerializer(serializers.Serializer):
    # 0 or less removes the line
    quantity = serializers.IntegerField()


class CustomerSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=32)
    province = serializers.CharField(max_length=100)
    regency = serializers.CharField(max_length=100)
    district = serializers.CharField(max_length=100)
    village = serializers.CharField(max_length=100)
    postal_code = serializers.CharField(max_length=10)
    payment_method = serializers.ChoiceField(choices=list(PAYMENT_METHOD_LABELS))


class CheckoutSerializer(serializers.Serializer):
    store_id = serializers.IntegerField()
    customer = CustomerSerializer()
