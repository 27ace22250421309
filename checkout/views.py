import logging

from django.shortcuts import get_object_or_404
from django.utils import timezone
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiResponse
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from authentication.core.base_view import BaseAPIView
from authentication.core.response import standardized_response
from store.exceptions import CatalogValidationError, IncompleteSelectionError, NotFoundError
from store.models import Product, Store, Variant
from store.services.catalog import CatalogService
from store.services.discounts import load_discounts
from store.services.snapshots import store_snapshot
from store.services.variants import resolve_variant

from .cart import add_item, clear, clear_store, item_quantity, remove_item, set_quantity
from .notifications import WhatsAppChannel
from .serializers import AddToCartSerializer, CheckoutSerializer, UpdateQuantitySerializer
from .services import CheckoutService
from .storage import SessionCartStorage

logger = logging.getLogger(__name__)


class CartBaseView(BaseAPIView):
    """Shopper cart views: anonymous, session backed."""
    permission_classes = [AllowAny]

    def get_storage(self):
        return SessionCartStorage(self.request.session)


@extend_schema(tags=["Cart"])
class CartView(CartBaseView):

    @extend_schema(description="The session cart grouped by store, with subtotals and totals.")
    def get(self, request):
        return Response(standardized_response(data=self.get_storage().load().to_dict()))

    @extend_schema(description="Empty the whole cart.")
    def delete(self, request):
        cart = self.get_storage().apply(clear)
        return Response(standardized_response(data=cart.to_dict(), message="Cart cleared"))


@extend_schema(
    tags=["Cart"],
    request=AddToCartSerializer,
    description=(
        "Add a variant to the cart. The price is fixed, discounts included, at the moment it is added; "
        "adding the same variant again raises the quantity of the existing line."
    ),
    examples=[
        OpenApiExample("By variant", value={"product_id": 3, "variant_id": 12, "quantity": 2}),
        OpenApiExample("By selection", value={"product_id": 3, "selection": {"4": 9, "5": 11}, "quantity": 1}),
    ],
    responses={
        201: OpenApiResponse(description="Updated cart"),
        400: OpenApiResponse(description="Incomplete or invalid selection"),
        409: OpenApiResponse(description="Out of stock"),
    },
)
class CartItemsView(CartBaseView):

    def post(self, request):
        serializer = AddToCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        row = get_object_or_404(
            Product.objects.select_related('store'),
            pk=data['product_id'], status=Product.Status.ACTIVE, store__is_active=True,
        )
        product = CatalogService.snapshot(product_id=row.pk)

        if data.get('variant_id') is not None:
            variant = product.variant(data['variant_id'])
            if variant is None:
                raise NotFoundError("This variant is no longer available.")
        else:
            resolution = resolve_variant(product, data.get('selection') or {})
            if resolution.is_incomplete:
                raise IncompleteSelectionError()
            if resolution.is_invalid:
                raise CatalogValidationError({'selection': "This combination is not available."})
            variant = resolution.variant

        storage = self.get_storage()
        cart = storage.load()
        CatalogService.ensure_purchasable(
            variant, data['quantity'], already_in_cart=item_quantity(cart, product.id, variant.id)
        )

        now = timezone.now()
        cart = add_item(
            cart, store_snapshot(row.store), product, variant, data['quantity'],
            now=now, discounts=load_discounts(product, now=now),
        )
        storage.save(cart)
        logger.info(f"Added {data['quantity']} x variant {variant.id} of product {product.id} to a session cart")
        return Response(
            standardized_response(data=cart.to_dict(), message="Item added to cart"),
            status=status.HTTP_201_CREATED
        )


@extend_schema(tags=["Cart"])
class CartItemDetailView(CartBaseView):

    def _existing_item(self, cart, store_id, item_id):
        cart_store = cart.store(store_id)
        item = cart_store.item(item_id) if cart_store else None
        if item is None:
            raise NotFoundError("Item not found in cart.")
        return item

    @extend_schema(request=UpdateQuantitySerializer, description="Set a line's quantity; 0 or less removes it.")
    def patch(self, request, store_id, item_id):
        serializer = UpdateQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quantity = serializer.validated_data['quantity']

        storage = self.get_storage()
        item = self._existing_item(storage.load(), store_id, item_id)
        if quantity > 0:
            variant = Variant.objects.filter(pk=item.variant_id, product_id=item.product_id).first()
            if variant is None:
                raise NotFoundError("This variant is no longer available.")
            CatalogService.ensure_purchasable(variant, quantity)

        cart = storage.apply(set_quantity, store_id, item_id, quantity)
        return Response(standardized_response(data=cart.to_dict(), message="Cart updated"))

    def delete(self, request, store_id, item_id):
        storage = self.get_storage()
        self._existing_item(storage.load(), store_id, item_id)
        cart = storage.apply(remove_item, store_id, item_id)
        return Response(standardized_response(data=cart.to_dict(), message="Item removed from cart"))


@extend_schema(tags=["Cart"], description="Remove every item of one store from the cart.")
class CartStoreView(CartBaseView):

    def delete(self, request, store_id):
        cart = self.get_storage().apply(clear_store, store_id)
        return Response(standardized_response(data=cart.to_dict(), message="Store removed from cart"))


@extend_schema(
    tags=["Checkout"],
    request=CheckoutSerializer,
    description=(
        "Check out one store's part of the cart: stock is checked again, the order summary is "
        "turned into a WhatsApp link to the store, and that store's items leave the cart."
    ),
    examples=[
        OpenApiExample(
            "Checkout",
            value={
                "store_id": 1,
                "customer": {
                    "name": "Budi", "email": "budi@example.com", "phone": "08123456789",
                    "province": "Jawa Barat", "regency": "Bandung", "district": "Coblong",
                    "village": "Dago", "postal_code": "40135", "payment_method": "gopay",
                },
            },
        )
    ],
)
class CheckoutView(CartBaseView):

    def post(self, request):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        store = get_object_or_404(Store, pk=data['store_id'], is_active=True)
        storage = self.get_storage()
        cart = storage.load()

        cart_store = CheckoutService.cart_store_or_error(cart, store.pk)
        CheckoutService.recheck_stock(cart_store)
        summary = CheckoutService.build_order_summary(cart, store, data['customer'])
        whatsapp_url = WhatsAppChannel().send(summary)

        storage.save(clear_store(cart, store.pk))
        logger.info(f"Checkout for store {store.slug}: {len(summary['items'])} line(s), total {summary['subtotal']}")
        return Response(
            standardized_response(
                data={
                    'whatsapp_url': whatsapp_url,
                    'store_name': store.name,
                    'order_total': summary['subtotal'],
                    'summary': summary,
                },
                message="Checkout link created"
            ),
            status=status.HTTP_201_CREATED
        )
