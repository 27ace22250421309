import logging

from django.shortcuts import get_object_or_404
from django.utils import timezone
from django_filters import rest_framework as filters
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiExample, OpenApiResponse
from rest_framework import generics, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from authentication.core.base_view import BaseAPIView
from authentication.core.permissions import (
    HasStoreRole, IsEditorOrAbove, IsOwner, ReadOnlyOrEditor, has_store_role,
)
from authentication.core.response import standardized_response
from authentication.models import CustomUser

from .models import Category, Discount, Product, Store, Variant
from .serializers import (
    CategorySerializer, DiscountSerializer, ProductCreateSerializer, ProductDetailSerializer,
    ProductSerializer, ProductUpdateSerializer, SelectionSerializer, StoreSerializer,
    VariantSerializer, VariantUpdateSerializer, quote_payload, resolution_payload,
)
from .services.catalog import CatalogService, product_queryset
from .services.discounts import load_discounts
from .services.snapshots import store_snapshot
from .services.variants import resolve_variant

logger = logging.getLogger(__name__)


def require_store_role(request, store_id, role):
    if not has_store_role(request.user, store_id, role):
        raise PermissionDenied("You do not have the required role for this store.")


# ======================================================
# STORE VIEWS
# ======================================================
@extend_schema(tags=["Stores"])
class StoreListCreateView(BaseAPIView, generics.ListCreateAPIView):
    """Anyone can browse active stores; only owners create them."""
    serializer_class = StoreSerializer
    filter_backends = [SearchFilter, OrderingFilter]
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'created_at']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsOwner()]
        return [AllowAny()]

    def get_queryset(self):
        queryset = Store.objects.all().order_by('created_at', 'id')
        if not (self.request.user.is_authenticated and self.request.query_params.get('include_inactive')):
            queryset = queryset.filter(is_active=True)
        return queryset

    @extend_schema(responses={200: StoreSerializer(many=True)}, description="List active stores.")
    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.filter_queryset(self.get_queryset()), many=True)
        return Response(standardized_response(data=serializer.data))

    @extend_schema(
        request=StoreSerializer,
        responses={201: StoreSerializer, 403: OpenApiResponse(description="Owner role required")},
        examples=[
            OpenApiExample(
                "Create store",
                value={
                    "name": "Kopi Nusantara",
                    "description": "Single-origin coffee",
                    "wa_number": "6281234567890",
                    "theme": {"primary": "#6f4e37", "secondary": "#c0a080", "accent": "#f59e0b", "bg": "#ffffff", "fg": "#1f2937"},
                },
            )
        ],
    )
    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store = CatalogService.create_store(serializer.validated_data)
        logger.info(f"Store {store.slug} created by user {request.user.id}")
        return Response(
            standardized_response(data=StoreSerializer(store).data, message="Store created"),
            status=status.HTTP_201_CREATED
        )


@extend_schema(tags=["Stores"])
class StoreDetailView(BaseAPIView, generics.RetrieveUpdateDestroyAPIView):
    queryset = Store.objects.all()
    serializer_class = StoreSerializer
    permission_classes = [IsAuthenticated, HasStoreRole]

    def retrieve(self, request, *args, **kwargs):
        return Response(standardized_response(data=self.get_serializer(self.get_object()).data))

    def update(self, request, *args, **kwargs):
        store = self.get_object()
        serializer = self.get_serializer(store, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        store = CatalogService.update_store(store, serializer.validated_data)
        return Response(standardized_response(data=StoreSerializer(store).data, message="Store updated"))

    @extend_schema(responses={200: OpenApiResponse(description="Deleted"), 409: OpenApiResponse(description="Store still has products")})
    def destroy(self, request, *args, **kwargs):
        store = self.get_object()
        require_store_role(request, store.pk, CustomUser.Role.OWNER)
        CatalogService.delete_store(store)
        return Response(standardized_response(message="Store deleted"))


@extend_schema(tags=["Storefront"], responses={200: StoreSerializer})
class StorefrontView(BaseAPIView):
    """Public store page: the store, its theme and its active products."""
    permission_classes = [AllowAny]

    def get(self, request, slug):
        store = get_object_or_404(Store, slug=slug, is_active=True)
        products = product_queryset().filter(store=store, status=Product.Status.ACTIVE)
        return Response(standardized_response(data={
            'store': StoreSerializer(store).data,
            'products': ProductSerializer(products, many=True).data,
        }))


# ======================================================
# CATEGORY VIEWS
# ======================================================
@extend_schema(tags=["Categories"])
class CategoryListCreateView(BaseAPIView, generics.ListCreateAPIView):
    queryset = Category.objects.all()
    serializer_class = CategorySerializer

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsEditorOrAbove()]
        return [AllowAny()]

    def list(self, request, *args, **kwargs):
        return Response(standardized_response(data=self.get_serializer(self.get_queryset(), many=True).data))

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        category = serializer.save()
        return Response(
            standardized_response(data=self.get_serializer(category).data, message="Category created"),
            status=status.HTTP_201_CREATED
        )


@extend_schema(tags=["Categories"])
class CategoryDetailView(BaseAPIView, generics.RetrieveUpdateDestroyAPIView):
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    permission_classes = [ReadOnlyOrEditor]

    def retrieve(self, request, *args, **kwargs):
        return Response(standardized_response(data=self.get_serializer(self.get_object()).data))

    def update(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(standardized_response(data=serializer.data, message="Category updated"))

    def destroy(self, request, *args, **kwargs):
        self.get_object().delete()
        return Response(standardized_response(message="Category deleted"))


# ======================================================
# PRODUCT VIEWS
# ======================================================
class ProductFilter(filters.FilterSet):
    store = filters.CharFilter(field_name='store__slug')
    category = filters.CharFilter(field_name='categories__slug')
    min_price = filters.NumberFilter(field_name='base_price', lookup_expr='gte')
    max_price = filters.NumberFilter(field_name='base_price', lookup_expr='lte')

    class Meta:
        model = Product
        fields = ['store', 'category', 'status', 'min_price', 'max_price']


@extend_schema(tags=["Products"])
class ProductListCreateView(BaseAPIView, generics.ListCreateAPIView):
    serializer_class = ProductSerializer
    filter_backends = [filters.DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_class = ProductFilter
    search_fields = ['name', 'description']
    ordering_fields = ['base_price', 'name', 'created_at']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated()]
        return [AllowAny()]

    def get_queryset(self):
        queryset = product_queryset().distinct()
        # the dashboard sees drafts and archived products, shoppers do not
        if not self.request.user.is_authenticated:
            queryset = queryset.filter(status=Product.Status.ACTIVE, store__is_active=True)
        return queryset

    @extend_schema(
        parameters=[
            OpenApiParameter(name='store', description='Filter by store slug', required=False, type=str),
            OpenApiParameter(name='category', description='Filter by category slug', required=False, type=str),
            OpenApiParameter(name='status', description='DRAFT, ACTIVE or ARCHIVED', required=False, type=str),
            OpenApiParameter(name='min_price', description='Minimum base price', required=False, type=int),
            OpenApiParameter(name='max_price', description='Maximum base price', required=False, type=int),
            OpenApiParameter(name='search', description='Search by name or description', required=False, type=str),
            OpenApiParameter(name='ordering', description='Order by base_price, name or created_at', required=False, type=str),
        ],
        responses={200: ProductSerializer(many=True)},
        description="Retrieve a list of products. Supports filtering, search, and ordering."
    )
    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(standardized_response(data=serializer.data))
        serializer = self.get_serializer(queryset, many=True)
        return Response(standardized_response(data=serializer.data))

    @extend_schema(
        request=ProductCreateSerializer,
        responses={201: ProductDetailSerializer, 409: OpenApiResponse(description="SKU already exists")},
        examples=[
            OpenApiExample(
                "T-shirt with generated variants",
                value={
                    "store": 1,
                    "name": "Classic T-Shirt",
                    "base_price": 100000,
                    "categories": [1],
                    "option_types": [
                        {"name": "Color", "values": ["Blue", "Black"]},
                        {"name": "Size", "values": ["M", "L"]},
                    ],
                    "default_stock": 10,
                },
            )
        ],
    )
    def create(self, request, *args, **kwargs):
        serializer = ProductCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        store = data.pop('store')
        require_store_role(request, store.pk, CustomUser.Role.EDITOR)

        product = CatalogService.create_product(store, data)
        return Response(
            standardized_response(data=ProductDetailSerializer(product).data, message="Product created"),
            status=status.HTTP_201_CREATED
        )


@extend_schema(tags=["Storefront"], responses={200: ProductDetailSerializer})
class ProductDetailView(BaseAPIView, generics.RetrieveAPIView):
    """Public product page by slug."""
    permission_classes = [AllowAny]
    serializer_class = ProductDetailSerializer
    lookup_field = 'slug'

    def get_queryset(self):
        return product_queryset().filter(status=Product.Status.ACTIVE, store__is_active=True)

    def retrieve(self, request, *args, **kwargs):
        return Response(standardized_response(data=self.get_serializer(self.get_object()).data))


@extend_schema(tags=["Products"])
class ProductManageView(BaseAPIView, generics.RetrieveUpdateDestroyAPIView):
    queryset = Product.objects.all()
    serializer_class = ProductDetailSerializer
    permission_classes = [IsAuthenticated, HasStoreRole]

    def get_queryset(self):
        return product_queryset()

    def retrieve(self, request, *args, **kwargs):
        return Response(standardized_response(data=self.get_serializer(self.get_object()).data))

    @extend_schema(request=ProductUpdateSerializer, responses={200: ProductDetailSerializer})
    def update(self, request, *args, **kwargs):
        product = self.get_object()
        serializer = ProductUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = CatalogService.update_product(product, serializer.validated_data)
        return Response(standardized_response(data=self.get_serializer(product).data, message="Product updated"))

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        logger.info(f"Product {product.slug} deleted by user {request.user.id}")
        product.delete()
        return Response(standardized_response(message="Product deleted"))


@extend_schema(tags=["Products"])
class VariantUpdateView(BaseAPIView, generics.UpdateAPIView):
    queryset = Variant.objects.select_related('product')
    serializer_class = VariantSerializer
    permission_classes = [IsAuthenticated, HasStoreRole]

    @extend_schema(request=VariantUpdateSerializer, responses={200: VariantSerializer})
    def update(self, request, *args, **kwargs):
        variant = self.get_object()
        serializer = VariantUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        variant = CatalogService.update_variant(variant, serializer.validated_data)
        return Response(standardized_response(data=VariantSerializer(variant).data, message="Variant updated"))


@extend_schema(
    tags=["Storefront"],
    request=SelectionSerializer,
    description=(
        "Resolve a (possibly partial) option selection. Returns RESOLVED with the variant and its "
        "discounted price, INCOMPLETE with the values still reachable in stock, or INVALID."
    ),
    examples=[OpenApiExample("Blue, size M", value={"selection": {"1": 3, "2": 5}})],
)
class ProductResolveView(BaseAPIView):
    permission_classes = [AllowAny]

    def post(self, request, slug):
        serializer = SelectionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = CatalogService.snapshot(slug=slug, active_only=True)
        resolution = resolve_variant(product, serializer.validated_data['selection'])

        quote = None
        if resolution.is_resolved:
            quote = CatalogService.quote(product, resolution.variant.id, now=timezone.now())
        return Response(standardized_response(data=resolution_payload(resolution, quote)))


# ======================================================
# DISCOUNT VIEWS
# ======================================================
@extend_schema(tags=["Discounts"])
class DiscountListCreateView(BaseAPIView, generics.ListCreateAPIView):
    serializer_class = DiscountSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [filters.DjangoFilterBackend]
    filterset_fields = ['scope', 'discount_type', 'store', 'product']

    def get_queryset(self):
        return Discount.objects.select_related('store', 'product').order_by('created_at', 'id')

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.filter_queryset(self.get_queryset()), many=True)
        return Response(standardized_response(data=serializer.data))

    @extend_schema(
        examples=[
            OpenApiExample(
                "Store-wide 10% off",
                value={
                    "scope": "STORE", "discount_type": "PERCENT", "value": 10, "priority": 5,
                    "stackable": True, "store": 1,
                    "start_at": "2025-01-01T00:00:00Z", "end_at": "2025-02-01T00:00:00Z",
                },
            )
        ],
    )
    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data['scope'] == Discount.Scope.GLOBAL:
            required_store = None
        elif data.get('store') is not None:
            required_store = data['store'].pk
        else:
            required_store = data['product'].store_id if data.get('product') else None
        require_store_role(request, required_store, CustomUser.Role.EDITOR)

        discount = CatalogService.create_discount(dict(data))
        return Response(
            standardized_response(data=self.get_serializer(discount).data, message="Discount created"),
            status=status.HTTP_201_CREATED
        )


@extend_schema(tags=["Discounts"])
class DiscountDeleteView(BaseAPIView, generics.DestroyAPIView):
    queryset = Discount.objects.select_related('product')
    permission_classes = [IsAuthenticated, HasStoreRole]

    def destroy(self, request, *args, **kwargs):
        discount = self.get_object()
        discount.delete()
        logger.info(f"Discount {kwargs.get('pk')} deleted by user {request.user.id}")
        return Response(standardized_response(message="Discount deleted"))


@extend_schema(tags=["Storefront"])
class ProductPriceView(BaseAPIView):
    """Current price of every variant of a product, discounts included."""
    permission_classes = [AllowAny]

    def get(self, request, slug):
        product = CatalogService.snapshot(slug=slug, active_only=True)
        now = timezone.now()
        discounts = load_discounts(product, now=now)
        store = store_snapshot(Store.objects.get(pk=product.store_id))
        prices = {
            str(variant.id): quote_payload(
                CatalogService.quote(product, variant.id, now=now, discounts=discounts, store=store)
            )
            for variant in product.variants
        }
        return Response(standardized_response(data=prices))


# ======================================================
# HOME & DASHBOARD
# ======================================================
@extend_schema(tags=["Storefront"])
class HomeView(BaseAPIView):
    permission_classes = [AllowAny]

    def get(self, request):
        feed = CatalogService.home_feed()
        return Response(standardized_response(data={
            'stores': StoreSerializer(feed['stores'], many=True).data,
            'featured_products': ProductSerializer(feed['featured_products'], many=True).data,
            'stats': feed['stats'],
        }))


@extend_schema(tags=["Dashboard"])
class DashboardStatsView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(standardized_response(data=CatalogService.dashboard_stats()))
