from django.urls import path
from .views import (
    StoreListCreateView, StoreDetailView, StorefrontView,
    CategoryListCreateView, CategoryDetailView,
    ProductListCreateView, ProductDetailView, ProductManageView, ProductResolveView, ProductPriceView,
    VariantUpdateView,
    DiscountListCreateView, DiscountDeleteView,
    HomeView, DashboardStatsView,
)

urlpatterns = [
    # Storefront
    path('home/', HomeView.as_view(), name='home'),
    path('storefront/<slug:slug>/', StorefrontView.as_view(), name='storefront'),

    # Stores
    path('stores/', StoreListCreateView.as_view(), name='store-list'),
    path('stores/<int:pk>/', StoreDetailView.as_view(), name='store-detail'),

    # Categories
    path('categories/', CategoryListCreateView.as_view(), name='category-list'),
    path('categories/<int:pk>/', CategoryDetailView.as_view(), name='category-detail'),

    # Products
    path('products/', ProductListCreateView.as_view(), name='product-list'),
    path('products/manage/<int:pk>/', ProductManageView.as_view(), name='product-manage'),
    path('products/<slug:slug>/', ProductDetailView.as_view(), name='product-detail'),
    path('products/<slug:slug>/resolve/', ProductResolveView.as_view(), name='product-resolve'),
    path('products/<slug:slug>/prices/', ProductPriceView.as_view(), name='product-prices'),
    path('variants/<int:pk>/', VariantUpdateView.as_view(), name='variant-update'),

    # Discounts
    path('discounts/', DiscountListCreateView.as_view(), name='discount-list'),
    path('discounts/<int:pk>/', DiscountDeleteView.as_view(), name='discount-delete'),

    # Dashboard
    path('dashboard/stats/', DashboardStatsView.as_view(), name='dashboard-stats'),
]
