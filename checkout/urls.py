from django.urls import path
from .views import CartView, CartItemsView, CartItemDetailView, CartStoreView, CheckoutView

urlpatterns = [
    # Cart
    path('cart/', CartView.as_view(), name='cart'),
    path('cart/items/', CartItemsView.as_view(), name='cart-items'),
    path('cart/stores/<int:store_id>/', CartStoreView.as_view(), name='cart-store'),
    path('cart/stores/<int:store_id>/items/<str:item_id>/', CartItemDetailView.as_view(), name='cart-item'),

    # Checkout
    path('', CheckoutView.as_view(), name='checkout'),
]
