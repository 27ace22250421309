from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import UserLoginView, CurrentUserView

urlpatterns = [
    path('login/', UserLoginView.as_view(), name='login'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
    path('me/', CurrentUserView.as_view(), name='current-user'),
]
