import logging

from django.contrib.auth import authenticate
from rest_framework import status
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.throttling import AnonRateThrottle
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema

from authentication.core.base_view import BaseAPIView
from authentication.core.response import standardized_response
from .serializers import UserLoginSerializer, UserBaseSerializer, AuthDataSerializer

logger = logging.getLogger(__name__)


class LoginThrottle(AnonRateThrottle):
    rate = '20/minute'


class UserLoginView(BaseAPIView):
    permission_classes = [AllowAny]
    throttle_classes = [LoginThrottle]

    @extend_schema(
        tags=["Auth"],
        request=UserLoginSerializer,
        responses={200: AuthDataSerializer},
        description="Exchange dashboard credentials for a JWT pair."
    )
    def post(self, request):
        serializer = UserLoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request,
            email=serializer.validated_data['email'],
            password=serializer.validated_data['password'],
        )
        if user is None or not user.is_active:
            logger.warning(f"Failed login attempt for {serializer.validated_data['email']}")
            return Response(
                standardized_response(success=False, error="Invalid email or password"),
                status=status.HTTP_401_UNAUTHORIZED
            )

        refresh = RefreshToken.for_user(user)
        refresh['role'] = user.role
        logger.info(f"User {user.email} logged in")

        return Response(standardized_response(
            data={
                'user': UserBaseSerializer(user).data,
                'tokens': {
                    'access_token': str(refresh.access_token),
                    'refresh_token': str(refresh),
                },
            },
            message="Login successful"
        ))


class CurrentUserView(BaseAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Auth"], responses={200: UserBaseSerializer})
    def get(self, request):
        return Response(standardized_response(data=UserBaseSerializer(request.user).data))
