from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from rest_framework_simplejwt.exceptions import TokenError
from django.contrib.auth import update_session_auth_hash
from django.utils import timezone
from .serializers import (
    LoginSerializer,
    UserSerializer,
    ChangePasswordSerializer,
    UpdateProfileSerializer,
    RegistrationSerializer,
)
from exceptions.handlers import InvalidInputException
from utils.constants import UserMessage
import logging

logger = logging.getLogger("accounts")


class RegistrationView(APIView):
    """
    Creates a user account. Customers are the default role.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = RegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        logger.info(f"User registered: {user.username} (role={user.role.name})")
        return Response(
            {
                "message": UserMessage.REGISTRATION_SUCCESS,
                "user": UserSerializer(user).data,
            },
            status=status.HTTP_201_CREATED,
        )


class LoginView(TokenObtainPairView):
    """
    Handles user authentication and JWT token generation.

    Extends simplejwt's TokenObtainPairView so the response carries both
    tokens and the serialized user, and stamps ``last_login``.
    """

    serializer_class = LoginSerializer
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = serializer.validated_data["user"]
        user.last_login = timezone.now()
        user.save(update_fields=["last_login"])

        refresh = RefreshToken.for_user(user)
        logger.info(f"User logged in: {user.username}")
        return Response({
            "tokens": {
                "refresh": str(refresh),
                "access": str(refresh.access_token),
            },
            "user": UserSerializer(user).data,
        })


class LogoutView(APIView):
    """
    JWT tokens are stateless; logout only validates the refresh token when
    one is supplied and leaves token disposal to the client.
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        refresh = request.data.get("refresh")
        if refresh:
            try:
                RefreshToken(refresh)
            except TokenError:
                raise InvalidInputException("Invalid refresh token.")
        logger.info(f"User logged out: {request.user.username}")
        return Response({"message": UserMessage.LOGOUT_SUCCESS})


class ProfileView(generics.RetrieveUpdateAPIView):
    """
    Retrieve or update the signed-in user's profile.
    """

    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user

    def update(self, request, *args, **kwargs):
        user = self.get_object()
        serializer = UpdateProfileSerializer(
            user, data=request.data, partial=True, context={"request": request}
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()

        return Response(UserSerializer(user).data)


class ChangePasswordView(APIView):
    """
    Changes the password after verifying the current one.
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        if not user.check_password(serializer.validated_data["old_password"]):
            raise InvalidInputException("Current password is incorrect.")

        user.set_password(serializer.validated_data["new_password"])
        user.save()
        update_session_auth_hash(request, user)

        return Response({"message": UserMessage.PASSWORD_CHANGED_SUCCESS})
