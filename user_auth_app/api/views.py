"""Auth API views.

Implements token-based registration and login. Registration always creates a
customer Profile; admin roles are granted through the Django admin or the seed
command only.
"""

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from profiles.models import Profile
from .serializers import LoginSerializer, RegistrationSerializer

User = get_user_model()


def _token_payload(user, token):
    return {
        "token": token.key,
        "username": user.username,
        "email": user.email,
        "user_id": user.id,
    }


class RegistrationView(APIView):
    """POST /api/registration/ -> create user and customer profile, return auth token."""

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = RegistrationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        with transaction.atomic():
            user = serializer.save()
            Profile.objects.get_or_create(
                user=user,
                defaults={
                    "role": Profile.Role.CUSTOMER,
                    "phone": serializer.validated_data.get("phone", ""),
                    "address": serializer.validated_data.get("address", ""),
                },
            )
            token, _ = Token.objects.get_or_create(user=user)
        return Response(_token_payload(user, token), status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """POST /api/login/ -> validate credentials and return auth token."""

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user = serializer.validated_data["user"]
        token, _ = Token.objects.get_or_create(user=user)
        return Response(_token_payload(user, token), status=status.HTTP_200_OK)
