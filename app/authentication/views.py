"""
Authentication views.

This module provides API views for:
- Registration and login (both answer with a bearer token)
- Avatar/about update
- Contact listing

Related files:
    - serializers.py: Request/response serialization
    - services.py: Business logic (AuthService)
    - urls.py: URL routing

Note:
    The token returned here is the credential the chat WebSocket expects
    on handshake (ws/chat/?token=<token>).
"""

from django.apps import apps
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.models import User
from authentication.serializers import (
    AuthTokenResponseSerializer,
    AvatarSerializer,
    ContactSerializer,
    LoginSerializer,
    RegisterSerializer,
    UserSerializer,
)
from authentication.services import AuthService


class RegisterView(APIView):
    """
    Create an account and return a bearer token.

    POST /api/v1/auth/register/
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Register",
        tags=["Auth"],
        request=RegisterSerializer,
        responses={
            200: AuthTokenResponseSerializer,
            400: OpenApiResponse(description="Missing fields or user already exists"),
        },
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"msg": "Missing fields", "errors": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = AuthService.register(**serializer.validated_data)
        if not result.success:
            return Response(
                {"msg": result.error, "error_code": result.error_code},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(
            {
                "token": AuthService.issue_token(result.data),
                "user": UserSerializer(result.data).data,
            }
        )


class LoginView(APIView):
    """
    Exchange email and password for a bearer token.

    POST /api/v1/auth/login/
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Log in",
        tags=["Auth"],
        request=LoginSerializer,
        responses={
            200: AuthTokenResponseSerializer,
            400: OpenApiResponse(description="Invalid credentials"),
        },
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"msg": "Email and password required", "errors": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = AuthService.login(request=request, **serializer.validated_data)
        if not result.success:
            return Response(
                {"msg": result.error, "error_code": result.error_code},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(
            {
                "token": AuthService.issue_token(result.data),
                "user": UserSerializer(result.data).data,
            }
        )


class AvatarView(APIView):
    """
    Set the current user's avatar and bio line.

    POST /api/v1/auth/avatar/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Set avatar",
        tags=["Auth"],
        request=AvatarSerializer,
        responses={200: OpenApiResponse(description="Avatar stored")},
    )
    def post(self, request):
        serializer = AvatarSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.set_avatar(
            request.user,
            image=serializer.validated_data["image"],
            about=serializer.validated_data.get("about"),
        )
        return Response({"is_set": True, "image": result.data.avatar_image})


class ContactListView(APIView):
    """
    List every other user, the bot included, with live presence.

    GET /api/v1/auth/users/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List contacts",
        tags=["Auth"],
        responses={200: ContactSerializer(many=True)},
    )
    def get(self, request):
        runtime = apps.get_app_config("chat").get_runtime()
        contacts = User.objects.contacts_for(request.user.pk)
        serializer = ContactSerializer(
            contacts,
            many=True,
            context={"request": request, "router": runtime.router},
        )
        return Response(serializer.data)
