"""
REST views for chat history and read receipts.

URL Structure:
    /api/v1/chat/messages/{other_id}/        GET   Conversation history
    /api/v1/chat/messages/{other_id}/read/   POST  Mark other_id's messages read

Sending goes through the WebSocket (see consumers.py); these endpoints
cover the page-load and read-receipt paths web clients use over HTTP.
"""

from __future__ import annotations

from django.apps import apps
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.serializers import MarkReadResponseSerializer, MessageSerializer
from chat.services import MessageStore


class MessageHistoryView(APIView):
    """
    All messages between the current user and another user, oldest first.

    GET /api/v1/chat/messages/{other_id}/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Conversation history",
        tags=["Chat"],
        responses={200: MessageSerializer(many=True)},
    )
    def get(self, request, other_id):
        messages = MessageStore.range(str(request.user.pk), other_id)
        return Response(MessageSerializer(messages, many=True).data)


class MarkReadView(APIView):
    """
    Mark every message other_id sent to the current user as read.

    POST /api/v1/chat/messages/{other_id}/read/

    The sender is notified with a messages_read event on their open
    connections.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Mark messages read",
        tags=["Chat"],
        request=None,
        responses={
            200: MarkReadResponseSerializer,
            503: OpenApiResponse(description="Store unavailable, retry"),
        },
    )
    def post(self, request, other_id):
        runtime = apps.get_app_config("chat").get_runtime()
        result = runtime.pipeline.mark_read_sync(str(request.user.pk), other_id)

        if not result.success:
            code = (
                status.HTTP_503_SERVICE_UNAVAILABLE
                if result.retryable
                else status.HTTP_400_BAD_REQUEST
            )
            return Response(result.to_response(), status=code)

        return Response({"success": True, "updated": result.data})
