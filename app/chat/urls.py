"""
URL configuration for chat API.

URL Structure:
    /messages/{other_id}/        GET
    /messages/{other_id}/read/   POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import path

from chat.views import MarkReadView, MessageHistoryView

app_name = "chat"

urlpatterns = [
    path(
        "messages/<str:other_id>/",
        MessageHistoryView.as_view(),
        name="message-history",
    ),
    path(
        "messages/<str:other_id>/read/",
        MarkReadView.as_view(),
        name="mark-read",
    ),
]
