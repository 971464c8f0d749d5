"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Message moderation
"""

from django.contrib import admin

from chat.models import Message


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = ["id", "from_user", "to_user", "kind", "read", "created_at"]
    list_filter = ["kind", "read", "created_at"]
    search_fields = ["from_user", "to_user", "text"]
    readonly_fields = ["created_at", "updated_at"]
    ordering = ["-created_at", "-id"]
