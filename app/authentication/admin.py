"""
Django admin configuration for authentication models.

Related files:
    - models.py: Model definitions
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin configuration for User model.

    Customized for email-based authentication. The bot account shows up
    here with is_bot set and an unusable password.
    """

    list_display = (
        "email",
        "username",
        "is_bot",
        "is_active",
        "is_staff",
        "date_joined",
    )
    list_filter = ("is_bot", "is_active", "is_staff", "is_superuser")
    search_fields = ("email", "username")
    ordering = ("-date_joined",)

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Display", {"fields": ("username", "avatar_image", "is_avatar_image_set", "about")}),
        ("Status", {"fields": ("is_bot", "is_active", "is_staff", "is_superuser")}),
        ("Permissions", {"fields": ("groups", "user_permissions")}),
        ("Important dates", {"fields": ("date_joined", "last_login")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "username", "password1", "password2"),
            },
        ),
    )

    readonly_fields = ("date_joined", "last_login")
