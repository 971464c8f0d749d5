"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/register/   - Create account, returns token (POST)
    /api/v1/auth/login/      - Email/password login, returns token (POST)
    /api/v1/auth/avatar/     - Set avatar and bio line (POST)
    /api/v1/auth/users/      - Contact list, excluding self (GET)
"""

from django.urls import path

from authentication.views import (
    AvatarView,
    ContactListView,
    LoginView,
    RegisterView,
)

app_name = "authentication"

urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    path("avatar/", AvatarView.as_view(), name="avatar"),
    path("users/", ContactListView.as_view(), name="contacts"),
]
