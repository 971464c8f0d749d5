"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - Authenticated chat connection

Authentication:
    JWT token should be passed as query parameter: ?token=<jwt_access_token>
    (or via the "jwt" subprotocol / Authorization header, see
    middleware.py). JWTAuthMiddleware verifies it and stores the user id
    in the consumer's scope.
"""

from django.urls import path

from chat import consumers


def get_websocket_urlpatterns(runtime):
    """URL patterns whose consumers share the given ChatRuntime."""
    return [
        path(
            "ws/chat/",
            consumers.ChatConsumer.as_asgi(runtime=runtime),
        ),
    ]
