"""
WebSocket authentication middleware.

Provides JWT authentication for WebSocket connections.

Related files:
    - routing.py: WebSocket URL patterns
    - consumers.py: WebSocket handlers (refuse the handshake when
      scope["user_id"] is None)
    - config/asgi.py: ASGI configuration

Token Passing Methods (in order of precedence):
    1. Query string: ws://host/ws/chat/?token=<jwt_token>
    2. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>
    3. Header: Authorization: Bearer <jwt_token>

Usage in config/asgi.py:
    from chat.middleware import JWTAuthMiddleware

    application = ProtocolTypeRouter({
        "websocket": JWTAuthMiddleware(
            URLRouter(websocket_urlpatterns)
        ),
    })
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs

from channels.middleware import BaseMiddleware
from django.conf import settings
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

from chat.exceptions import AuthError

logger = logging.getLogger(__name__)


def authenticate(credential: str | None) -> str:
    """
    Verify a bearer token and return the user id it names.

    Checks signature, expiry and token type. The token is not looked up
    in the database; the user id claim is trusted once the signature is.

    Raises:
        AuthError: For every failure, with one uniform message. The cause
            is only logged.
    """
    if not credential:
        logger.info("WebSocket handshake without credential")
        raise AuthError()

    try:
        token = AccessToken(credential)
    except TokenError as e:
        logger.info(f"Rejected WebSocket credential: {e}")
        raise AuthError() from e

    claim = settings.SIMPLE_JWT.get("USER_ID_CLAIM", "user_id")
    user_id = token.get(claim)
    if user_id in (None, ""):
        logger.info(f"Rejected WebSocket credential without {claim} claim")
        raise AuthError()

    return str(user_id)


class JWTAuthMiddleware(BaseMiddleware):
    """
    JWT authentication middleware for WebSocket connections.

    Sets scope["user_id"] to the authenticated user id, or to None with
    scope["auth_error"] holding the AuthError.
    """

    async def __call__(self, scope, receive, send):
        """Authenticate and pass the enriched scope to the inner app."""
        scope = dict(scope)
        token = (
            self._get_token_from_query(scope)
            or self._get_token_from_subprotocol(scope)
            or self._get_token_from_header(scope)
        )

        try:
            scope["user_id"] = authenticate(token)
            scope["auth_error"] = None
        except AuthError as e:
            scope["user_id"] = None
            scope["auth_error"] = e

        return await super().__call__(scope, receive, send)

    def _get_token_from_query(self, scope) -> str | None:
        """Extract token from query string."""
        query_string = scope.get("query_string", b"").decode()
        token_list = parse_qs(query_string).get("token", [])
        return token_list[0] if token_list else None

    def _get_token_from_subprotocol(self, scope) -> str | None:
        """
        Extract token from WebSocket subprotocol.

        Expects: Sec-WebSocket-Protocol: jwt, <token>
        """
        subprotocols = scope.get("subprotocols", [])
        if len(subprotocols) >= 2 and subprotocols[0] == "jwt":
            return subprotocols[1]
        return None

    def _get_token_from_header(self, scope) -> str | None:
        """Extract token from an Authorization: Bearer header."""
        for name, value in scope.get("headers", []):
            if name.lower() == b"authorization":
                scheme, _, token = value.decode().partition(" ")
                if scheme.lower() == "bearer" and token.strip():
                    return token.strip()
        return None
