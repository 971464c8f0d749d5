"""
ASGI config for the Django application.

This file exposes the ASGI callable as a module-level variable named
`application`.

This configuration supports:
- HTTP requests via Django
- WebSocket connections via Django Channels
- ASGI lifespan events (bot bootstrap on startup, cancelling pending bot
  replies on shutdown)

The chat runtime (presence router, pipeline, bot responder) is built once
here and handed by reference to every WebSocket consumer.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

# Set the default Django settings module for the ASGI application
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Initialize Django ASGI application early to ensure settings are loaded
# before importing any models or other Django components
django_asgi_app = get_asgi_application()

# Import Channels components after Django is initialized
from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402
from django.apps import apps  # noqa: E402

from chat.middleware import JWTAuthMiddleware  # noqa: E402
from chat.routing import get_websocket_urlpatterns  # noqa: E402
from chat.runtime import RuntimeLifespan, build_runtime  # noqa: E402

# The event loop may already be running here, so the bot identity is
# resolved by the lifespan handler instead of at import
runtime = apps.get_app_config("chat").set_runtime(build_runtime(resolve_bot=False))

# ASGI application that routes HTTP, WebSocket and lifespan protocols
application = ProtocolTypeRouter(
    {
        # HTTP requests are handled by Django's ASGI application
        "http": django_asgi_app,
        # WebSocket connections are routed through:
        # 1. AllowedHostsOriginValidator - ensures origin matches ALLOWED_HOSTS
        # 2. JWTAuthMiddleware - verifies the bearer token
        # 3. URLRouter - routes to the consumer sharing this process's runtime
        "websocket": AllowedHostsOriginValidator(
            JWTAuthMiddleware(URLRouter(get_websocket_urlpatterns(runtime)))
        ),
        "lifespan": RuntimeLifespan(runtime),
    }
)
