"""
Chat app for real-time direct messaging.

This app handles:
- Direct (1:1) message persistence and history
- WebSocket fan-out to every connection of a user (presence rooms)
- Typing indicators and read receipts
- Hand-off of messages addressed to the bot to ai.responder

Related apps:
    - authentication: Accounts and bearer tokens
    - ai: Bot identity and reply generation

WebSocket Support:
    Uses Django Channels for the transport only. Fan-out goes through
    presence.PresenceRouter, not the channel layer.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.

Usage:
    from django.apps import apps

    runtime = apps.get_app_config("chat").get_runtime()
    result = await runtime.pipeline.send(sender_id, recipient_id, {"text": "hi"})
"""
