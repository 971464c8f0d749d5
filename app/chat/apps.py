"""
Chat application configuration.

The app config owns the process-wide ChatRuntime (presence router,
conversation pipeline, bot responder and bot identity). config/asgi.py
builds it at startup; REST views and the health check read it from here.
"""

import threading

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"

    runtime = None
    _runtime_lock = threading.Lock()

    def get_runtime(self):
        """
        Return the process runtime, building it on first use.

        Processes that never went through config/asgi.py (management
        commands, WSGI, tests) get a runtime lazily.
        """
        if self.runtime is None:
            with self._runtime_lock:
                if self.runtime is None:
                    from chat.runtime import build_runtime

                    self.runtime = build_runtime()
        return self.runtime

    def set_runtime(self, runtime):
        """Install an already built runtime (ASGI startup, tests)."""
        with self._runtime_lock:
            self.runtime = runtime
        return runtime
