"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the business domain but are
essential for application infrastructure, such as health checks.
"""

import logging

from django.apps import apps
from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.utils import timezone

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Served at both /health/ and /api/health/ (the path older web clients
    poll).

    Returns:
        JsonResponse with status and component health:
        - status: "ok" or "unhealthy"
        - message: Human-readable summary
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"
        - bot: "ready" when the bot identity was resolved at startup,
          "unavailable" otherwise
        - timestamp: ISO-8601 server time

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable

    Example Response:
        {
            "status": "ok",
            "message": "Server is running",
            "database": "connected",
            "cache": "connected",
            "bot": "ready",
            "timestamp": "2026-01-01T12:00:00+00:00"
        }
    """
    health_status = {
        "status": "ok",
        "message": "Server is running",
        "database": "unknown",
        "cache": "unknown",
        "bot": "unavailable",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.exception("Health check could not reach the database")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        health_status["message"] = "Database unavailable"
        is_healthy = False

    # Cache failure is not critical - reported but still healthy
    cache.set("health_check", "ok", timeout=1)
    health_status["cache"] = (
        "connected" if cache.get("health_check") == "ok" else "disconnected"
    )

    runtime = apps.get_app_config("chat").runtime
    if runtime is not None and runtime.bot is not None:
        health_status["bot"] = "ready"

    health_status["timestamp"] = timezone.now().isoformat()

    return JsonResponse(health_status, status=200 if is_healthy else 503)
