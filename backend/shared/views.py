from __future__ import annotations

import datetime
import platform
from typing import Dict

from django.db import DatabaseError, connections
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

START_TIME = datetime.datetime.now(datetime.timezone.utc)


class HealthCheckView(APIView):
    """Liveness probe: database connectivity plus whether permissions were generated."""
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        db_payload = self._database_status()
        now = datetime.datetime.now(datetime.timezone.utc)
        payload = {
            "status": "ok" if db_payload["ok"] else "degraded",
            "uptime_seconds": int((now - START_TIME).total_seconds()),
            "timestamp": now.isoformat(),
            "application": {
                "python": platform.python_version(),
                "platform": platform.platform(),
            },
            "database": db_payload,
        }
        if db_payload["ok"]:
            payload["permissions"] = self._permissions_status()
        http_status = status.HTTP_200_OK if db_payload["ok"] else status.HTTP_503_SERVICE_UNAVAILABLE
        return Response(payload, status=http_status)

    def _database_status(self) -> Dict:
        payload = {"ok": True, "details": {}}
        for alias in connections:
            try:
                with connections[alias].cursor() as cursor:
                    cursor.execute("SELECT 1")
                    cursor.fetchone()
                payload["details"][alias] = "connected"
            except DatabaseError as exc:
                payload["ok"] = False
                payload["details"][alias] = f"error: {exc}"
        return payload

    def _permissions_status(self) -> Dict:
        from apps.permissions.conf import WILDCARD
        from apps.permissions.models import Permission, Role

        try:
            return {
                "resources": Permission.objects.exclude(resource=WILDCARD).count(),
                "wildcard": Permission.objects.filter(resource=WILDCARD).exists(),
                "roles": Role.objects.count(),
            }
        except DatabaseError as exc:
            # Tables missing until migrations have run.
            return {"error": str(exc)}
