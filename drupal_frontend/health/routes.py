"""Route handlers for health checks."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from drupal_frontend.schemas import HealthStatusSchema
from drupal_frontend.settings import FrontendSettings

from . import blp


@blp.route("")
class HealthStatus(MethodView):
    @blp.response(200, HealthStatusSchema())
    def get(self):
        settings: FrontendSettings = current_app.extensions["frontend_settings"]
        return {
            "status": "ok",
            "app": current_app.config.get("APP_NAME", "drupal-frontend-starter"),
            "deployment_mode": settings.deployment_mode,
        }
