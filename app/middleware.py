"""
Security middleware for the vehicle trading backend.
"""

from django.utils.deprecation import MiddlewareMixin
import logging

logger = logging.getLogger(__name__)


class EnvironmentSecurityMiddleware(MiddlewareMixin):
    """
    Warns when a production deployment runs with development settings
    """

    _warned = False

    def process_request(self, request):
        from django.conf import settings

        if settings.DEBUG or EnvironmentSecurityMiddleware._warned:
            return None

        dangerous_configs = []

        if settings.SECRET_KEY == getattr(settings, 'INSECURE_SECRET_KEY', None):
            dangerous_configs.append("Using default/weak SECRET_KEY in production")

        if not settings.SECURE_SSL_REDIRECT:
            dangerous_configs.append("SSL redirect disabled in production")

        if not settings.SESSION_COOKIE_SECURE:
            dangerous_configs.append("Insecure session cookies in production")

        if getattr(settings, 'CELERY_TASK_ALWAYS_EAGER', False):
            dangerous_configs.append("Celery tasks run eagerly in production")

        if dangerous_configs:
            logger.critical(
                "SECURITY WARNING: Dangerous production configuration detected:\n" +
                "\n".join(f"  - {config}" for config in dangerous_configs)
            )
        EnvironmentSecurityMiddleware._warned = True

        return None
