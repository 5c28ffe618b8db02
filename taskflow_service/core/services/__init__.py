"""Core service building blocks."""

from taskflow_service.core.services.base import BaseService, Clock, utc_now

__all__ = ["BaseService", "Clock", "utc_now"]
