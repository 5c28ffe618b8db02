"""Custom exception classes for the notification engine."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    All custom exceptions should inherit from this class. The fields follow
    RFC 7807 Problem Details so the CRUD layer can surface them unchanged.

    Attributes:
        status_code: HTTP-equivalent status code for the error.
        detail: Human-readable error message.
        type: Error type identifier.
        title: Short, human-readable summary of the problem type.
        instance: Reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.

    Example:
            raise AppException(
            status_code=503,
            detail="Push provider unavailable",
            type="push-unavailable",
            extra={"provider": "fcm"}
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            status_code: HTTP-equivalent status code.
            detail: Human-readable error message.
            type: Error type identifier.
            title: Short summary of the problem type.
            instance: Reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title for a status code.

        Args:
            status_code: HTTP-equivalent status code.

        Returns:
            Human-readable title for the status code.
        """
        titles = {
            400: "Bad Request",
            404: "Not Found",
            409: "Conflict",
            422: "Unprocessable Entity",
            500: "Internal Server Error",
            502: "Bad Gateway",
            503: "Service Unavailable",
            504: "Gateway Timeout",
        }
        return titles.get(status_code, "Error")

    def to_dict(self) -> dict[str, Any]:
        """Render the exception as a problem-details mapping."""
        return {
            "type": self.type,
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
            "instance": self.instance,
            **self.extra,
        }


class NotFoundException(AppException):
    """Exception raised when a resource is not found.

    Raised for unknown device tokens and for users that have no active
    device endpoints when an immediate send is requested.

    Example:
            raise NotFoundException(
            detail="No active device tokens for user",
            type="device-tokens-not-found",
            extra={"user_id": "u-123"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "not-found",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize not found exception.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            instance: Reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        super().__init__(
            status_code=404,
            detail=detail,
            type=type,
            title="Not Found",
            instance=instance,
            extra=extra,
        )


class ValidationException(AppException):
    """Exception raised for invalid input.

    Never retried: the same input fails the same way on the next attempt.

    Example:
            raise ValidationException(
            detail="No tokens provided",
            type="validation-error",
            extra={"field": "tokens"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "validation-error",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation exception.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            instance: Reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        super().__init__(
            status_code=422,
            detail=detail,
            type=type,
            title="Validation Error",
            instance=instance,
            extra=extra,
        )


class TransientDeliveryError(AppException):
    """Exception raised when a push could not be delivered to any endpoint.

    The notification stays pending and is picked up again by the retry
    policy until its attempts are exhausted.
    """

    def __init__(
        self,
        detail: str = "Failed to send to any tokens",
        type: str = "transient-delivery-error",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize transient delivery error.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            instance: Reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        super().__init__(
            status_code=503,
            detail=detail,
            type=type,
            title="Service Unavailable",
            instance=instance,
            extra=extra,
        )


class StoreError(AppException):
    """Exception raised when the document store fails a query or commit.

    A StoreError raised while fetching a job's candidates, or while
    committing its writes, fails the whole job invocation.
    """

    def __init__(
        self,
        detail: str,
        type: str = "store-error",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize store error.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            instance: Reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        super().__init__(
            status_code=500,
            detail=detail,
            type=type,
            title="Internal Server Error",
            instance=instance,
            extra=extra,
        )


class ConfigurationException(AppException):
    """Exception raised when a required setting is missing or inconsistent."""

    def __init__(
        self,
        detail: str,
        type: str = "configuration-error",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=500,
            detail=detail,
            type=type,
            title="Configuration Error",
            extra=extra,
        )


# Short names used throughout the engine
ValidationError = ValidationException
NotFoundError = NotFoundException


__all__ = [
    "AppException",
    "ConfigurationException",
    "NotFoundError",
    "NotFoundException",
    "StoreError",
    "TransientDeliveryError",
    "ValidationError",
    "ValidationException",
]
