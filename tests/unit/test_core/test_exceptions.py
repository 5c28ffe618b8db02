"""Tests for core exceptions."""

from taskflow_service.core import exceptions as exc


def test_app_exception_defaults_title() -> None:
    error = exc.AppException(status_code=400, detail="bad")
    assert error.title == "Bad Request"
    assert error.extra == {}


def test_not_found_exception_fields() -> None:
    error = exc.NotFoundError(detail="missing")
    assert error.status_code == 404
    assert error.type == "not-found"
    assert isinstance(error, exc.NotFoundException)


def test_transient_delivery_error_default_detail() -> None:
    error = exc.TransientDeliveryError()
    assert error.status_code == 503
    assert error.detail == "Failed to send to any tokens"
    assert str(error) == "Failed to send to any tokens"


def test_validation_error_to_dict_merges_extra() -> None:
    error = exc.ValidationError("No tokens provided", extra={"field": "tokens"})
    assert error.to_dict() == {
        "type": "validation-error",
        "title": "Validation Error",
        "status": 422,
        "detail": "No tokens provided",
        "instance": None,
        "field": "tokens",
    }


def test_store_error_is_app_exception() -> None:
    error = exc.StoreError("commit failed", type="document-not-found")
    assert isinstance(error, exc.AppException)
    assert error.status_code == 500
    assert error.type == "document-not-found"
