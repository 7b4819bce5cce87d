"""Tests for application exceptions."""

import pytest

from signal_notify.core.exceptions import (
    AppException,
    ConflictException,
    NotFoundException,
    ServiceUnavailableException,
    ValidationException,
)


@pytest.mark.unit
class TestAppException:
    def test_default_title_from_status(self):
        exc = AppException(status_code=409, detail="busy")

        assert exc.title == "Conflict"
        assert exc.type == "about:blank"
        assert exc.extra == {}
        assert str(exc) == "busy"

    def test_unknown_status_title(self):
        assert AppException(status_code=418, detail="teapot").title == "Error"

    @pytest.mark.parametrize(
        ("exc_class", "status_code", "default_type"),
        [
            (NotFoundException, 404, "not-found"),
            (ValidationException, 422, "validation-error"),
            (ConflictException, 409, "conflict"),
            (ServiceUnavailableException, 503, "service-unavailable"),
        ],
    )
    def test_subclass_defaults(self, exc_class, status_code, default_type):
        exc = exc_class(detail="problem")

        assert isinstance(exc, AppException)
        assert exc.status_code == status_code
        assert exc.type == default_type

    def test_custom_type_and_extra(self):
        exc = NotFoundException(
            detail="Notification x not found",
            type="queue-item-not-found",
            extra={"queue_id": "x"},
        )

        assert exc.type == "queue-item-not-found"
        assert exc.extra == {"queue_id": "x"}
