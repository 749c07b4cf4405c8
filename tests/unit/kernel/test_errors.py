"""Unit tests for the kernel error hierarchy."""
from __future__ import annotations

import json

from mp_permissions.config import ConfigError, InvalidSettingValueError
from mp_permissions.kernel.errors import (
    ApplicationError,
    BaseError,
    ConflictError,
    DomainError,
    ExternalServiceError,
    InfrastructureError,
    NotFoundError,
    PermanentProjectionError,
    PermanentPublishError,
    PermanentSinkError,
    PermissionNotFoundError,
    PermissionTypeNotFoundError,
    ProjectionError,
    PublishError,
    SinkError,
    TransientProjectionError,
    TransientPublishError,
    TransientSinkError,
    ValidationError,
)


class TestBaseError:
    def test_default_code(self) -> None:
        assert BaseError("m").code == "base_error"

    def test_to_dict_includes_cause_repr(self) -> None:
        err = BaseError("wrapper", cause=ValueError("original"))
        assert "original" in err.to_dict()["cause"]
        assert err.__cause__ is err.cause

    def test_str_is_json(self) -> None:
        err = BaseError("m", code="c", detail={"k": 1})
        assert json.loads(str(err)) == {"code": "c", "message": "m", "detail": {"k": 1}}


class TestDomainErrors:
    def test_validation_error_carries_field_errors(self) -> None:
        err = ValidationError("Invalid permission", errors=[{"field": "forename", "message": "must not be empty"}])
        assert isinstance(err, DomainError)
        assert err.to_dict()["errors"][0]["field"] == "forename"

    def test_permission_not_found(self) -> None:
        err = PermissionNotFoundError(7)
        assert isinstance(err, NotFoundError)
        assert err.identifier == 7
        assert err.message == "Permission '7' not found"
        assert err.code == "permission_not_found"

    def test_type_not_found(self) -> None:
        err = PermissionTypeNotFoundError(999)
        assert isinstance(err, NotFoundError)
        assert err.resource == "PermissionType"
        assert err.code == "permission_type_not_found"

    def test_conflict_is_domain_error(self) -> None:
        assert issubclass(ConflictError, DomainError)


class TestSinkErrors:
    def test_projection_errors_are_classified(self) -> None:
        assert issubclass(TransientProjectionError, TransientSinkError)
        assert issubclass(TransientProjectionError, ProjectionError)
        assert issubclass(PermanentProjectionError, PermanentSinkError)
        assert issubclass(PermanentProjectionError, ProjectionError)

    def test_publish_errors_are_classified(self) -> None:
        assert issubclass(TransientPublishError, TransientSinkError)
        assert issubclass(PermanentPublishError, PermanentSinkError)
        assert issubclass(PublishError, SinkError)

    def test_sink_error_records_sink(self) -> None:
        err = TransientPublishError("event-stream", "broker down")
        assert err.sink == "event-stream"
        assert isinstance(err, InfrastructureError)
        assert err.code == "transient_publish_error"

    def test_external_service_error_status(self) -> None:
        err = ExternalServiceError("search", status_code=503)
        assert err.status_code == 503
        assert err.message == "External service 'search' error"


class TestConfigErrors:
    def test_config_errors_are_application_errors(self) -> None:
        err = InvalidSettingValueError("relay_batch_size", 0, "must be at least 1")
        assert isinstance(err, ConfigError)
        assert isinstance(err, ApplicationError)
        assert err.reason == "must be at least 1"
