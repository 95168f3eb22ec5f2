"""Tests for the error registry and the response envelope."""

from dataclasses import asdict

from taskgraph.core.errors import (
    CircularConversion,
    CircularSubtask,
    GenerationTimeoutError,
    InvalidAddress,
    NotFound,
    StoreLocked,
    StoreNotFound,
    error_to_response,
    lookup_error,
)
from taskgraph.core.responses import ErrorCode, ErrorType, error_response, success_response


def test_lookup_walks_subclasses():
    code, error_type = lookup_error(StoreNotFound("tasks.json"))
    assert code is ErrorCode.NOT_FOUND
    assert error_type is ErrorType.NOT_FOUND


def test_unknown_exception_has_no_mapping():
    assert lookup_error(KeyError("x")) is None
    assert error_to_response(KeyError("x")) is None


def test_error_to_response_envelope():
    payload = error_to_response(InvalidAddress("1.2.3", "expected at most one '.'"))
    assert payload["success"] is False
    assert payload["data"]["error_code"] == "INVALID_ADDRESS"
    assert payload["data"]["error_type"] == "validation"
    assert "remediation" in payload["data"]
    assert "1.2.3" in payload["error"]


def test_conversion_and_generator_codes():
    assert lookup_error(CircularConversion(3, 1))[0] is ErrorCode.CIRCULAR_DEPENDENCY
    assert lookup_error(GenerationTimeoutError("slow"))[0] is ErrorCode.GENERATOR_TIMEOUT
    assert lookup_error(NotFound("Task 9 not found"))[1] is ErrorType.NOT_FOUND


def test_cycle_and_lock_codes():
    assert lookup_error(CircularSubtask("3.2")) == (ErrorCode.CIRCULAR_DEPENDENCY, ErrorType.CONFLICT)
    assert lookup_error(StoreLocked("tasks.json", 5)) == (ErrorCode.STORE_LOCKED, ErrorType.UNAVAILABLE)
    assert "3.2" in str(CircularSubtask("3.2"))


def test_conversion_message_carries_reason():
    assert str(CircularConversion(5, 3)).endswith("task 3 already depends on task 5")
    assert str(CircularConversion(5, 3, reason="as subtask 3.2 its dependencies would form a cycle")).endswith(
        "as subtask 3.2 its dependencies would form a cycle"
    )


def test_success_response_meta_warnings():
    response = asdict(success_response({"a": 1}, warnings=["careful"]))
    assert response["success"] is True
    assert response["data"] == {"a": 1}
    assert response["meta"]["version"] == "response-v2"
    assert response["meta"]["warnings"] == ["careful"]


def test_error_response_defaults_to_internal():
    response = error_response("boom")
    assert response.data["error_code"] == "INTERNAL_ERROR"
    assert response.data["error_type"] == "internal"


def test_error_response_with_enum_members():
    response = error_response(
        "Tasks file is busy",
        error_code=ErrorCode.STORE_LOCKED,
        error_type=ErrorType.UNAVAILABLE,
        details={"path": "tasks.json"},
    )
    assert response.success is False
    assert response.data["error_code"] == "STORE_LOCKED"
    assert response.data["error_type"] == "unavailable"
    assert response.data["details"] == {"path": "tasks.json"}
    assert "remediation" not in response.data
