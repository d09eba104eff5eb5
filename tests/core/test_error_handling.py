# tests/core/test_error_handling.py

import pytest
from unittest import mock

from botocore.exceptions import (
    ClientError as BotocoreClientError,
    EndpointConnectionError,
)

from media_variants.core.exceptions import DecodeError, UploadError
from media_variants.core.error_handling import (
    BatchOperationContextManager,
    is_missing_object_error,
    is_retryable_storage_error,
    retry_storage_operation,
)
from media_variants.testing.fakes import FakeLogger


def _client_error(code):
    return BotocoreClientError({"Error": {"Code": code, "Message": code}}, "PutObject")


def _upload_error(cause):
    error = UploadError(str(cause))
    error.__cause__ = cause
    return error


# --- Tests for retry classification ---

@pytest.mark.parametrize("code", ["SlowDown", "ThrottlingException", "InternalError", "ServiceUnavailable"])
def test_retryable_codes(code):
    assert is_retryable_storage_error(_upload_error(_client_error(code)))


@pytest.mark.parametrize("code", ["AccessDenied", "NoSuchBucket", "InvalidArgument"])
def test_non_retryable_codes(code):
    assert not is_retryable_storage_error(_upload_error(_client_error(code)))


def test_transport_errors_are_retryable():
    cause = EndpointConnectionError(endpoint_url="http://minio:9000")
    assert is_retryable_storage_error(_upload_error(cause))


def test_error_without_cause_is_not_retryable():
    assert not is_retryable_storage_error(UploadError("plain"))


@pytest.mark.parametrize("code, expected", [("404", True), ("NoSuchKey", True), ("NotFound", True), ("403", False)])
def test_is_missing_object_error(code, expected):
    assert is_missing_object_error(_client_error(code)) is expected


def test_is_missing_object_error_other_exception():
    assert not is_missing_object_error(ValueError("404"))


# --- Tests for retry_storage_operation Decorator ---

@mock.patch("time.sleep", return_value=None)
def test_retry_storage_operation_success_after_retries(mock_sleep):
    calls = {"count": 0}

    @retry_storage_operation(max_attempts=3, initial_delay=0.5, backoff_factor=2.0)
    def flaky_put():
        calls["count"] += 1
        if calls["count"] < 3:
            raise _upload_error(_client_error("SlowDown"))
        return "ok"

    assert flaky_put() == "ok"
    assert calls["count"] == 3
    assert [c.args[0] for c in mock_sleep.call_args_list] == [0.5, 1.0]


@mock.patch("time.sleep", return_value=None)
def test_retry_storage_operation_exhausts_attempts(mock_sleep):
    mock_func = mock.Mock(side_effect=_upload_error(_client_error("SlowDown")))
    mock_func.__name__ = "put_variant"

    decorated = retry_storage_operation(max_attempts=2, initial_delay=0)(mock_func)

    with pytest.raises(UploadError):
        decorated()
    assert mock_func.call_count == 2


@mock.patch("time.sleep", return_value=None)
def test_retry_storage_operation_non_retryable(mock_sleep):
    mock_func = mock.Mock(side_effect=_upload_error(_client_error("AccessDenied")))
    mock_func.__name__ = "put_variant"

    decorated = retry_storage_operation(max_attempts=3, initial_delay=0)(mock_func)

    with pytest.raises(UploadError):
        decorated()
    assert mock_func.call_count == 1
    mock_sleep.assert_not_called()


def test_retry_storage_operation_ignores_other_errors():
    mock_func = mock.Mock(side_effect=DecodeError("bad"))
    mock_func.__name__ = "render"

    decorated = retry_storage_operation(max_attempts=3, initial_delay=0)(mock_func)

    with pytest.raises(DecodeError):
        decorated()
    assert mock_func.call_count == 1


# --- Tests for BatchOperationContextManager ---

def test_batch_context_manager_no_errors():
    logger = FakeLogger()

    with BatchOperationContextManager("Test Batch", logger=logger) as batch:
        pass

    assert batch.errors == []
    messages = [log["message"] for log in logger.get_logs("INFO")]
    assert "Starting Test Batch." in messages
    assert "Test Batch completed successfully." in messages


def test_batch_context_manager_with_errors():
    logger = FakeLogger()

    with BatchOperationContextManager("Test Batch", logger=logger) as batch:
        batch.add_error("download failed", item_identifier="a.jpg (1)")
        batch.add_error(ValueError("decode failed"), item_identifier="b.jpg (2)")

    assert batch.errors == [
        {"item": "a.jpg (1)", "error": "download failed"},
        {"item": "b.jpg (2)", "error": "decode failed"},
    ]
    assert logger.get_logs("WARNING")[0]["message"] == "Test Batch completed with 2 error(s)."
    assert len(logger.get_logs("ERROR")) == 2


def test_batch_context_manager_does_not_suppress():
    logger = FakeLogger()

    with pytest.raises(RuntimeError):
        with BatchOperationContextManager("Test Batch", logger=logger):
            raise RuntimeError("query failed")

    assert "unhandled exception" in logger.get_logs("ERROR")[0]["message"]
