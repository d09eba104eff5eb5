# src/media_variants/core/error_handling.py

import functools
import logging
import time
from typing import Any, Dict, List, Optional

from botocore.exceptions import (
    ClientError as BotocoreClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from .exceptions import UploadError

RETRYABLE_S3_ERROR_CODES = (
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "SlowDown",
    "RequestTimeout",
    "InternalError",
    "ServiceUnavailable",
)
RETRYABLE_TRANSPORT_ERRORS = (ConnectTimeoutError, ReadTimeoutError, EndpointConnectionError)


def is_retryable_storage_error(error: BaseException) -> bool:
    """True when an UploadError was caused by throttling or a transport timeout."""
    cause = error.__cause__
    if isinstance(cause, RETRYABLE_TRANSPORT_ERRORS):
        return True
    if isinstance(cause, BotocoreClientError):
        error_code = cause.response.get("Error", {}).get("Code")
        return error_code in RETRYABLE_S3_ERROR_CODES
    return False


def is_missing_object_error(error: BaseException) -> bool:
    """True for the 404 family returned by head_object/get_object."""
    if not isinstance(error, BotocoreClientError):
        return False
    error_code = str(error.response.get("Error", {}).get("Code", ""))
    return error_code in ("404", "NoSuchKey", "NotFound")


def retry_storage_operation(max_attempts=3, initial_delay=1.0, backoff_factor=2.0):
    """
    Decorator to retry storage operations with exponential backoff.

    Only UploadErrors whose cause is retryable are retried; anything else
    propagates on the first failure.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(func.__module__ + '.' + func.__name__)
            delay = initial_delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except UploadError as e:
                    if not is_retryable_storage_error(e):
                        logger.error(f"Storage operation '{func.__name__}' failed with non-retryable error: {e}")
                        raise
                    if attempt >= max_attempts:
                        logger.error(
                            f"Storage operation '{func.__name__}' failed after {max_attempts} attempts. Error: {e}"
                        )
                        raise
                    logger.info(
                        f"Storage operation '{func.__name__}' failed. Attempt {attempt}/{max_attempts}. "
                        f"Retrying in {delay:.2f}s. Error: {e}"
                    )
                    time.sleep(delay)
                    delay *= backoff_factor
        return wrapper
    return decorator


class BatchOperationContextManager:
    """
    Context manager for batch operations to collect and summarize errors.
    """
    def __init__(self, operation_name="Batch Operation", logger: Optional[Any] = None):
        self.operation_name = operation_name
        self.errors: List[Dict[str, str]] = []
        self.logger = logger or logging.getLogger(self.__class__.__module__ + '.' + self.__class__.__name__)

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}"
            )
        elif self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.error(
                    f"  Error {i+1}/{len(self.errors)} for item '{error_detail['item']}': {error_detail['error']}"
                )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")
        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item"):
        """
        Report an error for a specific item within the 'with' block.

        Args:
            error_message (str): The error message or exception string.
            item_identifier (str): A string identifying the item that failed (e.g., id, filename).
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}")
