"""Conversion of upstream errors into failure reports."""

import traceback

import httpx

from .models import FailureSpec

UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
UPSTREAM_ERROR = "UPSTREAM_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"


def error_code_for(error: BaseException) -> str:
    """Classify an exception into a stable error code."""
    if isinstance(error, httpx.HTTPStatusError):
        return UPSTREAM_ERROR
    if isinstance(error, httpx.TransportError):
        return UPSTREAM_UNAVAILABLE
    return INTERNAL_ERROR


def build_failure_spec(error: BaseException) -> FailureSpec:
    """Build a FailureSpec describing the given exception."""
    reason = str(error) or type(error).__name__
    stack_trace = "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    )
    return FailureSpec(
        reason=reason,
        error_code=error_code_for(error),
        exception_class=f"{type(error).__module__}.{type(error).__qualname__}",
        stack_trace=stack_trace,
    )
