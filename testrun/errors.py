"""
Error hierarchy for testrun.

Design:
- All errors inherit from TestRunError
- Errors carry keyword context for debugging
- Hook failures are not wrapped; the aggregator records the user's exception as-is
"""

from __future__ import annotations

from typing import Any


class TestRunError(Exception):
    """Base class for all testrun errors."""

    __test__ = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message


class TestPipelineError(TestRunError):
    """The test pipeline found a configuration problem with a test."""

    def __init__(
        self,
        message: str,
        *,
        test_class: str | None = None,
        test_method: str | None = None,
        **context: Any,
    ):
        super().__init__(message, **context)
        self.test_class = test_class
        self.test_method = test_method


class DynamicSkipConfigurationError(TestPipelineError):
    """SkipUnless/SkipWhen could not be evaluated for a test."""

    def __init__(
        self,
        message: str,
        *,
        property_name: str | None = None,
        property_type: type | None = None,
        **context: Any,
    ):
        super().__init__(message, **context)
        self.property_name = property_name
        self.property_type = property_type
