from testrun.utils.async_utils import maybe_await
from testrun.utils.logging_utils import (
    bind_test_context,
    clear_test_context,
    get_logger,
    setup_logging,
    unbind_test_context,
)

__all__ = [
    "maybe_await",
    "setup_logging",
    "get_logger",
    "bind_test_context",
    "clear_test_context",
    "unbind_test_context",
]
