"""
testrun - per-test lifecycle orchestration for test-execution engines.

Usage:

    import testrun as tr

    class Env:
        @tr.static_property
        def is_ci() -> bool:
            return os.environ.get("CI") == "1"

    test_case = tr.TestCase(
        unique_id="case-1",
        test_collection=collection,
        test_class=tr.TestClass("class-1", MyTests),
        test_method=tr.TestMethod("method-1", MyTests.test_upload),
        skip_reason="Only runs on CI",
        skip_unless="is_ci",
        skip_type=Env,
    )

    ctx = tr.RunnerContext(
        test=tr.Test("test-1", test_case, "MyTests.test_upload"),
        message_bus=tr.InMemoryMessageBus(),
        aggregator=tr.ExceptionAggregator(),
        cancellation_source=tr.CancellationSource(),
        lifecycle_hooks=[TempDirHook()],
    )

    await ctx.run_before_hooks()
    reason = ctx.get_skip_reason()
    await ctx.run_after_hooks()
"""

# Identity types
from .types import (
    ExplicitOption,
    Test,
    TestAssembly,
    TestCase,
    TestClass,
    TestCollection,
    TestMethod,
)

# Messages
from .messages import (
    AfterTestFinished,
    AfterTestStarting,
    BeforeTestFinished,
    BeforeTestStarting,
    HookMessage,
    TestMessage,
)

# Core
from .core import (
    DYNAMIC_SKIP_TOKEN,
    BeforeAfterTestHook,
    CallbackMessageBus,
    CancellationSource,
    ExceptionAggregator,
    FunctionHook,
    InMemoryMessageBus,
    LifecycleHook,
    MessageBus,
    RunnerContext,
    TestRunnerContext,
    static_property,
)

# Error types
from .errors import (
    DynamicSkipConfigurationError,
    TestPipelineError,
    TestRunError,
)

from .utils.logging_utils import get_logger, setup_logging

__version__ = "0.1.0"

__all__ = [
    # Types
    "ExplicitOption",
    "Test",
    "TestAssembly",
    "TestCase",
    "TestClass",
    "TestCollection",
    "TestMethod",
    # Messages
    "TestMessage",
    "HookMessage",
    "BeforeTestStarting",
    "BeforeTestFinished",
    "AfterTestStarting",
    "AfterTestFinished",
    # Core
    "RunnerContext",
    "TestRunnerContext",
    "ExceptionAggregator",
    "MessageBus",
    "InMemoryMessageBus",
    "CallbackMessageBus",
    "CancellationSource",
    "LifecycleHook",
    "BeforeAfterTestHook",
    "FunctionHook",
    "static_property",
    "DYNAMIC_SKIP_TOKEN",
    # Errors
    "TestRunError",
    "TestPipelineError",
    "DynamicSkipConfigurationError",
    # Logging
    "setup_logging",
    "get_logger",
]
