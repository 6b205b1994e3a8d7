"""
testrun core - per-test lifecycle orchestration.

- RunnerContext: Runs a test's before/after lifecycle hooks in order,
  cleans up only what started, and decides dynamic skips.

- ExceptionAggregator: Captures failures so nothing escapes the pipeline.

- MessageBus: Receives phase messages; a refusal cancels the run.

Example usage:

    from testrun.core import (
        CancellationSource,
        ExceptionAggregator,
        InMemoryMessageBus,
        RunnerContext,
    )

    ctx = RunnerContext(
        test=test,
        message_bus=InMemoryMessageBus(),
        aggregator=ExceptionAggregator(),
        cancellation_source=CancellationSource(),
        lifecycle_hooks=[TempDirHook()],
    )
    await ctx.run_before_hooks()
    ...
    await ctx.run_after_hooks()
"""

from testrun.core.aggregator import ExceptionAggregator
from testrun.core.bus import CallbackMessageBus, InMemoryMessageBus, MessageBus
from testrun.core.cancellation import CancellationSource
from testrun.core.context import RunnerContext, TestRunnerContext
from testrun.core.hooks import (
    BeforeAfterTestHook,
    FunctionHook,
    LifecycleHook,
    hook_display_name,
)
from testrun.core.lookup import (
    LookupOutcome,
    PropertyLookup,
    PropertyResolver,
    ReflectionPropertyResolver,
    static_property,
)
from testrun.core.skip import (
    DYNAMIC_SKIP_TOKEN,
    DynamicSkipResolver,
    skip_reason_from_exception,
)

__all__ = [
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
    "hook_display_name",
    "LookupOutcome",
    "PropertyLookup",
    "PropertyResolver",
    "ReflectionPropertyResolver",
    "static_property",
    "DYNAMIC_SKIP_TOKEN",
    "DynamicSkipResolver",
    "skip_reason_from_exception",
]
