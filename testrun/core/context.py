"""
RunnerContext - Per-test state for running lifecycle hooks and deciding skips.

One context is created for each test execution and thrown away afterwards.
The bus, aggregator and cancellation source are shared with the rest of the
test run; the context only appends to them.

Usage:
    ctx = RunnerContext(
        test=test,
        message_bus=bus,
        aggregator=ExceptionAggregator(),
        cancellation_source=cancellation,
        lifecycle_hooks=[TempDirHook(), DatabaseHook()],
    )

    await ctx.run_before_hooks()
    try:
        invoke_test_body()
    except Exception as e:
        if ctx.get_skip_reason(e) is None:
            ctx.aggregator.add(e)
    await ctx.run_after_hooks()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from testrun.core.aggregator import ExceptionAggregator
from testrun.core.bus import MessageBus
from testrun.core.cancellation import CancellationSource
from testrun.core.hooks import LifecycleHook, hook_display_name
from testrun.core.lookup import PropertyResolver, ReflectionPropertyResolver
from testrun.core.skip import DynamicSkipResolver, skip_reason_from_exception
from testrun.messages import (
    AfterTestFinished,
    AfterTestStarting,
    BeforeTestFinished,
    BeforeTestStarting,
    TestMessage,
)
from testrun.types import ExplicitOption, Test
from testrun.utils.async_utils import maybe_await
from testrun.utils.logging_utils import get_logger

logger = get_logger(__name__)


@dataclass
class TestRunnerContext:
    """
    State shared by every kind of test runner.

    Attributes:
        test: The test being run
        message_bus: Bus receiving execution messages
        aggregator: Collects failures instead of raising them
        cancellation_source: Shared run-wide cancellation flag
        skip_reason: Static skip reason (defaults to the test case's)
        explicit_option: How explicit tests are treated
    """

    __test__ = False

    test: Test
    message_bus: MessageBus
    aggregator: ExceptionAggregator
    cancellation_source: CancellationSource
    skip_reason: Optional[str] = None
    explicit_option: ExplicitOption = ExplicitOption.OFF

    def __post_init__(self):
        for name in ("test", "message_bus", "aggregator", "cancellation_source"):
            if getattr(self, name) is None:
                raise ValueError(f"{name} must not be None")
        if self.skip_reason is None:
            self.skip_reason = self.test.test_case.skip_reason

    @property
    def cancellation_requested(self) -> bool:
        return self.cancellation_source.is_cancellation_requested

    def get_skip_reason(self, exception: Optional[BaseException] = None) -> Optional[str]:
        """The skip reason for the test, or None if it should run."""
        return self.skip_reason

    def _message_ids(self) -> dict[str, Any]:
        test_case = self.test.test_case
        return {
            "assembly_unique_id": test_case.test_assembly.unique_id,
            "test_collection_unique_id": test_case.test_collection.unique_id,
            "test_class_unique_id": (
                test_case.test_class.unique_id if test_case.test_class else None
            ),
            "test_method_unique_id": (
                test_case.test_method.unique_id if test_case.test_method else None
            ),
            "test_case_unique_id": test_case.unique_id,
            "test_unique_id": self.test.unique_id,
        }

    def _queue(self, message: TestMessage) -> bool:
        """Queue a message, cancelling the run if the bus refuses it."""
        if self.message_bus.queue_message(message):
            return True
        logger.warning(
            "message_rejected_cancelling",
            message_type=type(message).__name__,
            test_id=self.test.unique_id,
        )
        self.cancellation_source.cancel()
        return False


@dataclass
class RunnerContext(TestRunnerContext):
    """
    Context for running one test's lifecycle hooks.

    ``lifecycle_hooks`` starts as the full configured list. After
    :meth:`run_before_hooks` it holds only the hooks whose ``before``
    succeeded, in run order; :meth:`run_after_hooks` cleans those up in
    reverse.

    Attributes:
        lifecycle_hooks: Hooks applied to the test
        constructor_arguments: Arguments for constructing the test class
        test_method_arguments: Arguments for the test method
        property_resolver: Finds SkipUnless/SkipWhen properties
    """

    lifecycle_hooks: Sequence[LifecycleHook] = ()
    constructor_arguments: tuple[Any, ...] = ()
    test_method_arguments: tuple[Any, ...] = ()
    property_resolver: Optional[PropertyResolver] = None

    _skip_resolver: DynamicSkipResolver = field(init=False, repr=False)

    def __post_init__(self):
        super().__post_init__()
        for name in ("lifecycle_hooks", "constructor_arguments", "test_method_arguments"):
            if getattr(self, name) is None:
                raise ValueError(f"{name} must not be None")
        self.lifecycle_hooks = tuple(self.lifecycle_hooks)
        self.constructor_arguments = tuple(self.constructor_arguments)
        self.test_method_arguments = tuple(self.test_method_arguments)
        if self.property_resolver is None:
            self.property_resolver = ReflectionPropertyResolver()

        self._skip_resolver = DynamicSkipResolver(
            test=self.test,
            skip_reason=self.skip_reason,
            aggregator=self.aggregator,
            resolver=self.property_resolver,
        )

    def get_skip_reason(self, exception: Optional[BaseException] = None) -> Optional[str]:
        """
        Get the runtime skip reason for the test.

        An exception whose message starts with DYNAMIC_SKIP_TOKEN always wins
        and is checked on every call. Otherwise the SkipUnless/SkipWhen
        evaluation is used; it runs once and is cached for the life of the
        context.
        """
        reason = skip_reason_from_exception(exception)
        if reason is not None:
            return reason
        return self._skip_resolver.resolve()

    async def run_before_hooks(self) -> None:
        """
        Run ``before`` for each hook in order.

        Stops at the first failing hook (its error goes to the aggregator)
        and before starting a new hook once cancellation is requested.
        """
        if not self.lifecycle_hooks:
            return

        ids = self._message_ids()
        method = self.test.test_method
        succeeded: list[LifecycleHook] = []

        try:
            for hook in self.lifecycle_hooks:
                name = hook_display_name(hook)

                if self._queue(BeforeTestStarting(attribute_name=name, **ids)):
                    logger.debug("before_hook_started", hook=name, test_id=self.test.unique_id)
                    try:
                        await maybe_await(hook.before, method, self.test)
                        succeeded.append(hook)
                    except Exception as e:
                        logger.debug(
                            "before_hook_failed",
                            hook=name,
                            test_id=self.test.unique_id,
                            exc_type=type(e).__name__,
                        )
                        self.aggregator.add(e)
                        break
                    finally:
                        self._queue(BeforeTestFinished(attribute_name=name, **ids))

                if self.cancellation_requested:
                    logger.debug(
                        "before_hooks_cancelled",
                        test_id=self.test.unique_id,
                        completed=len(succeeded),
                    )
                    break
        finally:
            # Interrupted or not, only hooks that finished before get cleaned up.
            self.lifecycle_hooks = tuple(succeeded)

    async def run_after_hooks(self) -> None:
        """
        Run ``after`` for each hook whose ``before`` succeeded, in reverse.

        Every hook gets its ``after`` attempted even if an earlier one failed
        or cancellation was requested.
        """
        if not self.lifecycle_hooks:
            return

        ids = self._message_ids()
        method = self.test.test_method

        for hook in reversed(self.lifecycle_hooks):
            name = hook_display_name(hook)

            self._queue(AfterTestStarting(attribute_name=name, **ids))
            logger.debug("after_hook_started", hook=name, test_id=self.test.unique_id)
            await self.aggregator.run_async(hook.after, method, self.test)
            self._queue(AfterTestFinished(attribute_name=name, **ids))

    def to_dict(self) -> dict[str, Any]:
        """Serialize context to dict (excluding bus, aggregator and hooks themselves)."""
        return {
            "test_unique_id": self.test.unique_id,
            "display_name": self.test.display_name,
            "skip_reason": self.skip_reason,
            "explicit_option": self.explicit_option.value,
            "lifecycle_hooks": [hook_display_name(h) for h in self.lifecycle_hooks],
            "constructor_argument_count": len(self.constructor_arguments),
            "test_method_argument_count": len(self.test_method_arguments),
            "cancellation_requested": self.cancellation_requested,
        }
