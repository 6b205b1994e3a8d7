"""
Tests for RunnerContext: before/after lifecycle hooks, messages and cancellation.
"""

import asyncio

import pytest

import testrun as tr
from testrun.core import BeforeAfterTestHook, CallbackMessageBus, FunctionHook, InMemoryMessageBus


class RecordingHook(BeforeAfterTestHook):
    def __init__(self, name, log, fail_before=False, fail_after=False):
        self.name = name
        self.log = log
        self.fail_before = fail_before
        self.fail_after = fail_after

    @property
    def display_name(self):
        return self.name

    async def before(self, method, test):
        await asyncio.sleep(0)
        self.log.append(f"before:{self.name}")
        if self.fail_before:
            raise RuntimeError(f"before {self.name} failed")

    async def after(self, method, test):
        await asyncio.sleep(0)
        self.log.append(f"after:{self.name}")
        if self.fail_after:
            raise RuntimeError(f"after {self.name} failed")


def message_summary(bus):
    return [(type(m).__name__, m.attribute_name) for m in bus.messages]


class TestRunBeforeHooks:
    """Tests for RunnerContext.run_before_hooks."""

    @pytest.mark.asyncio
    async def test_runs_all_hooks_in_order(self, make_context, aggregator):
        """All hooks run in declaration order and are retained."""
        log = []
        hooks = [RecordingHook(n, log) for n in ("a", "b", "c")]
        ctx = make_context(hooks)

        await ctx.run_before_hooks()

        assert log == ["before:a", "before:b", "before:c"]
        assert list(ctx.lifecycle_hooks) == hooks
        assert not aggregator.has_exceptions

    @pytest.mark.asyncio
    async def test_failure_stops_remaining_hooks(self, make_context, aggregator, bus):
        """A failing before is recorded, excluded and stops the rest."""
        log = []
        a = RecordingHook("a", log)
        b = RecordingHook("b", log, fail_before=True)
        c = RecordingHook("c", log)
        ctx = make_context([a, b, c])

        await ctx.run_before_hooks()

        assert log == ["before:a", "before:b"]
        assert ctx.lifecycle_hooks == (a,)
        assert len(aggregator) == 1
        assert str(aggregator.exceptions[0]) == "before b failed"
        # The failing hook still gets its finished message
        assert message_summary(bus) == [
            ("BeforeTestStarting", "a"),
            ("BeforeTestFinished", "a"),
            ("BeforeTestStarting", "b"),
            ("BeforeTestFinished", "b"),
        ]

    @pytest.mark.asyncio
    async def test_first_hook_failure_retains_nothing(self, make_context, aggregator):
        """When the first hook fails, no hook is retained."""
        log = []
        ctx = make_context(
            [RecordingHook("a", log, fail_before=True), RecordingHook("b", log)]
        )

        await ctx.run_before_hooks()

        assert ctx.lifecycle_hooks == ()
        assert log == ["before:a"]
        assert len(aggregator) == 1

    @pytest.mark.asyncio
    async def test_rejected_starting_message_skips_hook(
        self, make_context, cancellation
    ):
        """A refused starting message cancels and the hook is not run."""
        log = []
        bus = InMemoryMessageBus(max_messages=0)
        ctx = make_context(
            [RecordingHook("a", log), RecordingHook("b", log)], message_bus=bus
        )

        await ctx.run_before_hooks()

        assert log == []
        assert ctx.lifecycle_hooks == ()
        assert cancellation.is_cancellation_requested
        assert [type(m).__name__ for m in bus.rejected] == ["BeforeTestStarting"]

    @pytest.mark.asyncio
    async def test_rejected_finished_message_stops_next_hook(
        self, make_context, cancellation
    ):
        """A refused finished message cancels; the next hook is not started."""
        log = []
        bus = InMemoryMessageBus(max_messages=1)
        a = RecordingHook("a", log)
        ctx = make_context([a, RecordingHook("b", log)], message_bus=bus)

        await ctx.run_before_hooks()

        assert log == ["before:a"]
        assert ctx.lifecycle_hooks == (a,)
        assert cancellation.is_cancellation_requested
        assert [type(m).__name__ for m in bus.rejected] == ["BeforeTestFinished"]

    @pytest.mark.asyncio
    async def test_pending_cancellation_stops_after_current_hook(
        self, make_context, cancellation
    ):
        """Cancellation is only checked between hooks, never mid-hook."""
        log = []
        a = RecordingHook("a", log)
        ctx = make_context([a, RecordingHook("b", log)])
        cancellation.cancel()

        await ctx.run_before_hooks()

        assert log == ["before:a"]
        assert ctx.lifecycle_hooks == (a,)

    @pytest.mark.asyncio
    async def test_hooks_receive_method_and_test(self, make_context, make_test):
        """Hooks are called with the test method and test descriptors."""
        seen = []
        test = make_test()

        def before(method, t):
            seen.append((method, t))

        ctx = make_context([FunctionHook(before=before)], test=test)
        await ctx.run_before_hooks()

        assert seen == [(test.test_method, test)]

    @pytest.mark.asyncio
    async def test_sync_hooks(self, make_context):
        """Plain (non-async) hook functions are supported."""
        log = []
        hook = FunctionHook(
            before=lambda m, t: log.append("before"),
            after=lambda m, t: log.append("after"),
            name="sync",
        )
        ctx = make_context([hook])

        await ctx.run_before_hooks()
        await ctx.run_after_hooks()

        assert log == ["before", "after"]

    @pytest.mark.asyncio
    async def test_no_hooks_sends_no_messages(self, make_context, bus):
        """An empty hook list is a no-op."""
        ctx = make_context([])

        await ctx.run_before_hooks()
        await ctx.run_after_hooks()

        assert bus.messages == []
        assert ctx.lifecycle_hooks == ()

    @pytest.mark.asyncio
    async def test_cancelled_error_propagates(self, make_context, bus):
        """Task cancellation is not swallowed, but the finished message is sent."""

        async def before(method, test):
            raise asyncio.CancelledError()

        ctx = make_context([FunctionHook(before=before, name="cancelled")])

        with pytest.raises(asyncio.CancelledError):
            await ctx.run_before_hooks()

        assert message_summary(bus) == [
            ("BeforeTestStarting", "cancelled"),
            ("BeforeTestFinished", "cancelled"),
        ]

    @pytest.mark.asyncio
    async def test_interrupted_before_cleans_up_only_started_hooks(self, make_context):
        """After an interrupted before phase, only completed hooks get their after."""
        log = []

        async def interrupt(method, test):
            log.append("before:b")
            raise asyncio.CancelledError()

        a = RecordingHook("a", log)
        b = FunctionHook(before=interrupt, after=lambda m, t: log.append("after:b"))
        ctx = make_context([a, b, RecordingHook("c", log)])

        try:
            with pytest.raises(asyncio.CancelledError):
                await ctx.run_before_hooks()
        finally:
            await ctx.run_after_hooks()

        assert ctx.lifecycle_hooks == (a,)
        assert log == ["before:a", "before:b", "after:a"]


class TestRunAfterHooks:
    """Tests for RunnerContext.run_after_hooks."""

    @pytest.mark.asyncio
    async def test_runs_in_reverse_order(self, make_context, bus):
        """After hooks run in reverse of the before order."""
        log = []
        ctx = make_context([RecordingHook(n, log) for n in ("a", "b", "c")])

        await ctx.run_before_hooks()
        await ctx.run_after_hooks()

        assert log == [
            "before:a",
            "before:b",
            "before:c",
            "after:c",
            "after:b",
            "after:a",
        ]
        assert message_summary(bus)[6:] == [
            ("AfterTestStarting", "c"),
            ("AfterTestFinished", "c"),
            ("AfterTestStarting", "b"),
            ("AfterTestFinished", "b"),
            ("AfterTestStarting", "a"),
            ("AfterTestFinished", "a"),
        ]

    @pytest.mark.asyncio
    async def test_only_succeeded_hooks_are_cleaned_up(self, make_context, aggregator):
        """Hooks whose before failed or never ran get no after."""
        log = []
        ctx = make_context(
            [
                RecordingHook("a", log),
                RecordingHook("b", log),
                RecordingHook("c", log, fail_before=True),
                RecordingHook("d", log),
            ]
        )

        await ctx.run_before_hooks()
        log.clear()
        await ctx.run_after_hooks()

        assert log == ["after:b", "after:a"]
        assert len(aggregator) == 1

    @pytest.mark.asyncio
    async def test_after_failures_do_not_stop_cleanup(self, make_context, aggregator):
        """Every retained hook gets its after, even when earlier ones fail."""
        log = []
        ctx = make_context(
            [
                RecordingHook("a", log, fail_after=True),
                RecordingHook("b", log),
                RecordingHook("c", log, fail_after=True),
            ]
        )

        await ctx.run_before_hooks()
        log.clear()
        await ctx.run_after_hooks()

        assert log == ["after:c", "after:b", "after:a"]
        assert [str(e) for e in aggregator.exceptions] == [
            "after c failed",
            "after a failed",
        ]

    @pytest.mark.asyncio
    async def test_cleanup_ignores_pending_cancellation(
        self, make_context, cancellation
    ):
        """Cancellation requested before cleanup does not skip any after."""
        log = []
        ctx = make_context([RecordingHook("a", log), RecordingHook("b", log)])

        await ctx.run_before_hooks()
        cancellation.cancel()
        log.clear()
        await ctx.run_after_hooks()

        assert log == ["after:b", "after:a"]

    @pytest.mark.asyncio
    async def test_rejected_after_starting_still_runs_hook(
        self, make_context, cancellation
    ):
        """A refused AfterTestStarting cancels but the after still runs."""
        log = []
        received = []

        def sink(message):
            received.append(message)
            return not isinstance(message, tr.AfterTestStarting)

        ctx = make_context(
            [RecordingHook("a", log), RecordingHook("b", log)],
            message_bus=CallbackMessageBus(sink),
        )

        await ctx.run_before_hooks()
        assert not cancellation.is_cancellation_requested

        await ctx.run_after_hooks()

        assert log[-2:] == ["after:b", "after:a"]
        assert cancellation.is_cancellation_requested
        assert [type(m).__name__ for m in received[-4:]] == [
            "AfterTestStarting",
            "AfterTestFinished",
            "AfterTestStarting",
            "AfterTestFinished",
        ]

    @pytest.mark.asyncio
    async def test_rejected_after_finished_still_cleans_up(
        self, make_context, cancellation
    ):
        """A refused AfterTestFinished cancels but remaining afters still run."""
        log = []
        bus = CallbackMessageBus(
            lambda message: not isinstance(message, tr.AfterTestFinished)
        )
        ctx = make_context(
            [RecordingHook(n, log) for n in ("a", "b", "c")], message_bus=bus
        )

        await ctx.run_before_hooks()
        assert not cancellation.is_cancellation_requested
        log.clear()

        await ctx.run_after_hooks()

        assert cancellation.is_cancellation_requested
        assert log == ["after:c", "after:b", "after:a"]


class TestMessages:
    """Tests for the content of hook messages."""

    @pytest.mark.asyncio
    async def test_message_identity(self, make_context, bus):
        """Messages carry the test's unique ids and the hook name."""

        class DatabaseHook(BeforeAfterTestHook):
            pass

        ctx = make_context([DatabaseHook()])
        await ctx.run_before_hooks()

        starting = bus.messages[0]
        assert isinstance(starting, tr.BeforeTestStarting)
        assert starting.attribute_name == "DatabaseHook"
        assert starting.assembly_unique_id == "asm-1"
        assert starting.test_collection_unique_id == "col-1"
        assert starting.test_class_unique_id == "cls-1"
        assert starting.test_method_unique_id == "mth-1"
        assert starting.test_case_unique_id == "case-1"
        assert starting.test_unique_id == "test-1"

    @pytest.mark.asyncio
    async def test_optional_class_and_method_ids(self, make_context, bus):
        """Class and method ids are None when the test case has none."""
        assembly = tr.TestAssembly(unique_id="asm-2")
        collection = tr.TestCollection(unique_id="col-2", test_assembly=assembly)
        test = tr.Test(
            unique_id="test-2",
            test_case=tr.TestCase(unique_id="case-2", test_collection=collection),
        )
        ctx = make_context([BeforeAfterTestHook()], test=test)

        await ctx.run_before_hooks()

        assert bus.messages[0].test_class_unique_id is None
        assert bus.messages[0].test_method_unique_id is None


class TestRunnerContextState:
    """Tests for RunnerContext construction and serialization."""

    def test_skip_reason_defaults_to_test_case(self, make_context, make_test):
        """The static skip reason comes from the test case unless given."""
        ctx = make_context(test=make_test(skip_reason="not today"))
        assert ctx.skip_reason == "not today"

        ctx = make_context(test=make_test(skip_reason="not today"), skip_reason="other")
        assert ctx.skip_reason == "other"

    def test_arguments_are_tuples(self, make_context):
        """Argument sequences are stored immutably."""
        ctx = make_context(constructor_arguments=[1, 2], test_method_arguments=["x"])

        assert ctx.constructor_arguments == (1, 2)
        assert ctx.test_method_arguments == ("x",)

    def test_rejects_missing_collaborators(self, make_test, bus, cancellation):
        """None collaborators are a programming error."""
        with pytest.raises(ValueError, match="aggregator"):
            tr.RunnerContext(
                test=make_test(),
                message_bus=bus,
                aggregator=None,
                cancellation_source=cancellation,
            )

    def test_to_dict(self, make_context):
        """Serialization to dict."""
        ctx = make_context(
            [FunctionHook(name="db")],
            explicit_option=tr.ExplicitOption.ONLY,
            test_method_arguments=(1, 2, 3),
        )

        data = ctx.to_dict()

        assert data["test_unique_id"] == "test-1"
        assert data["explicit_option"] == "only"
        assert data["lifecycle_hooks"] == ["db"]
        assert data["test_method_argument_count"] == 3
        assert data["cancellation_requested"] is False
        assert "message_bus" not in data
