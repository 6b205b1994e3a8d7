import pytest

from testrun import (
    CancellationSource,
    ExceptionAggregator,
    InMemoryMessageBus,
    RunnerContext,
    Test,
    TestAssembly,
    TestCase,
    TestClass,
    TestCollection,
    TestMethod,
)


class SampleTests:
    def check_upload(self):
        pass


@pytest.fixture
def make_test():
    """Factory building a Test; keyword args go to TestCase."""

    def _make(cls=SampleTests, **case_kwargs) -> Test:
        assembly = TestAssembly(unique_id="asm-1", name="sample")
        collection = TestCollection(unique_id="col-1", test_assembly=assembly)
        test_case = TestCase(
            unique_id="case-1",
            test_collection=collection,
            test_class=TestClass(unique_id="cls-1", cls=cls),
            test_method=TestMethod(unique_id="mth-1", method=SampleTests.check_upload),
            **case_kwargs,
        )
        return Test(unique_id="test-1", test_case=test_case, display_name="upload")

    return _make


@pytest.fixture
def bus():
    return InMemoryMessageBus()


@pytest.fixture
def aggregator():
    return ExceptionAggregator()


@pytest.fixture
def cancellation():
    return CancellationSource()


@pytest.fixture
def make_context(make_test, bus, aggregator, cancellation):
    """Factory building a RunnerContext wired to the shared fixtures."""

    def _make(hooks=(), test=None, **kwargs) -> RunnerContext:
        kwargs.setdefault("message_bus", bus)
        return RunnerContext(
            test=test or make_test(),
            aggregator=aggregator,
            cancellation_source=cancellation,
            lifecycle_hooks=hooks,
            **kwargs,
        )

    return _make
