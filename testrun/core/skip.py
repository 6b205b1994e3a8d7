"""
Dynamic skip resolution.

A test can be skipped at run time in two ways:

- SkipUnless / SkipWhen name a static bool property; its value decides
  whether the statically declared skip reason applies.
- The test body raises any exception whose message starts with
  DYNAMIC_SKIP_TOKEN; the rest of the message is the skip reason.

Configuration problems are recorded into the aggregator (so the test fails)
and never raised.
"""

from __future__ import annotations

from typing import Optional, cast

from testrun.core.aggregator import ExceptionAggregator
from testrun.core.lookup import LookupOutcome, PropertyResolver
from testrun.errors import DynamicSkipConfigurationError, TestPipelineError
from testrun.types import Test
from testrun.utils.logging_utils import get_logger

logger = get_logger(__name__)

DYNAMIC_SKIP_TOKEN = "$XunitDynamicSkip$"

_LOOKUP_FAILURES = {
    LookupOutcome.NOT_FOUND: "Cannot find public static property '{name}' on type '{type}' for dynamic skip on test method '{cls}.{method}'",
    LookupOutcome.NOT_READABLE: "Public static property '{name}' on type '{type}' must be readable for dynamic skip on test method '{cls}.{method}'",
    LookupOutcome.WRONG_TYPE: "Public static property '{name}' on type '{type}' must return bool for dynamic skip on test method '{cls}.{method}'",
}


def skip_reason_from_exception(exception: Optional[BaseException]) -> Optional[str]:
    """
    Return the skip reason carried by ``exception``, if any.

    Any exception type qualifies as long as its message starts with
    DYNAMIC_SKIP_TOKEN. The message is the single string argument the
    exception was raised with; ``str()`` is only used for anything else,
    since types like KeyError quote it or add context.
    """
    if exception is None:
        return None
    args = exception.args
    if len(args) == 1 and isinstance(args[0], str):
        message = args[0]
    else:
        message = str(exception)
    if message.startswith(DYNAMIC_SKIP_TOKEN):
        return message[len(DYNAMIC_SKIP_TOKEN):]
    return None


class DynamicSkipResolver:
    """
    Evaluates SkipUnless/SkipWhen for one test, at most once.

    The first call to :meth:`resolve` computes the result; later calls return
    the stored value even if the underlying property would now answer
    differently. Not safe to share between threads; a resolver belongs to a
    single test.
    """

    def __init__(
        self,
        test: Test,
        skip_reason: Optional[str],
        aggregator: ExceptionAggregator,
        resolver: PropertyResolver,
    ):
        self.test = test
        self.skip_reason = skip_reason
        self.aggregator = aggregator
        self.resolver = resolver
        self._computed = False
        self._value: Optional[str] = None

    @property
    def computed(self) -> bool:
        return self._computed

    def resolve(self) -> Optional[str]:
        if not self._computed:
            # Recording here (before the test body runs) turns a bad
            # configuration into a test failure.
            self._value = self.aggregator.run(self._evaluate, default=None)
            self._computed = True
        return self._value

    def _evaluate(self) -> Optional[str]:
        test_case = self.test.test_case
        skip_unless = test_case.skip_unless
        skip_when = test_case.skip_when

        if skip_unless is None and skip_when is None:
            return self.skip_reason

        cls_name = test_case.test_class_name
        method_name = test_case.test_method_name

        if skip_unless is not None and skip_when is not None:
            raise TestPipelineError(
                f"Both 'SkipUnless' and 'SkipWhen' are set on test method "
                f"'{cls_name}.{method_name}'; they are mutually exclusive",
                test_class=cls_name,
                test_method=method_name,
            )

        property_type = test_case.skip_type or (
            test_case.test_class.cls if test_case.test_class else None
        )
        property_name = cast(str, skip_unless if skip_unless is not None else skip_when)

        if property_type is None:
            raise TestPipelineError(
                f"Cannot find a type to search for dynamic skip property "
                f"'{property_name}' on test method '{cls_name}.{method_name}'",
                test_class=cls_name,
                test_method=method_name,
            )

        lookup = self.resolver.find_static_bool_property(property_type, property_name)
        value = None
        outcome = lookup.outcome
        if lookup.found:
            if lookup.getter is None:
                outcome = LookupOutcome.NOT_READABLE
            else:
                value = lookup.getter()
                if not isinstance(value, bool):
                    outcome = LookupOutcome.WRONG_TYPE

        if outcome is not LookupOutcome.FOUND:
            raise DynamicSkipConfigurationError(
                _LOOKUP_FAILURES[outcome].format(
                    name=property_name,
                    type=_type_name(property_type),
                    cls=cls_name,
                    method=method_name,
                ),
                test_class=cls_name,
                test_method=method_name,
                property_name=property_name,
                property_type=property_type,
            )

        should_skip = (skip_unless is not None and value is False) or (
            skip_when is not None and value is True
        )
        logger.debug(
            "dynamic_skip_evaluated",
            test_id=self.test.unique_id,
            property=property_name,
            value=value,
            skipped=should_skip,
        )
        return self.skip_reason if should_skip else None


def _type_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"
