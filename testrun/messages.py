"""Execution messages emitted around lifecycle hook phases."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class TestMessage(BaseModel):
    """Identity of the test a message belongs to."""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    assembly_unique_id: str
    test_collection_unique_id: str
    test_class_unique_id: Optional[str] = None
    test_method_unique_id: Optional[str] = None
    test_case_unique_id: str
    test_unique_id: str


class HookMessage(TestMessage):
    """A message about one lifecycle hook."""

    attribute_name: str


class BeforeTestStarting(HookMessage):
    message_type: Literal["before-test-starting"] = "before-test-starting"


class BeforeTestFinished(HookMessage):
    message_type: Literal["before-test-finished"] = "before-test-finished"


class AfterTestStarting(HookMessage):
    message_type: Literal["after-test-starting"] = "after-test-starting"


class AfterTestFinished(HookMessage):
    message_type: Literal["after-test-finished"] = "after-test-finished"
