"""
Expect - assertions over a call's event log.

Ordered checks move a cursor through the log: the first applicable event
after the cursor decides the outcome. unordered() looks anywhere past the
cursor for an unconsumed match, and never() fails as soon as a matching
event shows up.

    expect = Expect(call)
    expect.prompt().to_contain("Welcome")
    expect.attributes().to_equal("lang", "en")
    expect.transfer().to_queue("Sales")
"""
import logging
import time
from typing import TYPE_CHECKING, Optional, Set

from ..core.errors import ExpectationError
from .matchers import (
    AttributeMatcher,
    CallEndedMatcher,
    FlowTransferMatcher,
    LambdaMatcher,
    Matcher,
    NumberTransferMatcher,
    PromptMatcher,
    QueueTransferMatcher,
)

if TYPE_CHECKING:
    from ..flow.call import Call

logger = logging.getLogger(__name__)


class Expect:
    def __init__(self, call: "Call", timeout: Optional[float] = None):
        self.call = call
        self.log = call.events
        self.timeout = call.settings.EXPECTATION_TIMEOUT_SECONDS if timeout is None else timeout
        self._cursor = 0
        self._consumed: Set[int] = set()

    # ==================== Contexts ====================

    def transfer(self) -> "TransferExpectation":
        return TransferExpectation(self)

    def prompt(self) -> "PromptExpectation":
        return PromptExpectation(self)

    def attributes(self) -> "AttributeExpectation":
        return AttributeExpectation(self)

    def lambda_(self) -> "LambdaExpectation":
        return LambdaExpectation(self)

    def call_end(self) -> "CallEndExpectation":
        return CallEndExpectation(self)

    # ==================== Checks ====================

    def check(self, matcher: Matcher, unordered: bool = False, never: bool = False) -> None:
        """
        Run one matcher against the log.

        Raises:
            ExpectationError: if the expectation does not hold
        """
        deadline = time.monotonic() + self.timeout
        logger.debug(f"Checking {matcher.expected()} (unordered={unordered}, never={never})")
        if never:
            self._check_never(matcher, deadline)
        elif unordered:
            self._check_unordered(matcher, deadline)
        else:
            self._check_ordered(matcher, deadline)

    def _next(self, index: int, deadline: float):
        return self.log.wait_for(index, timeout=max(0.0, deadline - time.monotonic()))

    def _check_ordered(self, matcher: Matcher, deadline: float) -> None:
        index = self._cursor
        while True:
            event = self._next(index, deadline)
            if event is None:
                raise ExpectationError(matcher.expected())

            position = index
            index += 1
            if position in self._consumed:
                continue

            result = matcher.match(event)
            if not result.applicable:
                continue

            self._cursor = index
            if result.passed:
                self._consumed.add(position)
                return
            raise ExpectationError(matcher.expected(), result.got)

    def _check_unordered(self, matcher: Matcher, deadline: float) -> None:
        index = self._cursor
        last_got = None
        while True:
            event = self._next(index, deadline)
            if event is None:
                raise ExpectationError(matcher.expected(), last_got)

            position = index
            index += 1
            if position in self._consumed:
                continue

            result = matcher.match(event)
            if not result.applicable:
                continue
            if result.passed:
                self._consumed.add(position)
                return
            last_got = result.got

    def _check_never(self, matcher: Matcher, deadline: float) -> None:
        index = self._cursor
        while True:
            event = self._next(index, deadline)
            if event is None:
                return

            position = index
            index += 1
            if position in self._consumed:
                continue

            result = matcher.match(event)
            if result.applicable and result.passed:
                raise ExpectationError(f"never {matcher.expected()}", result.got)


class _Expectation:
    """Shared modifiers for the fluent contexts"""

    def __init__(self, expect: Expect):
        self._expect = expect
        self._never = False
        self._unordered = False

    def never(self):
        self._never = True
        return self

    def unordered(self):
        self._unordered = True
        return self

    def _check(self, matcher: Matcher) -> None:
        self._expect.check(matcher, unordered=self._unordered, never=self._never)


class TransferExpectation(_Expectation):
    def to_queue(self, queue_name: str) -> None:
        self._check(QueueTransferMatcher(queue_name))

    def to_flow(self, flow_name: str) -> None:
        self._check(FlowTransferMatcher(flow_name))

    def to_number(self, tel: str) -> None:
        self._check(NumberTransferMatcher(tel))


class PromptExpectation(_Expectation):
    def to_equal(self, text: str) -> None:
        self._check(PromptMatcher(text))

    def to_contain(self, text: str) -> None:
        self._check(PromptMatcher(text, contains=True))


class AttributeExpectation(_Expectation):
    def to_equal(self, key: str, value: str) -> None:
        self._check(AttributeMatcher(key, value))


class LambdaExpectation(_Expectation):
    def to_be_invoked(self, name: str) -> None:
        self._check(LambdaMatcher(name))


class CallEndExpectation(_Expectation):
    def to_end(self, reason: Optional[str] = None) -> None:
        self._check(CallEndedMatcher(reason))
