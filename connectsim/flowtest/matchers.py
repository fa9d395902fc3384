"""
Event matchers used by Expect.

A matcher looks at one event and answers one of three ways:
- not applicable (wrong kind of event)
- applicable and passes
- applicable and fails, reporting what was actually seen
"""
from dataclasses import dataclass
from typing import Optional

from ..models.events import (
    CallEndedEvent,
    Event,
    EventType,
    FlowTransferEvent,
    LambdaEvent,
    NumberTransferEvent,
    PromptEvent,
    QueueTransferEvent,
    UpdateContactDataEvent,
)


@dataclass(frozen=True)
class MatchResult:
    applicable: bool
    passed: bool = False
    got: Optional[str] = None


NOT_APPLICABLE = MatchResult(applicable=False)


class Matcher:
    """Base matcher; subclasses set event_type and implement check()"""

    event_type: EventType = None

    def match(self, event: Event) -> MatchResult:
        if event.type != self.event_type:
            return NOT_APPLICABLE
        return self.check(event)

    def check(self, event: Event) -> MatchResult:
        raise NotImplementedError

    def expected(self) -> str:
        raise NotImplementedError


class QueueTransferMatcher(Matcher):
    event_type = EventType.TRANSFER_QUEUE

    def __init__(self, queue_name: str):
        self.queue_name = queue_name

    def check(self, event: QueueTransferEvent) -> MatchResult:
        return MatchResult(True, event.queue_name == self.queue_name, f"'{event.queue_name}'")

    def expected(self) -> str:
        return f"to be transferred to queue '{self.queue_name}'"


class FlowTransferMatcher(Matcher):
    event_type = EventType.TRANSFER_FLOW

    def __init__(self, flow_name: str):
        self.flow_name = flow_name

    def check(self, event: FlowTransferEvent) -> MatchResult:
        return MatchResult(True, event.flow_name == self.flow_name, f"'{event.flow_name}'")

    def expected(self) -> str:
        return f"to be transferred to flow '{self.flow_name}'"


class NumberTransferMatcher(Matcher):
    event_type = EventType.TRANSFER_NUMBER

    def __init__(self, tel: str):
        self.tel = tel

    def check(self, event: NumberTransferEvent) -> MatchResult:
        return MatchResult(True, event.tel == self.tel, f"'{event.tel}'")

    def expected(self) -> str:
        return f"to be transferred to number '{self.tel}'"


class PromptMatcher(Matcher):
    event_type = EventType.PROMPT

    def __init__(self, text: str, contains: bool = False):
        self.text = text
        self.contains = contains

    def check(self, event: PromptEvent) -> MatchResult:
        if self.contains:
            passed = self.text in event.text
        else:
            passed = event.text == self.text
        return MatchResult(True, passed, f"'{event.text}'")

    def expected(self) -> str:
        if self.contains:
            return f"prompt to contain '{self.text}'"
        return f"prompt to be '{self.text}'"


class AttributeMatcher(Matcher):
    """Only writes to the named key are applicable"""

    event_type = EventType.UPDATE_CONTACT_DATA

    def __init__(self, key: str, value: str):
        self.key = key
        self.value = value

    def check(self, event: UpdateContactDataEvent) -> MatchResult:
        if event.key != self.key:
            return NOT_APPLICABLE
        return MatchResult(True, event.value == self.value, f"'{event.value}'")

    def expected(self) -> str:
        return f"attribute '{self.key}' to be set to '{self.value}'"


class LambdaMatcher(Matcher):
    event_type = EventType.INVOKE_LAMBDA

    def __init__(self, name: str):
        self.name = name

    def check(self, event: LambdaEvent) -> MatchResult:
        return MatchResult(True, self.name in event.arn, f"'{event.arn}'")

    def expected(self) -> str:
        return f"lambda '{self.name}' to be invoked"


class CallEndedMatcher(Matcher):
    event_type = EventType.CALL_ENDED

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason

    def check(self, event: CallEndedEvent) -> MatchResult:
        passed = self.reason is None or event.reason == self.reason
        return MatchResult(True, passed, f"'{event.reason}'")

    def expected(self) -> str:
        if self.reason is None:
            return "call to end"
        return f"call to end with reason '{self.reason}'"
