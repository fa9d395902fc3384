"""
Unit tests for event assertions.
"""
import pytest
from types import SimpleNamespace

from connectsim.core.errors import ExpectationError
from connectsim.flow.context import EventLog
from connectsim.flowtest import Expect
from connectsim.models.events import (
    CallEndedEvent,
    LambdaEvent,
    NumberTransferEvent,
    PromptEvent,
    QueueTransferEvent,
    UpdateContactDataEvent,
)


def _expect(*events, closed=True):
    log = EventLog()
    for event in events:
        log.append(event)
    if closed:
        log.close()
    return Expect(SimpleNamespace(events=log), timeout=0.05)


class TestOrdered:
    """Tests for ordered checks."""

    def test_first_applicable_event_decides(self):
        """A later match does not rescue an earlier mismatch."""
        expect = _expect(
            QueueTransferEvent(queue_arn="arn:1", queue_name="Sales"),
            QueueTransferEvent(queue_arn="arn:2", queue_name="Support"),
        )
        with pytest.raises(ExpectationError) as exc:
            expect.transfer().to_queue("Support")

        assert exc.value.got == "'Sales'"
        assert "expected to be transferred to queue 'Support'" in str(exc.value)

    def test_skips_other_kinds(self):
        """Events of another kind are not applicable."""
        expect = _expect(
            PromptEvent(text="Welcome"),
            QueueTransferEvent(queue_arn="arn:1", queue_name="Sales"),
        )
        expect.transfer().to_queue("Sales")

    def test_cursor_moves_forward(self):
        """Each ordered check starts after the last one."""
        expect = _expect(PromptEvent(text="one"), PromptEvent(text="two"))
        expect.prompt().to_equal("one")
        expect.prompt().to_equal("two")

        with pytest.raises(ExpectationError, match="no matching event found"):
            expect.prompt().to_equal("one")

    def test_no_event(self):
        with pytest.raises(ExpectationError, match="no matching event found"):
            _expect().call_end().to_end()


class TestUnordered:
    """Tests for unordered checks."""

    def test_later_event_matches(self):
        """The same log that fails in order passes unordered."""
        expect = _expect(
            QueueTransferEvent(queue_arn="arn:1", queue_name="Sales"),
            QueueTransferEvent(queue_arn="arn:2", queue_name="Support"),
        )
        expect.transfer().unordered().to_queue("Support")
        expect.transfer().unordered().to_queue("Sales")

    def test_events_are_consumed(self):
        """A matched event is not matched twice."""
        expect = _expect(PromptEvent(text="Hello"))
        expect.prompt().unordered().to_equal("Hello")

        with pytest.raises(ExpectationError):
            expect.prompt().unordered().to_equal("Hello")

    def test_reports_last_applicable(self):
        expect = _expect(PromptEvent(text="Goodbye"))
        with pytest.raises(ExpectationError) as exc:
            expect.prompt().unordered().to_contain("Hello")
        assert exc.value.got == "'Goodbye'"


class TestNever:
    """Tests for never()."""

    def test_empty_log(self):
        """Never passes on an empty log."""
        _expect().transfer().never().to_queue("Sales")

    def test_open_empty_log(self):
        """Never passes once the timeout elapses."""
        _expect(closed=False).transfer().never().to_queue("Sales")

    def test_fails_on_match(self):
        expect = _expect(
            PromptEvent(text="Welcome"),
            NumberTransferEvent(tel="+44123", blind=True),
        )
        with pytest.raises(ExpectationError, match="never to be transferred to number"):
            expect.transfer().never().to_number("+44123")

    def test_other_values_pass(self):
        expect = _expect(NumberTransferEvent(tel="+44123"))
        expect.transfer().never().to_number("+44999")


class TestMatchers:
    """Tests for the individual matchers."""

    def test_prompt_contains(self):
        _expect(PromptEvent(text="Thanks Ada, connecting you")).prompt().to_contain("Ada")

    def test_attribute_ignores_other_keys(self):
        """Writes to other attributes are not applicable."""
        expect = _expect(
            UpdateContactDataEvent(key="journey", value="banking"),
            UpdateContactDataEvent(key="account", value="1234"),
        )
        expect.attributes().to_equal("account", "1234")

    def test_lambda_invoked(self):
        event = LambdaEvent(arn="arn:aws:lambda:function:lookupAccount", payload="{}")
        _expect(event).lambda_().to_be_invoked("lookupAccount")

    def test_call_end_reason(self):
        expect = _expect(CallEndedEvent(reason="hung_up"))
        with pytest.raises(ExpectationError) as exc:
            expect.call_end().to_end("completed")
        assert exc.value.got == "'hung_up'"
