"""
Call events - immutable records of what happened during a simulated call
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class EventType(str, Enum):
    """Kind of observable outcome"""
    MODULE = "module"
    PROMPT = "prompt"
    INPUT = "input"
    UPDATE_CONTACT_DATA = "update_contact_data"
    INVOKE_LAMBDA = "invoke_lambda"
    TRANSFER_QUEUE = "transfer_queue"
    TRANSFER_FLOW = "transfer_flow"
    TRANSFER_NUMBER = "transfer_number"
    CALL_ENDED = "call_ended"


@dataclass(frozen=True)
class Event:
    """Base event; subclasses set TYPE"""

    TYPE = None

    timestamp: datetime = field(default_factory=datetime.now, compare=False, kw_only=True)

    @property
    def type(self) -> EventType:
        return self.TYPE

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class ModuleEvent(Event):
    """The call entered a block"""
    TYPE = EventType.MODULE

    module_id: str
    module_type: str


@dataclass(frozen=True)
class PromptEvent(Event):
    """Text or SSML was spoken to the caller"""
    TYPE = EventType.PROMPT

    text: str
    ssml: bool = False


@dataclass(frozen=True)
class InputEvent(Event):
    """Input captured from the caller and stored"""
    TYPE = EventType.INPUT

    input: str
    encrypted: bool = False


@dataclass(frozen=True)
class UpdateContactDataEvent(Event):
    """A user defined contact attribute was written"""
    TYPE = EventType.UPDATE_CONTACT_DATA

    key: str
    value: str


@dataclass(frozen=True)
class LambdaEvent(Event):
    """An external lambda was invoked"""
    TYPE = EventType.INVOKE_LAMBDA

    arn: str
    payload: str
    output: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class QueueTransferEvent(Event):
    """The caller was handed off to a queue"""
    TYPE = EventType.TRANSFER_QUEUE

    queue_arn: str
    queue_name: str


@dataclass(frozen=True)
class FlowTransferEvent(Event):
    """The call moved into another flow"""
    TYPE = EventType.TRANSFER_FLOW

    flow_arn: str
    flow_name: str


@dataclass(frozen=True)
class NumberTransferEvent(Event):
    """The call was transferred to an external phone number"""
    TYPE = EventType.TRANSFER_NUMBER

    tel: str
    blind: bool = True


@dataclass(frozen=True)
class CallEndedEvent(Event):
    """The call reached a block with no successor, failed, or was hung up"""
    TYPE = EventType.CALL_ENDED

    reason: str = "completed"
    error: Optional[str] = None
