"""
Call Context - state owned by one simulated call.

The call's own thread is the only writer. Drivers and assertion helpers on
other threads read through the locked accessors and the event log.
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models.events import Event
from ..models.flow import SystemKey

logger = logging.getLogger(__name__)


class CallStatus(str, Enum):
    """Lifecycle of a simulated call"""
    READY = "ready"
    RUNNING = "running"
    WAITING_FOR_INPUT = "waiting_for_input"
    ENDED = "ended"


@dataclass
class ModuleVisit:
    """Record of a block the call passed through"""
    module_id: str
    module_type: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class CallContext:
    """
    Per-call state.

    Holds:
    - External attributes (the last lambda's output)
    - User defined contact attributes
    - System values (queue, stored input, voice, caller numbers)
    - Position in the flow and the blocks visited so far
    """

    call_id: str
    status: CallStatus = CallStatus.READY

    current_module_id: Optional[str] = None
    visited_modules: List[ModuleVisit] = field(default_factory=list)

    external: Dict[str, str] = field(default_factory=dict)
    contact_data: Dict[str, str] = field(default_factory=dict)
    system: Dict[SystemKey, str] = field(default_factory=dict)

    end_reason: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)
    ended_at: Optional[datetime] = None

    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    # ---- Position ----

    def move_to_module(self, module_id: str, module_type: str) -> None:
        with self._lock:
            self.current_module_id = module_id
            self.visited_modules.append(ModuleVisit(module_id=module_id, module_type=module_type))
            self.status = CallStatus.RUNNING

        logger.debug(f"Call moved to block '{module_id}' (type: {module_type}) [call: {self.call_id}]")

    def set_running(self) -> None:
        with self._lock:
            self.status = CallStatus.RUNNING

    def set_waiting_input(self) -> None:
        with self._lock:
            self.status = CallStatus.WAITING_FOR_INPUT

    def set_ended(self, reason: str) -> None:
        with self._lock:
            self.status = CallStatus.ENDED
            self.end_reason = reason
            self.ended_at = datetime.now()

        logger.info(
            f"Call ended ({reason}) after {len(self.visited_modules)} blocks "
            f"[call: {self.call_id}]"
        )

    def has_visited(self, module_id: str) -> bool:
        with self._lock:
            return any(v.module_id == module_id for v in self.visited_modules)

    # ---- Stores ----

    def get_external(self, key: str) -> Optional[str]:
        with self._lock:
            return self.external.get(key)

    def set_external(self, key: str, value: str) -> None:
        with self._lock:
            self.external[key] = value

    def clear_external(self) -> None:
        with self._lock:
            self.external = {}

    def get_contact_data(self, key: str) -> Optional[str]:
        with self._lock:
            return self.contact_data.get(key)

    def set_contact_data(self, key: str, value: str) -> None:
        with self._lock:
            self.contact_data[key] = value

    def attributes(self) -> Dict[str, str]:
        """Copy of the user defined contact attributes"""
        with self._lock:
            return dict(self.contact_data)

    def get_system(self, key: SystemKey) -> Optional[str]:
        with self._lock:
            return self.system.get(key)

    def set_system(self, key: SystemKey, value: str) -> None:
        with self._lock:
            self.system[key] = value

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of the context for logging and debugging"""
        with self._lock:
            return {
                "call_id": self.call_id,
                "status": self.status.value,
                "current_module_id": self.current_module_id,
                "visited_module_ids": [v.module_id for v in self.visited_modules],
                "external": dict(self.external),
                "contact_data": dict(self.contact_data),
                "system": {k.value: v for k, v in self.system.items()},
                "end_reason": self.end_reason,
                "started_at": self.started_at.isoformat(),
                "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            }

    def __str__(self) -> str:
        return (
            f"CallContext(call={self.call_id}, "
            f"module={self.current_module_id}, status={self.status.value})"
        )


class EventLog:
    """
    Append-only, ordered log of call events.

    One writer (the call thread) and any number of readers. Readers either
    take a snapshot or block until an event at a given position exists.
    """

    def __init__(self):
        self._events: List[Event] = []
        self._closed = False
        self._condition = threading.Condition()

    def append(self, event: Event) -> None:
        with self._condition:
            self._events.append(event)
            self._condition.notify_all()

    def close(self) -> None:
        """Mark the log complete; no more events will arrive"""
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    @property
    def closed(self) -> bool:
        with self._condition:
            return self._closed

    def snapshot(self) -> List[Event]:
        with self._condition:
            return list(self._events)

    def wait_for(self, index: int, timeout: Optional[float] = None) -> Optional[Event]:
        """
        Event at position index, waiting for it to be written if need be.

        Returns None if the log closes or the timeout elapses first.
        """
        with self._condition:
            self._condition.wait_for(
                lambda: len(self._events) > index or self._closed, timeout=timeout
            )
            if len(self._events) > index:
                return self._events[index]
            return None

    def wait_closed(self, timeout: Optional[float] = None) -> bool:
        with self._condition:
            return self._condition.wait_for(lambda: self._closed, timeout=timeout)

    def __len__(self) -> int:
        with self._condition:
            return len(self._events)

    def __iter__(self):
        return iter(self.snapshot())


def create_context(call_id: str, system: Optional[Dict[SystemKey, str]] = None) -> CallContext:
    """
    Factory function to create a new CallContext.

    Args:
        call_id: ID of the call (also its ContactId)
        system: Initial system values

    Returns:
        New CallContext instance
    """
    context = CallContext(call_id=call_id)
    if system:
        context.system.update(system)

    logger.debug(f"Created call context for call {call_id}")
    return context
