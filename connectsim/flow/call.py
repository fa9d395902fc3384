"""
Call Execution Engine - runs one simulated call on its own thread.

The call thread walks the flow block by block. The only place it blocks is
receive(), which waits on a queue the driver feeds through press(). Prompts
go the other way through a second queue and never block the call.
"""
import json
import logging
import queue
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from ..core.config import Settings, settings as default_settings
from ..core.errors import FlowExecutionError, UnknownLambdaError
from ..models.events import CallEndedEvent, Event, LambdaEvent, ModuleEvent, PromptEvent
from ..models.flow import SystemKey
from .connector import CallConnector
from .context import CallContext, CallStatus, EventLog, create_context
from .runners import ModuleRunner

logger = logging.getLogger(__name__)

LambdaHandler = Callable[[Dict[str, Any]], Any]
Encryptor = Callable[[str, str, bytes], bytes]
HoursCheck = Callable[[str, bool, datetime], bool]


@dataclass
class CallConfig:
    """Parameters of an incoming call"""
    dest_number: str
    source_number: str = ""
    initial_attributes: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CallEnvironment:
    """Read-only view of the simulator shared by every call it starts"""
    runners: Mapping[str, ModuleRunner]
    flow_starts: Mapping[str, str]
    lambdas: Mapping[str, LambdaHandler]
    encrypt: Encryptor
    is_in_hours: HoursCheck

    def find_lambda(self, arn: str) -> Optional[LambdaHandler]:
        """First registered lambda whose name fragment appears in arn"""
        for fragment, handler in self.lambdas.items():
            if fragment in arn:
                return handler
        return None


class _HangUp(Exception):
    """Raised inside the call thread when the driver hangs up"""


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Call(CallConnector):
    """
    A single simulated call.

    Driver side:
        press(digits)        - caller keys digits (thread safe, never blocks)
        next_prompt(timeout) - next thing spoken to the caller
        hang_up()            - abandon the call
        wait(timeout)        - block until the call ends
    """

    def __init__(
        self,
        config: CallConfig,
        environment: CallEnvironment,
        start_module_id: str,
        settings: Optional[Settings] = None,
    ):
        self.id = str(uuid.uuid4())
        self.config = config
        self.environment = environment
        self.start_module_id = start_module_id
        self.settings = settings or default_settings

        self.context: CallContext = create_context(self.id, system=self._initial_system())
        self.context.contact_data.update(config.initial_attributes)
        self.events = EventLog()
        self.error: Optional[BaseException] = None

        self._input: "queue.Queue[Optional[str]]" = queue.Queue()
        self._prompts: "queue.Queue[Optional[str]]" = queue.Queue()
        self._last_prompt: Optional[str] = None
        self._hung_up = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name=f"call-{self.id[:8]}", daemon=True
        )

    def _initial_system(self) -> Dict[SystemKey, str]:
        return {
            SystemKey.CUSTOMER_NUMBER: self.config.source_number,
            SystemKey.DIALED_NUMBER: self.config.dest_number,
            SystemKey.CONTACT_ID: self.id,
            SystemKey.INITIAL_CONTACT_ID: self.id,
            SystemKey.CHANNEL: self.settings.CHANNEL,
            SystemKey.INSTANCE_ARN: self.settings.INSTANCE_ARN,
            SystemKey.INITIATION_METHOD: "INBOUND",
            SystemKey.TEXT_TO_SPEECH_VOICE: self.settings.DEFAULT_VOICE,
        }

    # ==================== Lifecycle ====================

    def start(self) -> "Call":
        self._thread.start()
        return self

    def _run(self) -> None:
        module_id: Optional[str] = self.start_module_id
        reason = "completed"
        steps = 0
        self.context.set_running()
        logger.info(f"Call started to {self.config.dest_number} [call: {self.id}]")

        try:
            while module_id is not None:
                if self._hung_up.is_set():
                    reason = "hung_up"
                    break

                steps += 1
                if steps > self.settings.MAX_MODULE_STEPS:
                    raise FlowExecutionError(
                        f"call ran {self.settings.MAX_MODULE_STEPS} blocks without ending",
                        module_id=module_id,
                    )

                runner = self.environment.runners.get(module_id)
                if runner is None:
                    raise FlowExecutionError(f"unknown module: {module_id}", module_id=module_id)

                self.context.move_to_module(module_id, runner.module.type)
                self.emit(ModuleEvent(module_id=module_id, module_type=runner.module.type))
                module_id = runner.run(self)
        except _HangUp:
            reason = "hung_up"
        except FlowExecutionError as e:
            logger.error(f"Call failed in block {e.module_id}: {e} [call: {self.id}]")
            self.error = e
            reason = "error"
        except Exception as e:
            logger.exception(f"Unexpected error running call [call: {self.id}]: {e}")
            self.error = e
            reason = "error"
        finally:
            self.context.set_ended(reason)
            self.emit(CallEndedEvent(reason=reason, error=str(self.error) if self.error else None))
            self.events.close()
            self._prompts.put(None)

    # ==================== Driver API ====================

    def press(self, digits: str) -> None:
        """Queue keypad input from the caller"""
        for digit in digits:
            self._input.put(digit)

    def next_prompt(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Next prompt spoken to the caller.

        Returns None if nothing is said within timeout or the call has ended.
        """
        try:
            prompt = self._prompts.get(timeout=timeout)
        except queue.Empty:
            return None
        if prompt is None:
            # Leave the end marker for any other reader
            self._prompts.put(None)
        return prompt

    @property
    def last_prompt(self) -> Optional[str]:
        return self._last_prompt

    @property
    def status(self) -> CallStatus:
        return self.context.status

    @property
    def is_ended(self) -> bool:
        return self.context.status == CallStatus.ENDED

    def hang_up(self) -> None:
        """Abandon the call; a blocked receive wakes and the call ends before its next block"""
        self._hung_up.set()
        self._input.put(None)

    def wait(self, timeout: Optional[float] = None) -> CallStatus:
        """
        Wait for the call thread to finish.

        Raises:
            The fatal error that ended the call, if there was one
        """
        self._thread.join(timeout)
        if self.error is not None:
            raise self.error
        return self.context.status

    # ==================== CallConnector ====================

    def send(self, text: str, ssml: bool = False) -> None:
        self._last_prompt = text
        self._prompts.put(text)
        self.emit(PromptEvent(text=text, ssml=ssml))

    def receive(self, max_count: int, timeout: float, terminator: Optional[str]) -> Tuple[str, bool]:
        self.context.set_waiting_input()
        deadline = time.monotonic() + timeout
        entered = []
        try:
            while len(entered) < max_count:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return "".join(entered), False
                try:
                    digit = self._input.get(timeout=remaining)
                except queue.Empty:
                    return "".join(entered), False
                if digit is None:
                    raise _HangUp()
                if terminator and digit == terminator:
                    break
                entered.append(digit)
            return "".join(entered), True
        finally:
            self.context.set_running()

    def get_external(self, key: str) -> Optional[str]:
        return self.context.get_external(key)

    def set_external(self, key: str, value: Any) -> None:
        self.context.set_external(key, _stringify(value))

    def clear_external(self) -> None:
        self.context.clear_external()

    def get_contact_data(self, key: str) -> Optional[str]:
        return self.context.get_contact_data(key)

    def set_contact_data(self, key: str, value: str) -> None:
        self.context.set_contact_data(key, value)

    def get_system(self, key: SystemKey) -> Optional[str]:
        return self.context.get_system(key)

    def set_system(self, key: SystemKey, value: str) -> None:
        self.context.set_system(key, value)

    def invoke_lambda(self, arn: str, parameters: str, timeout: float) -> Tuple[Optional[str], Optional[Exception]]:
        handler = self.environment.find_lambda(arn)
        if handler is None:
            raise UnknownLambdaError(arn, module_id=self.context.current_module_id)

        event = {
            "Name": "ContactFlowEvent",
            "Details": {
                "ContactData": self._contact_data_payload(),
                "Parameters": json.loads(parameters),
            },
        }

        output: Optional[str] = None
        business_error: Optional[Exception] = None
        try:
            result = self._run_handler(handler, event, timeout)
            if result is None:
                output = "{}"
            else:
                output = result if isinstance(result, str) else json.dumps(result)
        except queue.Empty:
            business_error = TimeoutError(f"lambda {arn} timed out after {timeout}s")
        except Exception as e:
            business_error = e

        self.emit(LambdaEvent(
            arn=arn,
            payload=parameters,
            output=output,
            error=str(business_error) if business_error else None,
        ))
        return output, business_error

    def _run_handler(self, handler: LambdaHandler, event: Dict[str, Any], timeout: float) -> Any:
        """
        Run handler on a daemon thread and wait up to timeout for its result.

        A handler that overruns is abandoned; being a daemon it never keeps
        the process alive.

        Raises:
            queue.Empty: if the handler has not returned within timeout
            Exception: whatever the handler raised
        """
        results: "queue.Queue[Tuple[bool, Any]]" = queue.Queue(maxsize=1)

        def _target():
            try:
                results.put((True, handler(event)))
            except Exception as e:
                results.put((False, e))

        threading.Thread(target=_target, name=f"lambda-{self.id[:8]}", daemon=True).start()
        ok, value = results.get(timeout=timeout)
        if not ok:
            raise value
        return value

    def _contact_data_payload(self) -> Dict[str, Any]:
        """ContactData section of the event Connect sends to a lambda"""
        system = self.context.get_system
        queue_arn = system(SystemKey.QUEUE_ARN)
        return {
            "Attributes": self.context.attributes(),
            "Channel": system(SystemKey.CHANNEL),
            "ContactId": system(SystemKey.CONTACT_ID),
            "CustomerEndpoint": {
                "Address": system(SystemKey.CUSTOMER_NUMBER),
                "Type": "TELEPHONE_NUMBER",
            },
            "InitialContactId": system(SystemKey.INITIAL_CONTACT_ID),
            "InitiationMethod": system(SystemKey.INITIATION_METHOD),
            "InstanceARN": system(SystemKey.INSTANCE_ARN),
            "PreviousContactId": system(SystemKey.PREVIOUS_CONTACT_ID) or system(SystemKey.CONTACT_ID),
            "Queue": {
                "ARN": queue_arn,
                "Name": system(SystemKey.QUEUE_NAME),
            } if queue_arn else None,
            "SystemEndpoint": {
                "Address": system(SystemKey.DIALED_NUMBER),
                "Type": "TELEPHONE_NUMBER",
            },
        }

    def get_flow_start(self, flow_name: str) -> Optional[str]:
        return self.environment.flow_starts.get(flow_name)

    def emit(self, event: Event) -> None:
        logger.debug(f"Event {event.type.value}: {event} [call: {self.id}]")
        self.events.append(event)

    def is_in_hours(self, name: str, is_queue: bool) -> bool:
        return self.environment.is_in_hours(name, is_queue, datetime.now())

    def encrypt(self, plaintext: str, key_id: str, certificate: bytes) -> bytes:
        cipher = self.environment.encrypt(plaintext, key_id, certificate)
        if isinstance(cipher, str):
            return cipher.encode("utf-8")
        return cipher

    def __repr__(self) -> str:
        return f"Call(id={self.id!r}, dest={self.config.dest_number!r}, status={self.status.value})"
