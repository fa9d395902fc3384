"""
Pytest configuration and shared fixtures for simulator tests.
"""
import copy
import json
import pytest
from typing import Any, Callable, Dict, List, Optional, Tuple

from connectsim.core.config import Settings
from connectsim.core.errors import UnknownLambdaError
from connectsim.flow.connector import CallConnector
from connectsim.models.events import Event
from connectsim.models.flow import Module, SystemKey


class FakeCall(CallConnector):
    """
    Recording CallConnector for running one block at a time.

    Input is scripted: receive() returns the configured (input, received)
    pair and remembers what it was asked for.
    """

    def __init__(
        self,
        entered: str = "",
        received: bool = True,
        lambdas: Optional[Dict[str, Callable]] = None,
        flow_starts: Optional[Dict[str, str]] = None,
        encryptor: Optional[Callable[[str, str, bytes], bytes]] = None,
        in_hours: Any = True,
        settings: Optional[Settings] = None,
    ):
        self.entered = entered
        self.received = received
        self.lambdas = lambdas or {}
        self.flow_starts = flow_starts or {}
        self.encryptor = encryptor
        self.in_hours = in_hours
        if settings is not None:
            self.settings = settings

        self.sent: List[Tuple[str, bool]] = []
        self.receive_calls: List[Tuple[int, float, Optional[str]]] = []
        self.hours_calls: List[Tuple[str, bool]] = []
        self.lambda_timeouts: List[float] = []
        self.events: List[Event] = []
        self.external: Dict[str, str] = {}
        self.contact_data: Dict[str, str] = {}
        self.system: Dict[SystemKey, str] = {}

    def send(self, text, ssml=False):
        self.sent.append((text, ssml))

    def receive(self, max_count, timeout, terminator):
        self.receive_calls.append((max_count, timeout, terminator))
        return self.entered, self.received

    def get_external(self, key):
        return self.external.get(key)

    def set_external(self, key, value):
        self.external[key] = str(value)

    def clear_external(self):
        self.external = {}

    def get_contact_data(self, key):
        return self.contact_data.get(key)

    def set_contact_data(self, key, value):
        self.contact_data[key] = value

    def get_system(self, key):
        return self.system.get(key)

    def set_system(self, key, value):
        self.system[key] = value

    def invoke_lambda(self, arn, parameters, timeout):
        self.lambda_timeouts.append(timeout)
        for fragment, handler in self.lambdas.items():
            if fragment in arn:
                try:
                    result = handler(json.loads(parameters))
                except Exception as e:
                    return None, e
                return (result if isinstance(result, str) else json.dumps(result)), None
        raise UnknownLambdaError(arn)

    def get_flow_start(self, flow_name):
        return self.flow_starts.get(flow_name)

    def emit(self, event):
        self.events.append(event)

    def is_in_hours(self, name, is_queue):
        self.hours_calls.append((name, is_queue))
        if isinstance(self.in_hours, Exception):
            raise self.in_hours
        return self.in_hours

    def encrypt(self, plaintext, key_id, certificate):
        if self.encryptor is None:
            return plaintext.encode("utf-8")
        return self.encryptor(plaintext, key_id, certificate)

    def events_of(self, event_type) -> List[Event]:
        return [e for e in self.events if e.type == event_type]


@pytest.fixture
def fake_call() -> Callable[..., FakeCall]:
    """Factory for recording call connectors."""
    return FakeCall


@pytest.fixture
def make_module() -> Callable[..., Module]:
    """Factory building a block from plain dicts, as exported by Connect."""

    def _make(
        module_type: str,
        parameters: Optional[List[Dict[str, Any]]] = None,
        branches: Optional[List[Dict[str, Any]]] = None,
        target: Optional[str] = None,
        module_id: str = "block-1",
    ) -> Module:
        return Module.model_validate({
            "id": module_id,
            "type": module_type,
            "parameters": parameters or [],
            "branches": branches if branches is not None else [
                {"condition": "Success", "transition": "next-block"},
                {"condition": "Error", "transition": "error-block"},
            ],
            "target": target,
        })

    return _make


@pytest.fixture
def store_input_parameters() -> List[Dict[str, Any]]:
    """StoreUserInput parameters collecting an 8 digit account number."""
    return [
        {"name": "Text", "value": "Please enter your account number"},
        {"name": "TextToSpeechType", "value": "text"},
        {"name": "CustomerInputType", "value": "Custom"},
        {"name": "Timeout", "value": "7"},
        {"name": "MaxDigits", "value": 8},
        {"name": "EncryptEntry", "value": False},
        {"name": "DisableCancel", "value": False},
    ]


QUEUE_ARN = "arn:aws:connect:eu-west-2:000000000000:instance/abc/queue/vip"
STANDARD_QUEUE_ARN = "arn:aws:connect:eu-west-2:000000000000:instance/abc/queue/standard"
LAMBDA_ARN = "arn:aws:lambda:eu-west-2:000000000000:function:lookupAccount"


MAIN_FLOW: Dict[str, Any] = {
    "modules": [
        {
            "id": "set-voice",
            "type": "SetVoice",
            "branches": [{"condition": "Success", "transition": "welcome"}],
            "parameters": [{"name": "GlobalVoice", "value": "Amy"}],
            "metadata": {"position": {"x": 180, "y": 20}},
        },
        {
            "id": "welcome",
            "type": "PlayPrompt",
            "branches": [{"condition": "Success", "transition": "account"}],
            "parameters": [
                {"name": "Text", "value": "Welcome to the bank"},
                {"name": "TextToSpeechType", "value": "text"},
            ],
        },
        {
            "id": "account",
            "type": "StoreUserInput",
            "branches": [
                {"condition": "Success", "transition": "remember-account"},
                {"condition": "Error", "transition": "goodbye"},
            ],
            "parameters": [
                {"name": "Text", "value": "Please enter your account number"},
                {"name": "TextToSpeechType", "value": "text"},
                {"name": "Timeout", "value": "5"},
                {"name": "MaxDigits", "value": 8},
                {"name": "EncryptEntry", "value": False},
                {"name": "DisableCancel", "value": False},
            ],
        },
        {
            "id": "remember-account",
            "type": "SetAttributes",
            "branches": [
                {"condition": "Success", "transition": "lookup"},
                {"condition": "Error", "transition": "goodbye"},
            ],
            "parameters": [
                {"name": "Attribute", "key": "account", "value": "Stored customer input", "namespace": "System"},
                {"name": "Attribute", "key": "journey", "value": "banking"},
            ],
        },
        {
            "id": "lookup",
            "type": "InvokeExternalResource",
            "target": "Lambda",
            "branches": [
                {"condition": "Success", "transition": "check-tier"},
                {"condition": "Error", "transition": "goodbye"},
            ],
            "parameters": [
                {"name": "FunctionArn", "value": LAMBDA_ARN, "namespace": None},
                {"name": "TimeLimit", "value": "3"},
                {"name": "Parameter", "key": "accountNumber", "value": "account", "namespace": "User Defined"},
            ],
        },
        {
            "id": "check-tier",
            "type": "CheckAttribute",
            "branches": [
                {"condition": "Evaluate", "conditionType": "Equals", "conditionValue": "gold", "transition": "vip-queue"},
                {"condition": "NoMatch", "transition": "standard-queue"},
            ],
            "parameters": [
                {"name": "Attribute", "value": "tier"},
                {"name": "Namespace", "value": "External"},
            ],
        },
        {
            "id": "vip-queue",
            "type": "SetQueue",
            "branches": [{"condition": "Success", "transition": "connecting"}],
            "parameters": [{"name": "Queue", "value": QUEUE_ARN, "resourceName": "VIP"}],
        },
        {
            "id": "standard-queue",
            "type": "SetQueue",
            "branches": [{"condition": "Success", "transition": "connecting"}],
            "parameters": [{"name": "Queue", "value": STANDARD_QUEUE_ARN, "resourceName": "Standard"}],
        },
        {
            "id": "connecting",
            "type": "PlayPrompt",
            "branches": [{"condition": "Success", "transition": "to-queue"}],
            "parameters": [
                {"name": "Text", "value": "Thanks $.External.name, connecting you now"},
                {"name": "TextToSpeechType", "value": "text"},
            ],
        },
        {
            "id": "to-queue",
            "type": "Transfer",
            "target": "Queue",
            "branches": [
                {"condition": "AtCapacity", "transition": "goodbye"},
                {"condition": "Error", "transition": "goodbye"},
            ],
            "parameters": [],
        },
        {
            "id": "goodbye",
            "type": "PlayPrompt",
            "branches": [{"condition": "Success", "transition": "hang-up"}],
            "parameters": [
                {"name": "Text", "value": "Sorry, something went wrong"},
                {"name": "TextToSpeechType", "value": "text"},
            ],
        },
        {
            "id": "hang-up",
            "type": "Disconnect",
            "branches": [],
            "parameters": [],
        },
    ],
    "version": "1",
    "type": "contactFlow",
    "start": "set-voice",
    "metadata": {
        "entryPointPosition": {"x": 20, "y": 20},
        "snapToGrid": False,
        "name": "Main",
        "description": "Account lookup and routing",
        "type": "contactFlow",
        "status": "published",
    },
}


MENU_FLOW: Dict[str, Any] = {
    "modules": [
        {
            "id": "menu",
            "type": "GetUserInput",
            "target": "Digits",
            "branches": [
                {"condition": "Evaluate", "conditionType": "Equals", "conditionValue": "1", "transition": "to-main"},
                {"condition": "Evaluate", "conditionType": "Equals", "conditionValue": "2", "transition": "to-number"},
                {"condition": "Timeout", "transition": "bye"},
                {"condition": "NoMatch", "transition": "bye"},
                {"condition": "Error", "transition": "bye"},
            ],
            "parameters": [
                {"name": "Text", "value": "Press 1 for banking or 2 to speak to a partner"},
                {"name": "TextToSpeechType", "value": "text"},
                {"name": "Timeout", "value": "2"},
            ],
        },
        {
            "id": "to-main",
            "type": "TransferToFlow",
            "branches": [{"condition": "Error", "transition": "bye"}],
            "parameters": [{"name": "ContactFlowId", "value": "arn:aws:connect:flow/main", "resourceName": "Main"}],
        },
        {
            "id": "to-number",
            "type": "Transfer",
            "target": "PhoneNumber",
            "branches": [
                {"condition": "Success", "transition": "bye"},
                {"condition": "Error", "transition": "bye"},
            ],
            "parameters": [
                {"name": "BlindTransfer", "value": True},
                {"name": "PhoneNumber", "value": "+441234567890"},
            ],
        },
        {
            "id": "bye",
            "type": "Disconnect",
            "branches": [],
            "parameters": [],
        },
    ],
    "start": "menu",
    "metadata": {"name": "Menu", "type": "contactFlow"},
}


@pytest.fixture
def main_flow_config() -> Dict[str, Any]:
    """Flow that collects an account number, looks it up and queues the caller."""
    return copy.deepcopy(MAIN_FLOW)


@pytest.fixture
def menu_flow_config() -> Dict[str, Any]:
    """Flow with a one digit menu, a legacy flow transfer and a number transfer."""
    return copy.deepcopy(MENU_FLOW)
