"""
Simulator - loads flows and hooks once, then starts any number of calls
"""
import logging
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Union

from .core.config import Settings, settings as default_settings
from .core.errors import SimulatorSetupError
from .flow.call import Call, CallConfig, CallEnvironment, Encryptor, HoursCheck, LambdaHandler
from .flow.loader import normalize_flow, parse_flow
from .flow.runners import ModuleRunner, make_runner
from .models.flow import Flow

logger = logging.getLogger(__name__)


def _no_encryption(plaintext: str, key_id: str, certificate: bytes) -> bytes:
    return plaintext.encode("utf-8")


def _always_in_hours(name: str, is_queue: bool, when: datetime) -> bool:
    return True


class Simulator:
    """
    Entry point for simulating Amazon Connect contact flows.

    Set up once (load flows, register lambdas, choose the starting flow for
    each dialled number, optionally replace the hooks), then start calls.
    Calls share only this read-only setup; each has its own state.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self._flows: Dict[str, Flow] = {}
        self._runners: Dict[str, ModuleRunner] = {}
        self._lambdas: Dict[str, LambdaHandler] = {}
        self._starting_flows: Dict[str, Flow] = {}
        self._encrypt: Encryptor = _no_encryption
        self._is_in_hours: HoursCheck = _always_in_hours

    # ==================== Setup ====================

    def load_flow(self, flow: Flow) -> None:
        """Load a parsed flow. Load every flow a call may transfer into before starting calls."""
        flow = normalize_flow(flow)
        self._flows[flow.name] = flow
        for module in flow.modules:
            self._runners[module.id] = make_runner(module)

        logger.info(f"Loaded flow '{flow.name}' with {len(flow.modules)} blocks")

    def load_flow_json(self, data: Union[str, bytes, Dict[str, Any]]) -> Flow:
        """Parse a flow exported from Connect and load it"""
        flow = parse_flow(data)
        self.load_flow(flow)
        return flow

    def flows(self) -> List[Flow]:
        return list(self._flows.values())

    def register_lambda(self, name: str, handler: LambdaHandler) -> None:
        """
        Handle lambda invocations whose ARN contains name.

        The handler receives the Connect lambda event as a dict and returns a
        flat dict (or its JSON). Raising marks the invocation as failed, so
        the block follows its Error branch.
        """
        if not name:
            raise SimulatorSetupError("a lambda must be registered under a non-empty name")
        if not callable(handler):
            raise SimulatorSetupError(f"lambda handler for '{name}' is not callable")
        self._lambdas[name] = handler

    def set_starting_flow_for(self, number: str, flow_name: str) -> None:
        """Run flow_name when a call comes in to number; the flow must already be loaded"""
        flow = self._flows.get(flow_name)
        if flow is None:
            raise SimulatorSetupError(
                f"starting flow '{flow_name}' not found. Load the flow with load_flow before calling this method"
            )
        self._starting_flows[number] = flow

    def set_encryption(self, encryptor: Encryptor) -> None:
        """Replace the identity encryption used by StoreUserInput when EncryptEntry is set"""
        self._encrypt = encryptor

    def set_in_hours_check(self, checker: HoursCheck) -> None:
        """
        Replace the hours of operation check.

        checker(name, is_queue, when) gets a queue name or an hours of
        operation name (per is_queue) and returns whether it is open.
        Raising sends the call down the block's Error branch.
        """
        self._is_in_hours = checker

    # ==================== Calls ====================

    def _environment(self) -> CallEnvironment:
        return CallEnvironment(
            runners=MappingProxyType(dict(self._runners)),
            flow_starts=MappingProxyType({name: f.start for name, f in self._flows.items()}),
            lambdas=MappingProxyType(dict(self._lambdas)),
            encrypt=self._encrypt,
            is_in_hours=self._is_in_hours,
        )

    def start_call(self, config: CallConfig) -> Call:
        """Start a call on its own thread and return it for driving and assertions"""
        if not config.dest_number:
            raise SimulatorSetupError("a destination number must be provided in order to start a flow")
        flow = self._starting_flows.get(config.dest_number)
        if flow is None:
            raise SimulatorSetupError(
                "no starting flow set. Call set_starting_flow_for before starting a call"
            )

        call = Call(config, self._environment(), flow.start, settings=self.settings)
        logger.info(f"Starting call {call.id} into flow '{flow.name}'")
        return call.start()
