"""
Module Runners - one behaviour per block type.

make_runner() maps a block's type tag to its runner once, when flows are
loaded. Every runner exposes run(call), returning the ID of the next block
or None when the call ends, and raising FlowExecutionError for fatal
configuration problems. Outcomes with an Error branch are routed, not raised.
"""
import base64
import json
import logging
from typing import Dict, Optional, Type

from ..core.errors import (
    MissingParameterError,
    UnsupportedModuleError,
    WrongModuleTypeError,
)
from ..models.events import (
    FlowTransferEvent,
    InputEvent,
    NumberTransferEvent,
    QueueTransferEvent,
    UpdateContactDataEvent,
)
from ..models.flow import (
    BranchCondition,
    Module,
    ModuleTarget,
    ModuleType,
    Namespace,
    SystemKey,
)
from .connector import CallConnector
from .evaluator import ConditionEvaluator
from .loader import normalize_module
from .parameters import ModuleParameters
from .resolver import lookup, resolve

logger = logging.getLogger(__name__)


class ModuleRunner:
    """Base runner: holds the block and the checks every behaviour shares"""

    module_type: Optional[str] = None
    name: str = "module"

    def __init__(self, module: Module):
        self.module = module

    def run(self, call: CallConnector) -> Optional[str]:
        raise NotImplementedError

    def _check_type(self) -> None:
        if self.module.type != self.module_type:
            raise WrongModuleTypeError(self.module.type, self.name, module_id=self.module.id)

    def _params(self, call: CallConnector) -> ModuleParameters:
        return ModuleParameters(self.module, call)

    def _link(self, condition: BranchCondition) -> Optional[str]:
        return self.module.get_link(condition.value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.module.id!r})"


# ==================== Caller I/O ====================


class StoreUserInputRunner(ModuleRunner):
    """
    Speak a prompt and store the digits the caller enters.

    Connect itself reports nothing here; the simulator also emits an
    InputEvent with the stored value so tests can assert on it.
    """

    module_type = ModuleType.STORE_USER_INPUT.value
    name = "storeUserInput"

    def run(self, call: CallConnector) -> Optional[str]:
        self._check_type()
        p = self._params(call)

        text = p.text("Text")
        ssml = p.text("TextToSpeechType", default="text") == "ssml"
        timeout = p.integer("Timeout")
        max_digits = p.integer("MaxDigits")
        encrypt = p.boolean("EncryptEntry")
        p.boolean("DisableCancel")
        terminator = p.text("TerminatorDigits", default=call.settings.DEFAULT_TERMINATOR)[:1] or None

        key_id, certificate = "", ""
        if encrypt:
            key_id = p.text("EncryptionKeyId")
            certificate = p.text("EncryptionKey")

        call.send(text, ssml)
        entered, received = call.receive(max_digits, float(timeout), terminator)

        # Timeout carries on down Success without touching the stored input
        if not received:
            logger.info(f"No input received within {timeout}s [module: {self.module.id}]")
            return self._link(BranchCondition.SUCCESS)

        stored = entered
        if encrypt:
            cipher = call.encrypt(entered, key_id, certificate.encode("utf-8"))
            stored = base64.b64encode(cipher).decode("ascii")

        call.set_system(SystemKey.LAST_USER_INPUT, stored)
        call.emit(InputEvent(input=stored, encrypted=encrypt))
        return self._link(BranchCondition.SUCCESS)


class GetUserInputRunner(ModuleRunner):
    """Speak a menu prompt and branch on the single digit pressed"""

    module_type = ModuleType.GET_USER_INPUT.value
    name = "getUserInput"

    def run(self, call: CallConnector) -> Optional[str]:
        self._check_type()
        if self.module.target == ModuleTarget.LEX.value:
            raise UnsupportedModuleError(
                "Lex bots are not supported by getUserInput", module_id=self.module.id
            )
        p = self._params(call)

        text = p.text("Text")
        ssml = p.text("TextToSpeechType", default="text") == "ssml"
        timeout = p.integer("Timeout", default=call.settings.GET_USER_INPUT_TIMEOUT_SECONDS)

        call.send(text, ssml)
        entered, received = call.receive(1, float(timeout), None)
        if not received:
            return self._link(BranchCondition.TIMEOUT)

        call.emit(InputEvent(input=entered))
        branch = ConditionEvaluator.first_match(
            self.module.list_branches(BranchCondition.EVALUATE.value), entered
        )
        if branch is None:
            return self._link(BranchCondition.NO_MATCH)
        return branch.transition


class PlayPromptRunner(ModuleRunner):
    """Speak text, SSML or a named audio prompt"""

    module_type = ModuleType.PLAY_PROMPT.value
    name = "playPrompt"

    def run(self, call: CallConnector) -> Optional[str]:
        self._check_type()
        p = self._params(call)

        if p.has("Text"):
            text = p.text("Text")
            ssml = p.text("TextToSpeechType", default="text") == "ssml"
            call.send(text, ssml)
        elif p.has("AudioPrompt"):
            audio = p.get("AudioPrompt")
            call.send(audio.resource_name or str(resolve(audio, call) or ""), False)
        else:
            raise MissingParameterError("Text", module_id=self.module.id)

        return self._link(BranchCondition.SUCCESS)


class SetVoiceRunner(ModuleRunner):
    module_type = ModuleType.SET_VOICE.value
    name = "setVoice"

    def run(self, call: CallConnector) -> Optional[str]:
        self._check_type()
        voice = self._params(call).text("GlobalVoice")
        call.set_system(SystemKey.TEXT_TO_SPEECH_VOICE, voice)
        return self._link(BranchCondition.SUCCESS)


# ==================== State ====================


class SetQueueRunner(ModuleRunner):
    """Remember the queue a later Transfer will hand the caller to"""

    module_type = ModuleType.SET_QUEUE.value
    name = "setQueue"

    def run(self, call: CallConnector) -> Optional[str]:
        self._check_type()
        queue = self.module.get_parameter("Queue")
        if queue is None:
            raise MissingParameterError("Queue", module_id=self.module.id)
        arn = resolve(queue, call)
        if not isinstance(arn, str):
            raise MissingParameterError("Queue", module_id=self.module.id)

        call.set_system(SystemKey.QUEUE_ARN, arn)
        call.set_system(SystemKey.QUEUE_NAME, queue.resource_name or "")
        return self._link(BranchCondition.SUCCESS)


class SetAttributesRunner(ModuleRunner):
    module_type = ModuleType.SET_ATTRIBUTES.value
    name = "setAttributes"

    def run(self, call: CallConnector) -> Optional[str]:
        self._check_type()
        for key, value in self._params(call).key_values("Attribute"):
            call.set_contact_data(key, value)
            call.emit(UpdateContactDataEvent(key=key, value=value))
        return self._link(BranchCondition.SUCCESS)


class CheckAttributeRunner(ModuleRunner):
    """Compare an attribute against each Evaluate branch in turn"""

    module_type = ModuleType.CHECK_ATTRIBUTE.value
    name = "checkAttribute"

    def run(self, call: CallConnector) -> Optional[str]:
        self._check_type()
        p = self._params(call)

        attribute = p.get("Attribute")
        if attribute is None:
            raise MissingParameterError("Attribute", module_id=self.module.id)

        if attribute.namespace is not None:
            value = resolve(attribute, call)
        else:
            namespace = p.text("Namespace")
            if namespace not in (n.value for n in Namespace):
                raise MissingParameterError("Namespace", module_id=self.module.id)
            value = lookup(call, namespace, str(attribute.value))

        branch = ConditionEvaluator.first_match(
            self.module.list_branches(BranchCondition.EVALUATE.value), value
        )
        if branch is None:
            return self._link(BranchCondition.NO_MATCH)
        return branch.transition


# ==================== Hooks ====================


class InvokeExternalResourceRunner(ModuleRunner):
    """Call a registered lambda and expose its flat output as External attributes"""

    module_type = ModuleType.INVOKE_EXTERNAL_RESOURCE.value
    name = "invokeExternalResource"

    def run(self, call: CallConnector) -> Optional[str]:
        self._check_type()
        p = self._params(call)

        arn = p.text("FunctionArn")
        time_limit = p.integer("TimeLimit", default=call.settings.LAMBDA_TIME_LIMIT_SECONDS)
        payload = json.dumps(dict(p.key_values("Parameter")))

        call.clear_external()
        output, business_error = call.invoke_lambda(arn, payload, float(time_limit))
        if business_error is not None:
            logger.info(f"Lambda {arn} returned an error: {business_error}")
            return self._link(BranchCondition.ERROR)

        try:
            result = json.loads(output) if output else {}
        except json.JSONDecodeError as e:
            logger.info(f"Lambda {arn} returned invalid JSON: {e}")
            return self._link(BranchCondition.ERROR)

        # Connect only accepts a flat map of scalar values
        if not isinstance(result, dict) or any(isinstance(v, (dict, list)) for v in result.values()):
            logger.info(f"Lambda {arn} returned a nested or non-object response")
            return self._link(BranchCondition.ERROR)

        for key, value in result.items():
            call.set_external(key, value)
        return self._link(BranchCondition.SUCCESS)


class CheckHoursOfOperationRunner(ModuleRunner):
    """Branch on whether the named hours (or the current queue's hours) are open"""

    module_type = ModuleType.CHECK_HOURS_OF_OPERATION.value
    name = "checkHoursOfOperation"

    def run(self, call: CallConnector) -> Optional[str]:
        self._check_type()

        hours = self.module.get_parameter("Hours")
        if hours is not None:
            name = hours.resource_name or str(resolve(hours, call) or "")
            is_queue = False
        else:
            name = call.get_system(SystemKey.QUEUE_NAME)
            is_queue = True
            # Nothing to check against counts as open
            if name is None:
                logger.info(f"No hours or queue set, treating as in hours [module: {self.module.id}]")
                return self._link(BranchCondition.TRUE)

        try:
            in_hours = call.is_in_hours(name, is_queue)
        except Exception as e:
            logger.info(f"Hours check for '{name}' failed: {e}")
            return self._link(BranchCondition.ERROR)

        if in_hours:
            return self._link(BranchCondition.TRUE)
        return self._link(BranchCondition.FALSE)


# ==================== Routing ====================


class TransferRunner(ModuleRunner):
    """Move the caller to another flow, a queue, or an external number"""

    module_type = ModuleType.TRANSFER.value
    name = "transfer"

    def run(self, call: CallConnector) -> Optional[str]:
        self._check_type()
        target = self.module.target

        if target == ModuleTarget.FLOW.value:
            return self._to_flow(call)
        if target == ModuleTarget.QUEUE.value:
            return self._to_queue(call)
        if target == ModuleTarget.PHONE_NUMBER.value:
            return self._to_number(call)
        raise UnsupportedModuleError(
            f"unhandled transfer target: {target}", module_id=self.module.id
        )

    def _to_flow(self, call: CallConnector) -> Optional[str]:
        flow_id = self.module.get_parameter("ContactFlowId")
        if flow_id is None:
            raise MissingParameterError("ContactFlowId", module_id=self.module.id)

        flow_name = flow_id.resource_name or ""
        start = call.get_flow_start(flow_name)
        if start is None:
            logger.info(f"Flow '{flow_name}' is not loaded [module: {self.module.id}]")
            return self._link(BranchCondition.ERROR)

        call.emit(FlowTransferEvent(flow_arn=str(flow_id.value or ""), flow_name=flow_name))
        return start

    def _to_queue(self, call: CallConnector) -> Optional[str]:
        queue_name = call.get_system(SystemKey.QUEUE_NAME)
        queue_arn = call.get_system(SystemKey.QUEUE_ARN)
        if queue_name is None or queue_arn is None:
            return self._link(BranchCondition.ERROR)

        call.emit(QueueTransferEvent(queue_arn=queue_arn, queue_name=queue_name))
        return None

    def _to_number(self, call: CallConnector) -> Optional[str]:
        p = self._params(call)
        blind = p.boolean("BlindTransfer")
        tel = p.text("PhoneNumber")

        call.emit(NumberTransferEvent(tel=tel, blind=blind))
        if blind:
            return None
        return self._link(BranchCondition.SUCCESS)


class DisconnectRunner(ModuleRunner):
    module_type = ModuleType.DISCONNECT.value
    name = "disconnect"

    def run(self, call: CallConnector) -> Optional[str]:
        self._check_type()
        return None


class PassthroughRunner(ModuleRunner):
    """Blocks with no simulated behaviour carry straight on"""

    name = "passthrough"

    def run(self, call: CallConnector) -> Optional[str]:
        logger.debug(f"Passing through block of type {self.module.type} [module: {self.module.id}]")
        return self._link(BranchCondition.SUCCESS)


MODULE_RUNNERS: Dict[str, Type[ModuleRunner]] = {
    ModuleType.STORE_USER_INPUT.value: StoreUserInputRunner,
    ModuleType.CHECK_ATTRIBUTE.value: CheckAttributeRunner,
    ModuleType.TRANSFER.value: TransferRunner,
    ModuleType.PLAY_PROMPT.value: PlayPromptRunner,
    ModuleType.DISCONNECT.value: DisconnectRunner,
    ModuleType.SET_QUEUE.value: SetQueueRunner,
    ModuleType.GET_USER_INPUT.value: GetUserInputRunner,
    ModuleType.SET_ATTRIBUTES.value: SetAttributesRunner,
    ModuleType.INVOKE_EXTERNAL_RESOURCE.value: InvokeExternalResourceRunner,
    ModuleType.CHECK_HOURS_OF_OPERATION.value: CheckHoursOfOperationRunner,
    ModuleType.SET_VOICE.value: SetVoiceRunner,
}


def make_runner(module: Module) -> ModuleRunner:
    """Runner for a block; deprecated types run as their replacement, unknown ones pass through"""
    module = normalize_module(module)
    runner_cls = MODULE_RUNNERS.get(module.type, PassthroughRunner)
    return runner_cls(module)
