"""
Contact flow models - the block graph exported from Amazon Connect
"""
from enum import Enum
from typing import Optional, Any, List, Dict
from pydantic import BaseModel, ConfigDict, Field


class ModuleType(str, Enum):
    """Block types the simulator knows how to run"""
    STORE_USER_INPUT = "StoreUserInput"
    CHECK_ATTRIBUTE = "CheckAttribute"
    TRANSFER = "Transfer"
    PLAY_PROMPT = "PlayPrompt"
    DISCONNECT = "Disconnect"
    SET_QUEUE = "SetQueue"
    GET_USER_INPUT = "GetUserInput"
    SET_ATTRIBUTES = "SetAttributes"
    INVOKE_EXTERNAL_RESOURCE = "InvokeExternalResource"
    CHECK_HOURS_OF_OPERATION = "CheckHoursOfOperation"
    SET_VOICE = "SetVoice"


class DeprecatedModuleType(str, Enum):
    """Block types that only appear in flows exported from older versions of Connect"""
    SET_SCREEN_POP = "SetScreenPop"
    STORE_CUSTOMER_INPUT = "StoreCustomerInput"
    PLAY_AUDIO = "PlayAudio"
    TRANSFER_TO_FLOW = "TransferToFlow"
    CUSTOMER_IN_QUEUE = "CustomerInQueue"


class ModuleTarget(str, Enum):
    """Values of a block's target field, selecting one of several behaviours"""
    FLOW = "Flow"
    LAMBDA = "Lambda"
    QUEUE = "Queue"
    DIGITS = "Digits"
    PHONE_NUMBER = "PhoneNumber"
    LEX = "Lex"


class BranchCondition(str, Enum):
    """Named reasons for leaving a block by a given branch"""
    SUCCESS = "Success"
    ERROR = "Error"
    NO_MATCH = "NoMatch"
    EVALUATE = "Evaluate"
    TIMEOUT = "Timeout"
    TRUE = "True"
    FALSE = "False"
    AT_CAPACITY = "AtCapacity"


class ConditionType(str, Enum):
    """Operators for Evaluate branches"""
    EQUALS = "Equals"
    GTE = "GreaterThanOrEqualTo"
    GT = "GreaterThan"
    LTE = "LessThanOrEqualTo"
    LT = "LessThan"


class Namespace(str, Enum):
    """The three places a dynamic parameter value can be looked up"""
    EXTERNAL = "External"
    SYSTEM = "System"
    USER_DEFINED = "User Defined"


class SystemKey(str, Enum):
    """Values that can be looked up from the Connect system"""
    LAST_USER_INPUT = "Stored customer input"
    CUSTOMER_NUMBER = "Customer Number"
    DIALED_NUMBER = "Dialed Number"
    CUSTOMER_CALLBACK = "Customer callback number"
    QUEUE_NAME = "Queue.Name"
    QUEUE_ARN = "Queue.ARN"
    QUEUE_OUTBOUND_NUMBER = "Queue.OutboundCallerId.Address"
    TEXT_TO_SPEECH_VOICE = "TextToSpeechVoiceId"
    CONTACT_ID = "ContactId"
    INITIAL_CONTACT_ID = "InitialContactId"
    PREVIOUS_CONTACT_ID = "PreviousContactId"
    CHANNEL = "Channel"
    INSTANCE_ARN = "InstanceARN"
    INITIATION_METHOD = "InitiationMethod"


class ModuleBranch(BaseModel):
    """A single output of a block and the data required to choose it"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    condition: str
    condition_type: Optional[str] = Field(default=None, alias="conditionType")
    condition_value: Optional[Any] = Field(default=None, alias="conditionValue")
    transition: str


class ModuleParameter(BaseModel):
    """A single parameter configuring a block"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    name: str
    # Used when the parameter is a key/value pair (eg. lambda inputs)
    key: Optional[str] = None
    # A literal when namespace is unset, otherwise a key to look up in the namespace
    value: Optional[Any] = None
    namespace: Optional[str] = None
    # Friendly name for ARNs held in value
    resource_name: Optional[str] = Field(default=None, alias="resourceName")


class Module(BaseModel):
    """A single block in the flow"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str = ""
    type: str
    branches: List[ModuleBranch] = Field(default_factory=list)
    parameters: List[ModuleParameter] = Field(default_factory=list)
    metadata: Optional[Any] = None
    target: Optional[str] = None

    def get_link(self, condition: str) -> Optional[str]:
        """ID of the block linked by the first branch with this condition, if any"""
        for branch in self.branches:
            if branch.condition == condition:
                return branch.transition
        return None

    def list_branches(self, condition: str) -> List[ModuleBranch]:
        """All branches with this condition, in declaration order (eg. Evaluate)"""
        return [b for b in self.branches if b.condition == condition]

    def get_parameter(self, name: str) -> Optional[ModuleParameter]:
        """The first parameter with this name, if any"""
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        return None

    def list_parameters(self, name: str) -> List[ModuleParameter]:
        """All parameters with this name (eg. repeated lambda inputs)"""
        return [p for p in self.parameters if p.name == name]


class FlowMetadata(BaseModel):
    """Metadata shown in the top left of the Connect flow editor"""

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str = ""
    description: Optional[str] = None
    type: Optional[str] = None


class Flow(BaseModel):
    """A complete exported contact flow"""

    model_config = ConfigDict(frozen=True, extra="allow")

    modules: List[Module] = Field(default_factory=list)
    start: str
    metadata: FlowMetadata = Field(default_factory=FlowMetadata)

    @property
    def name(self) -> str:
        return self.metadata.name

    def modules_by_id(self) -> Dict[str, Module]:
        return {m.id: m for m in self.modules}
