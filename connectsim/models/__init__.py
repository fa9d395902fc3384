from .flow import (
    # Enumerations
    ModuleType,
    DeprecatedModuleType,
    ModuleTarget,
    BranchCondition,
    ConditionType,
    Namespace,
    SystemKey,

    # Graph
    ModuleBranch,
    ModuleParameter,
    Module,
    FlowMetadata,
    Flow,
)
from .events import (
    EventType,
    Event,
    ModuleEvent,
    PromptEvent,
    InputEvent,
    UpdateContactDataEvent,
    LambdaEvent,
    QueueTransferEvent,
    FlowTransferEvent,
    NumberTransferEvent,
    CallEndedEvent,
)

__all__ = [
    # Flow - Enumerations
    "ModuleType", "DeprecatedModuleType", "ModuleTarget", "BranchCondition",
    "ConditionType", "Namespace", "SystemKey",

    # Flow - Graph
    "ModuleBranch", "ModuleParameter", "Module", "FlowMetadata", "Flow",

    # Events
    "EventType", "Event", "ModuleEvent", "PromptEvent", "InputEvent",
    "UpdateContactDataEvent", "LambdaEvent", "QueueTransferEvent",
    "FlowTransferEvent", "NumberTransferEvent", "CallEndedEvent",
]
