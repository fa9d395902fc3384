"""
Flow Module - contact flow execution

This module provides:
- Dispatch from block type to runner, one runner per block type
- Typed, namespace-aware parameter resolution with $. templating
- The call engine that walks a flow on its own thread
- The per-call context and append-only event log
"""

from .connector import CallConnector
from .resolver import resolve, interpolate, lookup
from .parameters import ModuleParameters
from .evaluator import ConditionEvaluator
from .loader import parse_flow, normalize_flow, normalize_module
from .runners import (
    ModuleRunner,
    StoreUserInputRunner,
    GetUserInputRunner,
    PlayPromptRunner,
    SetVoiceRunner,
    SetQueueRunner,
    SetAttributesRunner,
    CheckAttributeRunner,
    InvokeExternalResourceRunner,
    CheckHoursOfOperationRunner,
    TransferRunner,
    DisconnectRunner,
    PassthroughRunner,
    MODULE_RUNNERS,
    make_runner,
)
from .context import (
    CallContext,
    CallStatus,
    ModuleVisit,
    EventLog,
    create_context,
)
from .call import Call, CallConfig, CallEnvironment

__all__ = [
    # Connector
    "CallConnector",

    # Resolution
    "resolve",
    "interpolate",
    "lookup",
    "ModuleParameters",
    "ConditionEvaluator",

    # Loading
    "parse_flow",
    "normalize_flow",
    "normalize_module",

    # Runners
    "ModuleRunner",
    "StoreUserInputRunner",
    "GetUserInputRunner",
    "PlayPromptRunner",
    "SetVoiceRunner",
    "SetQueueRunner",
    "SetAttributesRunner",
    "CheckAttributeRunner",
    "InvokeExternalResourceRunner",
    "CheckHoursOfOperationRunner",
    "TransferRunner",
    "DisconnectRunner",
    "PassthroughRunner",
    "MODULE_RUNNERS",
    "make_runner",

    # Context
    "CallContext",
    "CallStatus",
    "ModuleVisit",
    "EventLog",
    "create_context",

    # Call
    "Call",
    "CallConfig",
    "CallEnvironment",
]
