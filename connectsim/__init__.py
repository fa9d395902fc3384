"""
Connect Flow Simulator - run Amazon Connect contact flows locally and assert on what callers hear
"""

from .core.errors import (
    ConnectSimError,
    SimulatorSetupError,
    FlowExecutionError,
    WrongModuleTypeError,
    MissingParameterError,
    InvalidParameterError,
    UnknownLambdaError,
    UnsupportedModuleError,
    ExpectationError,
)
from .models.flow import Flow, Module
from .flow.call import Call, CallConfig
from .flow.context import CallStatus
from .flowtest.expect import Expect
from .simulator import Simulator

__version__ = "0.1.0"

__all__ = [
    "Simulator",
    "Call",
    "CallConfig",
    "CallStatus",
    "Flow",
    "Module",
    "Expect",
    "ConnectSimError",
    "SimulatorSetupError",
    "FlowExecutionError",
    "WrongModuleTypeError",
    "MissingParameterError",
    "InvalidParameterError",
    "UnknownLambdaError",
    "UnsupportedModuleError",
    "ExpectationError",
]
