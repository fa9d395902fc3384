"""
Error types raised by the simulator.

Fatal errors abort the call they occur in and are surfaced to the driver.
Expected outcomes (hours check failure, queue not set, flow not found) are
never raised: runners route them down the block's Error branch instead.
"""
from typing import Optional


class ConnectSimError(Exception):
    """Base class for all simulator errors"""


class SimulatorSetupError(ConnectSimError):
    """The simulator was used before it was set up correctly"""


class FlowExecutionError(ConnectSimError):
    """A fatal error raised while running a block"""

    def __init__(self, message: str, module_id: Optional[str] = None):
        super().__init__(message)
        self.module_id = module_id


class WrongModuleTypeError(FlowExecutionError):
    """A block was routed to a runner for a different block type"""

    def __init__(self, module_type: str, runner_name: str, module_id: Optional[str] = None):
        super().__init__(f"module of type {module_type} being run as {runner_name}", module_id)
        self.module_type = module_type
        self.runner_name = runner_name


class MissingParameterError(FlowExecutionError):
    """A required block parameter is absent or has the wrong type"""

    def __init__(self, name: str, module_id: Optional[str] = None):
        super().__init__(f"missing parameter {name}", module_id)
        self.parameter_name = name


class InvalidParameterError(FlowExecutionError):
    """A block parameter is present but could not be parsed"""

    def __init__(self, name: str, value, reason: str, module_id: Optional[str] = None):
        super().__init__(f"invalid value {value!r} for parameter {name}: {reason}", module_id)
        self.parameter_name = name
        self.value = value


class UnknownLambdaError(FlowExecutionError):
    """No registered lambda matches the invoked ARN"""

    def __init__(self, arn: str, module_id: Optional[str] = None):
        super().__init__(f"unknown lambda: {arn}", module_id)
        self.arn = arn


class UnsupportedModuleError(FlowExecutionError):
    """A block uses a target or option the simulator cannot run"""


class ExpectationError(AssertionError):
    """An assertion about the call's events did not hold"""

    def __init__(self, expected: str, got: Optional[str] = None):
        self.expected = expected
        self.got = got
        observed = f"got {got}" if got is not None else "no matching event found"
        super().__init__(f"expected {expected} but {observed}")
