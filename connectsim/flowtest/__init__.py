"""
Flowtest - assertions over what happened on a simulated call
"""

from .matchers import (
    Matcher,
    MatchResult,
    QueueTransferMatcher,
    FlowTransferMatcher,
    NumberTransferMatcher,
    PromptMatcher,
    AttributeMatcher,
    LambdaMatcher,
    CallEndedMatcher,
)
from .expect import (
    Expect,
    TransferExpectation,
    PromptExpectation,
    AttributeExpectation,
    LambdaExpectation,
    CallEndExpectation,
)

__all__ = [
    "Expect",
    "TransferExpectation",
    "PromptExpectation",
    "AttributeExpectation",
    "LambdaExpectation",
    "CallEndExpectation",
    "Matcher",
    "MatchResult",
    "QueueTransferMatcher",
    "FlowTransferMatcher",
    "NumberTransferMatcher",
    "PromptMatcher",
    "AttributeMatcher",
    "LambdaMatcher",
    "CallEndedMatcher",
]
