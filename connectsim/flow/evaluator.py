"""
Condition Evaluator - decides whether an Evaluate branch matches a value.

Used by CheckAttribute (attribute against each branch) and GetUserInput
(entered digit against each branch). Pure Python, no side effects.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from ..models.flow import ConditionType, ModuleBranch

logger = logging.getLogger(__name__)


class ConditionEvaluator:
    """
    Deterministic evaluator for the five Connect comparison operators.

    - Equals compares numerically when both sides are numbers, otherwise as text
    - The ordering operators compare numerically and never match non-numbers
    """

    OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
        ConditionType.EQUALS.value: lambda actual, expected: ConditionEvaluator._safe_equals(actual, expected),
        ConditionType.GT.value: lambda actual, expected: ConditionEvaluator._safe_compare(actual, expected, lambda a, b: a > b),
        ConditionType.GTE.value: lambda actual, expected: ConditionEvaluator._safe_compare(actual, expected, lambda a, b: a >= b),
        ConditionType.LT.value: lambda actual, expected: ConditionEvaluator._safe_compare(actual, expected, lambda a, b: a < b),
        ConditionType.LTE.value: lambda actual, expected: ConditionEvaluator._safe_compare(actual, expected, lambda a, b: a <= b),
    }

    @classmethod
    def evaluate(cls, operator: Optional[str], actual: Any, expected: Any) -> bool:
        """
        Evaluate one comparison.

        Args:
            operator: One of the ConditionType values
            actual: The value found in the call (attribute, input)
            expected: The branch's conditionValue

        Returns:
            True if the condition holds; unknown operators never match
        """
        operator_func = cls.OPERATORS.get(operator or "")
        if operator_func is None:
            logger.warning(f"Unknown condition operator: '{operator}'")
            return False

        result = operator_func(actual, expected)
        logger.debug(
            f"Condition evaluated: value={actual!r} {operator} {expected!r} -> {result}"
        )
        return result

    @classmethod
    def first_match(cls, branches: List[ModuleBranch], actual: Any) -> Optional[ModuleBranch]:
        """The first Evaluate branch, in declaration order, whose condition holds"""
        for branch in branches:
            if cls.evaluate(branch.condition_type, actual, branch.condition_value):
                return branch
        return None

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _coerce_to_number(value: Any) -> Optional[float]:
        """int, float or a numeric string as float; anything else None"""
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, (int, float)):
            return float(value)

        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                return None

        return None

    @staticmethod
    def _safe_equals(actual: Any, expected: Any) -> bool:
        if actual is None or expected is None:
            return actual is None and expected is None

        actual_num = ConditionEvaluator._coerce_to_number(actual)
        expected_num = ConditionEvaluator._coerce_to_number(expected)
        if actual_num is not None and expected_num is not None:
            return actual_num == expected_num

        return str(actual) == str(expected)

    @staticmethod
    def _safe_compare(
        actual: Any,
        expected: Any,
        comparator: Callable[[float, float], bool]
    ) -> bool:
        actual_num = ConditionEvaluator._coerce_to_number(actual)
        expected_num = ConditionEvaluator._coerce_to_number(expected)

        if actual_num is None or expected_num is None:
            logger.debug(
                f"Numeric comparison failed: actual={actual!r} -> {actual_num}, "
                f"expected={expected!r} -> {expected_num}"
            )
            return False

        return comparator(actual_num, expected_num)


