from __future__ import annotations

import re
import logging
import operator
from typing import TYPE_CHECKING

from pseudorun.modules.MyEnums import ConditionTypes, ErrorKinds
from pseudorun.modules.InterpreterErrors import InterpreterError
from pseudorun.modules.ExpressionHelper import ExpressionTokenizer
from pseudorun.modules.VariableManager import Value

if TYPE_CHECKING:
    from pseudorun.modules.VariableManager import VarManager

logger = logging.getLogger(__name__)

NUMERIC_OPERAND = re.compile(r'^[-+]?(?:\d+(?:\.\d*)?|\.\d+)$')

_OPERATIONS = {
    ConditionTypes.GREATER_THAN: operator.gt,
    ConditionTypes.LESS_THAN: operator.lt,
    ConditionTypes.EQUAL: operator.eq,
    ConditionTypes.NOT_EQUAL: operator.ne,
}


class Condition:
    """Flat binary condition: ``<left> <operator> <right>``."""

    def __init__(self, condition_str: str):
        self.condition_str = condition_str.strip()
        self.parts: tuple[str, str, str] = self.split_parts()

    def get_str(self) -> str:
        return self.condition_str

    def __str__(self) -> str:
        return f"Condition(parts={self.parts})"

    def split_parts(self) -> tuple[str, str, str]:
        parts = self.condition_str.split()
        if len(parts) != 3:
            raise InterpreterError(ErrorKinds.INVALID_EXPRESSION,
                                   f"Invalid condition format: '{self.condition_str}'")
        return parts[0], parts[1], parts[2]

    @property
    def type(self) -> ConditionTypes:
        op = self.parts[1]
        if op not in ConditionTypes._value2member_map_:
            raise InterpreterError(ErrorKinds.UNKNOWN_OPERATOR, f"Unknown operator: {op}")
        return ConditionTypes(op)

    @staticmethod
    def resolve_operand(operand: str, var_manager: VarManager) -> Value:
        if NUMERIC_OPERAND.match(operand):
            return Value.number(float(operand))
        if ExpressionTokenizer.is_string(operand):
            return Value.text(operand[1:-1])
        value = var_manager.lookup(operand)
        return value if value is not None else Value.number(0)

    def evaluate(self, var_manager: VarManager) -> bool:
        cond_type = self.type
        left = self.resolve_operand(self.parts[0], var_manager)
        right = self.resolve_operand(self.parts[2], var_manager)

        if cond_type in (ConditionTypes.EQUAL, ConditionTypes.NOT_EQUAL):
            same = left.value_type == right.value_type and left.data == right.data
            result = same if cond_type == ConditionTypes.EQUAL else not same
        elif left.value_type != right.value_type:
            raise InterpreterError(ErrorKinds.INVALID_EXPRESSION,
                                   f"Cannot compare {left.value_type} with {right.value_type} in '{self.condition_str}'")
        else:
            result = _OPERATIONS[cond_type](left.data, right.data)

        logger.debug(f"Condition '{self.condition_str}': {left} {cond_type} {right} -> {result}")
        return result


def evaluate_condition(condition_str: str, var_manager: VarManager) -> bool:
    return Condition(condition_str).evaluate(var_manager)
