"""
Expression evaluation for the interpreter.
Supports: +, -, *, /, (), ==, !=, >=, <=, >, <, number/string/boolean literals
and variable references, with operator precedence.

Nothing here hands text to the host interpreter: expressions are tokenized
and evaluated by a recursive descent parser over a fixed grammar.
"""

from __future__ import annotations

import re
import math
import operator
import logging
from typing import List, Optional, TYPE_CHECKING

from pseudorun.modules.MyEnums import ErrorKinds, ComparisonOperators, MathOperators
from pseudorun.modules.InterpreterErrors import InterpreterError
from pseudorun.modules.VariableManager import Value

if TYPE_CHECKING:
    from pseudorun.modules.VariableManager import VarManager

logger = logging.getLogger(__name__)


class ExpressionTokenizer:
    """Tokenizes expressions with support for multi-char operators and quoted strings."""

    SINGLE_CHAR_OPS = {'+', '-', '*', '/', '(', ')', '>', '<'}
    MULTI_CHAR_OPS = {'==', '!=', '>=', '<='}
    QUOTES = {'"', "'"}

    NUMBER_REGEX = re.compile(r'\d+(?:\.\d*)?|\.\d+')
    IDENT_REGEX = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')

    @staticmethod
    def tokenize(expression: str) -> List[str]:
        """Convert expression to token list. String literals keep their quotes."""
        tokens = []
        i = 0
        expr = expression.strip()

        while i < len(expr):
            c = expr[i]
            if c.isspace():
                i += 1
                continue

            if c in ExpressionTokenizer.QUOTES:
                end = expr.find(c, i + 1)
                if end == -1:
                    raise ValueError(f"Unterminated string literal: {expr[i:]}")
                tokens.append(expr[i:end + 1])
                i = end + 1
                continue

            two_char = expr[i:i+2]
            if two_char in ExpressionTokenizer.MULTI_CHAR_OPS:
                tokens.append(two_char)
                i += 2
                continue

            if c in ExpressionTokenizer.SINGLE_CHAR_OPS:
                tokens.append(c)
                i += 1
                continue

            match = ExpressionTokenizer.NUMBER_REGEX.match(expr, i) or ExpressionTokenizer.IDENT_REGEX.match(expr, i)
            if match is None:
                raise ValueError(f"Unexpected character '{c}'")
            tokens.append(match.group(0))
            i = match.end()

        return tokens

    @staticmethod
    def is_number(token: str) -> bool:
        return ExpressionTokenizer.NUMBER_REGEX.fullmatch(token) is not None

    @staticmethod
    def is_string(token: str) -> bool:
        return len(token) >= 2 and token[0] in ExpressionTokenizer.QUOTES and token[-1] == token[0]

    @staticmethod
    def is_identifier(token: str) -> bool:
        return ExpressionTokenizer.IDENT_REGEX.fullmatch(token) is not None


_COMPARISONS = {
    ComparisonOperators.EQUAL: operator.eq,
    ComparisonOperators.NOT_EQUAL: operator.ne,
    ComparisonOperators.GREATER_EQUAL: operator.ge,
    ComparisonOperators.LESS_EQUAL: operator.le,
    ComparisonOperators.GREATER_THAN: operator.gt,
    ComparisonOperators.LESS_THAN: operator.lt,
}

_ARITHMETIC = {
    MathOperators.PLUS: operator.add,
    MathOperators.MINUS: operator.sub,
    MathOperators.MUL: operator.mul,
    MathOperators.DIV: operator.truediv,
}


class ExpressionParser:
    """
    Recursive descent parser that evaluates while it parses.
    Grammar (lowest to highest precedence):
        comparison := sum (('==' | '!=' | '>=' | '<=' | '>' | '<') sum)?
        sum        := product (('+' | '-') product)*
        product    := unary (('*' | '/') unary)*
        unary      := ('-' | '+') unary | atom
        atom       := number | string | TRUE | FALSE | identifier | '(' comparison ')'
    """

    MAX_NESTING_DEPTH = 100

    def __init__(self, tokens: List[str], var_manager: Optional[VarManager] = None):
        self.tokens = tokens
        self.pos = 0
        self.var_manager = var_manager
        self.depth = 0

    def parse(self) -> Value:
        if not self.tokens:
            raise ValueError("Empty expression")

        result = self._parse_comparison()

        if self.pos < len(self.tokens):
            raise ValueError(f"Unexpected tokens: {self.tokens[self.pos:]}")

        return result

    def _peek(self) -> Optional[str]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _consume(self) -> str:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def _parse_comparison(self) -> Value:
        left = self._parse_sum()

        if self._peek() in _COMPARISONS:
            op = self._consume()
            right = self._parse_sum()
            return compare_values(left, ComparisonOperators(op), right)

        return left

    def _parse_sum(self) -> Value:
        """Addition, subtraction and text concatenation."""
        left = self._parse_product()

        while self._peek() in ['+', '-']:
            op = self._consume()
            right = self._parse_product()
            if op == '+' and (left.is_text() or right.is_text()):
                left = Value.text(str(left) + str(right))
            else:
                left = apply_arithmetic(left, MathOperators(op), right)

        return left

    def _parse_product(self) -> Value:
        """Multiplication and division."""
        left = self._parse_unary()

        while self._peek() in ['*', '/']:
            op = self._consume()
            right = self._parse_unary()
            left = apply_arithmetic(left, MathOperators(op), right)

        return left

    def _nested(self, parse) -> Value:
        """Run one level of sign or parenthesis nesting, bounded by MAX_NESTING_DEPTH."""
        if self.depth >= self.MAX_NESTING_DEPTH:
            raise ValueError("Expression nested too deeply")
        self.depth += 1
        try:
            return parse()
        finally:
            self.depth -= 1

    def _parse_unary(self) -> Value:
        token = self._peek()

        if token == '-':
            self._consume()
            operand = self._nested(self._parse_unary)
            if not operand.is_number():
                raise ValueError(f"Cannot negate a {operand.value_type}")
            return Value.number(-operand.data)

        if token == '+':
            self._consume()
            operand = self._nested(self._parse_unary)
            if not operand.is_number():
                raise ValueError(f"Unary '+' needs a number, got {operand.value_type}")
            return operand

        return self._parse_atom()

    def _parse_atom(self) -> Value:
        token = self._peek()

        if token is None:
            raise ValueError("Unexpected end of expression")

        # Parenthesized expression
        if token == '(':
            self._consume()
            result = self._nested(self._parse_comparison)
            if self._peek() == ')':
                self._consume()
            else:
                raise ValueError("Missing ')'")
            return result

        token = self._consume()

        if ExpressionTokenizer.is_number(token):
            return Value.number(float(token))

        if ExpressionTokenizer.is_string(token):
            return Value.text(token[1:-1])

        if ExpressionTokenizer.is_identifier(token):
            return self._resolve_identifier(token)

        raise ValueError(f"Unexpected token '{token}'")

    def _resolve_identifier(self, token: str) -> Value:
        if self.var_manager is not None:
            value = self.var_manager.lookup(token)
            if value is not None:
                return value
        upper = token.upper()
        if upper == 'TRUE':
            return Value.boolean(True)
        if upper == 'FALSE':
            return Value.boolean(False)
        # Unknown identifiers are bare words
        return Value.text(token)


def apply_arithmetic(left: Value, op: MathOperators, right: Value) -> Value:
    if not (left.is_number() and right.is_number()):
        raise ValueError(f"Operator '{op}' needs numbers, got {left.value_type} and {right.value_type}")
    if op == MathOperators.DIV and right.data == 0:
        raise ValueError("Division by zero")
    result = _ARITHMETIC[op](left.data, right.data)
    if not math.isfinite(result):
        raise ValueError("Result is not a finite number")
    return Value.number(result)


def compare_values(left: Value, op: ComparisonOperators, right: Value) -> Value:
    if op in (ComparisonOperators.EQUAL, ComparisonOperators.NOT_EQUAL):
        same = left.value_type == right.value_type and left.data == right.data
        return Value.boolean(same if op == ComparisonOperators.EQUAL else not same)
    if left.value_type != right.value_type:
        raise ValueError(f"Cannot compare {left.value_type} with {right.value_type}")
    return Value.boolean(_COMPARISONS[op](left.data, right.data))


def evaluate_expression(expression: str, var_manager: Optional[VarManager] = None) -> Value:
    """Evaluate an expression against the variable store.

    Raises InterpreterError(InvalidExpression) without a line index; the
    resolver attaches the line.
    """
    try:
        tokens = ExpressionTokenizer.tokenize(expression)
        result = ExpressionParser(tokens, var_manager).parse()
    except ValueError as e:
        logger.debug(f"Expression '{expression}' failed: {e}")
        raise InterpreterError(ErrorKinds.INVALID_EXPRESSION, f"Invalid expression: {expression} ({e})") from e
    logger.debug(f"Expression '{expression}' -> {result}")
    return result
