from __future__ import annotations

import re
import math
import logging
from dataclasses import dataclass

from pseudorun.modules.MyEnums import ValueTypes, ErrorKinds
from pseudorun.modules.InterpreterErrors import InterpreterError

logger = logging.getLogger(__name__)

IDENTIFIER_REGEX = re.compile(r'^[A-Za-z][A-Za-z0-9]*$')


@dataclass(frozen=True)
class Value:
    value_type: ValueTypes
    data: float | bool | str

    @classmethod
    def number(cls, data: float) -> Value:
        return cls(ValueTypes.NUMBER, float(data))

    @classmethod
    def boolean(cls, data: bool) -> Value:
        return cls(ValueTypes.BOOLEAN, bool(data))

    @classmethod
    def text(cls, data: str) -> Value:
        return cls(ValueTypes.TEXT, str(data))

    def is_number(self) -> bool:
        return self.value_type == ValueTypes.NUMBER

    def is_text(self) -> bool:
        return self.value_type == ValueTypes.TEXT

    def to_python(self) -> float | int | bool | str:
        if self.is_number() and math.isfinite(self.data) and self.data == int(self.data):
            return int(self.data)
        return self.data

    def __str__(self) -> str:
        if self.value_type == ValueTypes.BOOLEAN:
            return "TRUE" if self.data else "FALSE"
        if self.is_number():
            return format_number(self.data)
        return self.data


def format_number(value: float) -> str:
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return str(value)


class Variable():
    def __init__(self, name:str, value:Value):
        self.name = name
        self.value = value
        self.declared_type = value.value_type

    def __str__(self):
        return f"Variable(name={self.name}, value={self.value}, declared_type={self.declared_type})"


class VarManager():
    """Variable store for one run: name -> value, with the type fixed by the first assignment."""

    def __init__(self):
        self.variables: dict[str, Variable] = {}

    @staticmethod
    def normalize_name(var_name:str) -> str:
        return var_name.strip().upper()

    @staticmethod
    def validate_variable_name(var_name:str) -> bool:
        return IDENTIFIER_REGEX.match(var_name) is not None

    def assign(self, var_name:str, value:Value) -> Variable:
        name = self.normalize_name(var_name)
        if not self.validate_variable_name(name):
            raise InterpreterError(ErrorKinds.INVALID_IDENTIFIER, f"Invalid variable name: {var_name}")

        existing = self.variables.get(name)
        if existing is None:
            new_var = Variable(name, value)
            self.variables[name] = new_var
            logger.debug(f"Created variable '{name}' of type {value.value_type} with value {value}")
            return new_var

        if existing.declared_type != value.value_type:
            raise InterpreterError(
                ErrorKinds.TYPE_MISMATCH,
                f"Variable '{name}' was declared as {existing.declared_type} but assigned {value.value_type}")
        existing.value = value
        logger.debug(f"Assigned {value} to '{name}'")
        return existing

    def lookup(self, var_name:str) -> Value | None:
        """Current value, or None when the name is undeclared."""
        var = self.variables.get(self.normalize_name(var_name))
        return var.value if var else None

    def snapshot(self) -> dict[str, Value]:
        return {name: var.value for name, var in self.variables.items()}

    def __len__(self) -> int:
        return len(self.variables)
