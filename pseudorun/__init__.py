"""PseudoRun: interpreter for a keyword-driven teaching pseudocode."""

from pseudorun.modules.MyEnums import ErrorKinds, StepStates, ValueTypes
from pseudorun.modules.InterpreterErrors import InterpreterError, RunError
from pseudorun.modules.VariableManager import Value
from pseudorun.modules.InterpreterHelper import Interpreter, create_default_interpreter, validate_source
from pseudorun.modules.ExecutionDriver import RunResult, SteppedSession, run, run_stepped

__version__ = "1.0.0"

__all__ = [
    "ErrorKinds", "StepStates", "ValueTypes", "InterpreterError", "RunError", "Value",
    "Interpreter", "create_default_interpreter", "validate_source",
    "RunResult", "SteppedSession", "run", "run_stepped",
]
