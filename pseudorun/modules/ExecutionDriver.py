"""
Execution driver: batch runs and breakpoint-driven stepped sessions.

Both modes feed the same Interpreter one statement at a time. A stepped
session suspends only at statement boundaries and may simply be dropped
at any suspension point; nothing executed so far is rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

from pseudorun.modules.MyEnums import StepStates
from pseudorun.modules.InterpreterErrors import InterpreterError, RunError
from pseudorun.modules.InterpreterHelper import (Interpreter, DEFAULT_COMMENT_CHAR,
                                                 DEFAULT_MAX_REPEAT_ITERATIONS)
from pseudorun.modules.VariableManager import Value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    output_lines: tuple[str, ...] = ()
    final_variables: Mapping[str, Value] = field(default_factory=lambda: MappingProxyType({}))
    error: Optional[RunError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            'output': list(self.output_lines),
            'variables': {name: value.to_python() for name, value in self.final_variables.items()},
            'error': self.error.to_dict() if self.error else None,
        }


def _build_interpreter(comment_char: str, max_repeat_iterations: int,
                       output_callback: Optional[Callable[[str], None]]) -> Interpreter:
    return Interpreter(comment_char=comment_char,
                       max_repeat_iterations=max_repeat_iterations,
                       output_callback=output_callback)


def _snapshot(interpreter: Interpreter, error: Optional[RunError] = None) -> RunResult:
    return RunResult(output_lines=tuple(interpreter.get_output_lines()),
                     final_variables=MappingProxyType(interpreter.get_variables()),
                     error=error)


def run(source: str, comment_char: str = DEFAULT_COMMENT_CHAR,
        max_repeat_iterations: int = DEFAULT_MAX_REPEAT_ITERATIONS,
        output_callback: Optional[Callable[[str], None]] = None) -> RunResult:
    """Run a program to completion or to its first error."""
    interpreter = _build_interpreter(comment_char, max_repeat_iterations, output_callback)
    error = None
    try:
        interpreter.load_source(source)
        interpreter.run_to_completion()
    except InterpreterError as e:
        logger.info(f"Run failed: {e.message}")
        error = e.to_run_error()
    else:
        logger.info(f"Run finished: {len(interpreter.output_lines)} output lines, "
                    f"{len(interpreter.var_manager)} variables")
    return _snapshot(interpreter, error)


class SteppedSession:
    """Stepped execution of one program, paced by the caller.

    Breakpoints are 0-based line indices. The session pauses *before*
    executing a breakpoint line; the next ``step`` or ``resume`` runs it.
    """

    def __init__(self, source: str, breakpoints: Iterable[int] = (),
                 comment_char: str = DEFAULT_COMMENT_CHAR,
                 max_repeat_iterations: int = DEFAULT_MAX_REPEAT_ITERATIONS,
                 output_callback: Optional[Callable[[str], None]] = None):
        self.breakpoints: set[int] = set(breakpoints)
        self.interpreter = _build_interpreter(comment_char, max_repeat_iterations, output_callback)
        self.state = StepStates.READY
        self.error: Optional[RunError] = None
        self._acknowledged_breakpoint: Optional[int] = None
        self.interpreter.load_source(source)
        if self.interpreter.finished:
            self.state = StepStates.FINISHED

    @property
    def current_line(self) -> int | None:
        return self.interpreter.current_line

    @property
    def is_done(self) -> bool:
        return self.state in (StepStates.FINISHED, StepStates.ERROR)

    def step(self) -> StepStates:
        """One tick: pause at an unacknowledged breakpoint, else run one statement."""
        if self.is_done:
            return self.state

        line = self.interpreter.current_line
        if line in self.breakpoints and self._acknowledged_breakpoint != line:
            self._acknowledged_breakpoint = line
            self.state = StepStates.PAUSED
            logger.info(f"Breakpoint hit at line {line + 1}")
            return self.state

        self._acknowledged_breakpoint = None
        try:
            more = self.interpreter.execute_next()
        except InterpreterError as e:
            logger.info(f"Stepped run failed: {e.message}")
            self.error = e.to_run_error()
            self.state = StepStates.ERROR
            return self.state

        self.state = StepStates.READY if more else StepStates.FINISHED
        return self.state

    def resume(self) -> StepStates:
        """Continue until the next breakpoint, the end of the program, or an error."""
        if self.state == StepStates.PAUSED:
            # Run the breakpoint line we are sitting on
            self.step()
        while self.state == StepStates.READY:
            self.step()
        return self.state

    def add_breakpoint(self, line_index: int) -> None:
        self.breakpoints.add(line_index)
        logger.debug(f"Breakpoint set at line {line_index + 1}")

    def remove_breakpoint(self, line_index: int) -> None:
        self.breakpoints.discard(line_index)
        logger.debug(f"Breakpoint cleared at line {line_index + 1}")

    def clear_breakpoints(self) -> None:
        self.breakpoints.clear()

    @property
    def result(self) -> RunResult:
        """Output and variables so far (final once the session is done)."""
        return _snapshot(self.interpreter, self.error)

    def to_dict(self) -> dict:
        data = self.result.to_dict()
        data.update({
            'state': str(self.state),
            'line': None if self.current_line is None else self.current_line + 1,
            'breakpoints': sorted(b + 1 for b in self.breakpoints),
        })
        return data


def run_stepped(source: str, breakpoints: Iterable[int] = (), **options) -> SteppedSession:
    return SteppedSession(source, breakpoints, **options)
