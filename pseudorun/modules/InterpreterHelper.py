from __future__ import annotations

import logging
from typing import Callable, Optional

from pseudorun.modules.MyEnums import StatementTypes, ErrorKinds, FrameTypes
from pseudorun.modules.InterpreterErrors import InterpreterError, RunError
from pseudorun.modules.LineSplitter import Line, split_lines
from pseudorun.modules.VariableManager import VarManager, Value
from pseudorun.modules.ExpressionHelper import evaluate_expression, ExpressionTokenizer
from pseudorun.modules.ConditionHelper import evaluate_condition
from pseudorun.modules.StackManager import (FrameStacks, BlockFrame, ConditionalFrame,
                                            ForFrame, WhileFrame, RepeatFrame)
from pseudorun.modules.Commands import (Command, OutputCommand, AssignCommand, IfCommand,
                                        ForCommand, WhileCommand, UntilCommand,
                                        classify_line, parse_command)

logger = logging.getLogger(__name__)

DEFAULT_COMMENT_CHAR = '//'
DEFAULT_MAX_REPEAT_ITERATIONS = 1000

CLOSING_KEYWORDS = {
    FrameTypes.BLOCK: "END",
    FrameTypes.CONDITIONAL: "ENDIF",
    FrameTypes.FOR: "END",
    FrameTypes.WHILE: "ENDWHILE",
    FrameTypes.REPEAT: "UNTIL",
}


class Interpreter:
    """Control-flow resolver: walks the lines with a cursor and three frame stacks.

    One call to ``execute_next`` runs exactly one statement. Batch and stepped
    execution both drive this method; they differ only in how often they call it.
    """

    def __init__(self, comment_char: str = DEFAULT_COMMENT_CHAR,
                 max_repeat_iterations: int = DEFAULT_MAX_REPEAT_ITERATIONS,
                 output_callback: Optional[Callable[[str], None]] = None):
        self.comment_char = comment_char
        self.max_repeat_iterations = max_repeat_iterations
        self.output_callback = output_callback
        self.load_lines([])

    def load_source(self, source: str) -> None:
        self.load_lines(split_lines(source))

    def load_lines(self, lines: list[Line]) -> None:
        """Reset all run state; nothing survives from a previous run."""
        self.lines = lines
        self.var_manager = VarManager()
        self.stacks = FrameStacks()
        self.output_lines: list[str] = []
        self.cursor = 0
        self.statements_executed = 0
        self.finished = False
        self.__advance_to_statement()

    @property
    def current_line(self) -> int | None:
        """Index of the statement that runs next, None once finished."""
        return None if self.finished else self.cursor

    def run_to_completion(self) -> None:
        while not self.finished:
            self.execute_next()

    def execute_next(self) -> bool:
        """Execute the statement at the cursor. Returns False once the program is done."""
        if self.finished:
            return False

        line = self.lines[self.cursor]
        command = parse_command(line, self.comment_char)
        logger.debug(f"Line {line.index + 1}: {command}")

        try:
            self.__dispatch(command)
        except InterpreterError as e:
            raise e.at_line(line.index)

        self.statements_executed += 1
        self.__advance_to_statement()
        return not self.finished

    def __dispatch(self, command: Command) -> None:
        if command.command_type == StatementTypes.BEGIN:
            self.__handle_begin(command)
        elif type(command) is OutputCommand:
            self.__handle_output(command)
        elif type(command) is AssignCommand:
            self.__handle_assign(command)
        elif type(command) is IfCommand:
            self.__handle_if(command)
        elif command.command_type == StatementTypes.ELSE:
            self.__handle_else(command)
        elif command.command_type == StatementTypes.ENDIF:
            self.__handle_endif(command)
        elif type(command) is ForCommand:
            self.__handle_for(command)
        elif command.command_type == StatementTypes.END:
            self.__handle_end(command)
        elif type(command) is WhileCommand:
            self.__handle_while(command)
        elif command.command_type == StatementTypes.ENDWHILE:
            self.__handle_endwhile(command)
        elif command.command_type == StatementTypes.REPEAT:
            self.__handle_repeat(command)
        elif type(command) is UntilCommand:
            self.__handle_until(command)
        else:
            raise ValueError(f"Unsupported command type: {type(command)} - {command}")

    # === Statement handlers ===
    def __handle_begin(self, command: Command) -> None:
        self.stacks.blocks.push(BlockFrame(command.line.index))
        self.cursor += 1

    def __handle_output(self, command: OutputCommand) -> None:
        text = self.__resolve_output_text(command.text)
        self.output_lines.append(text)
        logger.debug(f"OUTPUT: {text}")
        if self.output_callback is not None:
            self.output_callback(text)
        self.cursor += 1

    def __resolve_output_text(self, text: str) -> str:
        value = self.var_manager.lookup(text) if text else None
        if value is not None:
            return str(value)
        if ExpressionTokenizer.is_string(text):
            return text[1:-1]
        return text

    def __handle_assign(self, command: AssignCommand) -> None:
        value = evaluate_expression(command.expression, self.var_manager)
        self.var_manager.assign(command.var_name, value)
        self.cursor += 1

    def __handle_if(self, command: IfCommand) -> None:
        is_true = evaluate_condition(command.condition, self.var_manager)
        frame = self.stacks.conditionals.push(ConditionalFrame(command.line.index, was_condition_true=is_true))
        if is_true:
            self.cursor += 1
            return

        target = self.__scan_forward(command.line.index, StatementTypes.IF, StatementTypes.ENDIF,
                                     stop_at=(StatementTypes.ELSE,))
        if target is None:
            logger.debug("IF without matching ENDIF, skipping to end of input")
            self.cursor = len(self.lines)
        elif classify_line(self.lines[target], self.comment_char) == StatementTypes.ELSE:
            logger.debug(f"IF false, entering ELSE at line {target + 1}")
            frame.else_branch_entered = True
            self.cursor = target + 1
        else:
            logger.debug(f"IF false, no ELSE, leaving at ENDIF line {target + 1}")
            self.stacks.conditionals.pop()
            self.cursor = target + 1

    def __handle_else(self, command: Command) -> None:
        frame = self.stacks.conditionals.peek()
        if frame is None:
            raise command.error(ErrorKinds.UNEXPECTED_ELSE, "Unexpected ELSE")
        if frame.else_branch_entered:
            raise command.error(ErrorKinds.UNEXPECTED_ELSE,
                                f"Unexpected ELSE: IF at line {frame.opened_at + 1} already has an ELSE")

        if not frame.was_condition_true:
            frame.else_branch_entered = True
            self.cursor += 1
            return

        target = self.__scan_forward(command.line.index, StatementTypes.IF, StatementTypes.ENDIF)
        logger.debug("Skipping ELSE block")
        if target is None:
            self.cursor = len(self.lines)
        else:
            self.stacks.conditionals.pop()
            self.cursor = target + 1

    def __handle_endif(self, command: Command) -> None:
        if self.stacks.conditionals.is_empty():
            raise command.error(ErrorKinds.UNEXPECTED_ENDIF, "Unexpected ENDIF")
        self.stacks.conditionals.pop()
        self.cursor += 1

    def __handle_for(self, command: ForCommand) -> None:
        start = self.__evaluate_bound(command.start_expr)
        end = self.__evaluate_bound(command.end_expr)
        self.var_manager.assign(command.var_name, start)
        self.stacks.loops.push(ForFrame(command.line.index, var_name=command.var_name,
                                        start_value=start.data, end_value=end.data))
        self.cursor += 1

    def __evaluate_bound(self, expression: str) -> Value:
        value = evaluate_expression(expression, self.var_manager)
        if not value.is_number():
            raise InterpreterError(ErrorKinds.INVALID_EXPRESSION,
                                   f"FOR bound must be a number: {expression}")
        return value

    def __handle_end(self, command: Command) -> None:
        loop = self.stacks.loops.peek()
        for_frame = loop if isinstance(loop, ForFrame) else None
        block = self.stacks.blocks.peek()

        if for_frame is None and block is None:
            raise command.error(ErrorKinds.UNEXPECTED_END, "Unexpected END")

        # Not loop-first: a BEGIN block nested in a FOR body closes before the loop.
        # Whichever frame opened later is the innermost one.
        if for_frame is not None and (block is None or for_frame.opened_at > block.opened_at):
            self.__close_for(for_frame)
        else:
            self.stacks.blocks.pop()
            self.cursor += 1

    def __close_for(self, frame: ForFrame) -> None:
        current = self.var_manager.lookup(frame.var_name)
        if current is not None and current.is_number() and current.data < frame.end_value:
            self.var_manager.assign(frame.var_name, Value.number(current.data + 1))
            logger.debug(f"FOR {frame.var_name} = {current.data + 1}, re-entering at line {frame.reentry_line_index + 2}")
            self.cursor = frame.reentry_line_index + 1
        else:
            self.stacks.loops.pop()
            self.cursor += 1

    def __handle_while(self, command: WhileCommand) -> None:
        if evaluate_condition(command.condition, self.var_manager):
            self.stacks.loops.push(WhileFrame(command.line.index, condition_text=command.condition))
            self.cursor += 1
            return

        target = self.__scan_forward(command.line.index, StatementTypes.WHILE, StatementTypes.ENDWHILE)
        logger.debug("WHILE condition false, skipping loop body")
        self.cursor = len(self.lines) if target is None else target + 1

    def __handle_endwhile(self, command: Command) -> None:
        frame = self.stacks.loops.peek()
        if not isinstance(frame, WhileFrame):
            raise command.error(ErrorKinds.UNEXPECTED_ENDWHILE, "Unexpected ENDWHILE")
        self.stacks.loops.pop()
        if evaluate_condition(frame.condition_text, self.var_manager):
            self.cursor = frame.reentry_line_index
        else:
            self.cursor += 1

    def __handle_repeat(self, command: Command) -> None:
        frame = self.stacks.loops.peek()
        if isinstance(frame, RepeatFrame) and frame.reentry_line_index == command.line.index:
            logger.debug(f"REPEAT iteration {frame.iteration_count + 1}")
        else:
            self.stacks.loops.push(RepeatFrame(command.line.index))
        self.cursor += 1

    def __handle_until(self, command: UntilCommand) -> None:
        frame = self.stacks.loops.peek()
        if not isinstance(frame, RepeatFrame):
            raise command.error(ErrorKinds.UNEXPECTED_UNTIL, "Unexpected UNTIL")

        frame.iteration_count += 1
        if frame.iteration_count > self.max_repeat_iterations:
            raise command.error(ErrorKinds.RUNAWAY_LOOP,
                                f"Potential infinite loop detected in REPEAT-UNTIL "
                                f"(more than {self.max_repeat_iterations} iterations)")

        if evaluate_condition(command.condition, self.var_manager):
            self.stacks.loops.pop()
            self.cursor += 1
        else:
            # Frame stays on the stack so the count carries over
            self.cursor = frame.reentry_line_index

    # === Cursor helpers ===
    def __scan_forward(self, start: int, opener: StatementTypes, closer: StatementTypes,
                       stop_at: tuple[StatementTypes, ...] = ()) -> int | None:
        """Find the matching closer (or a stop keyword) at the same nesting depth, without executing."""
        depth = 0
        for index in range(start + 1, len(self.lines)):
            statement = classify_line(self.lines[index], self.comment_char)
            if statement == opener:
                depth += 1
            elif statement == closer:
                if depth == 0:
                    return index
                depth -= 1
            elif depth == 0 and statement in stop_at:
                return index
        return None

    def __advance_to_statement(self) -> None:
        while self.cursor < len(self.lines):
            statement = classify_line(self.lines[self.cursor], self.comment_char)
            if statement == StatementTypes.UNKNOWN:
                logger.warning(f"Ignoring unrecognised statement at line {self.cursor + 1}: "
                               f"'{self.lines[self.cursor].raw_text}'")
            elif statement != StatementTypes.BLANK:
                return
            self.cursor += 1
        self.__finish()

    def __finish(self) -> None:
        frame = self.stacks.innermost_unclosed()
        if frame is not None:
            raise InterpreterError(
                ErrorKinds.UNCLOSED_CONSTRUCT,
                f"Missing {CLOSING_KEYWORDS[frame.frame_type]} for {frame.frame_type}",
                frame.opened_at)
        self.finished = True
        logger.debug(f"Program finished after {self.statements_executed} statements")

    # === Results ===
    def get_variables(self) -> dict[str, Value]:
        return self.var_manager.snapshot()

    def get_output_lines(self) -> list[str]:
        return list(self.output_lines)


def create_default_interpreter() -> Interpreter:
    return Interpreter(comment_char=DEFAULT_COMMENT_CHAR,
                       max_repeat_iterations=DEFAULT_MAX_REPEAT_ITERATIONS)


OPENERS = {
    StatementTypes.BEGIN: FrameTypes.BLOCK,
    StatementTypes.IF: FrameTypes.CONDITIONAL,
    StatementTypes.FOR: FrameTypes.FOR,
    StatementTypes.WHILE: FrameTypes.WHILE,
    StatementTypes.REPEAT: FrameTypes.REPEAT,
}

CLOSERS = {
    StatementTypes.END: ((FrameTypes.FOR, FrameTypes.BLOCK), ErrorKinds.UNEXPECTED_END),
    StatementTypes.ENDIF: ((FrameTypes.CONDITIONAL,), ErrorKinds.UNEXPECTED_ENDIF),
    StatementTypes.ENDWHILE: ((FrameTypes.WHILE,), ErrorKinds.UNEXPECTED_ENDWHILE),
    StatementTypes.UNTIL: ((FrameTypes.REPEAT,), ErrorKinds.UNEXPECTED_UNTIL),
}


def validate_source(source: str, comment_char: str = DEFAULT_COMMENT_CHAR) -> list[RunError]:
    """Check statement shapes and construct nesting without executing anything."""
    errors: list[RunError] = []
    open_constructs: list[tuple[FrameTypes, int]] = []

    for line in split_lines(source):
        try:
            command = parse_command(line, comment_char)
        except InterpreterError as e:
            errors.append(e.to_run_error())
            continue
        if command is None:
            continue

        statement = command.command_type
        if statement in OPENERS:
            open_constructs.append((OPENERS[statement], line.index))
        elif statement == StatementTypes.ELSE:
            if not open_constructs or open_constructs[-1][0] != FrameTypes.CONDITIONAL:
                errors.append(command.error(ErrorKinds.UNEXPECTED_ELSE, "Unexpected ELSE").to_run_error())
        elif statement in CLOSERS:
            accepted, kind = CLOSERS[statement]
            if open_constructs and open_constructs[-1][0] in accepted:
                open_constructs.pop()
            else:
                errors.append(command.error(kind, f"Unexpected {line.keyword}").to_run_error())

    for frame_type, index in reversed(open_constructs):
        errors.append(InterpreterError(ErrorKinds.UNCLOSED_CONSTRUCT,
                                       f"Missing {CLOSING_KEYWORDS[frame_type]} for {frame_type}",
                                       index).to_run_error())
    logger.debug(f"Validation found {len(errors)} problems")
    return errors
