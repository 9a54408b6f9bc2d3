from __future__ import annotations

import re
import logging

from pseudorun.modules.MyEnums import (StatementTypes, ErrorKinds, OUTPUT_KEYWORDS,
                                       CONDITION_KEYWORDS, RESERVED_WORDS)
from pseudorun.modules.InterpreterErrors import InterpreterError
from pseudorun.modules.LineSplitter import Line
from pseudorun.modules.VariableManager import VarManager

logger = logging.getLogger(__name__)

BARE_KEYWORDS = {
    "BEGIN": StatementTypes.BEGIN,
    "END": StatementTypes.END,
    "ELSE": StatementTypes.ELSE,
    "ENDIF": StatementTypes.ENDIF,
    "ENDWHILE": StatementTypes.ENDWHILE,
    "REPEAT": StatementTypes.REPEAT,
}

HEADER_KEYWORDS = {
    "IF": StatementTypes.IF,
    "FOR": StatementTypes.FOR,
    "WHILE": StatementTypes.WHILE,
    "UNTIL": StatementTypes.UNTIL,
}


def classify_line(line: Line, comment_char: str | None = None) -> StatementTypes:
    """Decide which statement a line holds, in the dispatch order of the language."""
    if line.is_blank(comment_char):
        return StatementTypes.BLANK
    keyword = line.keyword
    if keyword == "BEGIN":
        return StatementTypes.BEGIN
    if keyword in OUTPUT_KEYWORDS:
        return StatementTypes.OUTPUT
    if keyword in CONDITION_KEYWORDS:
        return HEADER_KEYWORDS[keyword]
    if '=' in line.raw_text:
        return StatementTypes.ASSIGN
    return BARE_KEYWORDS.get(keyword, StatementTypes.UNKNOWN)


class Command:
    """Base command class"""
    REGEX: str = ""
    TYPE: StatementTypes = None

    def __init__(self, line: Line):
        self.command_type = self.TYPE
        self.line = line
        self.parse_params()

    def __repr__(self):
        return f"({self.command_type}: '{self.line.raw_text}')"

    def parse_params(self):
        pass

    @classmethod
    def match_regex(cls, text: str) -> re.Match[str] | None:
        return re.match(cls.REGEX, text, re.IGNORECASE | re.VERBOSE)

    def error(self, kind: ErrorKinds, detail: str) -> InterpreterError:
        return InterpreterError(kind, detail, self.line.index)


class BareCommand(Command):
    """BEGIN, END, ELSE, ENDIF, ENDWHILE, REPEAT: keyword only"""

    def __init__(self, line: Line, command_type: StatementTypes):
        self.TYPE = command_type
        super().__init__(line)


class OutputCommand(Command):
    TYPE = StatementTypes.OUTPUT

    def parse_params(self):
        self.text: str = self.line.arguments


class AssignCommand(Command):
    REGEX = r"""^\s*(?P<name>[^=]*?)\s*=(?!=)\s*(?P<expr>.*?)\s*$"""
    TYPE = StatementTypes.ASSIGN

    def parse_params(self):
        match = self.match_regex(self.line.raw_text)
        if not match:
            raise self.error(ErrorKinds.INVALID_EXPRESSION, f"Invalid assignment: {self.line.raw_text}")
        name = match.group('name')
        if not VarManager.validate_variable_name(name) or name.upper() in RESERVED_WORDS:
            raise self.error(ErrorKinds.INVALID_IDENTIFIER, f"Invalid variable name: {name}")
        self.var_name: str = name.upper()
        self.expression: str = match.group('expr')
        if not self.expression:
            raise self.error(ErrorKinds.INVALID_EXPRESSION, f"Missing expression for '{self.var_name}'")


class IfCommand(Command):
    REGEX = r"""^IF \s+ (?P<cond>.+?) (?:\s+THEN)? \s*$"""
    TYPE = StatementTypes.IF

    def parse_params(self):
        match = self.match_regex(self.line.raw_text)
        if not match:
            raise self.error(ErrorKinds.INVALID_EXPRESSION, f"Invalid IF statement: {self.line.raw_text}")
        self.condition: str = match.group('cond')


class ForCommand(Command):
    REGEX = r"""^FOR \s+ (?P<var>\S+?) \s*=\s* (?P<start>.+?) \s+TO\s+ (?P<end>.+?) (?:\s+DO)? \s*$"""
    TYPE = StatementTypes.FOR

    def parse_params(self):
        match = self.match_regex(self.line.raw_text)
        if not match:
            raise self.error(ErrorKinds.INVALID_EXPRESSION, f"Invalid FOR statement: {self.line.raw_text}")
        name = match.group('var')
        if not VarManager.validate_variable_name(name) or name.upper() in RESERVED_WORDS:
            raise self.error(ErrorKinds.INVALID_IDENTIFIER, f"Invalid variable name: {name}")
        self.var_name: str = name.upper()
        self.start_expr: str = match.group('start')
        self.end_expr: str = match.group('end')


class WhileCommand(Command):
    REGEX = r"""^WHILE \s+ (?P<cond>.+?) (?:\s+DO)? \s*$"""
    TYPE = StatementTypes.WHILE

    def parse_params(self):
        match = self.match_regex(self.line.raw_text)
        if not match:
            raise self.error(ErrorKinds.INVALID_EXPRESSION, f"Invalid WHILE statement: {self.line.raw_text}")
        self.condition: str = match.group('cond')


class UntilCommand(Command):
    REGEX = r"""^UNTIL \s+ (?P<cond>.+?) \s*$"""
    TYPE = StatementTypes.UNTIL

    def parse_params(self):
        match = self.match_regex(self.line.raw_text)
        if not match:
            raise self.error(ErrorKinds.INVALID_EXPRESSION, f"Invalid UNTIL statement: {self.line.raw_text}")
        self.condition: str = match.group('cond')


COMMAND_CLASSES = {
    StatementTypes.OUTPUT: OutputCommand,
    StatementTypes.ASSIGN: AssignCommand,
    StatementTypes.IF: IfCommand,
    StatementTypes.FOR: ForCommand,
    StatementTypes.WHILE: WhileCommand,
    StatementTypes.UNTIL: UntilCommand,
}


def parse_command(line: Line, comment_char: str | None = None) -> Command | None:
    """Build the command for one line; None for blank and unrecognised lines."""
    command_type = classify_line(line, comment_char)
    if command_type == StatementTypes.BLANK:
        return None
    if command_type == StatementTypes.UNKNOWN:
        logger.warning(f"Ignoring unrecognised statement at line {line.index + 1}: '{line.raw_text}'")
        return None
    if command_type in COMMAND_CLASSES:
        return COMMAND_CLASSES[command_type](line)
    return BareCommand(line, command_type)
