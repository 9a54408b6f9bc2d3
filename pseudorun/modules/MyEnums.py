from enum import StrEnum

class StatementTypes(StrEnum):
    BEGIN = "BEGIN"
    END = "END"
    OUTPUT = "OUTPUT"
    ASSIGN = "ASSIGN"
    IF = "IF"
    ELSE = "ELSE"
    ENDIF = "ENDIF"
    FOR = "FOR"
    WHILE = "WHILE"
    ENDWHILE = "ENDWHILE"
    REPEAT = "REPEAT"
    UNTIL = "UNTIL"
    BLANK = "BLANK"
    UNKNOWN = "UNKNOWN"

class ConditionTypes(StrEnum):
    EQUAL = "=="
    NOT_EQUAL = "!="
    GREATER_THAN = ">"
    LESS_THAN = "<"

class ComparisonOperators(StrEnum):
    EQUAL = "=="
    NOT_EQUAL = "!="
    GREATER_EQUAL = ">="
    LESS_EQUAL = "<="
    GREATER_THAN = ">"
    LESS_THAN = "<"

class MathOperators(StrEnum):
    PLUS = '+'
    MINUS = '-'
    MUL = '*'
    DIV = '/'

class ValueTypes(StrEnum):
    NUMBER = "number"
    BOOLEAN = "boolean"
    TEXT = "string"

class FrameTypes(StrEnum):
    BLOCK = "BEGIN"
    CONDITIONAL = "IF"
    FOR = "FOR"
    WHILE = "WHILE"
    REPEAT = "REPEAT"

class ErrorKinds(StrEnum):
    INVALID_IDENTIFIER = "InvalidIdentifier"
    TYPE_MISMATCH = "TypeMismatch"
    INVALID_EXPRESSION = "InvalidExpression"
    UNKNOWN_OPERATOR = "UnknownOperator"
    UNEXPECTED_ELSE = "UnexpectedElse"
    UNEXPECTED_ENDIF = "UnexpectedEndif"
    UNEXPECTED_END = "UnexpectedEnd"
    UNEXPECTED_ENDWHILE = "UnexpectedEndwhile"
    UNEXPECTED_UNTIL = "UnexpectedUntil"
    RUNAWAY_LOOP = "RunawayLoop"
    UNCLOSED_CONSTRUCT = "UnclosedConstruct"

class StepStates(StrEnum):
    READY = "ready"
    PAUSED = "paused"
    FINISHED = "finished"
    ERROR = "error"

OUTPUT_KEYWORDS = ("OUTPUT", "DISPLAY", "SHOW")
CONDITION_KEYWORDS = ("IF", "WHILE", "UNTIL", "FOR")
RESERVED_WORDS = frozenset(
    [t.value for t in StatementTypes if t not in (StatementTypes.ASSIGN, StatementTypes.BLANK, StatementTypes.UNKNOWN)]
    + list(OUTPUT_KEYWORDS) + ["THEN", "TO", "DO", "TRUE", "FALSE"]
)
