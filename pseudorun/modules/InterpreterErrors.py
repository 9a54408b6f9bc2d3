from __future__ import annotations

from dataclasses import dataclass

from pseudorun.modules.MyEnums import ErrorKinds


class InterpreterError(Exception):
    """Fatal run error raised by the resolver and its evaluators.

    ``line_index`` is 0-based; messages report it 1-based.
    """

    def __init__(self, kind: ErrorKinds, detail: str, line_index: int | None = None):
        self.kind = kind
        self.detail = detail
        self.line_index = line_index
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.line_index is None:
            return f"{self.kind}: {self.detail}"
        return f"{self.kind}: {self.detail} at line {self.line_index + 1}"

    def at_line(self, line_index: int) -> InterpreterError:
        """Attach a line index if the raising helper did not know it."""
        if self.line_index is None:
            self.line_index = line_index
            self.args = (self.message,)
        return self

    def to_run_error(self) -> RunError:
        return RunError(kind=self.kind, message=self.message,
                        line_index=self.line_index if self.line_index is not None else -1)


@dataclass(frozen=True)
class RunError:
    kind: ErrorKinds
    message: str
    line_index: int

    @property
    def line_number(self) -> int:
        return self.line_index + 1

    def to_dict(self) -> dict:
        return {'kind': str(self.kind), 'message': self.message, 'line': self.line_number}
