from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pseudorun.modules.MyEnums import FrameTypes

logger = logging.getLogger(__name__)


@dataclass
class Frame:
    opened_at: int

    TYPE = None

    @property
    def frame_type(self) -> FrameTypes:
        return self.TYPE


@dataclass
class BlockFrame(Frame):
    TYPE = FrameTypes.BLOCK


@dataclass
class ConditionalFrame(Frame):
    was_condition_true: bool = False
    else_branch_entered: bool = False

    TYPE = FrameTypes.CONDITIONAL


@dataclass
class ForFrame(Frame):
    var_name: str = ""
    start_value: float = 0
    end_value: float = 0

    TYPE = FrameTypes.FOR

    @property
    def reentry_line_index(self) -> int:
        return self.opened_at


@dataclass
class WhileFrame(Frame):
    condition_text: str = ""

    TYPE = FrameTypes.WHILE

    @property
    def reentry_line_index(self) -> int:
        return self.opened_at


@dataclass
class RepeatFrame(Frame):
    iteration_count: int = 0

    TYPE = FrameTypes.REPEAT

    @property
    def reentry_line_index(self) -> int:
        return self.opened_at


class StackManager():
    """One LIFO stack of frames, indexed by nesting depth."""

    def __init__(self, name: str):
        self.name = name
        self.stack: list[Frame] = []

    def push(self, frame: Frame) -> Frame:
        self.stack.append(frame)
        logger.debug(f"[{self.name}] push {frame.frame_type} opened at line {frame.opened_at + 1} (depth {len(self.stack)})")
        return frame

    def pop(self) -> Frame:
        if not self.stack:
            raise IndexError(f"{self.name} stack underflow")
        frame = self.stack.pop()
        logger.debug(f"[{self.name}] pop {frame.frame_type} opened at line {frame.opened_at + 1} (depth {len(self.stack)})")
        return frame

    def peek(self) -> Frame | None:
        return self.stack[-1] if self.stack else None

    def is_empty(self) -> bool:
        return not self.stack

    def __len__(self) -> int:
        return len(self.stack)


@dataclass
class FrameStacks:
    """Block, conditional and loop stacks of one run."""
    blocks: StackManager = field(default_factory=lambda: StackManager("block"))
    conditionals: StackManager = field(default_factory=lambda: StackManager("if"))
    loops: StackManager = field(default_factory=lambda: StackManager("loop"))

    def innermost_unclosed(self) -> Frame | None:
        """The most recently opened frame still on any stack."""
        candidates = [s.peek() for s in (self.blocks, self.conditionals, self.loops) if not s.is_empty()]
        if not candidates:
            return None
        return max(candidates, key=lambda f: f.opened_at)
