from __future__ import annotations

import re
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Line:
    index: int
    raw_text: str
    normalized_text: str

    @property
    def keyword(self) -> str:
        """First word of the upper-cased line, '' for blank lines."""
        parts = self.normalized_text.split(maxsplit=1)
        return parts[0] if parts else ""

    @property
    def arguments(self) -> str:
        """Raw (case-preserved) text after the keyword."""
        parts = self.raw_text.split(maxsplit=1)
        return parts[1].strip() if len(parts) > 1 else ""

    def is_blank(self, comment_char: str | None = None) -> bool:
        if not self.raw_text:
            return True
        return bool(comment_char) and self.raw_text.startswith(comment_char)


def split_lines(source: str) -> list[Line]:
    """Split source text into trimmed lines, keeping blank ones so indices match the editor."""
    if not source:
        return []
    lines = []
    for index, raw in enumerate(source.splitlines()):
        text = raw.strip()
        lines.append(Line(index=index, raw_text=text, normalized_text=re.sub(r'\s+', ' ', text).upper()))
    logger.debug(f"Split source into {len(lines)} lines")
    return lines
