from __future__ import annotations
import contextlib
from typing import Iterator, List


class Printer:
    """`indent()` 중첩을 따라 들여쓰기가 정해지는 줄 버퍼."""

    def __init__(self, unit: str = "    "):
        self.unit = unit
        self.level = 0
        self.lines: List[str] = []

    @contextlib.contextmanager
    def indent(self) -> Iterator[None]:
        self.level += 1
        try:
            yield
        finally:
            self.level -= 1

    def print(self, line: str = "") -> None:
        if not line:
            self.lines.append("")
        else:
            self.lines.append(self.unit * self.level + line)

    def printblock(self, text: str) -> None:
        for line in text.strip("\n").splitlines():
            self.print(line)

    def getvalue(self) -> str:
        return "\n".join(self.lines) + "\n"
