# pgen/diag.py
"""문법 파서와 코드 생성기가 함께 쓰는 진단 유틸.

- `_eprint`       : `[DEBUG]` / `[WARN]` 트레이스용 stderr 출력
- `line_col`      : 절대 위치 -> (line, col), 둘 다 1-based
- `caret_snippet` : `pos`가 있는 소스 한 줄 + 그 아래 캐럿(^)
- `grammar_error` : 잘못된 문법에 대해 던질 SyntaxError 생성
"""

from __future__ import annotations
import sys
from typing import Tuple


def _eprint(*args, **kw) -> None:
    print(*args, file=sys.stderr, **kw)


def _line_bounds(src: str, pos: int) -> Tuple[int, int]:
    """pos를 포함하는 줄의 [start, end)"""
    start = src.rfind("\n", 0, pos)
    if start == -1:
        start = 0
    else:
        start += 1
    end = src.find("\n", pos)
    if end == -1:
        end = len(src)
    return start, end


def line_col(src: str, pos: int) -> Tuple[int, int]:
    start, _ = _line_bounds(src, pos)
    line = src.count("\n", 0, start) + 1
    return line, (pos - start) + 1


def caret_snippet(src: str, pos: int) -> str:
    start, end = _line_bounds(src, pos)
    line_text = src[start:end].rstrip("\r")
    caret = " " * (pos - start) + "^"
    return f"{line_text}\n{caret}"


def grammar_error(src: str, pos: int, msg: str) -> SyntaxError:
    line, col = line_col(src, pos)
    return SyntaxError(f"{msg} at {line}:{col}\n{caret_snippet(src, pos)}")
