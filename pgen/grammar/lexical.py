# pgen/grammar/lexical.py
"""문법 표기용 어휘 프리미티브.

모든 스캐너는 `Cursor` 위에서 동작한다: 불변 텍스트에 대한 읽기 위치(`pos`)와
한계(`end`). 스캐너는 매칭에 성공하면 `pos`를 그 뒤로 옮기고 결과를 돌려주며,
실패하면 None/False를 돌려주고 `pos`는 건드리지 않는다.
ASCII 문자 분류만 인식한다.
"""

from __future__ import annotations
from typing import Optional

_WHITESPACE = " \t\r\n"
_BLANKS = " \t"

# 단순 이스케이프: 이스케이프 문자 -> 실제 문자
_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "t": "\t",
    "n": "\n",
    "v": "\v",
    "f": "\f",
    "r": "\r",
}

# 문자 -> 이스케이프 시퀀스 (_ESCAPES의 역 + 따옴표/역슬래시)
_REVERSE_ESCAPES = {v: "\\" + k for k, v in _ESCAPES.items()}
_REVERSE_ESCAPES['"'] = '\\"'
_REVERSE_ESCAPES["\\"] = "\\\\"


# ---------- 문자 분류 ----------

def is_whitespace(ch: str) -> bool:
    return ch != "" and ch in _WHITESPACE


def is_identifier_char(ch: str) -> bool:
    return (
        ("a" <= ch <= "z")
        or ("A" <= ch <= "Z")
        or ("0" <= ch <= "9")
        or ch == "_"
    )


def is_hex_digit(ch: str) -> bool:
    return ("0" <= ch <= "9") or ("a" <= ch <= "f") or ("A" <= ch <= "F")


def hex_value(ch: str) -> int:
    """16진 숫자 1개의 값; 그 외 문자는 0으로 본다."""
    if not is_hex_digit(ch):
        return 0
    return int(ch, 16)


def escape_string(text: str) -> str:
    """따옴표 문자열 이스케이프의 역변환 (양쪽 따옴표는 붙이지 않음)."""
    return "".join(_REVERSE_ESCAPES.get(c, c) for c in text)


# ---------- 커서 ----------

class Cursor:
    def __init__(self, text: str, pos: int = 0, end: Optional[int] = None):
        self.text = text
        self.pos = pos
        self.end = len(text) if end is None else end

    def __repr__(self) -> str:
        return f"Cursor(pos={self.pos}, end={self.end})"

    def copy(self) -> "Cursor":
        return Cursor(self.text, self.pos, self.end)

    def eof(self) -> bool:
        return self.pos >= self.end

    def peek(self) -> Optional[str]:
        if self.eof():
            return None
        return self.text[self.pos]

    def skip_whitespace(self) -> None:
        while not self.eof() and is_whitespace(self.text[self.pos]):
            self.pos += 1

    def skip_blanks(self) -> None:
        """공백/탭만 건너뛴다; 줄바꿈은 남긴다."""
        while not self.eof() and self.text[self.pos] in _BLANKS:
            self.pos += 1

    def match_newline(self) -> bool:
        if self.match_literal("\r\n"):
            return True
        return self.match_literal("\n")

    def match_blank_line(self) -> bool:
        save = self.pos
        if self.match_newline() and self.match_newline():
            return True
        self.pos = save
        return False

    def match_literal(self, lit: str) -> bool:
        if self.eof():
            return False
        if self.end - self.pos < len(lit):
            return False
        if not self.text.startswith(lit, self.pos):
            return False
        self.pos += len(lit)
        return True

    def match_identifier(self) -> Optional[str]:
        start = self.pos
        while not self.eof() and is_identifier_char(self.text[self.pos]):
            self.pos += 1
        if self.pos == start:
            return None
        return self.text[start:self.pos]

    def match_quoted_string(self) -> Optional[str]:
        """이스케이프를 포함한 `"..."`. 닫는 따옴표를 찾았을 때만 커서가 움직인다."""
        i = self.pos
        end = self.end
        if i >= end or self.text[i] != '"':
            return None
        i += 1
        out = []
        while i < end:
            c = self.text[i]
            if c == '"':
                self.pos = i + 1
                return "".join(out)
            if c != "\\":
                out.append(c)
                i += 1
                continue

            # 이스케이프 시퀀스
            i += 1
            if i >= end:
                return None
            c = self.text[i]
            if c == "x":
                i += 1
                if i + 2 > end:
                    return None
                hi, lo = self.text[i], self.text[i + 1]
                # 주의: hi * 16 + lo 가 아니라 (hi << 8) | lo 로 합친다.
                out.append(chr(hex_value(hi) << 8 | hex_value(lo)))
                i += 2
                continue
            if c in ('"', "\\"):
                out.append(c)
            elif c in _ESCAPES:
                out.append(_ESCAPES[c])
            else:
                # 모르는 이스케이프: 역슬래시 하나만 남기고 뒤 문자는 버린다
                out.append("\\")
            i += 1
        return None
