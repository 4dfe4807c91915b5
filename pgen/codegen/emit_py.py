# pgen/codegen/emit_py.py
"""Python Code Emit (단일 독립 모듈 생성; 런타임 포함).

개요
----
- CodegenIR을 받아 Python 소스 코드를 **문자열로** 생성한다.
- 방출되는 모듈은 표준 라이브러리만 필요하며:
  * `IdentifierType` (IntEnum, 0 = NONE)과 `IDENTIFIER_NAMES` 테이블
  * 런타임: `ParsedType`, `Cursor`, `Parsed` (find/get/size/flatten)
  * 디버그 렌더러: `generate_graphviz`, `generate_tree`, `ansi_colored`
  * 룰/그룹마다 `parse_<name>(s, e)`
- namespace를 주면 모듈 본문을 팩토리 함수로 감싸고, 그 이름으로
  `types.SimpleNamespace`를 공개한다.

생성된 파스 함수는 `Cursor`(성공할 때만 이동)와 끝 인덱스 `e`를 받아
`Parsed` 또는 None을 돌려준다.

들여쓰기
--------
- 대안 하나는 1회짜리 `while True:` 안에 **평평하게** 방출된다.
- 필수 항목이 실패하면 `break`로 다음 대안으로 빠진다.
- 따라서 룰이 길어져도 들여쓰기 깊이는 늘지 않는다
  (CPython의 블록 중첩 한계 ~100에 걸리지 않음).
"""

from __future__ import annotations
import keyword
from typing import List
import regex as re
from .ir import (
    CodegenIR, ParseFunction, Stmt, Attempt, Commit, Call,
    CALL_LITERAL, CALL_NEGATE, NODE_GROUP,
)
from .printer import Printer

_PY_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_HEADER = "# This file is generated by pgen; do not edit."

_RUNTIME = r'''
class ParsedType(enum.Enum):
    LITERAL = "literal"
    IDENTIFIER = "identifier"
    GROUP = "group"


class Cursor:
    """입력 텍스트의 읽기 위치. 끝 인덱스는 따로 넘긴다."""

    __slots__ = ("text", "pos")

    def __init__(self, text: str, pos: int = 0):
        self.text = text
        self.pos = pos

    def __repr__(self) -> str:
        return "Cursor(pos=%d)" % self.pos

    def copy(self) -> "Cursor":
        return Cursor(self.text, self.pos)


class Parsed:
    __slots__ = ("type", "identifier", "literal", "children", "custom_data")

    def __init__(self, type: ParsedType, identifier: IdentifierType = IdentifierType.NONE, literal: str = ""):
        self.type = type
        self.identifier = identifier
        self.literal = literal
        self.children = []
        self.custom_data = None

    def __repr__(self) -> str:
        if self.type is ParsedType.LITERAL:
            return "Parsed(%r)" % self.literal
        return "Parsed(%s, children=%d)" % (IDENTIFIER_NAMES[self.identifier], len(self.children))

    def find(self, identifier: IdentifierType) -> "Optional[Parsed]":
        for v in self.children:
            if v.identifier == identifier:
                return v
        return None

    def size(self) -> int:
        return len(self.children)

    def get(self, index: int, debug_id: Optional[IdentifierType] = None) -> "Parsed":
        assert index < len(self.children)
        v = self.children[index]
        assert debug_id is None or v.identifier == debug_id
        return v

    def flatten(self) -> str:
        if self.type is ParsedType.LITERAL:
            return self.literal
        return "".join(v.flatten() for v in self.children)


def _parse_literal(s: Cursor, e: int, lit: str) -> Optional[Parsed]:
    if s.pos >= e:
        return None
    if e - s.pos < len(lit) or not s.text.startswith(lit, s.pos):
        return None
    s.pos += len(lit)
    return Parsed(ParsedType.LITERAL, literal=lit)


def _parse_negate_literal(s: Cursor, e: int, lit: str) -> Optional[Parsed]:
    if s.pos >= e:
        return None
    if e - s.pos >= len(lit) and s.text.startswith(lit, s.pos):
        return None
    v = Parsed(ParsedType.LITERAL, literal=s.text[s.pos])
    s.pos += 1
    return v


# ---------- 디버그 렌더러 ----------

_LABEL_ESCAPES = {
    '"': '\\"', "\\": "\\\\", "\a": "\\a", "\b": "\\b", "\t": "\\t",
    "\n": "\\n", "\v": "\\v", "\f": "\\f", "\r": "\\r",
}


def _escape_label(text: str) -> str:
    return "".join(_LABEL_ESCAPES.get(c, c) for c in text)


def _collect_nodes(p: Parsed) -> List[tuple]:
    """(node, 부모 핸들)의 전위 순회 아레나; 노드의 핸들 = 인덱스."""
    arena = []
    stack = [(p, -1)]
    while stack:
        node, parent = stack.pop()
        handle = len(arena)
        arena.append((node, parent))
        for child in reversed(node.children):
            stack.append((child, handle))
    return arena


def generate_graphviz(p: Parsed) -> str:
    arena = _collect_nodes(p)
    out = ["digraph g {\n"]

    for handle, (node, _parent) in enumerate(arena):
        if node.type is ParsedType.LITERAL:
            label, shape = node.literal, "ellipse"
        elif node.type is ParsedType.IDENTIFIER:
            label, shape = IDENTIFIER_NAMES[node.identifier], "box"
        else:
            label, shape = IDENTIFIER_NAMES[node.identifier], "hexagon"
        out.append('\ta%d[label="%s" shape=%s];\n' % (handle + 1, _escape_label(label), shape))
    out.append("\n")

    for handle, (_node, parent) in enumerate(arena):
        if parent >= 0:
            out.append("\ta%d -> a%d\n" % (parent + 1, handle + 1))
    out.append("\n")

    leaves = "".join(
        " a%d" % (handle + 1)
        for handle, (node, _parent) in enumerate(arena)
        if node.type is ParsedType.LITERAL
    )
    out.append("\t{ rank=same;%s }\n" % leaves)
    out.append("}\n")
    return "".join(out)


def generate_tree(p: Parsed, align: int = 0) -> str:
    if p.type is ParsedType.LITERAL:
        return " " * align + "'" + p.literal + "'\n"
    out = [" " * align + IDENTIFIER_NAMES[p.identifier] + "\n"]
    for v in p.children:
        out.append(generate_tree(v, align + 1))
    return "".join(out)


def ansi_colored(p: Parsed, colors: Dict[str, str], prev_color: str = "") -> str:
    """`p`를 평탄화하되 이름 있는 노드는 그 색으로 감싸고, 끝나면 바깥 색으로 되돌린다."""
    color = colors.get(IDENTIFIER_NAMES[p.identifier], "")
    out = [color]
    if p.type is ParsedType.LITERAL:
        out.append(p.literal)
    else:
        for v in p.children:
            out.append(ansi_colored(v, colors, color or prev_color))
    if color:
        out.append(prev_color)
    return "".join(out)
'''

_RUNTIME_API = [
    "IdentifierType",
    "IDENTIFIER_NAMES",
    "ParsedType",
    "Cursor",
    "Parsed",
    "generate_graphviz",
    "generate_tree",
    "ansi_colored",
]


# ---------- 이름 ----------

def py_name(declared: str) -> str:
    """`expr_$g0` -> `expr__g0`"""
    return declared.replace("$", "_")


def _func_name(declared: str) -> str:
    return "parse_" + py_name(declared)


def _tag_name(declared: str) -> str:
    return "IdentifierType.i_" + py_name(declared)


def _preflight_check(ir: CodegenIR, namespace: str) -> None:
    seen = {}
    for declared in ir.identifiers[1:]:
        name = py_name(declared)
        if not _PY_IDENT_RE.fullmatch(_func_name(declared)):
            raise ValueError(f"emit_py: {declared!r} is not usable as a Python identifier")
        if name in seen:
            raise ValueError(f"emit_py: {declared!r} and {seen[name]!r} both map to '{name}'")
        seen[name] = declared
    if namespace and (not _PY_IDENT_RE.fullmatch(namespace) or keyword.iskeyword(namespace)):
        raise ValueError(f"emit_py: invalid namespace {namespace!r}")


# ---------- 렌더링 ----------

def _call_expr(call: Call) -> str:
    if call.kind == CALL_LITERAL:
        return f"_parse_literal(sc, e, {call.arg!r})"
    if call.kind == CALL_NEGATE:
        return f"_parse_negate_literal(sc, e, {call.arg!r})"
    return f"{_func_name(call.arg)}(sc, e)"


def _emit_stmts(p: Printer, stmts: List[Stmt]) -> None:
    """문장들을 한 레벨에 평평하게 출력; 필수 호출이 실패하면 대안 밖으로 break."""
    for stmt in stmts:
        if isinstance(stmt, Commit):
            p.print("s.pos = sc.pos")
            p.print("result.children = children")
            p.print("return result")
            continue

        assert isinstance(stmt, Attempt)
        call = _call_expr(stmt.call)
        p.print(f"v = {call}")
        if stmt.body:
            p.print("if v is None:")
            with p.indent():
                p.print("break")
            _emit_append(p, call, stmt.repeat)
            _emit_stmts(p, stmt.body)
        else:
            p.print("if v is not None:")
            with p.indent():
                _emit_append(p, call, stmt.repeat)


def _emit_append(p: Printer, call: str, repeat: bool) -> None:
    p.print("children.append(v)")
    if repeat:
        p.print("while True:")
        with p.indent():
            p.print("mark = sc.pos")
            p.print(f"v = {call}")
            p.print("if v is None or sc.pos == mark:")
            with p.indent():
                p.print("break")
            p.print("children.append(v)")


def _emit_function(p: Printer, fn: ParseFunction) -> None:
    node_type = "ParsedType.GROUP" if fn.node_type == NODE_GROUP else "ParsedType.IDENTIFIER"
    p.print(f"# Rule: {fn.source}")
    p.print(f"def {_func_name(fn.name)}(s: Cursor, e: int) -> Optional[Parsed]:")
    with p.indent():
        p.print(f"result = Parsed({node_type}, {_tag_name(fn.name)})")
        for alt in fn.alternatives:
            p.print()
            p.print("sc = s.copy()")
            p.print("children = []")
            p.print("while True:  # 1회 실행")
            with p.indent():
                _emit_stmts(p, alt.body)
        p.print()
        p.print("return None")


def _emit_body(p: Printer, ir: CodegenIR, exports_var: str) -> None:
    p.print("class IdentifierType(enum.IntEnum):")
    with p.indent():
        p.print("NONE = 0")
        for i, declared in enumerate(ir.identifiers[1:], 1):
            p.print(f"i_{py_name(declared)} = {i}")
    p.print()
    p.print()
    p.print("IDENTIFIER_NAMES = (")
    with p.indent():
        for declared in ir.identifiers:
            p.print(f"{declared!r},")
    p.print(")")
    p.print()
    p.printblock(_RUNTIME)
    p.print()
    p.print()

    p.print(f"{exports_var} = [")
    with p.indent():
        for name in _RUNTIME_API:
            p.print(f"{name!r},")
        for fn in ir.functions:
            p.print(f"{_func_name(fn.name)!r},")
    p.print("]")

    for fn in ir.functions:
        p.print()
        p.print()
        _emit_function(p, fn)


def emit_py_to_string(ir: CodegenIR, namespace: str = "") -> str:
    _preflight_check(ir, namespace)

    p = Printer("    ")
    p.print(_HEADER)
    p.print()
    p.print("import enum")
    if namespace:
        p.print("import types")
    p.print("from typing import Dict, List, Optional")
    p.print()

    if not namespace:
        p.print()
        _emit_body(p, ir, "__all__")
        return p.getvalue()

    p.print(f"__all__ = [{namespace!r}]")
    p.print()
    p.print()
    p.print(f"def _make_{namespace}():")
    with p.indent():
        _emit_body(p, ir, "exported")
        p.print()
        p.print("scope = locals()")
        p.print("return types.SimpleNamespace(**{name: scope[name] for name in exported})")
    p.print()
    p.print()
    p.print(f"{namespace} = _make_{namespace}()")
    return p.getvalue()
