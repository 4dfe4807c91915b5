"""pgen 문법 파서
- rule      : IDENT ":" item+ (빈 줄 | EOF)
- item      : "quoted" | IDENT | "(" item+ ")" | "|" | "*" | "+" | "?" | "^"
- comments  : "#" ... 줄 끝까지, 룰과 룰 사이에서만

후위 표시는 바로 앞 항목에 접어 넣는다 (`_SeqBuilder` 참고).
그룹 이름은 `<enclosing>_$g<n>`; 카운터 `n`은 감싸는 시퀀스 소유이며
반환값으로 호출 사이를 넘겨 다닌다.

잘못된 문법은 line:col과 캐럿 스니펫을 담은 SyntaxError를 던진다.
"""

from __future__ import annotations
from dataclasses import replace
from typing import List, Optional, Tuple
from .ast import (
    Rule, RuleItem, RuleItemGroup, RuleItemType, MODIFIERS,
)
from .lexical import Cursor
from ..diag import _eprint, grammar_error

_OPERATORS = (
    ("|", RuleItemType.OR),
    ("*", RuleItemType.ZERO_OR_MORE),
    ("+", RuleItemType.ONE_OR_MORE),
    ("?", RuleItemType.ZERO_OR_ONE),
    ("^", RuleItemType.NEGATE),
)

_SYMBOL_OF = {kind: sym for sym, kind in _OPERATORS}


def _describe(cur: Cursor) -> str:
    ch = cur.peek()
    return "end of input" if ch is None else repr(ch)


class _SeqBuilder:
    """룰/그룹 본문 하나를 모은다. 마지막 항목이 후위 표시가 고쳐 쓰는
    열린 슬롯이다."""

    def __init__(self) -> None:
        self.items: List[RuleItem] = []

    def add(self, item: RuleItem, cur: Cursor, pos: int) -> None:
        if item.type not in MODIFIERS:
            self.items.append(item)
            return

        sym = _SYMBOL_OF[item.type]
        last = self.items[-1] if self.items else None
        if last is None or last.type == RuleItemType.OR:
            raise grammar_error(cur.text, pos, f"'{sym}' must follow a literal, identifier or group")

        if item.type == RuleItemType.ZERO_OR_MORE:
            last = replace(last, optional=True, multiple=True)
        elif item.type == RuleItemType.ONE_OR_MORE:
            last = replace(last, multiple=True)
        elif item.type == RuleItemType.ZERO_OR_ONE:
            last = replace(last, optional=True)
        else:
            if last.type != RuleItemType.LITERAL:
                raise grammar_error(cur.text, pos, f"'^' (negation) applies only to a literal, not to {last.type}")
            last = replace(last, negate=True)
        self.items[-1] = last

    def build(self) -> Tuple[RuleItem, ...]:
        return tuple(self.items)


def parse_rule_item(cur: Cursor, enclosing_name: str, group_counter: int) -> Optional[Tuple[RuleItem, int]]:
    """
    커서 위치의 항목 1개. (item, next_group_counter)를 돌려주며, 입력 끝이거나
    어떤 항목도 시작하지 않는 문자면 None.
    """
    if cur.eof():
        return None

    text = cur.match_quoted_string()
    if text is not None:
        return RuleItem(RuleItemType.LITERAL, literal=text), group_counter

    name = cur.match_identifier()
    if name is not None:
        return RuleItem(RuleItemType.IDENTIFIER, identifier=name), group_counter

    parsed = parse_group(cur, enclosing_name, group_counter)
    if parsed is not None:
        g, group_counter = parsed
        return RuleItem(RuleItemType.GROUP, group=g), group_counter

    for sym, kind in _OPERATORS:
        if cur.match_literal(sym):
            return RuleItem(kind), group_counter

    return None


def parse_group(cur: Cursor, enclosing_name: str, group_counter: int) -> Optional[Tuple[RuleItemGroup, int]]:
    open_pos = cur.pos
    if not cur.match_literal("("):
        return None

    name = f"{enclosing_name}_$g{group_counter}"
    inner_counter = 0
    seq = _SeqBuilder()

    cur.skip_whitespace()
    while True:
        if cur.eof():
            raise grammar_error(cur.text, open_pos, f"unterminated group '{name}' (missing ')')")
        if cur.match_literal(")"):
            break
        pos = cur.pos
        parsed = parse_rule_item(cur, name, inner_counter)
        if parsed is None:
            raise grammar_error(cur.text, pos, f"unexpected {_describe(cur)} in group '{name}'")
        item, inner_counter = parsed
        seq.add(item, cur, pos)
        cur.skip_whitespace()

    items = seq.build()
    if not items:
        raise grammar_error(cur.text, open_pos, f"empty group '{name}'")
    return RuleItemGroup(name, items), group_counter + 1


def _at_rule_end(cur: Cursor) -> bool:
    """빈 줄(앞의 공백 허용) 또는 입력 끝; 빈 줄은 소비한다."""
    ahead = cur.copy()
    ahead.skip_blanks()
    if ahead.eof():
        cur.pos = ahead.pos
        return True
    if ahead.match_blank_line():
        cur.pos = ahead.pos
        return True
    return False


def parse_rule(cur: Cursor) -> Rule:
    start = cur.pos
    name = cur.match_identifier()
    if name is None:
        raise grammar_error(cur.text, start, f"expected rule name, got {_describe(cur)}")

    cur.skip_whitespace()
    if not cur.match_literal(":"):
        raise grammar_error(cur.text, cur.pos, f"expected ':' after rule name '{name}', got {_describe(cur)}")

    group_counter = 0
    seq = _SeqBuilder()

    if not _at_rule_end(cur):
        cur.skip_whitespace()
        while not cur.eof():
            pos = cur.pos
            parsed = parse_rule_item(cur, name, group_counter)
            if parsed is None:
                raise grammar_error(cur.text, pos, f"unexpected {_describe(cur)} in rule '{name}'")
            item, group_counter = parsed
            seq.add(item, cur, pos)

            if _at_rule_end(cur):
                break
            cur.skip_whitespace()

    items = seq.build()
    if not items:
        raise grammar_error(cur.text, start, f"rule '{name}' has an empty body")
    return Rule(name, items)


def _skip_comment(cur: Cursor) -> bool:
    if not cur.match_literal("#"):
        return False
    while not cur.eof():
        if cur.match_newline():
            break
        cur.pos += 1
    return True


def _count_groups(seq) -> int:
    n = 0
    for item in seq:
        if item.type == RuleItemType.GROUP:
            n += 1 + _count_groups(item.group.seq)
    return n


def parse(text: str, *, debug: bool = False) -> List[Rule]:
    """문법 텍스트 -> 순서가 유지된 룰 리스트."""
    cur = Cursor(text)
    rules: List[Rule] = []

    cur.skip_whitespace()
    while not cur.eof():
        if _skip_comment(cur):
            cur.skip_whitespace()
            continue

        rule = parse_rule(cur)
        rules.append(rule)
        if debug:
            _eprint(f"[DEBUG] rule '{rule.name}' | items={len(rule.seq)} groups={_count_groups(rule.seq)}")
        cur.skip_whitespace()

    if debug:
        _eprint(f"[DEBUG] grammar ready | rules={len(rules)}")
    return rules
