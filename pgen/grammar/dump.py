"""AST -> 문법 표기 (진단용, `parse`로 다시 읽기 가능)."""

from __future__ import annotations
from typing import Iterable, Sequence, Union
from .ast import Rule, RuleItem, RuleItemGroup, RuleItemType
from .lexical import escape_string

Dumpable = Union[Rule, RuleItem, RuleItemGroup, Sequence[RuleItem], Sequence[Rule]]


def _dump_item(item: RuleItem) -> str:
    if item.type == RuleItemType.LITERAL:
        out = '"' + escape_string(item.literal) + '"'
        if item.negate:
            out += "^"
    elif item.type == RuleItemType.IDENTIFIER:
        out = item.identifier
    elif item.type == RuleItemType.GROUP:
        out = _dump_group(item.group)
    elif item.type == RuleItemType.OR:
        return "|"
    else:
        return "<error>"
    return out + item.quantifier


def _dump_seq(seq: Iterable[RuleItem]) -> str:
    return " ".join(_dump_item(v) for v in seq)


def _dump_group(g: RuleItemGroup) -> str:
    return "(" + _dump_seq(g.seq) + ")"


def _dump_rule(rule: Rule) -> str:
    return rule.name + ": " + _dump_seq(rule.seq)


def dump(obj: Dumpable) -> str:
    """
    룰, 항목, 그룹, 항목 시퀀스, 또는 문법 전체(룰 리스트)를 문자열로 만든다.
    문법 전체는 각 룰 뒤에 빈 줄을 붙인다.
    """
    if isinstance(obj, Rule):
        return _dump_rule(obj)
    if isinstance(obj, RuleItem):
        return _dump_item(obj)
    if isinstance(obj, RuleItemGroup):
        return _dump_group(obj)

    items = list(obj)
    if items and all(isinstance(v, Rule) for v in items):
        return "".join(_dump_rule(r) + "\n\n" for r in items)
    return _dump_seq(items)
