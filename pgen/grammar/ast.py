# pgen/grammar/ast.py
"""문법 AST
- Rule          : name: item item | item ...
- RuleItem      : literal / identifier / group (+ optional, multiple, negate)
- RuleItemGroup : 이름이 자동 생성되는 익명 "( ... )" 하위 룰

후위 표시(*, +, ?, ^)는 완성된 시퀀스에 남지 않는다: 파서가 바로 앞 항목에
접어 넣는다. `Or`는 시퀀스를 대안(alternative)으로 나누는 경계 표시로 남긴다.
"""

from __future__     import annotations
from dataclasses    import dataclass
from typing         import Optional, Tuple


class RuleItemType:
    LITERAL     = "literal"
    IDENTIFIER  = "identifier"
    GROUP       = "group"
    OR          = "or"
    # 후위 표시 (접혀 들어가고 저장되지 않음)
    ZERO_OR_MORE = "zero_or_more"
    ONE_OR_MORE  = "one_or_more"
    ZERO_OR_ONE  = "zero_or_one"
    NEGATE       = "negate"


MODIFIERS = (
    RuleItemType.ZERO_OR_MORE,
    RuleItemType.ONE_OR_MORE,
    RuleItemType.ZERO_OR_ONE,
    RuleItemType.NEGATE,
)

# 완성된 시퀀스에 남을 수 있는 종류
STORABLE = (
    RuleItemType.LITERAL,
    RuleItemType.IDENTIFIER,
    RuleItemType.GROUP,
    RuleItemType.OR,
)


@dataclass(frozen=True)
class RuleItemGroup:
    name: str
    seq: Tuple["RuleItem", ...] = ()


@dataclass(frozen=True)
class RuleItem:
    """
    룰/그룹 본문의 항목 1개.
    - literal    : 매칭할 텍스트 (LITERAL)
    - identifier : 참조하는 룰 이름 (IDENTIFIER)
    - group      : 인라인 하위 룰 (GROUP)
    - optional/multiple: 정확히 1회, ?, +, * (`quantifier` 참고)
    - negate     : LITERAL 전용; `literal`로 시작하지 않는 문자 1개에 매칭
    """
    type: str
    literal: str = ""
    identifier: str = ""
    group: Optional[RuleItemGroup] = None
    optional: bool = False
    multiple: bool = False
    negate: bool = False

    @property
    def quantifier(self) -> str:
        if self.multiple:
            return "*" if self.optional else "+"
        return "?" if self.optional else ""


@dataclass(frozen=True)
class Rule:
    name: str
    seq: Tuple[RuleItem, ...]


# ---------- 생성 헬퍼 ----------

def literal(text: str, *, optional: bool = False, multiple: bool = False, negate: bool = False) -> RuleItem:
    return RuleItem(RuleItemType.LITERAL, literal=text, optional=optional, multiple=multiple, negate=negate)


def identifier(name: str, *, optional: bool = False, multiple: bool = False) -> RuleItem:
    return RuleItem(RuleItemType.IDENTIFIER, identifier=name, optional=optional, multiple=multiple)


def group(g: RuleItemGroup, *, optional: bool = False, multiple: bool = False) -> RuleItem:
    return RuleItem(RuleItemType.GROUP, group=g, optional=optional, multiple=multiple)


OR = RuleItem(RuleItemType.OR)
