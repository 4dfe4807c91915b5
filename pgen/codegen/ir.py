"""
pgen 코드 생성용 IR
=======

문법 AST(`Rule` 리스트)를 타깃 언어와 무관한 **파서 기술서**로 바꾼다.
방출기(`emit_py`, `emit_cpp`)는 이 트리를 출력만 하고, 백트래킹에 관한
결정은 모두 여기서 내린다.

설계 포인트
-----------
- 룰마다, 익명 그룹마다 `ParseFunction` 1개 (룰 먼저, 그다음 룰 순서대로
  그룹을 전위 순회 순으로).
- 함수 본문은 `Alternative` 리스트 (`Or` 표시에서 시퀀스를 자른 것)이며
  순서대로 시도하고, 먼저 `Commit`에 닿는 대안이 이긴다.
  * 맨 앞이나 연속된 `Or`는 빈 대안(항상 매칭)을 만든다.
  * 맨 끝의 `Or`는 대안을 추가하지 않는다.
- `Alternative`는 문장 트리다:
  * `Attempt(call, repeat, body)` : `call`을 시도; 성공하면 노드를 보관하고
    `repeat`이면 다시 반복한 뒤 `body`를 실행.
  * 필수 항목   -> 나머지 항목이 `body` *안*으로 들어간다
    (실패하면 나머지와 commit을 건너뜀)
  * 선택 항목   -> `body`는 비어 있고, 나머지 항목이 같은 레벨에 이어진다
    (실패는 흡수됨)
  * `Commit`    : 작업 커서를 원래 커서로 복사하고 노드를 돌려준다.
  즉 트리 깊이 = 그 문장 앞에 있는 필수 항목 수.
- 식별자 테이블은 0번에 "none" 표시, 그다음 룰, 그다음 그룹.

불변식
----
- 룰 이름은 유일; 모든 시퀀스는 비어 있지 않음
- 시퀀스에는 Literal/Identifier/Group/Or 항목만
- `negate`는 literal에만
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Sequence, Union
from ..grammar.ast import Rule, RuleItem, RuleItemGroup, RuleItemType, STORABLE
from ..grammar.dump import dump

# 호출 종류
CALL_LITERAL = "literal"   # 정확한 텍스트
CALL_NEGATE  = "negate"    # 텍스트로 시작하지 않는 문자 1개
CALL_RULE    = "rule"      # 룰/그룹에 대해 생성된 함수

# 생성된 파스 트리의 노드 종류
NODE_IDENTIFIER = "identifier"
NODE_GROUP      = "group"


@dataclass(frozen=True)
class Call:
    kind: str
    arg: str    # literal 텍스트, 또는 선언된 룰/그룹 이름


@dataclass
class Attempt:
    call: Call
    repeat: bool = False
    body: List["Stmt"] = field(default_factory=list)


@dataclass
class Commit:
    pass


Stmt = Union[Attempt, Commit]


@dataclass
class Alternative:
    body: List[Stmt]


@dataclass
class ParseFunction:
    name: str               # 선언된 이름 (룰 이름 또는 `x_$g0`)
    node_type: str          # NODE_IDENTIFIER | NODE_GROUP
    source: str             # 문법 표기로 된 본문 (주석용)
    alternatives: List[Alternative]


@dataclass
class CodegenIR:
    """
    rules        : 문법 순서의 룰 이름
    groups       : 그룹 이름, 전위 순회 순
    identifiers  : 태그 테이블; [0]은 "none" 표시 ("")
    functions    : 룰 먼저, 그다음 그룹
    undefined    : 참조됐지만 정의한 룰이 없는 이름 (타깃 쪽에서 해석)
    """
    rules: List[str]
    groups: List[str]
    identifiers: List[str]
    functions: List[ParseFunction]
    undefined: List[str] = field(default_factory=list)


# ---------- 헬퍼 ----------

def collect_groups(seq: Sequence[RuleItem], out: List[RuleItemGroup]) -> List[RuleItemGroup]:
    for item in seq:
        if item.type == RuleItemType.GROUP:
            out.append(item.group)
            collect_groups(item.group.seq, out)
    return out


def split_alternatives(seq: Sequence[RuleItem]) -> List[List[RuleItem]]:
    """`Or`마다 자른다; 빈 조각은 남기되(항상 매칭) 맨 끝 `Or` 뒤의 빈 조각은 버린다."""
    alts: List[List[RuleItem]] = [[]]
    for item in seq:
        if item.type == RuleItemType.OR:
            alts.append([])
        else:
            alts[-1].append(item)
    if len(alts) > 1 and seq and seq[-1].type == RuleItemType.OR:
        alts.pop()
    return alts


def _call_for(item: RuleItem) -> Call:
    if item.type == RuleItemType.LITERAL:
        return Call(CALL_NEGATE if item.negate else CALL_LITERAL, item.literal)
    if item.type == RuleItemType.GROUP:
        return Call(CALL_RULE, item.group.name)
    return Call(CALL_RULE, item.identifier)


def build_body(items: Sequence[RuleItem]) -> List[Stmt]:
    out: List[Stmt] = []
    for i, item in enumerate(items):
        stmt = Attempt(_call_for(item), repeat=item.multiple)
        out.append(stmt)
        if not item.optional:
            stmt.body = build_body(items[i + 1:])
            return out
    out.append(Commit())
    return out


def _check_seq(owner: str, seq: Sequence[RuleItem], references: List[str]) -> None:
    if not seq:
        raise ValueError(f"ir: '{owner}' has an empty sequence")
    for item in seq:
        if item.type not in STORABLE:
            raise ValueError(f"ir: '{owner}' holds an unfolded {item.type!r} item")
        if item.negate and item.type != RuleItemType.LITERAL:
            raise ValueError(f"ir: '{owner}' negates a non-literal ({item.type})")
        if item.type == RuleItemType.IDENTIFIER:
            references.append(item.identifier)
        elif item.type == RuleItemType.GROUP:
            _check_seq(item.group.name, item.group.seq, references)


def _preflight_check(rules: Sequence[Rule]) -> List[str]:
    """AST를 미리 검증한다; 참조된 식별자들을 돌려준다."""
    if not rules:
        raise ValueError("ir: no rules to generate")
    seen = set()
    references: List[str] = []
    for rule in rules:
        if rule.name in seen:
            raise ValueError(f"ir: duplicate rule '{rule.name}'")
        seen.add(rule.name)
        _check_seq(rule.name, rule.seq, references)
    return references


def _function(name: str, node_type: str, seq: Sequence[RuleItem]) -> ParseFunction:
    alts = [Alternative(build_body(items)) for items in split_alternatives(seq)]
    return ParseFunction(name=name, node_type=node_type, source=dump(seq), alternatives=alts)


def build_ir(rules: Sequence[Rule]) -> CodegenIR:
    """
    build_ir(rules) -> CodegenIR
    ------------------------------------
    AST가 위의 불변식을 어기면 ValueError.
    """
    references = _preflight_check(rules)

    groups: List[RuleItemGroup] = []
    for rule in rules:
        collect_groups(rule.seq, groups)

    rule_names = [r.name for r in rules]
    group_names = [g.name for g in groups]
    names = rule_names + group_names
    if len(set(names)) != len(names):
        dup = sorted({n for n in names if names.count(n) > 1})
        raise ValueError(f"ir: rule/group names collide: {dup}")

    functions = [_function(r.name, NODE_IDENTIFIER, r.seq) for r in rules]
    functions += [_function(g.name, NODE_GROUP, g.seq) for g in groups]

    defined = set(rule_names)
    undefined: List[str] = []
    for ref in references:
        if ref not in defined and ref not in undefined:
            undefined.append(ref)

    return CodegenIR(
        rules=rule_names,
        groups=group_names,
        identifiers=[""] + names,
        functions=functions,
        undefined=undefined,
    )
