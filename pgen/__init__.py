"""pgen: 문법 표기 -> 재귀 하강 파서 소스.

사용법
-----
    rules = parse('greeting: "hello" " "+ name\\n\\nname: "world" | "there"\\n')
    text = dump(rules)                          # 다시 문법 표기로
    src = generate(rules)                       # 단독 Python 모듈
    src = generate(rules, "demo", lang="cpp")   # `namespace demo` 안의 C++
"""

from .grammar import (
    Rule, RuleItem, RuleItemGroup, RuleItemType,
    Cursor, escape_string, parse, dump,
)
from .codegen import generate, build_ir

__all__ = [
    "Rule", "RuleItem", "RuleItemGroup", "RuleItemType",
    "Cursor", "escape_string",
    "parse", "dump", "generate", "build_ir",
]
