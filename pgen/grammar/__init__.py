# pgen/grammar/__init__.py
"""문법 표기 프런트엔드.

- `Cursor` 위의 어휘 프리미티브
- AST 노드 (`Rule`, `RuleItem`, `RuleItemGroup`)
- 재귀 하강 파서(`parse`)와 덤퍼(`dump`)
"""

from .ast import (
    Rule, RuleItem, RuleItemGroup, RuleItemType,
)
from .lexical import Cursor, escape_string
from .parser import parse, parse_rule, parse_rule_item, parse_group
from .dump import dump
