from __future__ import annotations
from dataclasses import FrozenInstanceError
import pytest
from .ast import Rule, RuleItem, RuleItemGroup, RuleItemType, OR, literal, identifier
from .lexical import (
    Cursor, escape_string, hex_value, is_hex_digit, is_identifier_char, is_whitespace,
)
from .parser import parse, parse_group, parse_rule, parse_rule_item
from .dump import dump

CALC = '''\
# arithmetic over single digits
expr: term (("+" | "-") term)*

term: factor (("*" | "/") factor)*

factor: digit+ | "(" expr ")"

digit: "0" | "1" | "2" | "3" | "4" | "5" | "6" | "7" | "8" | "9"
'''


# ---------- 어휘 프리미티브 ----------

def test_classifiers():
    assert all(is_whitespace(c) for c in " \t\r\n")
    assert not is_whitespace("x") and not is_whitespace("")
    assert all(is_identifier_char(c) for c in "azAZ09_")
    assert not is_identifier_char("-") and not is_identifier_char("é")
    assert is_hex_digit("f") and is_hex_digit("F") and is_hex_digit("7")
    assert not is_hex_digit("g")
    assert hex_value("a") == 10 and hex_value("F") == 15 and hex_value("z") == 0


def test_skip_whitespace_and_blanks():
    c = Cursor(" \t\r\n x")
    c.skip_whitespace()
    assert c.pos == 5

    c = Cursor(" \t\nx")
    c.skip_blanks()
    assert c.pos == 2


def test_match_newline():
    c = Cursor("\r\nx")
    assert c.match_newline() and c.pos == 2

    c = Cursor("\rx")
    assert not c.match_newline() and c.pos == 0


def test_match_blank_line():
    c = Cursor("\n\r\nx")
    assert c.match_blank_line() and c.pos == 3

    c = Cursor("\nx")
    assert not c.match_blank_line() and c.pos == 0


def test_match_literal():
    c = Cursor("abc")
    assert not c.match_literal("abd") and c.pos == 0
    assert c.match_literal("ab") and c.pos == 2
    assert not c.match_literal("cd")
    assert c.match_literal("c") and c.eof()
    # 입력 끝에서는 빈 텍스트조차 매칭되지 않는다
    assert not c.match_literal("")


def test_match_literal_respects_end():
    c = Cursor("abc", end=2)
    assert not c.match_literal("abc")
    assert c.match_literal("ab")


def test_match_identifier():
    c = Cursor("rule_1: x")
    assert c.match_identifier() == "rule_1"
    assert c.pos == 6
    assert c.match_identifier() is None
    assert c.pos == 6


def test_match_quoted_string_escapes():
    c = Cursor(r'"a\"b\\c\n\t\a\b\v\f\r" rest')
    assert c.match_quoted_string() == 'a"b\\c\n\t\a\b\v\f\r'
    assert c.text[c.pos:] == " rest"


def test_match_quoted_string_unknown_escape_is_backslash():
    assert Cursor(r'"x\qy"').match_quoted_string() == "x\\y"


def test_match_quoted_string_hex_combines_digits_by_byte_shift():
    # 알려진 특이점: "\x41"은 (4 << 8) | 1 로 디코딩된다
    assert Cursor(r'"\x41"').match_quoted_string() == chr(0x401)
    assert Cursor(r'"\x0a"').match_quoted_string() == chr(0x0A)


@pytest.mark.parametrize("text", ['"abc', r'"ab\x', r'"ab\x4', '"ab\\', "abc", ""])
def test_match_quoted_string_failure_keeps_cursor(text):
    c = Cursor(text)
    assert c.match_quoted_string() is None
    assert c.pos == 0


def test_escape_string_round_trip():
    s = 'tab\tquote"back\\slash bell\a nl\n cr\r vt\v ff\f bs\b end'
    c = Cursor('"' + escape_string(s) + '"')
    assert c.match_quoted_string() == s
    assert c.eof()


# ---------- 룰 항목 ----------

def test_parse_rule_item_kinds():
    c = Cursor('"lit" name (x) | * + ? ^')
    kinds = []
    counter = 0
    while True:
        c.skip_whitespace()
        r = parse_rule_item(c, "r", counter)
        if r is None:
            break
        item, counter = r
        kinds.append(item.type)
    assert kinds == [
        RuleItemType.LITERAL, RuleItemType.IDENTIFIER, RuleItemType.GROUP,
        RuleItemType.OR, RuleItemType.ZERO_OR_MORE, RuleItemType.ONE_OR_MORE,
        RuleItemType.ZERO_OR_ONE, RuleItemType.NEGATE,
    ]
    assert counter == 1
    assert c.eof()


def test_parse_rule_item_no_match():
    c = Cursor("%")
    assert parse_rule_item(c, "r", 0) is None
    assert c.pos == 0
    assert parse_rule_item(Cursor(""), "r", 0) is None


def test_parse_group_names_and_counter():
    c = Cursor('("a" ("b") ("c"))')
    g, counter = parse_group(c, "r", 3)
    assert counter == 4
    assert g.name == "r_$g3"
    inner = [item.group.name for item in g.seq if item.type == RuleItemType.GROUP]
    assert inner == ["r_$g3_$g0", "r_$g3_$g1"]


def test_parse_group_requires_paren():
    c = Cursor('"a"')
    assert parse_group(c, "r", 0) is None
    assert c.pos == 0


# ---------- 룰 / 접기 ----------

def test_quantifier_folding():
    (rule,) = parse('r: "a"* "b"+ "c"? "d"\n')
    a, b, c, d = rule.seq
    assert (a.optional, a.multiple) == (True, True)
    assert (b.optional, b.multiple) == (False, True)
    assert (c.optional, c.multiple) == (True, False)
    assert (d.optional, d.multiple) == (False, False)


def test_fold_applies_to_groups_and_identifiers():
    (rule,) = parse('r: x* ("a" | "b")+\n')
    x, g = rule.seq
    assert x.type == RuleItemType.IDENTIFIER and x.multiple and x.optional
    assert g.type == RuleItemType.GROUP and g.multiple and not g.optional


def test_negation_on_literal():
    (rule,) = parse('r: "\\""^*\n')
    (item,) = rule.seq
    assert item.literal == '"'
    assert item.negate and item.optional and item.multiple


@pytest.mark.parametrize("grammar", ["r: x^\n", 'r: ("a")^\n'])
def test_negation_on_non_literal_is_error(grammar):
    with pytest.raises(SyntaxError, match="negation"):
        parse(grammar)


@pytest.mark.parametrize("grammar", ["r: *\n", 'r: "a" | +\n', "r: (?)\n", "r: ^\n"])
def test_fold_without_target_is_error(grammar):
    with pytest.raises(SyntaxError, match="must follow"):
        parse(grammar)


def test_or_is_kept_as_boundary():
    (rule,) = parse('r: "a" "b" | c\n')
    assert [i.type for i in rule.seq] == [
        RuleItemType.LITERAL, RuleItemType.LITERAL, RuleItemType.OR, RuleItemType.IDENTIFIER,
    ]


def test_missing_colon():
    with pytest.raises(SyntaxError, match="expected ':' after rule name 'a'") as ei:
        parse('a "x"\n')
    assert "at 1:3" in str(ei.value)


def test_missing_rule_name():
    with pytest.raises(SyntaxError, match="expected rule name"):
        parse('"x": "y"\n')


@pytest.mark.parametrize("grammar", ["a:\n\nb: \"x\"\n", "a:", "a:   \n\n"])
def test_empty_rule_body(grammar):
    with pytest.raises(SyntaxError, match="empty body"):
        parse(grammar)


def test_unterminated_group():
    with pytest.raises(SyntaxError, match="unterminated group 'r_\\$g0'"):
        parse('r: ("a" "b"')


def test_empty_group():
    with pytest.raises(SyntaxError, match="empty group"):
        parse("r: ()\n")


def test_unterminated_literal_is_structural_at_rule_level():
    with pytest.raises(SyntaxError, match="unexpected '\"' in rule 'r'"):
        parse('r: "abc\n')


def test_error_snippet_has_caret():
    with pytest.raises(SyntaxError) as ei:
        parse('ok: "x"\n\nbad: "y" %\n')
    msg = str(ei.value)
    assert "at 3:10" in msg
    assert msg.endswith('bad: "y" %\n         ^')


def test_blank_line_terminates_rules():
    rules = parse('a: "x"\n\nb: "y"\n\n')
    assert [r.name for r in rules] == ["a", "b"]
    assert rules[0].seq == (literal("x"),)
    assert rules[1].seq == (literal("y"),)


def test_rule_body_may_span_lines():
    (rule,) = parse('r: "a"\n   "b"\n | c\n')
    assert dump(rule) == 'r: "a" "b" | c'


def test_trailing_spaces_before_blank_line():
    rules = parse('a: "x"  \t\n\nb: "y"\r\n\r\n')
    assert [r.name for r in rules] == ["a", "b"]


def test_comments_between_rules():
    rules = parse(CALC)
    assert [r.name for r in rules] == ["expr", "term", "factor", "digit"]


def test_single_newline_does_not_end_rule():
    # "b"는 "a"의 다음 항목으로 읽히므로 그 뒤의 ':'가 예상 밖이다
    with pytest.raises(SyntaxError, match="unexpected ':' in rule 'a'"):
        parse('a: "x"\nb: "y"\n')


def test_group_names_are_positional():
    r1 = parse('r: ("a") x ("b")\n')[0]
    r2 = parse('r: ("zz" y* ("deep")) "q" ("b")\n')[0]
    assert r1.seq[2].group.name == r2.seq[2].group.name == "r_$g1"
    assert r2.seq[0].group.seq[2].group.name == "r_$g0_$g0"


def test_group_counter_is_per_sequence():
    rules = parse('a: ("x") ("y")\n\nb: ("z")\n')
    assert [i.group.name for i in rules[0].seq] == ["a_$g0", "a_$g1"]
    assert rules[1].seq[0].group.name == "b_$g0"


def test_parse_is_deterministic():
    assert parse(CALC) == parse(CALC)


def test_ast_is_immutable():
    (rule,) = parse('r: "a"\n')
    with pytest.raises(FrozenInstanceError):
        rule.seq[0].optional = True


def test_parse_rule_stops_at_blank_line():
    c = Cursor('a: "x" y\n\nb: "z"\n')
    rule = parse_rule(c)
    assert rule == Rule("a", (literal("x"), identifier("y")))
    assert c.text[c.pos:] == 'b: "z"\n'


# ---------- 덤프 ----------

def test_dump_rule():
    (rule,) = parse('r:   "a"*  b+ ("c" | d)?\n  "x"^ "\\n\\"" \n')
    assert dump(rule) == 'r: "a"* b+ ("c" | d)? "x"^ "\\n\\""'


def test_dump_parts():
    g = RuleItemGroup("r_$g0", (literal("a"), OR, identifier("b", optional=True)))
    assert dump(g) == '("a" | b?)'
    assert dump(RuleItem(RuleItemType.GROUP, group=g, multiple=True)) == '("a" | b?)+'
    assert dump([literal("a"), identifier("b")]) == '"a" b'


def test_dump_round_trip():
    rules = parse(CALC)
    text = dump(rules)
    assert text.startswith('expr: term (("+" | "-") term)*\n\n')
    assert parse(text) == rules


def main() -> None:
    try:
        rules = parse(CALC, debug=True)
        print("[AST]")
        for rule in rules:
            print(rule)
        print("\n[DUMP]")
        print(dump(rules))
    except SyntaxError as e:
        print(str(e))


if __name__ == "__main__":
    main()
