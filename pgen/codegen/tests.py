from __future__ import annotations
import shutil
import subprocess
import pytest
from .ir import Attempt, Commit, Call, CALL_LITERAL, CALL_NEGATE, CALL_RULE, build_ir, split_alternatives
from .generate import generate
from ..grammar.ast import Rule, RuleItem, RuleItemGroup, RuleItemType, OR, literal, identifier, group
from ..grammar.parser import parse

CALC = '''\
expr: term (("+" | "-") term)*

term: digit+ | "(" expr ")"

digit: "0" | "1" | "2" | "3" | "4" | "5" | "6" | "7" | "8" | "9"
'''


def _load(grammar: str, namespace: str = "") -> dict:
    src = generate(parse(grammar), namespace)
    ns = {"__name__": "pgen_generated"}
    exec(compile(src, "<generated>", "exec"), ns)
    return ns


def _run(ns: dict, rule: str, text: str, end=None):
    c = ns["Cursor"](text)
    node = ns["parse_" + rule](c, len(text) if end is None else end)
    return node, c.pos


# ---------- IR ----------

def test_split_alternatives():
    seq = (OR, literal("a"), OR, OR, identifier("b"), literal("c"))
    assert split_alternatives(seq) == [[], [literal("a")], [], [identifier("b"), literal("c")]]


def test_split_alternatives_drops_trailing_or():
    assert split_alternatives((literal("a"), OR)) == [[literal("a")]]
    assert split_alternatives((literal("a"), OR, OR)) == [[literal("a")], []]
    assert split_alternatives((OR,)) == [[]]


def test_build_ir_nesting_follows_mandatory_items():
    ir = build_ir(parse('r: "a" b? "c"^+\n\nb: "b"\n'))
    (alt,) = ir.functions[0].alternatives
    (a,) = alt.body
    assert a.call == Call(CALL_LITERAL, "a") and not a.repeat
    opt_b, c = a.body
    assert opt_b == Attempt(Call(CALL_RULE, "b"), False, [])
    assert c.call == Call(CALL_NEGATE, "c") and c.repeat
    assert c.body == [Commit()]


def test_build_ir_optional_only_alternative_commits_at_top_level():
    ir = build_ir(parse('r: "a"* "b"?\n'))
    body = ir.functions[0].alternatives[0].body
    assert [type(s) for s in body] == [Attempt, Attempt, Commit]


def test_build_ir_tables():
    ir = build_ir(parse(CALC))
    assert ir.rules == ["expr", "term", "digit"]
    assert ir.groups == ["expr_$g0", "expr_$g0_$g0"]
    assert ir.identifiers == ["", "expr", "term", "digit", "expr_$g0", "expr_$g0_$g0"]
    assert [f.name for f in ir.functions] == ir.identifiers[1:]
    assert ir.functions[3].source == '("+" | "-") term'
    assert ir.undefined == []


def test_build_ir_reports_undefined_references():
    ir = build_ir(parse("r: a (b | a)\n\nb: \"x\"\n"))
    assert ir.undefined == ["a"]


def test_build_ir_rejects_bad_input():
    with pytest.raises(ValueError, match="no rules"):
        build_ir([])
    with pytest.raises(ValueError, match="duplicate rule 'a'"):
        build_ir(parse('a: "x"\n\na: "y"\n'))
    with pytest.raises(ValueError, match="negates a non-literal"):
        build_ir([Rule("a", (RuleItem(RuleItemType.IDENTIFIER, identifier="b", negate=True),))])
    with pytest.raises(ValueError, match="empty sequence"):
        build_ir([Rule("a", ())])
    with pytest.raises(ValueError, match="names collide"):
        build_ir([Rule("a", (group(RuleItemGroup("b", (literal("x"),))),)), Rule("b", (literal("y"),))])


# ---------- 생성된 Python: 매칭 의미 ----------

def test_ordered_choice_takes_first_alternative():
    ns = _load('r: "a" | "ab"\n')
    node, pos = _run(ns, "r", "ab")
    assert pos == 1
    assert node.flatten() == "a"


def test_failed_alternative_leaves_no_partial_consumption():
    ns = _load('r: "a" "b" | "a" "c"\n')
    node, pos = _run(ns, "r", "ac")
    assert pos == 2
    assert node.size() == 2
    assert [v.literal for v in node.children] == ["a", "c"]


def test_no_match_keeps_cursor():
    ns = _load('r: "a" "b" | "a" "c"\n')
    node, pos = _run(ns, "r", "ax")
    assert node is None
    assert pos == 0


def test_quantifiers():
    ns = _load('star: "a"* "b"\n\nplus: "a"+ "b"\n\nopt: "a"? "b"\n')
    assert _run(ns, "star", "aaab")[0].size() == 4
    assert _run(ns, "star", "b")[0].size() == 1
    assert _run(ns, "plus", "aab")[1] == 3
    assert _run(ns, "plus", "b")[0] is None
    assert _run(ns, "opt", "ab")[1] == 2
    assert _run(ns, "opt", "b")[1] == 1
    assert _run(ns, "opt", "aab") == (None, 0)


def test_repetition_stops_when_nothing_is_consumed():
    ns = _load('r: ("a"?)* "b"\n')
    node, pos = _run(ns, "r", "aab")
    assert pos == 3
    assert node.flatten() == "aab"


def test_negated_literal():
    ns = _load('str: "\\"" "\\""^* "\\""\n\ncomment: "/*" "*/"^* "*/"\n')
    node, pos = _run(ns, "str", '"hi" tail')
    assert node.flatten() == '"hi"' and pos == 4
    node, pos = _run(ns, "comment", "/* a * b */x")
    assert node.flatten() == "/* a * b */" and pos == 11
    # 부정 매칭은 한 번에 문자 1개
    assert node.size() == 2 + len(" a * b ")


def test_negated_literal_needs_input():
    ns = _load('r: "x"^\n')
    assert _run(ns, "r", "") == (None, 0)
    assert _run(ns, "r", "x") == (None, 0)
    assert _run(ns, "r", "y")[1] == 1


def test_empty_alternative_always_matches():
    ns = _load('lead: | "a"\n\nmid: "a" | | "b"\n')
    for rule in ("lead", "mid"):
        node, pos = _run(ns, rule, "zzz")
        assert node is not None and node.size() == 0 and pos == 0
    # "a"를 시도하기 전에 맨 앞의 빈 대안이 이긴다
    assert _run(ns, "lead", "a")[1] == 0


def test_trailing_or_adds_no_alternative():
    ns = _load('r: "a" |\n')
    assert _run(ns, "r", "zzz") == (None, 0)
    assert _run(ns, "r", "a")[1] == 1


def test_long_rule_compiles():
    ns = _load("r: " + " ".join(['"a"'] * 150) + ' "b"?\n')
    node, pos = _run(ns, "r", "a" * 150 + "b")
    assert pos == 151 and node.size() == 151
    assert _run(ns, "r", "a" * 149) == (None, 0)


def test_end_index_bounds_matching():
    ns = _load('r: "ab"\n')
    assert _run(ns, "r", "ab", end=1) == (None, 0)
    assert _run(ns, "r", "ab", end=2)[1] == 2


def test_calc_tree():
    ns = _load(CALC)
    IdentifierType = ns["IdentifierType"]
    ParsedType = ns["ParsedType"]
    node, pos = _run(ns, "expr", "12+(3-4)")
    assert pos == 8
    assert node.flatten() == "12+(3-4)"
    assert node.type is ParsedType.IDENTIFIER
    assert node.identifier == IdentifierType.i_expr

    term = node.find(IdentifierType.i_term)
    assert term.flatten() == "12"
    assert term.get(0, IdentifierType.i_digit).flatten() == "1"
    with pytest.raises(AssertionError):
        term.get(0, IdentifierType.i_expr)
    with pytest.raises(AssertionError):
        term.get(5)

    tail = node.get(1)
    assert tail.type is ParsedType.GROUP
    assert tail.identifier == IdentifierType.i_expr__g0
    assert tail.get(0).identifier == IdentifierType.i_expr__g0__g0
    assert node.find(IdentifierType.i_digit) is None


def test_identifier_table():
    ns = _load(CALC)
    assert ns["IDENTIFIER_NAMES"] == ("", "expr", "term", "digit", "expr_$g0", "expr_$g0_$g0")
    assert int(ns["IdentifierType"].NONE) == 0
    assert ns["__all__"][-5:] == [
        "parse_expr", "parse_term", "parse_digit", "parse_expr__g0", "parse_expr__g0__g0",
    ]


def test_namespace_wrapping():
    ns = _load(CALC, namespace="calc")
    calc = ns["calc"]
    assert ns["__all__"] == ["calc"]
    assert "parse_expr" not in ns
    c = calc.Cursor("7*")
    node = calc.parse_expr(c, 2)
    assert node.flatten() == "7" and c.pos == 1
    assert calc.IDENTIFIER_NAMES[1] == "expr"


def test_undefined_reference_fails_when_reached():
    ns = _load('r: "a" missing | "b"\n')
    assert _run(ns, "r", "b")[1] == 1
    with pytest.raises(NameError):
        _run(ns, "r", "a")


def test_literal_escaping_in_generated_source():
    ns = _load('r: "\\\\" "\'" "\\"" "\\t"\n')
    node, pos = _run(ns, "r", "\\'\"\t")
    assert pos == 4


# ---------- 생성된 Python: 디버그 렌더러 ----------

TREE_GRAMMAR = 'r: "a" x ("c")\n\nx: "b"\n'


def test_generate_tree():
    ns = _load(TREE_GRAMMAR)
    node, _ = _run(ns, "r", "abc")
    assert ns["generate_tree"](node) == "r\n 'a'\n x\n  'b'\n r_$g0\n  'c'\n"


def test_generate_graphviz():
    ns = _load(TREE_GRAMMAR)
    node, _ = _run(ns, "r", "abc")
    assert ns["generate_graphviz"](node) == (
        "digraph g {\n"
        '\ta1[label="r" shape=box];\n'
        '\ta2[label="a" shape=ellipse];\n'
        '\ta3[label="x" shape=box];\n'
        '\ta4[label="b" shape=ellipse];\n'
        '\ta5[label="r_$g0" shape=hexagon];\n'
        '\ta6[label="c" shape=ellipse];\n'
        "\n"
        "\ta1 -> a2\n"
        "\ta1 -> a3\n"
        "\ta3 -> a4\n"
        "\ta1 -> a5\n"
        "\ta5 -> a6\n"
        "\n"
        "\t{ rank=same; a2 a4 a6 }\n"
        "}\n"
    )


def test_generate_graphviz_escapes_labels():
    ns = _load('r: "\\""\n')
    node, _ = _run(ns, "r", '"')
    assert '\ta2[label="\\"" shape=ellipse];\n' in ns["generate_graphviz"](node)


def test_ansi_colored_restores_parent_color():
    ns = _load(TREE_GRAMMAR)
    node, _ = _run(ns, "r", "abc")
    colors = {"r": "<R>", "x": "<X>"}
    assert ns["ansi_colored"](node, colors) == "<R>a<X>b<R>c"
    assert ns["ansi_colored"](node, colors, "<0>") == "<R>a<X>b<R>c<0>"
    assert ns["ansi_colored"](node, {}) == "abc"


# ---------- generate() ----------

def test_generate_is_deterministic():
    rules = parse(CALC)
    assert generate(rules) == generate(rules)
    assert generate(rules, lang="cpp") == generate(parse(CALC), lang="cpp")


def test_generate_rejects_bad_options():
    rules = parse(CALC)
    with pytest.raises(ValueError, match="unsupported language"):
        generate(rules, lang="rust")
    with pytest.raises(ValueError, match="invalid namespace"):
        generate(rules, "1bad")
    with pytest.raises(ValueError, match="invalid namespace"):
        generate(rules, "class")
    with pytest.raises(ValueError, match="invalid namespace"):
        generate(rules, "a b", lang="cpp")


def test_python_name_collision():
    rules = parse('a: ("x")\n\na__g0: "y"\n')
    with pytest.raises(ValueError, match="both map to 'a__g0'"):
        generate(rules)
    assert "$parse_a_$g0" in generate(rules, lang="cpp")


def test_debug_traces(capsys):
    generate(parse('r: "a" nowhere\n'), debug=True)
    err = capsys.readouterr().err
    assert "[DEBUG] IR ready | rules=1 groups=0 functions=1" in err
    assert "[WARN] 'nowhere' is referenced but no rule defines it" in err
    assert "[DEBUG] emit lang=python" in err


# ---------- 생성된 C++ ----------

def test_cpp_output_shape():
    src = generate(parse(CALC), "calc::detail", lang="cpp")
    assert src.startswith("// This file is generated by pgen; do not edit.\n")
    assert "namespace calc::detail\n{\n" in src
    assert src.rstrip().endswith("} // namespace calc::detail")
    assert "\t$i_expr_$g0_$g0,\n" in src
    assert '\t"expr_$g0",\n' in src
    for name in ("expr", "term", "digit", "expr_$g0", "expr_$g0_$g0"):
        decl = f"std::optional<$Parsed> $parse_{name}(const char *&s, const char *e)"
        assert f"[[nodiscard]] {decl};\n" in src
        assert f"[[nodiscard]]\n{decl}\n{{\n" in src
    assert "// Rule: term ((\"+\" | \"-\") term)*\n" in src
    assert src.count("{") == src.count("}")


def test_cpp_nesting_and_loops():
    src = generate(parse('r: "a" "b"* "c"? "\\n"^\n'), lang="cpp")
    body = src[src.index("std::optional<$Parsed> $parse_r(const char *&s, const char *e)\n{"):]
    assert (
        '\t\tif (auto v = $parse_literal(sc, e, "a"))\n'
        "\t\t{\n"
        "\t\t\tresult.group.push_back(std::move(v).value());\n"
        "\n"
        '\t\t\tif (auto v = $parse_literal(sc, e, "b"))\n'
    ) in body
    assert '\t\t\t\t\tauto w = $parse_literal(sc, e, "b");\n' in body
    assert '\t\t\tif (auto v = $parse_negate_literal(sc, e, "\\n"))\n' in body
    assert "\t\t\t\ts = sc;\n\t\t\t\treturn result;\n" in body


CPP_DRIVER = r'''
#include <cstdio>
#include <cstring>

static void run(std::optional<calc::$Parsed> (*fn)(const char *&, const char *), const char *text)
{
	const char *s = text;
	auto r = fn(s, text + std::strlen(text));

	if (r)
		std::printf("%s %d\n", r->flatten().c_str(), (int)(s - text));
	else
		std::printf("none %d\n", (int)(s - text));
}

int main()
{
	run(calc::$parse_expr, "12+(3-4)x");
	run(calc::$parse_pick, "ab");
	run(calc::$parse_pair, "ac");
	run(calc::$parse_expr, "+1");
	return 0;
}
'''


@pytest.mark.skipif(shutil.which("g++") is None, reason="g++ not available")
def test_cpp_output_compiles_and_runs(tmp_path):
    grammar = CALC + '\npick: "a" | "ab"\n\npair: "a" "b" | "a" "c"\n'
    src = tmp_path / "calc.cpp"
    exe = tmp_path / "calc"
    src.write_text(generate(parse(grammar), "calc", lang="cpp") + CPP_DRIVER)

    subprocess.run(["g++", "-std=c++17", "-o", str(exe), str(src)], check=True)
    out = subprocess.run([str(exe)], check=True, capture_output=True, text=True).stdout
    assert out.splitlines() == [
        "12+(3-4) 8",
        "a 1",
        "ac 2",
        "none 0",
    ]


def main() -> None:
    rules = parse(CALC)
    src = generate(rules, debug=True)
    print("[Emit Python Preview]")
    lines = src.splitlines()
    for line in lines[-40:]:
        print(line)
    print("... (snip) ...")

    ns = {"__name__": "pgen_generated"}
    exec(compile(src, "<generated>", "exec"), ns)
    c = ns["Cursor"]("12+(3-4)")
    node = ns["parse_expr"](c, len(c.text))
    print("\n[Tree]")
    print(ns["generate_tree"](node))


if __name__ == "__main__":
    main()
