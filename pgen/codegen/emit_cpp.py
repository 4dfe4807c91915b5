# pgen/codegen/emit_cpp.py
"""C++ Code Emit (단일 번역 단위 생성; 런타임 포함).

개요
----
- CodegenIR을 받아 C++17 소스 코드를 **문자열로** 생성한다.
- 방출되는 파일은:
  * `$IdentifierType` enum + `table_$IdentifierType` 이름 테이블
  * 런타임: `$ParsedType`, `$Parsed` (find/get/size/flatten),
    `$parse_literal`, `$parse_negate_literal`
  * `helpers::generate_graphviz`, `helpers::generate_tree`,
    `helpers::ansi_colored`
  * 전방 선언, 그다음 룰/그룹마다
    `$parse_<name>(const char *&s, const char *e)`
- (+옵션) `namespace X { ... }`로 감싼다.

선언된 이름(그룹 이름의 `$` 포함)은 그대로 쓴다; 주요 컴파일러는
식별자 안의 `$`를 허용한다.
"""

from __future__ import annotations
from typing import List
import regex as re
from .ir import (
    CodegenIR, ParseFunction, Stmt, Attempt, Commit, Call,
    CALL_LITERAL, CALL_NEGATE, NODE_GROUP,
)
from .printer import Printer
from ..grammar.lexical import escape_string

_CPP_NAMESPACE_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:::[A-Za-z_][A-Za-z0-9_]*)*")

_HEADER = r'''
// This file is generated by pgen; do not edit.

#include <cassert>
#include <memory>
#include <optional>
#include <string>
#include <string_view>
#include <unordered_map>
#include <vector>
'''

_RUNTIME = r'''
enum class $ParsedType
{
	Literal,
	Identifier,
	Group,
};

struct $ParsedCustomData
{
	virtual ~$ParsedCustomData() {}
};

struct $Parsed
{
	$ParsedType type = $ParsedType::Literal;
	$IdentifierType identifier = $IdentifierType::None;
	std::string literal;
	std::vector<$Parsed> group;
	mutable std::unique_ptr<$ParsedCustomData> custom_data;

	const $Parsed *find($IdentifierType id) const
	{
		for (const auto &v : group)
			if (v.identifier == id)
				return &v;

		return nullptr;
	}

	size_t size() const
	{
		return group.size();
	}

	const $Parsed &get(size_t index) const
	{
		assert(index < group.size());
		return group[index];
	}

	const $Parsed &get(size_t index, [[maybe_unused]] $IdentifierType _debug_id) const
	{
		assert(index < group.size() && group[index].identifier == _debug_id);
		return group[index];
	}

	std::string flatten() const
	{
		if (type == $ParsedType::Literal)
			return literal;

		std::string result;

		for (const auto &v : group)
			result += v.flatten();

		return result;
	}
};

[[nodiscard]]
inline bool $is_eof(const char *s, const char *e)
{
	return s >= e;
}

[[nodiscard]]
inline std::optional<$Parsed> $parse_literal(const char *&s, const char *e, std::string_view lit)
{
	if ($is_eof(s, e))
		return std::nullopt;

	if ((size_t)(e - s) < lit.size())
		return std::nullopt;

	for (size_t i = 0; i < lit.size(); ++i)
	{
		if (s[i] != lit[i])
			return std::nullopt;
	}

	s += lit.size();

	$Parsed result;
	result.type = $ParsedType::Literal;
	result.literal = lit;
	return result;
}

[[nodiscard]]
inline std::optional<$Parsed> $parse_negate_literal(const char *&s, const char *e, std::string_view lit)
{
	if ($is_eof(s, e))
		return std::nullopt;

	if ((size_t)(e - s) >= lit.size())
	{
		bool eq = true;

		for (size_t i = 0; i < lit.size(); ++i)
		{
			if (s[i] != lit[i])
			{
				eq = false;
				break;
			}
		}

		if (eq)
			return std::nullopt;
	}

	$Parsed result;
	result.type = $ParsedType::Literal;
	result.literal = std::string(1, *s);
	++s;
	return result;
}

namespace helpers
{

struct _ArenaEntry
{
	const $Parsed *node;
	int parent;
};

// 전위 순회; 노드의 핸들 = 아레나 안의 인덱스
inline void _collect_nodes(const $Parsed &p, int parent, std::vector<_ArenaEntry> &arena)
{
	int handle = (int)arena.size();
	arena.push_back({&p, parent});

	for (const auto &v : p.group)
		_collect_nodes(v, handle, arena);
}

inline std::string _escape_label(const std::string &text)
{
	std::string result;

	for (char c : text)
	{
		switch (c)
		{
			case '"': result += "\\\""; break;
			case '\\': result += "\\\\"; break;
			case '\a': result += "\\a"; break;
			case '\b': result += "\\b"; break;
			case '\t': result += "\\t"; break;
			case '\n': result += "\\n"; break;
			case '\v': result += "\\v"; break;
			case '\f': result += "\\f"; break;
			case '\r': result += "\\r"; break;
			default: result += c; break;
		}
	}

	return result;
}

inline std::string generate_graphviz(const $Parsed &p)
{
	std::vector<_ArenaEntry> arena;
	_collect_nodes(p, -1, arena);

	std::string result = "digraph g {\n";

	for (size_t i = 0; i < arena.size(); ++i)
	{
		const $Parsed &v = *arena[i].node;
		std::string id = std::to_string(i + 1);

		if (v.type == $ParsedType::Literal)
			result += "\ta" + id + "[label=\"" + _escape_label(v.literal) + "\" shape=ellipse];\n";
		else
		if (v.type == $ParsedType::Identifier)
			result += "\ta" + id + "[label=\"" + _escape_label(table_$IdentifierType[(int)v.identifier]) + "\" shape=box];\n";
		else
			result += "\ta" + id + "[label=\"" + _escape_label(table_$IdentifierType[(int)v.identifier]) + "\" shape=hexagon];\n";
	}

	result += "\n";

	for (size_t i = 0; i < arena.size(); ++i)
	{
		if (arena[i].parent >= 0)
			result += "\ta" + std::to_string(arena[i].parent + 1) + " -> a" + std::to_string(i + 1) + "\n";
	}

	result += "\n";
	result += "\t{ rank=same;";

	for (size_t i = 0; i < arena.size(); ++i)
	{
		if (arena[i].node->type == $ParsedType::Literal)
			result += " a" + std::to_string(i + 1);
	}

	result += " }\n";
	result += "}\n";

	return result;
}

inline std::string generate_tree(const $Parsed &p, size_t align = 0)
{
	std::string result;

	if (p.type == $ParsedType::Literal)
		return std::string(align, ' ') + "'" + p.literal + "'\n";

	result += std::string(align, ' ') + table_$IdentifierType[(int)p.identifier] + "\n";

	for (const auto &v : p.group)
		result += generate_tree(v, align + 1);

	return result;
}

inline std::string ansi_colored(const $Parsed &p, const std::unordered_map<std::string, std::string> &colors, const std::string &prev_color = "")
{
	std::string result;
	std::string color;

	if (auto it = colors.find(table_$IdentifierType[(int)p.identifier]); it != colors.end())
		color = it->second;

	result += color;

	if (p.type == $ParsedType::Literal)
	{
		result += p.literal;
	}
	else
	{
		for (const auto &v : p.group)
			result += ansi_colored(v, colors, color.empty() ? prev_color : color);
	}

	if (!color.empty())
		result += prev_color;

	return result;
}

} // namespace helpers
'''


def _preflight_check(namespace: str) -> None:
    if namespace and not _CPP_NAMESPACE_RE.fullmatch(namespace):
        raise ValueError(f"emit_cpp: invalid namespace {namespace!r}")


def _cpp_str(text: str) -> str:
    return '"' + escape_string(text) + '"'


def _signature(declared: str) -> str:
    return f"std::optional<$Parsed> $parse_{declared}(const char *&s, const char *e)"


def _call_expr(call: Call) -> str:
    if call.kind == CALL_LITERAL:
        return f"$parse_literal(sc, e, {_cpp_str(call.arg)})"
    if call.kind == CALL_NEGATE:
        return f"$parse_negate_literal(sc, e, {_cpp_str(call.arg)})"
    return f"$parse_{call.arg}(sc, e)"


def _emit_stmts(p: Printer, stmts: List[Stmt]) -> None:
    for stmt in stmts:
        if isinstance(stmt, Commit):
            p.print("s = sc;")
            p.print("return result;")
            continue

        assert isinstance(stmt, Attempt)
        call = _call_expr(stmt.call)
        p.print(f"if (auto v = {call})")
        p.print("{")
        with p.indent():
            p.print("result.group.push_back(std::move(v).value());")
            if stmt.repeat:
                p.print()
                p.print("for (;;)")
                p.print("{")
                with p.indent():
                    p.print("const char *mark = sc;")
                    p.print(f"auto w = {call};")
                    p.print()
                    p.print("if (!w || sc == mark)")
                    with p.indent():
                        p.print("break;")
                    p.print()
                    p.print("result.group.push_back(std::move(w).value());")
                p.print("}")
            if stmt.body:
                p.print()
            _emit_stmts(p, stmt.body)
        p.print("}")


def _emit_function(p: Printer, fn: ParseFunction) -> None:
    node_type = "Group" if fn.node_type == NODE_GROUP else "Identifier"
    p.print(f"// Rule: {fn.source}")
    p.print("[[nodiscard]]")
    p.print(_signature(fn.name))
    p.print("{")
    with p.indent():
        p.print("$Parsed result;")
        p.print(f"result.type = $ParsedType::{node_type};")
        p.print(f"result.identifier = $IdentifierType::$i_{fn.name};")
        for alt in fn.alternatives:
            p.print()
            p.print("{")
            with p.indent():
                p.print("const char *sc = s;")
                p.print("result.group.clear();")
                p.print()
                _emit_stmts(p, alt.body)
            p.print("}")
        p.print()
        p.print("return std::nullopt;")
    p.print("}")


def emit_cpp_to_string(ir: CodegenIR, namespace: str = "") -> str:
    _preflight_check(namespace)

    p = Printer("\t")
    p.printblock(_HEADER)
    p.print()
    if namespace:
        p.print(f"namespace {namespace}")
        p.print("{")
        p.print()

    p.print("enum class $IdentifierType")
    p.print("{")
    with p.indent():
        p.print("None,")
        for declared in ir.identifiers[1:]:
            p.print(f"$i_{declared},")
    p.print("};")
    p.print()
    p.print("const std::string table_$IdentifierType[]")
    p.print("{")
    with p.indent():
        for declared in ir.identifiers:
            p.print(f"{_cpp_str(declared)},")
    p.print("};")
    p.print()
    p.printblock(_RUNTIME)
    p.print()

    for fn in ir.functions:
        p.print(f"[[nodiscard]] {_signature(fn.name)};")

    for fn in ir.functions:
        p.print()
        _emit_function(p, fn)

    if namespace:
        p.print()
        p.print(f"}} // namespace {namespace}")
    return p.getvalue()
