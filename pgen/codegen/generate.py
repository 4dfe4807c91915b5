from __future__ import annotations
from typing import Sequence
from .ir import build_ir
from .emit_py import emit_py_to_string
from .emit_cpp import emit_cpp_to_string
from ..grammar.ast import Rule
from ..diag import _eprint

LANGS = ("python", "cpp")


def generate(rules: Sequence[Rule], namespace: str = "", *, lang: str = "python", debug: bool = False) -> str:
    """
    `rules`에 대한 파서 소스를 타깃 언어로 생성한다.
    - namespace : 감쌀 네임스페이스 (선택, "" = 없음)
    - lang      : "python" (기본) | "cpp"
    AST가 잘못됐거나 쓸 수 없는 이름이면 ValueError.
    """
    if lang not in LANGS:
        raise ValueError(f"generate: unsupported language {lang!r} (expected one of {LANGS})")

    ir = build_ir(rules)
    if debug:
        _eprint("[DEBUG] IR ready | rules=%d groups=%d functions=%d" %
                (len(ir.rules), len(ir.groups), len(ir.functions)))
        for name in ir.undefined:
            _eprint(f"[WARN] '{name}' is referenced but no rule defines it")

    if lang == "python":
        src = emit_py_to_string(ir, namespace=namespace)
    else:
        src = emit_cpp_to_string(ir, namespace=namespace)

    if debug:
        _eprint(f"[DEBUG] emit lang={lang} namespace={namespace or '-'} bytes={len(src)}")
    return src
