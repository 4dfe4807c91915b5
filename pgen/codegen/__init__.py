# pgen/codegen/__init__.py
"""pgen 문법용 코드 생성.

- `build_ir`           : AST -> CodegenIR (문장 트리, 식별자 테이블)
- `emit_py_to_string`  : CodegenIR -> 단독 Python 파서 모듈
- `emit_cpp_to_string` : CodegenIR -> 단일 C++17 번역 단위
- `generate`           : rules -> 소스 텍스트 (한 번에)
"""

from .ir import (
    CodegenIR, ParseFunction, Alternative, Attempt, Commit, Call,
    build_ir, split_alternatives,
)
from .emit_py import emit_py_to_string
from .emit_cpp import emit_cpp_to_string
from .generate import generate, LANGS
