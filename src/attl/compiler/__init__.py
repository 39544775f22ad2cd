"""ATTL Compiler - lowers element trees to bytecode programs."""

from attl.compiler.compiler import CompileResult, Compiler, compile_elements
from attl.compiler.renderer import Renderer
from attl.compiler.spec import Mode, Program

__all__ = [
    "CompileResult",
    "Compiler",
    "compile_elements",
    "Renderer",
    "Mode",
    "Program",
]
