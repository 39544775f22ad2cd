"""attl - Attribute Template Language

Templates built from named fragments ("attributes") and conditionals that
compare the expansion of one fragment against another, compiled to a small
bytecode and run on a backtracking stack machine.
"""

from attl._version import __version__
from attl.ast import AttrDef, AttrRef, Cond, Element, Parser, Text, parse
from attl.compiler import CompileResult, Compiler, Program, Renderer
from attl.config import Settings, load_settings
from attl.errors import (
    AttlError,
    CompileError,
    ConfigError,
    MachineError,
    ParseError,
    RecursionLimitExceeded,
    RedefinitionError,
    SourceError,
)
from attl.pipeline import Pipeline, Rendered, render
from attl.vm import Machine, execute

__all__ = [
    "__version__",
    # Element tree
    "AttrDef",
    "AttrRef",
    "Cond",
    "Element",
    "Text",
    # Stages
    "Parser",
    "parse",
    "Compiler",
    "CompileResult",
    "Program",
    "Renderer",
    "Machine",
    "execute",
    "Pipeline",
    "Rendered",
    "render",
    # Config
    "Settings",
    "load_settings",
    # Errors
    "AttlError",
    "CompileError",
    "ConfigError",
    "MachineError",
    "ParseError",
    "RecursionLimitExceeded",
    "RedefinitionError",
    "SourceError",
]
