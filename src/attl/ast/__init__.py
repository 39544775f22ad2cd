"""ATTL AST - element tree and the parser that builds it."""

from attl.ast.node import AttrDef, AttrRef, Cond, Element, Text
from attl.ast.parser import Parser, parse

__all__ = ["AttrDef", "AttrRef", "Cond", "Element", "Text", "Parser", "parse"]
