"""ATTL Exceptions

Custom exceptions raised while parsing, compiling and running templates.
"""

from __future__ import annotations

from pathlib import Path


class AttlError(Exception):
    """Base exception for all ATTL errors."""

    pass


class SourceError(AttlError):
    """Raised when a template file cannot be decoded."""

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(f"Could not read template {self.path}: {message}")


class ParseError(AttlError):
    """Raised when no element can be parsed at a position of the source."""

    def __init__(self, offset: int, reason: str = "No element could be parsed"):
        self.offset = offset
        self.reason = reason
        super().__init__(f"{reason} starting at offset {offset}")


class CompileError(AttlError):
    """Raised when an element tree cannot be lowered to bytecode."""

    def __init__(self, name: str, message: str):
        self.name = name
        self.message = message
        super().__init__(f"Cannot compile {name}: {message}")


class RedefinitionError(AttlError):
    """Reported when an attribute is defined more than once.

    The compiler collects these instead of raising them; the first
    definition wins and compilation carries on.
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Ignoring redefinition of attribute: {name!r}")


class MachineError(AttlError):
    """Raised when the virtual machine hits an invariant violation.

    This points at a compiler bug or a hand-built program, never at
    template input that follows the grammar.
    """

    pass


class RecursionLimitExceeded(MachineError):
    """Raised when attribute expansion nests deeper than allowed."""

    def __init__(self, depth: int):
        self.depth = depth
        super().__init__(f"Recursion limit exceeded: call depth {depth}")


class ConfigError(AttlError):
    """Raised when a settings file cannot be read or validated."""

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(f"Invalid settings file {self.path}: {message}")
