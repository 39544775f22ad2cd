"""Compiler IR spec - instruction set and compiled program."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union


class Mode(str, Enum):
    """Whether `PutStr` appends text (WRITE) or matches it (READ)."""

    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class PutStr:
    """Write string `index`, or match it against the buffer in READ mode."""

    index: int


@dataclass(frozen=True)
class Invoke:
    """Expand code block `index` in the current mode."""

    index: int


@dataclass(frozen=True)
class Proceed:
    """Return from the current code block."""


@dataclass(frozen=True)
class SetMode:
    """Switch the innermost scan frame to `mode`."""

    mode: Mode


@dataclass(frozen=True)
class PrepScan:
    """Open a scan frame; on failure resume `offset` past the next instruction."""

    offset: int


@dataclass(frozen=True)
class DropScan:
    """Close the innermost scan frame if every scanned byte was matched."""


@dataclass(frozen=True)
class Skip:
    """Jump `offset` instructions forward."""

    offset: int


@dataclass(frozen=True)
class Trap:
    """Placeholder for a jump that is back-patched later.

    A trap left in a finished block is a compiler bug.
    """


Instr = Union[PutStr, Invoke, Proceed, SetMode, PrepScan, DropScan, Skip, Trap]

Block = Tuple[Instr, ...]

ENTRY = 0

EMPTY_BLOCK: Block = (Proceed(),)


@dataclass(frozen=True)
class Program:
    """A compiled template.

    `blocks[0]` is the entry block for top-level text. Every other slot
    belongs to an attribute named in `names`; a slot that was referenced
    but never defined holds None and expands to nothing.
    """

    strings: Tuple[str, ...] = ()
    blocks: Tuple[Optional[Block], ...] = ()
    names: Dict[str, int] = field(default_factory=dict)

    def block(self, index: int) -> Block:
        """Return the code of block `index`; undefined slots expand to nothing."""
        return self.blocks[index] or EMPTY_BLOCK

    def name_of(self, index: int) -> Optional[str]:
        for name, slot in self.names.items():
            if slot == index:
                return name
        return None

    @property
    def unresolved(self) -> list[str]:
        """Attributes that were referenced but never defined."""
        return sorted(
            name for name, index in self.names.items() if self.blocks[index] is None
        )
