"""Compiler - lowers an element forest into a bytecode Program.

Every attribute definition, wherever it appears, becomes its own code
block. Names are bound to code slots at first mention, so a reference may
come before its definition, like a symbol resolved at link time.

Conditionals compile to the scan/rollback sequence the VM understands:

    PrepScan  fail            ; open a scan frame (WRITE mode)
    Invoke    capture         ; write the left-hand side
    SetMode   READ
    ...expected...            ; match the right-hand side against it
    DropScan                  ; succeed only if everything was matched
    ...body...                ; `=`: runs on match
  fail:

and for `!=`:

    PrepScan  fail
    Invoke    capture
    SetMode   READ
    ...expected...
    DropScan
    Skip      end             ; matched, so the inequality is false
  fail:
    ...body...
  end:
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from attl.ast.node import AttrDef, AttrRef, Cond, Element, Text
from attl.compiler.spec import (
    ENTRY,
    Block,
    DropScan,
    Instr,
    Invoke,
    Mode,
    PrepScan,
    Proceed,
    Program,
    PutStr,
    SetMode,
    Skip,
    Trap,
)
from attl.errors import CompileError, RedefinitionError

log = logging.getLogger(__name__)


@dataclass
class CompileResult:
    """A compiled program plus the redefinitions reported along the way."""

    program: Program
    errors: List[RedefinitionError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Compiler:
    """Compiles element forests to Programs.

    A Compiler instance holds the state of one compilation; `compile` resets
    it, so an instance can be reused.
    """

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.strings: List[str] = []
        self.string_index: Dict[str, int] = {}
        self.blocks: List[Optional[Block]] = []
        self.names: Dict[str, int] = {}
        self.queue: List[Tuple[str, List[Element]]] = []
        self.errors: List[RedefinitionError] = []

    def compile(self, elements: Iterable[Element]) -> CompileResult:
        """Compile top-level `elements` and every definition they contain.

        Args:
            elements: The parsed top-level element sequence.

        Returns:
            CompileResult with the Program and any redefinition reports.
        """
        self._reset()

        self.blocks.append(None)
        self.lower(CompileUnit(self, ENTRY), elements, "_start")

        # Definitions are drained last-in first-out; each unit pushes its own
        # in reverse so they come off in source order.
        while self.queue:
            name, body = self.queue.pop()
            index = self.claim(name)
            if index is None:
                error = RedefinitionError(name)
                log.warning("%s", error)
                self.errors.append(error)
                continue
            self.lower(CompileUnit(self, index), body, name)

        for name in sorted(n for n, i in self.names.items() if self.blocks[i] is None):
            log.debug("Attribute %r is referenced but never defined", name)

        program = Program(
            strings=tuple(self.strings),
            blocks=tuple(self.blocks),
            names=dict(self.names),
        )
        log.info(
            "Compiled %d blocks, %d strings, %d redefinitions",
            len(program.blocks),
            len(program.strings),
            len(self.errors),
        )
        return CompileResult(program=program, errors=list(self.errors))

    def lower(self, unit: CompileUnit, elements: Iterable[Element], name: str) -> None:
        """Emit `elements` into `unit` and commit it.

        Raises:
            CompileError: if conditionals nest deeper than the interpreter
                stack allows.
        """
        try:
            unit.push_many(elements)
        except RecursionError:
            raise CompileError(name, "conditionals nested too deeply") from None
        unit.commit()

    # -------------------------------------------------------------------------
    # Symbol tables
    # -------------------------------------------------------------------------

    def bind_attr(self, name: str) -> int:
        """Return the code slot for `name`, reserving an empty one if new."""
        if name not in self.names:
            self.names[name] = len(self.blocks)
            self.blocks.append(None)
        return self.names[name]

    def claim(self, name: str) -> Optional[int]:
        """Return the slot a definition of `name` may fill.

        Returns None when the slot already holds code.
        """
        index = self.bind_attr(name)
        if self.blocks[index] is not None:
            return None
        return index

    def bind_str(self, string: str) -> int:
        """Intern `string` and return its index in the string table."""
        if string not in self.string_index:
            self.string_index[string] = len(self.strings)
            self.strings.append(string)
        return self.string_index[string]

    def enqueue(self, definitions: List[AttrDef]) -> None:
        for definition in reversed(definitions):
            self.queue.append((definition.name, definition.body))


class CompileUnit:
    """Code being emitted for a single block."""

    def __init__(self, compiler: Compiler, binding: int):
        self.compiler = compiler
        self.binding = binding
        self.code: List[Instr] = []
        self.definitions: List[AttrDef] = []

    def commit(self) -> None:
        """Terminate the block and store it in its slot."""
        self.code.append(Proceed())
        assert not any(isinstance(instr, Trap) for instr in self.code), (
            f"unpatched jump in block {self.binding}"
        )
        self.compiler.blocks[self.binding] = tuple(self.code)
        self.compiler.enqueue(self.definitions)

    def push_many(self, elements: Iterable[Element]) -> None:
        for element in elements:
            self.push(element)

    def push(self, element: Element) -> None:
        if isinstance(element, Text):
            self.code.append(PutStr(self.compiler.bind_str(element.text)))
        elif isinstance(element, AttrRef):
            self.code.append(Invoke(self.compiler.bind_attr(element.name)))
        elif isinstance(element, AttrDef):
            self.definitions.append(element)
        elif isinstance(element, Cond):
            self._push_cond(element)
        else:
            raise TypeError(f"Unknown element: {element!r}")

    def _push_cond(self, cond: Cond) -> None:
        head = self._placeholder()
        self.push(AttrRef(cond.capture))
        self.code.append(SetMode(Mode.READ))
        self.push_many(cond.expected)
        self.code.append(DropScan())

        if cond.negate:
            skip = self._placeholder()
            self._patch(head, PrepScan(len(self.code) - (head + 1)))
            self.push_many(cond.body)
            self._patch(skip, Skip(len(self.code) - (skip + 1)))
        else:
            self.push_many(cond.body)
            self._patch(head, PrepScan(len(self.code) - (head + 1)))

    def _placeholder(self) -> int:
        self.code.append(Trap())
        return len(self.code) - 1

    def _patch(self, position: int, instr: Instr) -> None:
        assert isinstance(self.code[position], Trap)
        self.code[position] = instr


def compile_elements(elements: Iterable[Element]) -> CompileResult:
    """Compile `elements` with a fresh Compiler."""

    return Compiler().compile(elements)
