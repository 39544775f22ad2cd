"""Virtual machine - executes a compiled Program against one output buffer.

Conditionals are evaluated by execution: the left-hand side is written to
the buffer, then the right-hand side runs in READ mode where `PutStr`
matches the text just written instead of appending. A scan frame remembers
where to roll the buffer (and the call stack) back to when matching fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from attl.compiler.spec import (
    Block,
    DropScan,
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
from attl.config import Settings
from attl.errors import MachineError, RecursionLimitExceeded

log = logging.getLogger(__name__)


@dataclass
class CallFrame:
    index: int
    code: Block
    ip: int = 0


@dataclass
class ScanFrame:
    fail: int  # instruction to resume at, in the frame that opened the scan
    cursor: int  # read position in the buffer
    mode: Mode
    length: int  # buffer length when the scan opened
    depth: int  # call stack depth when the scan opened


class Machine:
    """Runs a Program.

    The Program is only read, so any number of machines may share one. A
    machine's buffer and stacks are its own; `run` starts from a clean
    state every time.
    """

    def __init__(self, program: Program, settings: Optional[Settings] = None):
        self.program = program
        self.settings = settings or Settings()
        # Matching works on UTF-8 bytes; rollback points always fall on
        # string boundaries, so decoding the result is safe.
        self._strings = [s.encode("utf-8") for s in program.strings]
        self.buffer = bytearray()
        self.frames: List[CallFrame] = []
        self.scans: List[ScanFrame] = []
        self.steps = 0

    @property
    def mode(self) -> Mode:
        return self.scans[-1].mode if self.scans else Mode.WRITE

    def run(self, entry: Optional[int] = None) -> str:
        """Execute from block `entry` until it returns.

        Args:
            entry: Code block to start from; defaults to `settings.entry`.

        Returns:
            The final contents of the output buffer.

        Raises:
            MachineError: on an invariant violation in the program.
            RecursionLimitExceeded: if expansion nests deeper than
                `settings.max_depth`.
        """
        if entry is None:
            entry = self.settings.entry
        self.buffer = bytearray()
        self.frames = []
        self.scans = []
        self.steps = 0

        self._push_frame(entry)
        while self.frames:
            self.step()

        if self.scans:
            raise MachineError(f"{len(self.scans)} scan frame(s) left open at exit")
        log.debug("Finished after %d steps, %d bytes", self.steps, len(self.buffer))
        return self.buffer.decode("utf-8")

    def step(self) -> None:
        """Fetch and execute one instruction."""
        frame = self.frames[-1]
        if frame.ip >= len(frame.code):
            raise MachineError(f"Ran off the end of block {frame.index}")
        instr = frame.code[frame.ip]
        frame.ip += 1
        self.steps += 1
        log.debug("[%d:%d] %s (%s)", frame.index, frame.ip - 1, instr, self.mode.value)

        if isinstance(instr, PutStr):
            self._put_str(instr.index)
        elif isinstance(instr, Invoke):
            self._push_frame(instr.index)
        elif isinstance(instr, Proceed):
            self.frames.pop()
        elif isinstance(instr, SetMode):
            self._current_scan("SetMode").mode = instr.mode
        elif isinstance(instr, PrepScan):
            self.scans.append(
                ScanFrame(
                    fail=frame.ip + instr.offset,
                    cursor=len(self.buffer),
                    mode=Mode.WRITE,
                    length=len(self.buffer),
                    depth=len(self.frames),
                )
            )
        elif isinstance(instr, DropScan):
            scan = self._current_scan("DropScan")
            if scan.cursor != len(self.buffer):
                self._fail()
            else:
                self.scans.pop()
                del self.buffer[scan.length :]
        elif isinstance(instr, Skip):
            frame.ip += instr.offset
        elif isinstance(instr, Trap):
            raise MachineError(f"Hit a trap in block {frame.index} at {frame.ip - 1}")
        else:
            raise MachineError(f"Unknown instruction: {instr!r}")

    def _put_str(self, index: int) -> None:
        if not 0 <= index < len(self._strings):
            raise MachineError(f"String index out of range: {index}")
        data = self._strings[index]

        if self.mode is Mode.WRITE:
            self.buffer += data
            return

        scan = self.scans[-1]
        if self.buffer.startswith(data, scan.cursor):
            scan.cursor += len(data)
        else:
            self._fail()

    def _push_frame(self, index: int) -> None:
        if not 0 <= index < len(self.program.blocks):
            raise MachineError(f"Code index out of range: {index}")
        if len(self.frames) >= self.settings.max_depth:
            raise RecursionLimitExceeded(len(self.frames) + 1)
        self.frames.append(CallFrame(index=index, code=self.program.block(index)))

    def _current_scan(self, opname: str) -> ScanFrame:
        if not self.scans:
            raise MachineError(f"{opname} without an open scan frame")
        return self.scans[-1]

    def _fail(self) -> None:
        """Roll back the innermost scan and resume at its fail target."""
        scan = self.scans.pop()
        del self.buffer[scan.length :]
        del self.frames[scan.depth :]
        self.frames[-1].ip = scan.fail
        log.debug("Scan failed, resuming block %d at %d", self.frames[-1].index, scan.fail)


def execute(
    program: Program, entry: Optional[int] = None, settings: Optional[Settings] = None
) -> str:
    """Run `program` in a fresh Machine and return its output."""

    return Machine(program, settings).run(entry)
