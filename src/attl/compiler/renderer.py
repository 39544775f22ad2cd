"""Renderer - converts a compiled Program to a readable disassembly."""

from attl.compiler.spec import (
    ENTRY,
    Block,
    Instr,
    Invoke,
    PrepScan,
    Program,
    PutStr,
    SetMode,
    Skip,
)

INDENT = "    "
COMMENT_COLUMN = 20


class Renderer:
    """Renders Program bytecode to text."""

    def render(self, program: Program) -> str:
        """Render every block of `program`, entry block first.

        Args:
            program: The compiled program.

        Returns:
            Disassembly listing with a trailing newline.
        """
        parts = []
        for index, block in enumerate(program.blocks):
            parts.append(self._render_label(program, index))
            if block is None:
                parts.append(f"{INDENT}<undefined>")
            else:
                parts.extend(self._render_block(program, block))
        parts.append("")
        return "\n".join(parts)

    def _render_label(self, program: Program, index: int) -> str:
        if index == ENTRY:
            return "_start:"
        return f"attr@{index}({program.name_of(index)}):"

    def _render_block(self, program: Program, block: Block) -> list[str]:
        lines = []
        for ip, instr in enumerate(block):
            text = self.render_instr(instr)
            comment = self._comment(program, ip, instr)
            if comment:
                text = f"{text.ljust(COMMENT_COLUMN)}; {comment}"
            lines.append(f"{INDENT}{text}")
        return lines

    def render_instr(self, instr: Instr) -> str:
        """Render a single instruction without annotations."""
        name = type(instr).__name__
        if isinstance(instr, (PutStr, Invoke)):
            return f"{name} {instr.index}"
        if isinstance(instr, SetMode):
            return f"{name} {instr.mode.value}"
        if isinstance(instr, (PrepScan, Skip)):
            return f"{name} +{instr.offset}"
        return name

    def _comment(self, program: Program, ip: int, instr: Instr) -> str:
        if isinstance(instr, PutStr):
            return repr(program.strings[instr.index])
        if isinstance(instr, Invoke):
            name = program.name_of(instr.index)
            if program.blocks[instr.index] is None:
                return f"{name} (undefined)"
            return str(name)
        if isinstance(instr, (PrepScan, Skip)):
            # Offsets count from the instruction after the jump.
            return f"-> {ip + 1 + instr.offset}"
        return ""
