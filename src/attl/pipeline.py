"""Pipeline - source text to output text in one call.

    source --Parser--> elements --Compiler--> Program --Machine--> output

The Program produced by `compile` is immutable; `execute` can run it any
number of times, each run in its own Machine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from attl.ast.node import Element
from attl.ast.parser import Parser
from attl.compiler.compiler import CompileResult, Compiler
from attl.compiler.spec import Program
from attl.config import Settings
from attl.errors import RedefinitionError, SourceError
from attl.vm.machine import Machine

log = logging.getLogger(__name__)


@dataclass
class Rendered:
    """Output of a full pipeline run."""

    output: str
    program: Program
    errors: List[RedefinitionError] = field(default_factory=list)


class Pipeline:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    def parse(self, source: str) -> List[Element]:
        return Parser(source).parse()

    def compile(self, source: str) -> CompileResult:
        return Compiler().compile(self.parse(source))

    def execute(self, program: Program) -> str:
        return Machine(program, self.settings).run()

    def render(self, source: str) -> Rendered:
        """Parse, compile and run `source`.

        Redefinitions don't stop the run; they are returned in `errors`.
        """
        result = self.compile(source)
        output = self.execute(result.program)
        log.debug("Rendered %d characters", len(output))
        return Rendered(output=output, program=result.program, errors=result.errors)


def render(source: str, settings: Optional[Settings] = None) -> str:
    """Render `source` and return only the output text."""

    return Pipeline(settings).render(source).output


def read_file(filepath: str) -> str:
    try:
        with open(filepath, "r", encoding="utf-8") as file:
            return file.read()
    except OSError as exc:
        raise FileNotFoundError(f"Could not read file: {filepath}") from exc
    except UnicodeDecodeError as exc:
        raise SourceError(filepath, f"not valid UTF-8 at byte {exc.start}") from exc
