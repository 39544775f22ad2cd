"""Parser - turns template source text into an element forest.

Grammar, tried in order at every position (first match wins):

    [#name#]                              attribute reference
    <!-- attrib name : body -->           attribute definition
    [name=expected]body[/name=]           conditional (also with `!=`)
    anything else                         text

Nested sequences stop at a single active terminator (` -->`, `]` or `[/`)
which is passed down explicitly and restored by returning from the call.
Rules never mutate shared state: each one works from an offset and returns
the new offset on success, or None to let the next rule try. That makes the
result of `parse_element` a function of `(pos, terminator)`, so it is
memoised for the length of a parse.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from attl.ast.node import AttrDef, AttrRef, Cond, Element, Text
from attl.errors import ParseError

log = logging.getLogger(__name__)

ATTR_HEAD = "[#"
ATTR_END = "#]"
ATTRDEF_HEAD = "<!-- attrib "
ATTRDEF_SEP = " : "
ATTRDEF_END = " -->"
COND_HEAD = "["
COND_OPS = ("!=", "=")
COND_EXPECTED_END = "]"
COND_CLOSE = "[/"
COND_END = "]"

Parsed = Optional[Tuple[Element, int]]


class Parser:
    """Recursive-descent parser over a single source string."""

    def __init__(self, source: str):
        self.source = source
        self.memo: Dict[Tuple[int, Optional[str]], Parsed] = {}

    def parse(self) -> List[Element]:
        """Parse the whole source into a list of top-level elements.

        Raises:
            ParseError: if no rule applies at some offset, or if the element
                starting there nests deeper than the interpreter stack allows.
        """
        self.memo = {}
        elements: List[Element] = []
        pos = 0
        while pos < len(self.source):
            try:
                parsed = self.parse_element(pos, None)
            except RecursionError:
                raise ParseError(pos, "Nesting too deep to parse element") from None
            if parsed is None:
                raise ParseError(pos)
            element, pos = parsed
            elements.append(element)
        log.debug("Parsed %d top-level elements", len(elements))
        return elements

    def parse_element(self, pos: int, terminator: Optional[str]) -> Parsed:
        """Parse one element at `pos` with `terminator` active."""
        key = (pos, terminator)
        if key not in self.memo:
            self.memo[key] = self._parse_element(pos, terminator)
        return self.memo[key]

    def _parse_element(self, pos: int, terminator: Optional[str]) -> Parsed:
        log.debug("[elem @ %d]", pos)
        if pos >= len(self.source):
            return None
        return (
            self._parse_attr_ref(pos)
            or self._parse_attr_def(pos)
            or self._parse_cond(pos)
            or self._parse_text(pos, terminator)
        )

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    def _parse_attr_ref(self, pos: int) -> Parsed:
        if not self._at(pos, ATTR_HEAD):
            return None
        start = pos + len(ATTR_HEAD)
        end = self.source.find(ATTR_END, start)
        if end < 0:
            return None
        log.debug("[attr @ %d]", pos)
        return AttrRef(self.source[start:end]), end + len(ATTR_END)

    def _parse_attr_def(self, pos: int) -> Parsed:
        if not self._at(pos, ATTRDEF_HEAD):
            return None
        start = pos + len(ATTRDEF_HEAD)
        name_end = self.source.find(ATTRDEF_SEP, start)
        if name_end < 0:
            return None
        body_start = name_end + len(ATTRDEF_SEP)
        if self.source.find(ATTRDEF_END, body_start) < 0:
            return None
        log.debug("[attr def @ %d]", pos)

        body = self._parse_sequence(body_start, ATTRDEF_END)
        if body is None:
            return None
        elements, pos = body
        return AttrDef(self.source[start:name_end], elements), pos

    def _parse_cond(self, pos: int) -> Parsed:
        if not self._at(pos, COND_HEAD):
            return None
        start = pos + len(COND_HEAD)

        capture_end = start
        while capture_end < len(self.source) and self.source[capture_end] not in "!=":
            capture_end += 1
        op = next((op for op in COND_OPS if self._at(capture_end, op)), None)
        if op is None:
            return None

        # The closing tag must repeat `capture op` character for character.
        tag = self.source[start : capture_end + len(op)]
        if self.source.find(COND_CLOSE + tag + COND_END, capture_end) < 0:
            return None
        log.debug("[cond @ %d]", pos)

        expected = self._parse_sequence(capture_end + len(op), COND_EXPECTED_END)
        if expected is None:
            return None
        expected_elements, pos = expected

        body = self._parse_sequence(pos, COND_CLOSE)
        if body is None:
            return None
        body_elements, pos = body

        if not self._at(pos, tag):
            return None
        pos += len(tag)
        if not self._at(pos, COND_END):
            return None
        pos += len(COND_END)

        capture = self.source[start:capture_end]
        return Cond(capture, expected_elements, body_elements, op == "!="), pos

    def _parse_text(self, pos: int, terminator: Optional[str]) -> Parsed:
        log.debug("[text @ %d]", pos)
        start = pos
        # A head that no other rule accepted is plain text; swallow it so the
        # scan below makes progress.
        if self._at_head(pos):
            pos += 1
        while pos < len(self.source):
            if self._at_head(pos) or self._at_terminator(pos, terminator):
                break
            pos += 1
        if pos == start:
            return None
        return Text(self.source[start:pos]), pos

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _parse_sequence(
        self, pos: int, terminator: str
    ) -> Optional[Tuple[List[Element], int]]:
        """Parse elements until `terminator`, then consume it."""
        elements: List[Element] = []
        while not self._at(pos, terminator):
            parsed = self.parse_element(pos, terminator)
            if parsed is None:
                return None
            element, pos = parsed
            elements.append(element)
        return elements, pos + len(terminator)

    def _at(self, pos: int, token: str) -> bool:
        return self.source.startswith(token, pos)

    def _at_head(self, pos: int) -> bool:
        return self._at(pos, COND_HEAD) or self._at(pos, ATTRDEF_HEAD)

    def _at_terminator(self, pos: int, terminator: Optional[str]) -> bool:
        return terminator is not None and self._at(pos, terminator)


def parse(source: str) -> List[Element]:
    """Parse `source` and return its top-level elements."""

    return Parser(source).parse()
