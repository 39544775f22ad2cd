from __future__ import annotations

from typing import List, Union

import msgspec


class Text(msgspec.Struct, frozen=True, tag=True):
    """A literal run of source characters, copied to the output verbatim."""

    text: str


class AttrRef(msgspec.Struct, frozen=True, tag=True):
    """`[#name#]` - expand the attribute `name` at this point."""

    name: str


class AttrDef(msgspec.Struct, frozen=True, tag=True):
    """`<!-- attrib name : body -->` - bind `name` to `body`."""

    name: str
    body: List[Element] = msgspec.field(default_factory=list)


class Cond(msgspec.Struct, frozen=True, tag=True):
    """`[capture=expected]body[/capture=]` and its `!=` counterpart.

    `body` is emitted when the expansion of `capture` equals the expansion
    of `expected` (or differs from it, when `negate` is set).
    """

    capture: str
    expected: List[Element] = msgspec.field(default_factory=list)
    body: List[Element] = msgspec.field(default_factory=list)
    negate: bool = False


Element = Union[Text, AttrRef, AttrDef, Cond]


def dump_json(elements: List[Element]) -> bytes:
    """Encode an element forest as JSON, mostly for debugging."""

    return msgspec.json.encode(elements)


def load_json(data: bytes | str) -> List[Element]:
    """Decode an element forest previously produced by `dump_json`."""

    return msgspec.json.decode(data, type=List[Element])
