"""Tests for the virtual machine, mostly on hand-assembled programs."""

import pytest

from attl.compiler.spec import (
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
from attl.vm import Machine, execute


def test_writes_strings_in_order():
    program = Program(
        strings=("a", "b"),
        blocks=((PutStr(0), PutStr(1), PutStr(0), Proceed()),),
    )
    assert execute(program) == "aba"


def test_invoke_and_proceed():
    program = Program(
        strings=("<", ">", "mid"),
        blocks=(
            (PutStr(0), Invoke(1), PutStr(1), Proceed()),
            (PutStr(2), Proceed()),
        ),
        names={"m": 1},
    )
    assert execute(program) == "<mid>"


def test_undefined_block_expands_to_nothing():
    program = Program(
        strings=("x",),
        blocks=((PutStr(0), Invoke(1), PutStr(0), Proceed()), None),
        names={"missing": 1},
    )
    assert execute(program) == "xx"


def test_skip_jumps_forward():
    program = Program(
        strings=("a", "b"),
        blocks=((Skip(1), PutStr(0), PutStr(1), Proceed()),),
    )
    assert execute(program) == "b"


def test_hand_assembled_conditionals():
    """
    <!-- attrib _0 : [_1=testo] abba [/_1=][#_1#][#_2#] -->
    <!-- attrib _1 : [_2!=]testo[/_2!=] -->
    <!-- attrib _2 : testo -->
    """
    program = Program(
        strings=("testo", " abba "),
        blocks=(
            (
                PrepScan(5),
                Invoke(1),
                SetMode(Mode.READ),
                PutStr(0),
                DropScan(),
                PutStr(1),
                Invoke(1),
                Invoke(2),
                Proceed(),
            ),
            (
                PrepScan(4),
                Invoke(2),
                SetMode(Mode.READ),
                DropScan(),
                Skip(1),
                PutStr(0),
                Proceed(),
            ),
            (PutStr(0), Proceed()),
        ),
        names={"_1": 1, "_2": 2},
    )
    # _1 is "testo" (since _2 != ""), so the first conditional matches.
    assert execute(program) == " abba testotesto"


def test_successful_match_discards_left_side():
    program = Program(
        strings=("hi", "YES"),
        blocks=(
            (
                PrepScan(5),
                Invoke(1),
                SetMode(Mode.READ),
                PutStr(0),
                DropScan(),
                PutStr(1),
                Proceed(),
            ),
            (PutStr(0), Proceed()),
        ),
    )
    assert execute(program) == "YES"


def test_partial_match_fails_at_dropscan():
    """Matching a prefix is not enough: every scanned byte must be consumed."""
    program = Program(
        strings=("h", "YES", "hi"),
        blocks=(
            (
                PrepScan(5),
                Invoke(1),
                SetMode(Mode.READ),
                PutStr(0),
                DropScan(),
                PutStr(1),
                Proceed(),
            ),
            (PutStr(2), Proceed()),
        ),
    )
    assert execute(program) == ""


def test_failure_inside_invoked_block_unwinds_call_stack():
    """A mismatch deep in an attribute resumes in the block that began the scan."""
    program = Program(
        strings=("hi", "bye", "YES", "end"),
        blocks=(
            (
                PrepScan(5),
                Invoke(1),
                SetMode(Mode.READ),
                Invoke(2),
                DropScan(),
                PutStr(2),
                PutStr(3),
                Proceed(),
            ),
            (PutStr(0), Proceed()),
            (PutStr(1), Proceed()),
        ),
    )
    machine = Machine(program)
    assert machine.run() == "end"
    assert machine.scans == []
    assert machine.frames == []


def test_rollback_keeps_text_written_before_scan():
    program = Program(
        strings=("keep ", "x", "y"),
        blocks=(
            (
                PutStr(0),
                PrepScan(4),
                PutStr(1),
                SetMode(Mode.READ),
                PutStr(2),
                DropScan(),
                Proceed(),
            ),
        ),
    )
    assert execute(program) == "keep "


def test_utf8_text():
    program = Program(
        strings=("héllo ✓", "YES"),
        blocks=(
            (
                PrepScan(5),
                PutStr(0),
                SetMode(Mode.READ),
                PutStr(0),
                DropScan(),
                PutStr(1),
                PutStr(0),
                Proceed(),
            ),
        ),
    )
    assert execute(program) == "YEShéllo ✓"


def test_run_is_repeatable():
    program = Program(
        strings=("a",),
        blocks=((PutStr(0), Invoke(1), Proceed()), (PutStr(0), Proceed())),
    )
    machine = Machine(program)
    assert machine.run() == machine.run() == "aa"


def test_entry_argument():
    program = Program(
        strings=("zero", "one"),
        blocks=((PutStr(0), Proceed()), (PutStr(1), Proceed())),
    )
    assert execute(program, entry=1) == "one"
    assert execute(program, settings=Settings(entry=1)) == "one"


def test_recursion_limit():
    program = Program(
        strings=(),
        blocks=((Invoke(1), Proceed()), (Invoke(2), Proceed()), (Invoke(1), Proceed())),
    )
    with pytest.raises(RecursionLimitExceeded) as excinfo:
        execute(program, settings=Settings(max_depth=50))
    assert excinfo.value.depth == 51


def test_recursion_limit_is_a_machine_error():
    assert issubclass(RecursionLimitExceeded, MachineError)


@pytest.mark.parametrize(
    "blocks",
    [
        pytest.param(((Trap(), Proceed()),), id="trap"),
        pytest.param(((SetMode(Mode.READ), Proceed()),), id="setmode-without-scan"),
        pytest.param(((DropScan(), Proceed()),), id="dropscan-without-scan"),
        pytest.param(((PutStr(0),),), id="missing-proceed"),
        pytest.param(((Invoke(5), Proceed()),), id="bad-code-index"),
        pytest.param(((PutStr(9), Proceed()),), id="bad-string-index"),
        pytest.param(((PrepScan(0), Proceed()),), id="unclosed-scan"),
    ],
)
def test_invariant_violations_raise(blocks):
    program = Program(strings=("x",), blocks=blocks)
    with pytest.raises(MachineError):
        execute(program)


def test_bad_entry_raises():
    program = Program(strings=(), blocks=((Proceed(),),))
    with pytest.raises(MachineError):
        execute(program, entry=3)
