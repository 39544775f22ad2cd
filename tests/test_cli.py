"""Tests for the attl CLI."""

import json
import logging

import pytest
from typer.testing import CliRunner

from attl._version import __version__
from attl.cli import typer_app
from attl.cli.utils import setup_logging

runner = CliRunner()

TEMPLATE = "<!-- attrib t : hi -->[t=hi]YES[/t=] [#t#]"


@pytest.fixture
def template(tmp_path):
    path = tmp_path / "page.tpl"
    path.write_text(TEMPLATE, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Keep a stray attl.yaml in the working directory out of the tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ATTL_DEBUG", raising=False)


def test_version():
    result = runner.invoke(typer_app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_render_file(template):
    result = runner.invoke(typer_app, [str(template)])
    assert result.exit_code == 0
    assert result.stdout == "YES hi"


def test_render_stdin():
    result = runner.invoke(typer_app, ["-"], input=TEMPLATE)
    assert result.exit_code == 0
    assert result.stdout == "YES hi"


def test_render_to_output_file(template, tmp_path):
    out = tmp_path / "out" / "page.txt"
    result = runner.invoke(typer_app, [str(template), "-o", str(out)])
    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8") == "YES hi"


def test_disasm(template):
    result = runner.invoke(typer_app, [str(template), "--disasm"])
    assert result.exit_code == 0
    assert "_start:" in result.stdout
    assert "attr@1(t):" in result.stdout
    assert "PrepScan" in result.stdout


def test_ast(template):
    result = runner.invoke(typer_app, [str(template), "--ast"])
    assert result.exit_code == 0
    elements = json.loads(result.stdout)
    assert elements[0]["type"] == "AttrDef"
    assert elements[0]["name"] == "t"


def test_missing_file(tmp_path):
    result = runner.invoke(typer_app, [str(tmp_path / "nope.tpl")])
    assert result.exit_code == 1


def test_recursion_limit_is_an_error(tmp_path):
    path = tmp_path / "loop.tpl"
    path.write_text("<!-- attrib a : [#a#] -->[#a#]")
    result = runner.invoke(typer_app, [str(path), "--max-depth", "10"])
    assert result.exit_code == 1


def test_config_file(tmp_path):
    path = tmp_path / "loop.tpl"
    path.write_text("<!-- attrib a : [#a#] -->[#a#]")
    config = tmp_path / "settings.yaml"
    config.write_text("max_depth: 5\n")

    result = runner.invoke(typer_app, [str(path), "-c", str(config)])
    assert result.exit_code == 1


def test_invalid_config_file(template, tmp_path):
    config = tmp_path / "settings.yaml"
    config.write_text("max_depth: -1\n")

    result = runner.invoke(typer_app, [str(template), "-c", str(config)])
    assert result.exit_code == 1


def test_strict_fails_on_redefinition(tmp_path):
    path = tmp_path / "dup.tpl"
    path.write_text("<!-- attrib a : one --><!-- attrib a : two -->[#a#]")

    lenient = runner.invoke(typer_app, [str(path)])
    assert lenient.exit_code == 0

    strict = runner.invoke(typer_app, [str(path), "--strict"])
    assert strict.exit_code == 1


def test_non_utf8_file_is_an_error(tmp_path):
    path = tmp_path / "latin1.tpl"
    path.write_bytes(b"caf\xe9 [#x#]")

    result = runner.invoke(typer_app, [str(path)])
    assert result.exit_code == 1
    assert "UTF-8" in result.output
    assert not isinstance(result.exception, UnicodeDecodeError)


def test_deep_nesting_is_an_error(tmp_path):
    depth = 2000
    path = tmp_path / "deep.tpl"
    path.write_text("<!-- attrib a : " * depth + "x" + " -->" * depth + "[#a#]")

    result = runner.invoke(typer_app, [str(path)])
    assert result.exit_code == 1
    assert "Nesting too deep" in result.output


def test_setup_logging_levels(monkeypatch):
    """Warnings by default, INFO with -v, DEBUG when ATTL_DEBUG is set."""
    logger = logging.getLogger("attl")

    setup_logging()
    assert logger.level == logging.WARNING
    setup_logging(verbose=True)
    assert logger.level == logging.INFO
    monkeypatch.setenv("ATTL_DEBUG", "1")
    setup_logging()
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert not logger.propagate

    monkeypatch.delenv("ATTL_DEBUG")
    setup_logging()
