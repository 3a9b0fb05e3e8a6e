"""Tests for the CLI module: arg parsing, exit codes, dumps, watch mode, end-to-end."""

from __future__ import annotations

from pathlib import Path

import pytest

from textecca.cli import CliOptions, build_parser, compile_file, format_error, main, watch_loop
from textecca.errors import SerializerError

# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class TestArgParsing:
    def test_input_only(self) -> None:
        ns = build_parser().parse_args(["doc.tx"])
        assert ns.input == "doc.tx"
        assert ns.output is None
        assert ns.standalone is None
        assert ns.css == []
        assert ns.max_depth is None
        assert ns.verbose == 0

    def test_output_flag(self) -> None:
        ns = build_parser().parse_args(["doc.tx", "-o", "out.html"])
        assert ns.output == "out.html"

    def test_fragment_and_standalone(self) -> None:
        p = build_parser()
        assert p.parse_args(["doc.tx", "--fragment"]).standalone is False
        assert p.parse_args(["doc.tx", "--standalone"]).standalone is True

    def test_fragment_excludes_standalone(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["doc.tx", "--fragment", "--standalone"])

    def test_repeated_css(self) -> None:
        ns = build_parser().parse_args(["doc.tx", "--css", "a.css", "--css", "b.css"])
        assert ns.css == ["a.css", "b.css"]

    def test_max_depth_and_lang(self) -> None:
        ns = build_parser().parse_args(["doc.tx", "--max-depth", "5", "--lang", "de"])
        assert ns.max_depth == 5
        assert ns.lang == "de"

    def test_dump_flags(self) -> None:
        ns = build_parser().parse_args(["doc.tx", "--tokens", "--debug", "--watch", "-vv"])
        assert ns.tokens and ns.debug and ns.watch
        assert ns.verbose == 2


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


def write_doc(tmp_path: Path, text: str, name: str = "doc.tx") -> Path:
    doc = tmp_path / name
    doc.write_text(text, encoding="utf-8")
    return doc


class TestExitCodes:
    def test_success(self, tmp_path: Path, capsys) -> None:
        doc = write_doc(tmp_path, "Hello\n")
        assert main([str(doc)]) == 0
        assert "<p>Hello</p>" in capsys.readouterr().out

    def test_lex_error_returns_1(self, tmp_path: Path, capsys) -> None:
        doc = write_doc(tmp_path, "a\n  b\n c\n")
        assert main([str(doc)]) == 1
        err = capsys.readouterr().err
        assert "error: blank line or indentation matches no outer block" in err
        assert f"--> {doc}:3:1" in err

    def test_parse_error_returns_1(self, tmp_path: Path, capsys) -> None:
        doc = write_doc(tmp_path, "\\emph{oops\n")
        assert main([str(doc)]) == 1
        assert "unclosed" in capsys.readouterr().err

    def test_unbound_command_returns_2(self, tmp_path: Path, capsys) -> None:
        doc = write_doc(tmp_path, "Hello \\nope\n")
        assert main([str(doc)]) == 2
        err = capsys.readouterr().err
        assert "command \\nope not defined" in err
        assert f"--> {doc}:1:8" in err

    def test_bad_arguments_return_2(self, tmp_path: Path) -> None:
        doc = write_doc(tmp_path, "\\rule{x}\n")
        assert main([str(doc)]) == 2

    def test_recursion_limit_returns_2(self, tmp_path: Path, capsys) -> None:
        doc = write_doc(tmp_path, "\\emph{\\emph{x}}\n")
        assert main([str(doc), "--max-depth", "1"]) == 2
        assert "deeper than 1 levels" in capsys.readouterr().err

    def test_interpreter_stack_exhaustion_returns_2(self, tmp_path: Path, capsys) -> None:
        doc = write_doc(tmp_path, "\\emph{" * 400 + "x" + "}" * 400)
        assert main([str(doc), "--max-depth", "5000"]) == 2
        err = capsys.readouterr().err
        assert "error: commands nested too deeply" in err
        assert f"--> {doc}:1:" in err

    def test_missing_file_returns_2(self, tmp_path: Path, capsys) -> None:
        assert main([str(tmp_path / "missing.tx")]) == 2
        assert capsys.readouterr().err.startswith("error:")

    def test_invalid_max_depth_returns_2(self, tmp_path: Path, capsys) -> None:
        doc = write_doc(tmp_path, "x")
        assert main([str(doc), "--max-depth", "0"]) == 2
        assert "max depth must be at least 1" in capsys.readouterr().err

    def test_bad_config_returns_2(self, tmp_path: Path) -> None:
        (tmp_path / "textecca.toml").write_text("[html\n")
        doc = write_doc(tmp_path, "x")
        assert main([str(doc)]) == 2


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class TestOutput:
    def test_fragment(self, tmp_path: Path, capsys) -> None:
        doc = write_doc(tmp_path, "\\sec{Hi}\n\nText")
        assert main([str(doc), "--fragment"]) == 0
        assert capsys.readouterr().out == '<h1 id="hi"><a href="#hi">Hi</a></h1>\n<p>Text</p>\n'

    def test_standalone_by_default(self, tmp_path: Path, capsys) -> None:
        doc = write_doc(tmp_path, "\\meta{title=My Doc}\n\nBody")
        assert main([str(doc), "--lang", "en", "--css", "style.css"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("<!DOCTYPE html>\n")
        assert '<html lang="en">' in out
        assert "<title>My Doc</title>" in out
        assert '<link rel="stylesheet" href="style.css">' in out

    def test_output_file(self, tmp_path: Path, capsys) -> None:
        doc = write_doc(tmp_path, "Hello")
        out = tmp_path / "out.html"
        assert main([str(doc), "-o", str(out), "--fragment"]) == 0
        assert out.read_text(encoding="utf-8") == "<p>Hello</p>\n"
        assert capsys.readouterr().out == ""

    def test_tokens_dump(self, tmp_path: Path, capsys) -> None:
        doc = write_doc(tmp_path, "xxx")
        assert main([str(doc), "--tokens", "--fragment"]) == 0
        captured = capsys.readouterr()
        assert "   1:0      WORD 'xxx'\n" in captured.err
        assert "   1:3      NEWLINE\n" in captured.err
        assert captured.out == "<p>xxx</p>\n"

    def test_debug_dump(self, tmp_path: Path, capsys) -> None:
        doc = write_doc(tmp_path, "\\emph{x}")
        assert main([str(doc), "--debug", "--fragment"]) == 0
        err = capsys.readouterr().err
        assert err.startswith("Document\n")
        assert "Styled style=EMPH" in err


# ---------------------------------------------------------------------------
# compile_file / format_error / watch
# ---------------------------------------------------------------------------


def options(doc: Path, **overrides) -> CliOptions:
    values = dict(
        input_file=doc,
        output_file=None,
        standalone=False,
        lang=None,
        css_files=[],
        max_depth=128,
        tokens=False,
        debug=False,
        watch=False,
        verbosity=0,
    )
    values.update(overrides)
    return CliOptions(**values)


class TestCompileFile:
    def test_basic(self, tmp_path: Path) -> None:
        doc = write_doc(tmp_path, "\\sec{Hello World}")
        html = compile_file(options(doc))
        assert '<h1 id="hello-world"><a href="#hello-world">Hello World</a></h1>' in html

    def test_standalone(self, tmp_path: Path) -> None:
        doc = write_doc(tmp_path, "x")
        assert compile_file(options(doc, standalone=True)).endswith("</html>\n")

    def test_non_ascii_input(self, tmp_path: Path) -> None:
        doc = write_doc(tmp_path, "Grüße")
        assert compile_file(options(doc)) == "<p>Gr&#xFC;&#xDF;e</p>\n"


class TestFormatError:
    def test_plain_error(self) -> None:
        assert format_error(SerializerError("boom"), "doc.tx") == "error: boom"


class TestWatch:
    def test_compiles_once_then_stops(self, tmp_path: Path, capsys, monkeypatch) -> None:
        doc = write_doc(tmp_path, "Hello")
        out = tmp_path / "out.html"

        def stop(seconds: float) -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr("textecca.cli.time.sleep", stop)
        watch_loop(options(doc, output_file=out, watch=True))
        assert out.read_text(encoding="utf-8") == "<p>Hello</p>\n"
        assert f"Compiled {doc}" in capsys.readouterr().err

    def test_errors_reported_not_raised(self, tmp_path: Path, capsys, monkeypatch) -> None:
        doc = write_doc(tmp_path, "\\nope")

        def stop(seconds: float) -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr("textecca.cli.time.sleep", stop)
        watch_loop(options(doc, watch=True))
        assert "command \\nope not defined" in capsys.readouterr().err

    def test_main_watch_returns_0(self, tmp_path: Path, monkeypatch) -> None:
        doc = write_doc(tmp_path, "Hello")

        def stop(seconds: float) -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr("textecca.cli.time.sleep", stop)
        assert main([str(doc), "--watch", "-o", str(tmp_path / "out.html")]) == 0

    def test_unreadable_input_reported_not_raised(self, tmp_path: Path, capsys, monkeypatch) -> None:
        folder = tmp_path / "doc.tx"
        folder.mkdir()

        def stop(seconds: float) -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr("textecca.cli.time.sleep", stop)
        watch_loop(options(folder, watch=True))
        assert "error:" in capsys.readouterr().err
