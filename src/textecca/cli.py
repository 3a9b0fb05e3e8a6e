"""Command-line interface for textecca."""

from __future__ import annotations

import argparse
import logging
import sys
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from textecca.errors import (
    CommandError,
    LexError,
    ParseError,
    SerializerError,
    TexteccaError,
)
from textecca.eval import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)

CONFIG_NAME = "textecca.toml"


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    output_file: Path | None
    standalone: bool
    lang: str | None
    css_files: list[str]
    max_depth: int
    tokens: bool
    debug: bool
    watch: bool
    verbosity: int


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="textecca",
        description="textecca markup language compiler",
    )
    p.add_argument("input", help="Input .tx file")
    p.add_argument("-o", "--output", help="Output file (default: stdout)")
    p.add_argument(
        "--config",
        metavar="FILE",
        help=f"Config file (default: auto-discover {CONFIG_NAME})",
    )
    page = p.add_mutually_exclusive_group()
    page.add_argument(
        "--standalone",
        dest="standalone",
        action="store_const",
        const=True,
        default=None,
        help="Write a complete HTML page (default)",
    )
    page.add_argument(
        "--fragment",
        dest="standalone",
        action="store_const",
        const=False,
        help="Write only the document body",
    )
    p.add_argument(
        "--css",
        action="append",
        default=[],
        metavar="FILE",
        help="Stylesheet to link (repeatable)",
    )
    p.add_argument("--lang", help="Language of the HTML page")
    p.add_argument(
        "--max-depth",
        type=int,
        default=None,
        metavar="N",
        help=f"Maximum command nesting depth (default: {DEFAULT_MAX_DEPTH})",
    )
    p.add_argument("--tokens", action="store_true", help="Dump lexer tokens to stderr")
    p.add_argument("--debug", action="store_true", help="Dump the document tree to stderr")
    p.add_argument("--watch", action="store_true", help="Watch for changes and recompile")
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more (-v for info, -vv for debug)",
    )
    return p


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / CONFIG_NAME

    if not path.is_file():
        return {}

    logger.info("reading config %s", path)
    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: defaults < config file < CLI flags.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)

    cfg_html = config.get("html")
    if not isinstance(cfg_html, dict):
        cfg_html = {}
    cfg_eval = config.get("eval")
    if not isinstance(cfg_eval, dict):
        cfg_eval = {}

    standalone = True
    if isinstance(cfg_html.get("standalone"), bool):
        standalone = cfg_html["standalone"]
    if args.standalone is not None:
        standalone = args.standalone

    lang: str | None = None
    if isinstance(cfg_html.get("lang"), str):
        lang = cfg_html["lang"]
    if args.lang:
        lang = args.lang

    # Stylesheets: config, then CLI
    css_files: list[str] = []
    cfg_css = cfg_html.get("css")
    if isinstance(cfg_css, list):
        css_files.extend(str(f) for f in cfg_css)
    elif isinstance(cfg_css, str):
        css_files.append(cfg_css)
    css_files.extend(args.css)

    max_depth = DEFAULT_MAX_DEPTH
    cfg_depth = cfg_eval.get("max_depth")
    if isinstance(cfg_depth, int) and not isinstance(cfg_depth, bool):
        max_depth = cfg_depth
    if args.max_depth is not None:
        max_depth = args.max_depth
    if max_depth < 1:
        raise argparse.ArgumentTypeError(f"max depth must be at least 1, got {max_depth}")

    output_file = Path(args.output) if args.output else None

    return CliOptions(
        input_file=input_file,
        output_file=output_file,
        standalone=standalone,
        lang=lang,
        css_files=css_files,
        max_depth=max_depth,
        tokens=args.tokens,
        debug=args.debug,
        watch=args.watch,
        verbosity=args.verbose,
    )


def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def compile_file(options: CliOptions) -> str:
    """Read, tokenize, evaluate, and render a textecca file to HTML."""
    from textecca.debug import dump_doc, dump_tokens
    from textecca.eval import evaluate
    from textecca.lexer import tokenize
    from textecca.render import render
    from textecca.source import Source

    text = options.input_file.read_text(encoding="utf-8")
    source = Source(text, str(options.input_file))

    # Inconsistent indentation is fatal before anything is evaluated
    tokens = tokenize(source)
    if options.tokens:
        dump_tokens(tokens, file=sys.stderr)

    doc = evaluate(source, max_depth=options.max_depth)
    logger.info("evaluated %s: %d top-level blocks", options.input_file, len(doc.content))

    if options.debug:
        dump_doc(doc, file=sys.stderr)

    return render(
        doc,
        standalone=options.standalone,
        lang=options.lang,
        css=options.css_files,
    )


def format_error(exc: TexteccaError, filename: str) -> str:
    """Render an error with source context where it has one."""
    if isinstance(exc, (LexError, ParseError, CommandError)):
        return exc.format(filename)
    return f"error: {exc}"


def _write_output(options: CliOptions, html: str) -> None:
    if options.output_file:
        options.output_file.write_text(html, encoding="utf-8")
    else:
        sys.stdout.write(html)
        sys.stdout.flush()


def watch_loop(options: CliOptions) -> None:
    """Poll input file for changes, recompile on each modification."""
    last_mtime = 0.0
    print(f"Watching {options.input_file} for changes...", file=sys.stderr)
    try:
        while True:
            try:
                mtime = options.input_file.stat().st_mtime
            except OSError:
                time.sleep(0.5)
                continue
            if mtime != last_mtime:
                last_mtime = mtime
                try:
                    _write_output(options, compile_file(options))
                    print(f"Compiled {options.input_file}", file=sys.stderr)
                except TexteccaError as exc:
                    print(format_error(exc, str(options.input_file)), file=sys.stderr)
                except OSError as exc:
                    print(f"error: {exc}", file=sys.stderr)
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        options = resolve_options(args)
    except (argparse.ArgumentTypeError, tomllib.TOMLDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if options.watch:
        watch_loop(options)
        return 0

    filename = str(options.input_file)
    try:
        html = compile_file(options)
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except (LexError, ParseError) as exc:
        print(format_error(exc, filename), file=sys.stderr)
        return 1
    except (CommandError, SerializerError) as exc:
        print(format_error(exc, filename), file=sys.stderr)
        return 2

    _write_output(options, html)
    return 0
