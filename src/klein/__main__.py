#!/usr/bin/env python3
"""
CLI for the Klein engine.

Usage:
    python -m klein tokenize FILE
    python -m klein parse FILE [--ast]
    python -m klein check FILE
    python -m klein run FILE

FILE may be '-' to read standard input, or source can be given inline
with -c CODE.

Examples:
    # Print the token stream
    python -m klein tokenize -c 'print(1.to(3));'

    # Dump the syntax tree
    python -m klein parse fizzbuzz.kl --ast

    # Run with debug logging and a loop limit from a config file
    python -m klein run fizzbuzz.kl -vv --config limits.yaml

Exit status is 0 on success, 1 for any Klein error and 2 for usage errors.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import KleinError

logger = logging.getLogger("klein")


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _read_source(args) -> Tuple[str, str]:
    """Return (source, filename) from -c, '-' or a path."""
    if args.code is not None:
        return args.code, "<string>"
    if args.file == "-":
        return sys.stdin.read(), "<stdin>"
    source_path = Path(args.file)
    if not source_path.exists():
        raise FileNotFoundError(f"File not found: {source_path}")
    return source_path.read_text(encoding="utf-8"), str(source_path)


def _report(error: KleinError, as_json: bool) -> int:
    if as_json:
        print(json.dumps(error.to_json(), indent=2))
    else:
        print(str(error), file=sys.stderr)
    return 1


def cmd_tokenize(args) -> int:
    """Print one token per line."""
    from .lexer import tokenize

    source, filename = _read_source(args)
    try:
        tokens = tokenize(source, filename)
    except KleinError as e:
        return _report(e, args.json)

    if args.json:
        print(json.dumps([
            {"type": t.type.name, "text": t.text, "position": t.position}
            for t in tokens
        ], indent=2))
    else:
        for token in tokens:
            print(f"{token.type.name:<16} {token.text:<12} @{token.position}")
    return 0


def cmd_parse(args) -> int:
    """Check syntax, optionally dumping the AST."""
    from .parser import parse
    from .ast import format_ast

    source, filename = _read_source(args)
    try:
        program = parse(source, filename)
    except KleinError as e:
        return _report(e, args.json)

    if args.ast:
        print(format_ast(program))
    elif args.json:
        print(json.dumps({"statements": len(program.statements)}))
    else:
        print(f"OK: {filename} - {len(program.statements)} statement(s)")
    return 0


def cmd_check(args) -> int:
    """Statically check a program without running it."""
    from .checker import check

    source, filename = _read_source(args)
    result = check(source, filename)

    if args.json:
        print(json.dumps(result.collector.to_json(), indent=2))
    elif result.has_errors:
        print(result.collector.format_all(), file=sys.stderr)
    else:
        print(f"OK: {filename} - no errors")
    return 1 if result.has_errors else 0


def cmd_run(args) -> int:
    """Execute a program; print writes to standard output."""
    from .config import load_config
    from .runtime import run

    config = load_config(args.config)
    source, filename = _read_source(args)
    logger.info("running %s (loop limit %s)", filename, config.max_loop_iterations)
    try:
        run(source, config=config, filename=filename)
    except KleinError as e:
        return _report(e, args.json)
    return 0


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('file', nargs='?', help="Klein source file, or '-' for stdin")
    common.add_argument('-c', '--code', metavar='CODE', help='Source text to use instead of a file')
    common.add_argument('--json', action='store_true', help='Emit errors as JSON diagnostics')
    common.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase log output (-v info, -vv debug)')

    parser = argparse.ArgumentParser(
        prog='klein',
        description='Klein tokenizer, parser and interpreter',
    )
    subparsers = parser.add_subparsers(dest='action', required=True)

    subparsers.add_parser('tokenize', parents=[common], help='Print the token stream')

    parse_parser = subparsers.add_parser('parse', parents=[common], help='Check syntax')
    parse_parser.add_argument('--ast', action='store_true', help='Dump the syntax tree')

    subparsers.add_parser('check', parents=[common], help='Check a program without running it')

    run_parser = subparsers.add_parser('run', parents=[common], help='Run a program')
    run_parser.add_argument('--config', metavar='PATH', help='Engine config YAML file')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.file is None and args.code is None:
        parser.error("a FILE or -c CODE is required")

    _configure_logging(args.verbose)

    commands = {
        'tokenize': cmd_tokenize,
        'parse': cmd_parse,
        'check': cmd_check,
        'run': cmd_run,
    }
    try:
        return commands[args.action](args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
