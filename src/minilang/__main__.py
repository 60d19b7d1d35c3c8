#!/usr/bin/env python3
"""
CLI for the MiniLang interpreter.

Usage:
    python -m minilang run FILE [--max-depth N]
    python -m minilang check FILE [--json]
    python -m minilang ast FILE

Examples:
    # Run a script
    python -m minilang run examples/primes.ml

    # Report syntax errors as JSON
    python -m minilang check broken.ml --json

    # Show the parsed tree
    python -m minilang ast examples/primes.ml

The call depth limit defaults to $MINILANG_MAX_DEPTH when set.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .runtime.context import max_call_depth_from_env

logger = logging.getLogger(__name__)


def _read_source(path_str: str):
    source_path = Path(path_str)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None, None
    return source_path, source_path.read_text(encoding="utf-8")


def _parse_file(source_path: Path, source: str):
    """Tokenize and parse, printing diagnostics to stderr on failure."""
    from . import tokenize, parse, LexerError, ParseFailure

    try:
        return parse(tokenize(source, str(source_path)), str(source_path), source)
    except LexerError as e:
        print(e.diagnostic.format(), file=sys.stderr)
    except ParseFailure as e:
        print(e.collector.format_all(), file=sys.stderr)
    return None


def cmd_run(args):
    """Execute a MiniLang script."""
    from . import Interpreter

    source_path, source = _read_source(args.file)
    if source is None:
        return 1

    program = _parse_file(source_path, source)
    if program is None:
        return 1

    logger.debug("running %s (max call depth %d)", source_path, args.max_depth)
    interpreter = Interpreter(max_call_depth=args.max_depth)
    result = interpreter.execute(program, source)
    if not result.success:
        sys.stdout.flush()
        print(result.format_errors(), file=sys.stderr)
        return 1
    return 0


def cmd_check(args):
    """Check a MiniLang file for syntax errors."""
    from . import tokenize, parse, LexerError, ParseFailure

    source_path, source = _read_source(args.file)
    if source is None:
        return 1

    try:
        program = parse(tokenize(source, str(source_path)), str(source_path), source)
    except LexerError as e:
        diagnostics = [e.diagnostic]
    except ParseFailure as e:
        diagnostics = list(e.diagnostics)
    else:
        if args.json:
            print(json.dumps({"file": str(source_path), "errors": [], "ok": True}, indent=2))
        else:
            print(f"OK: {source_path.name} - {len(program.statements)} top-level statement(s), no errors")
        return 0

    if args.json:
        print(json.dumps({
            "file": str(source_path),
            "errors": [d.to_json() for d in diagnostics],
            "ok": False,
        }, indent=2))
    else:
        print(f"Syntax check failed with {len(diagnostics)} error(s):")
        for diag in diagnostics:
            print(diag.format())
    return 1


def cmd_ast(args):
    """Print the parsed tree of a MiniLang file."""
    from . import print_ast

    source_path, source = _read_source(args.file)
    if source is None:
        return 1

    program = _parse_file(source_path, source)
    if program is None:
        return 1
    print_ast(program, out=sys.stdout)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='python -m minilang',
        description='MiniLang interpreter',
    )
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # run command
    run_parser = subparsers.add_parser('run', help='Run a MiniLang script')
    run_parser.add_argument('file', help='MiniLang source file')
    run_parser.add_argument('--max-depth', type=int, default=max_call_depth_from_env(),
                            metavar='N', help='Maximum function call depth')

    # check command
    check_parser = subparsers.add_parser('check', help='Check a file for syntax errors')
    check_parser.add_argument('file', help='MiniLang source file')
    check_parser.add_argument('--json', action='store_true',
                              help='Print diagnostics as JSON')

    # ast command
    ast_parser = subparsers.add_parser('ast', help='Print the parsed tree')
    ast_parser.add_argument('file', help='MiniLang source file')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if args.action == 'run':
        return cmd_run(args)
    elif args.action == 'check':
        return cmd_check(args)
    elif args.action == 'ast':
        return cmd_ast(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
