#!/usr/bin/env python3
"""
fsalang command line host

Loads an automaton (DSL file or state-diagram JSON), optionally dumps or
pretty-prints it, runs it against an input string and reports every
accepting path.

Usage:
    fsalang <automaton>.dfa -S <string> [options]
    fsalang -J <graph>.json --start q0 -S <string> [options]
"""

import argparse
import json
import shutil
import sys
from typing import List, Optional

from . import __version__
from .config import load_options
from .errors import FSAError, GraphImportError, ParseError, ValidationError
from .graph_import import load_graph
from .interpreter import Interpreter
from .logging_config import LOG_LEVELS, get_logger, setup_logging
from .models import Answer, Event, Mode, Program, to_lexeme
from .parser import parse_file
from .printer import write_program

log = get_logger(__name__)

USAGE = "fsalang <automaton>.dfa -S <string> [options]"


def replace_math_chars(text: str) -> str:
    return text.replace("\\epsilon", "ε").replace("\\phi", "ϕ")


def format_event(event: Event) -> str:
    return f"{to_lexeme(event.state)} ({to_lexeme(event.token)} -> {to_lexeme(event.destination)})"


def format_answer(answer: Answer, width: int) -> str:
    output = "|" + "".join(f" --> {format_event(e)}" for e in answer.path)
    string = answer.string

    output = replace_math_chars(output)
    string = replace_math_chars(string)

    if len(output) + len(string) > width:
        # print on separate lines
        return f"{output}\n:: {string}"
    spacer = width - len(output) - len(string)
    return f"{output}{' ' * spacer}{string}"


def report(answers: List[Answer], width: Optional[int] = None) -> None:
    if width is None:
        width = shutil.get_terminal_size().columns

    if not answers:
        print("NOT ACCEPTED.")
        print("Found no accepting paths.")
        return

    print("ACCEPTED.")
    print(f"Found {len(answers)} accepting paths.")
    for answer in answers:
        print(format_answer(answer, width))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fsalang",
        usage=USAGE,
        description="Run finite automata written in the fsalang DSL",
    )
    parser.add_argument("file", nargs="?", help="Automaton source file (.dfa)")
    parser.add_argument("-i", dest="input_file", help="Automaton source file (alternative to positional)")
    parser.add_argument("-S", "--string", help="Input string")
    parser.add_argument("-d", "--delimiter", help="Split the input string into multi-character tokens")
    parser.add_argument("-J", "--load-json", help="Load the automaton from a state-diagram JSON export")
    parser.add_argument("--start", dest="start_state", help="Start state name (JSON import)")
    parser.add_argument("--force-mode", choices=[m.value for m in Mode], help="Override the program mode")
    parser.add_argument("--dump-ast", action="store_true", help="Print the parsed program as JSON")
    parser.add_argument("-pp", "--pretty-print", help="Write the program back out as DSL text and exit")
    parser.add_argument("-q", "--quiet", action="store_true", default=None, help="Suppress the step trace")
    parser.add_argument("-qq", "--Quiet", dest="extra_quiet", action="store_true", default=None,
                        help="Also suppress $log output")
    parser.add_argument("-Toa", "--term-on-accept", action="store_true", default=None,
                        help="Terminate a branch as soon as it reaches an accept state")
    parser.add_argument("--auto-null", action="store_true", default=None,
                        help="Treat missing DFA transitions as transitions to null")
    parser.add_argument("--max-steps", type=int, help="Step budget for the whole run")
    parser.add_argument("--seed", type=int, help="Seed for weighted transition choice")
    parser.add_argument("--config", help="YAML file with run options")
    parser.add_argument("--log-level", default="WARNING", type=str.upper, choices=LOG_LEVELS,
                        help="Console log level")
    parser.add_argument("--log-dir", help="Directory for rotating JSON logs")
    parser.add_argument("--debug", action="store_true", help="Verbose logging and tracebacks")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_program(args: argparse.Namespace) -> Program:
    if args.load_json:
        return load_graph(args.load_json, start_state=args.start_state)
    return parse_file(args.file)


def print_trace(branch_path: List[Event]) -> None:
    print("> [START]")
    for event in branch_path:
        print(replace_math_chars(f"> {format_event(event)}"))
    print("> [END]")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.file is None:
        args.file = args.input_file

    setup_logging(log_level="DEBUG" if args.debug else args.log_level, log_dir=args.log_dir)

    if not args.file and not args.load_json:
        parser.error("an automaton file (or -J <graph>.json) is required")

    try:
        options = load_options(args.config).merged(
            ignore_lang_check=True if args.load_json else None,
            quiet=args.quiet,
            extra_quiet=args.extra_quiet,
            term_on_accept=args.term_on_accept,
            auto_null=args.auto_null,
            max_steps=args.max_steps,
            seed=args.seed,
        )
    except (FileNotFoundError, ValidationError) as e:
        log.error("config_failed", config=args.config, error=str(e))
        print(f"error: Invalid configuration: {e}", file=sys.stderr)
        return 1

    source = args.load_json or args.file
    try:
        program = load_program(args)
        if args.force_mode:
            program = program.with_mode(Mode(args.force_mode))
            log.info("mode_forced", mode=args.force_mode)

        if args.dump_ast:
            print("----- [AST] -----")
            print(json.dumps(program.to_dict(), indent=4, ensure_ascii=False))
            print("----- [END AST] -----")

        if args.pretty_print:
            path = write_program(program, args.pretty_print)
            print(f"Printed automaton to: {path}")
            return 0

        tokens = args.string
        if tokens is not None and args.delimiter:
            tokens = [t for t in tokens.split(args.delimiter) if t]

        interpreter = Interpreter(program, options)
        branches = interpreter.run(tokens)
        if not options.quiet and program.mode == Mode.DFA:
            print_trace(branches[0].path)

        report(interpreter.answers())
        return 0

    except FileNotFoundError as e:
        log.error("file_not_found", error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1
    except (ParseError, ValidationError, GraphImportError) as e:
        log.error("load_failed", source=source, error_type=type(e).__name__, error=str(e))
        print(f"error: Encountered error loading \"{source}\": {e}", file=sys.stderr)
        return 1
    except FSAError as e:
        if args.debug:
            log.exception("interpreter_error", error_type=type(e).__name__)
        print(f"error: Interpreter error occurred: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
