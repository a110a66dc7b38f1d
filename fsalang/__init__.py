"""
fsalang: a small DSL for finite automata and a runtime that simulates them.
Centralized exports for the parser, interpreter and model producers/consumers.
"""

__version__ = "1.0.0"

from .models import (
    Answer,
    Command,
    Event,
    Mode,
    Program,
    Sentinel,
)

from .errors import (
    FSAError,
    ParseError,
    ValidationError,
    GraphImportError,
    InterpreterError,
    MissingInput,
    UnknownToken,
    UndefinedTransition,
    UnknownCommand,
    StepLimitExceeded,
)

from .config import RunOptions, load_options

from .parser import DSLParser, parse, parse_file

from .validator import ProgramDraft, ProgramValidator, validate_program

from .interpreter import Interpreter, interpret, pick_by_weight

from .printer import format_program, write_program

from .graph_import import convert_graph, load_graph

__all__ = [
    "__version__",
    # Model
    "Answer",
    "Command",
    "Event",
    "Mode",
    "Program",
    "Sentinel",
    # Errors
    "FSAError",
    "ParseError",
    "ValidationError",
    "GraphImportError",
    "InterpreterError",
    "MissingInput",
    "UnknownToken",
    "UndefinedTransition",
    "UnknownCommand",
    "StepLimitExceeded",
    # Config
    "RunOptions",
    "load_options",
    # Parser / Validator
    "DSLParser",
    "parse",
    "parse_file",
    "ProgramDraft",
    "ProgramValidator",
    "validate_program",
    # Interpreter
    "Interpreter",
    "interpret",
    "pick_by_weight",
    # Printer / Importer
    "format_program",
    "write_program",
    "convert_graph",
    "load_graph",
]
