"""
Pretty Printer for fsalang
Serializes a Program back to DSL text that the parser accepts.

Export order:
  1. vars
  2. states
     2.1 state definition
     2.2 commands
     2.3 transitions
"""

from pathlib import Path
from typing import List, Union

from .logging_config import get_logger
from .models import Command, Destinations, Mode, Program, to_lexeme

log = get_logger(__name__)


def define_array(key: str, values: List[str]) -> str:
    return f"{key} = [{', '.join(values)}]"


def define_value(key: str, value: str) -> str:
    return f"{key} = {value}"


def define_state(name: str) -> str:
    return f"{name}:"


def define_command(command: Command) -> str:
    return str(command)


def format_weight(weight: float) -> str:
    # repr keeps full precision so the text re-parses to the same float
    return str(int(weight)) if float(weight).is_integer() else repr(float(weight))


def define_destinations(destinations: Destinations) -> str:
    items = list(destinations.items())
    if len(items) == 1 and items[0][1] == 1:
        return to_lexeme(items[0][0])

    parts = []
    for dest, weight in items:
        name = to_lexeme(dest)
        parts.append(name if weight == 1 else f"{format_weight(weight)}-{name}")
    return f"[{', '.join(parts)}]"


def define_transform(token, destinations: Destinations) -> str:
    return f"{to_lexeme(token)}\t{define_destinations(destinations)}"


def format_program(program: Program) -> str:
    lines: List[str] = []

    for key, value in program.vars.items():
        if isinstance(value, list):
            lines.append(define_array(key, value))
        else:
            lines.append(define_value(key, value))

    # programs built in code may not carry their recognized keys as vars
    if program.declared_alphabet and "lang" not in program.vars:
        lines.append(define_array("lang", program.alphabet))
    if "start" not in program.vars:
        lines.append(define_value("start", program.start))
    if "accept" not in program.vars:
        lines.append(define_array("accept", program.accept))
    # DFA is the parser's default, so an absent mode stays absent
    if "mode" not in program.vars and program.mode != Mode.DFA:
        lines.append(define_value("mode", program.mode.value))

    for state, table in program.states.items():
        lines.append(define_state(state))
        for command in program.commands.get(state, []):
            lines.append(f"\t{define_command(command)}")
        for token, destinations in table.items():
            lines.append(f"\t{define_transform(token, destinations)}")

    return "\n".join(lines) + "\n"


def write_program(program: Program, path: Union[str, Path]) -> Path:
    """Write the pretty-printed program to `path` (UTF-8)."""
    path = Path(path)
    path.write_text(format_program(program), encoding="utf-8")
    log.info("program_printed", path=str(path), states=len(program.states))
    return path
