"""
DSL Parser for fsalang
Turns automaton source text into a validated Program.

Rules:
  "key = value"   assignment ("[a, b]" values become arrays)
  "name:"         starts a state block (nothing may follow the ':')
                  the block runs until the next state block or end of input
  "token<TAB>dst" transition inside a state block; dst may be a bracket
                  list of "name" / "weight-name" items
  "$cmd(a, b)"    command directive inside a state block
  "# ..."         comment
"""

import math
import re
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from .errors import ParseError
from .logging_config import get_logger
from .models import LEXEMES, Command, Destinations, Program, from_lexeme
from .validator import ProgramDraft, ProgramValidator

log = get_logger(__name__)

COMMAND_RE = re.compile(r"^\$(\w+)\s*(?:\((.*)\))?$")
WEIGHTED_ITEM_RE = re.compile(
    r"^(?P<weight>\+?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?)\s*-\s*(?P<name>.*)$"
)


class ParserState(str, Enum):
    GENERAL = "General"
    STATE = "State"


class DSLParser:
    """
    Single-use, line-oriented parser. Errors carry the 1-based line number
    and the offending source line.
    """

    def __init__(self, validator: Optional[ProgramValidator] = None):
        self.validator = validator or ProgramValidator()
        self._draft = ProgramDraft()
        self._state = ParserState.GENERAL
        self._state_name: Optional[str] = None

    def parse(self, text: str) -> Program:
        for number, raw in enumerate(text.splitlines(), start=1):
            self._line(raw, number)

        program = self.validator.validate(self._draft)
        log.info(
            "program_parsed",
            states=len(program.states),
            mode=program.mode.value,
            start=program.start,
            accept=program.accept,
        )
        return program

    def _line(self, raw: str, number: int) -> None:
        line = raw.strip()
        if not line or line.startswith("#"):
            return

        # state definition (either mode)
        name = self._state_header(line, number)
        if name is not None:
            self._state = ParserState.STATE
            self._state_name = name
            return

        if self._state == ParserState.GENERAL:
            self._assignment(line, number)
        else:
            # trailing tabs are kept so "token<TAB>" reports the missing destination
            self._state_line(raw.lstrip(), line, number)

    def _state_header(self, line: str, number: int) -> Optional[str]:
        if not line.endswith(":") or line.count(":") != 1 or "\t" in line:
            return None
        name = line[:-1].strip()
        if not name:
            raise ParseError("state definition is missing a name", number, line)
        if name in LEXEMES:
            raise ParseError(f"'{name}' is reserved and cannot name a state", number, line)
        if name in self._draft.states:
            raise ParseError(f"state '{name}' is defined more than once", number, line)
        self._draft.states[name] = {}
        return name

    # --- General mode ---

    def _assignment(self, line: str, number: int) -> None:
        if "=" not in line:
            raise ParseError("expected 'key = value' or a state definition 'name:'", number, line)
        key, value = (part.strip() for part in line.split("=", 1))
        if not key:
            raise ParseError("assignment is missing a variable name", number, line)
        if not value:
            raise ParseError(f"assignment to '{key}' is missing a value", number, line)

        if value.startswith("["):
            parsed: Union[str, List[str]] = self._array(value, number, line)
        else:
            parsed = value

        if key in self._draft.vars:
            log.debug("variable_reassigned", key=key, line=number)
        self._draft.vars[key] = parsed

    def _array(self, value: str, number: int, line: str) -> List[str]:
        close = value.find("]")
        if close == -1:
            raise ParseError("array is missing its closing ']'", number, line)
        if value[close + 1:].strip():
            raise ParseError("unexpected text after array", number, line)
        return [item.strip() for item in value[1:close].split(",") if item.strip()]

    # --- State mode ---

    def _state_line(self, body: str, line: str, number: int) -> None:
        if line.startswith("$"):
            self._command(line, number)
            return

        if "\t" not in body:
            raise ParseError(
                f"expected 'token<TAB>destination' or a $command in state '{self._state_name}'",
                number, line,
            )

        token_text, rest = body.split("\t", 1)
        token_text = token_text.strip()
        dest_text = rest.strip()
        if "\t" in dest_text:
            raise ParseError("transition must contain exactly one tab", number, line)
        if not token_text:
            raise ParseError("transform missing token", number, line)
        if not dest_text:
            raise ParseError("transform missing destination", number, line)

        table = self._draft.states[self._state_name]
        token = from_lexeme(token_text)
        if token in table:
            raise ParseError(
                f"token collision: '{token_text}' already defined in state '{self._state_name}'",
                number, line,
            )
        table[token] = self._destinations(dest_text, number, line)

    def _command(self, line: str, number: int) -> None:
        match = COMMAND_RE.match(line)
        if match is None:
            raise ParseError("malformed command, expected '$name(arg, ...)'", number, line)
        name, arg_text = match.groups()
        args = [a.strip() for a in (arg_text or "").split(",") if a.strip()]
        self._draft.commands.setdefault(self._state_name, []).append(Command(name=name, args=args))

    def _destinations(self, text: str, number: int, line: str) -> Destinations:
        if not text.startswith("["):
            return {from_lexeme(text): 1.0}
        if not text.endswith("]"):
            raise ParseError("destination list is missing its closing ']'", number, line)

        items = [item.strip() for item in text[1:-1].split(",")]
        if items == [""]:
            raise ParseError("destination list is empty", number, line)

        destinations: Destinations = {}
        for position, item in enumerate(items, start=1):
            if not item:
                raise ParseError(f"empty destination at position {position}", number, line)

            weight = 1.0
            name = item
            if "-" in item:
                match = WEIGHTED_ITEM_RE.match(item)
                if match is None:
                    raise ParseError(f"unparsable weight in '{item}' at position {position}", number, line)
                weight = float(match.group("weight"))
                name = match.group("name").strip()
                if not name:
                    raise ParseError(f"empty destination name at position {position}", number, line)
                if not (weight > 0 and math.isfinite(weight)):
                    raise ParseError(f"weight must be positive at position {position}", number, line)

            ref = from_lexeme(name)
            if ref in destinations:
                raise ParseError(f"duplicate destination '{name}' at position {position}", number, line)
            destinations[ref] = weight
        return destinations


def parse(text: str) -> Program:
    """Parse DSL source text into a validated Program."""
    return DSLParser().parse(text)


def parse_file(path: Union[str, Path]) -> Program:
    """Parse a UTF-8 DSL file. Raises FileNotFoundError if it does not exist."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File \"{path}\" not found")
    log.debug("parsing_file", path=str(path))
    # utf-8-sig drops a leading byte order mark
    return parse(path.read_text(encoding="utf-8-sig"))
