"""
Program Validator for fsalang
Whole-model checks shared by every model producer (DSL parser, graph importer):
alphabet closure, state references, start/accept well-formedness, mode.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .logging_config import get_logger
from .models import LEXEMES, Command, Mode, Program, TransitionTable, is_sentinel

log = get_logger(__name__)

VarValue = Union[str, List[str]]


@dataclass
class ProgramDraft:
    """Mutable, unvalidated program as assembled by a producer."""
    states: Dict[str, TransitionTable] = field(default_factory=dict)
    commands: Dict[str, List[Command]] = field(default_factory=dict)
    vars: Dict[str, VarValue] = field(default_factory=dict)


def _unique(items: List[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


class ProgramValidator:
    def validate(self, draft: ProgramDraft) -> Program:
        alphabet, declared = self.resolve_alphabet(draft)
        self.check_references(draft)
        start = self.resolve_start(draft)
        accept = self.resolve_accept(draft)
        mode = self.resolve_mode(draft)

        try:
            program = Program(
                alphabet=alphabet,
                states=draft.states,
                start=start,
                accept=accept,
                mode=mode,
                commands=draft.commands,
                vars=draft.vars,
                declared_alphabet=declared,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Inconsistent program: {e}") from e

        log.debug(
            "program_validated",
            states=len(program.states),
            alphabet=program.alphabet,
            mode=program.mode.value,
        )
        return program

    def implied_alphabet(self, draft: ProgramDraft) -> List[Tuple[str, str]]:
        """(symbol, first state using it) for every non-sentinel token, in order."""
        seen: Dict[str, str] = {}
        for state, table in draft.states.items():
            for token in table:
                if not is_sentinel(token) and token not in seen:
                    seen[token] = state
        return list(seen.items())

    def resolve_alphabet(self, draft: ProgramDraft) -> Tuple[List[str], bool]:
        implied = self.implied_alphabet(draft)
        if "lang" not in draft.vars:
            return [symbol for symbol, _ in implied], False

        lang = draft.vars["lang"]
        if not isinstance(lang, list):
            raise ValidationError(f"'lang' must be an array, got literal '{lang}'")
        for symbol, state in implied:
            if symbol not in lang:
                raise ValidationError(
                    f"Illegal token '{symbol}' in state '{state}': "
                    f"not in declared language [{', '.join(lang)}]"
                )
        return _unique(lang), True

    def check_references(self, draft: ProgramDraft) -> None:
        for state, table in draft.states.items():
            for token, destinations in table.items():
                for dest in destinations:
                    if is_sentinel(dest):
                        continue
                    if dest not in draft.states:
                        raise ValidationError(
                            f"State '{state}' references undefined state '{dest}' on token '{token}'"
                        )

    def resolve_start(self, draft: ProgramDraft) -> str:
        start = draft.vars.get("start")
        if start is None:
            raise ValidationError("No start state declared (missing 'start = <state>')")
        if isinstance(start, list):
            raise ValidationError("'start' must be a single state name, not an array")
        if start in LEXEMES:
            raise ValidationError("Start state cannot be the null state")
        if start not in draft.states:
            raise ValidationError(f"Start state '{start}' is not a defined state")
        return start

    def resolve_accept(self, draft: ProgramDraft) -> List[str]:
        accept = draft.vars.get("accept")
        if accept is None:
            raise ValidationError("No accept states declared (missing 'accept = [...]')")
        if not isinstance(accept, list):
            raise ValidationError(f"'accept' must be an array, got literal '{accept}'")
        if not accept:
            raise ValidationError("'accept' must list at least one state")
        for state in accept:
            if state in LEXEMES:
                raise ValidationError("Accept states cannot include the null state")
            if state not in draft.states:
                raise ValidationError(f"Accept state '{state}' is not a defined state")
        return _unique(accept)

    def resolve_mode(self, draft: ProgramDraft) -> Mode:
        mode = draft.vars.get("mode")
        if mode is None:
            return Mode.DFA
        if isinstance(mode, list) or mode not in Mode.__members__:
            raise ValidationError(
                f"Invalid mode '{mode}'. Must be one of: {', '.join(m.value for m in Mode)}"
            )
        return Mode(mode)


def validate_program(draft: ProgramDraft) -> Program:
    """Convenience function: validate a draft with a fresh validator."""
    return ProgramValidator().validate(draft)
