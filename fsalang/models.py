import math
from enum import Enum
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Mode(str, Enum):
    """Interpreter semantics selected by the `mode` variable."""
    DFA = "DFA"
    NFA = "NFA"


class Sentinel(Enum):
    """
    Reserved state identifiers. Both terminate a branch without acceptance.
    Plain Enum (no str mixin) so a sentinel never equals a user state name.
    """
    NULL = "null"
    NO_TRANSITION = "\\phi"

    def __str__(self) -> str:
        return self.value


StateRef = Union[Sentinel, str]
Token = Union[Sentinel, str]

# Weighted Destination Set: destination -> positive weight, in declaration order
Destinations = Dict[StateRef, float]
TransitionTable = Dict[Token, Destinations]

LEXEMES: Dict[str, Sentinel] = {s.value: s for s in Sentinel}


def is_sentinel(ref: Any) -> bool:
    return isinstance(ref, Sentinel)


def from_lexeme(text: str) -> StateRef:
    """Map a source lexeme to a state reference (reserved words become sentinels)."""
    return LEXEMES.get(text, text)


def to_lexeme(ref: StateRef) -> str:
    return ref.value if isinstance(ref, Sentinel) else ref


class Command(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    args: List[str] = Field(default_factory=list)

    def __str__(self) -> str:
        return f"${self.name}({', '.join(self.args)})"


class Event(BaseModel):
    """One transition taken by a branch."""
    model_config = ConfigDict(frozen=True)

    state: StateRef
    token: Token
    destination: StateRef


class Answer(BaseModel):
    """An accepted branch: where it ended and how it got there."""
    model_config = ConfigDict(frozen=True)

    ending_state: StateRef
    path: List[Event] = Field(default_factory=list)

    @property
    def string(self) -> str:
        """The consumed input, sentinel tokens excluded."""
        return "".join(e.token for e in self.path if not is_sentinel(e.token))


class Program(BaseModel):
    """
    Validated automaton. Built once by the parser or the graph importer and
    never mutated afterwards; derived variants are made with model_copy.
    """
    model_config = ConfigDict(frozen=True)

    alphabet: List[str] = Field(..., description="Closed set of input symbols, declaration order")
    states: Dict[str, TransitionTable] = Field(..., description="state -> token -> destination -> weight")
    start: str
    accept: List[str]
    mode: Mode = Mode.DFA
    commands: Dict[str, List[Command]] = Field(default_factory=dict)
    vars: Dict[str, Union[str, List[str]]] = Field(default_factory=dict, description="Raw assignments, kept for printing")
    declared_alphabet: bool = False

    @model_validator(mode='after')
    def validate_integrity(self):
        # 1. Start / accept
        if self.start not in self.states:
            raise ValueError(f"Start state '{self.start}' is not a defined state.")
        for state in self.accept:
            if state not in self.states:
                raise ValueError(f"Accept state '{state}' is not a defined state.")

        # 2. Weighted destination sets
        for state, table in self.states.items():
            for token, destinations in table.items():
                if not destinations:
                    raise ValueError(f"State '{state}' has an empty destination set for '{token}'.")
                for dest, weight in destinations.items():
                    if not (weight > 0 and math.isfinite(weight)):
                        raise ValueError(f"State '{state}' has non-positive weight {weight} towards '{dest}'.")
                    if not is_sentinel(dest) and dest not in self.states:
                        raise ValueError(f"State '{state}' transitions to unknown state '{dest}'.")
        return self

    def transitions(self, state: StateRef) -> TransitionTable:
        if is_sentinel(state):
            return {}
        return self.states.get(state, {})

    def is_accept(self, state: StateRef) -> bool:
        return not is_sentinel(state) and state in self.accept

    def with_mode(self, mode: Mode) -> "Program":
        variables = dict(self.vars)
        variables["mode"] = mode.value
        return self.model_copy(update={"mode": mode, "vars": variables})

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation (sentinels rendered as their lexemes)."""
        return {
            "mode": self.mode.value,
            "alphabet": list(self.alphabet),
            "start": self.start,
            "accept": list(self.accept),
            "states": {
                state: {
                    to_lexeme(token): {to_lexeme(d): w for d, w in dests.items()}
                    for token, dests in table.items()
                }
                for state, table in self.states.items()
            },
            "commands": {state: [str(c) for c in cmds] for state, cmds in self.commands.items()},
            "vars": dict(self.vars),
        }

