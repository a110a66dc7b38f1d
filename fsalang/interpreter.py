"""
Interpreter Engine for fsalang
Executes a validated Program against an input and collects every accepting path.

DFA mode keeps a single branch and mutates it in place; weighted destination
sets are resolved by weighted random choice. NFA mode explores a frontier of
branches in rounds; every (token, destination) pair spawns an independent
child, so multi-destination sets are nondeterministic rather than random.
"""

import random
from typing import Callable, List, NamedTuple, Optional, Sequence, Union

from .config import RunOptions
from .errors import MissingInput, StepLimitExceeded, UndefinedTransition, UnknownCommand, UnknownToken
from .logging_config import get_logger
from .models import (
    Answer,
    Command,
    Destinations,
    Event,
    Mode,
    Program,
    Sentinel,
    StateRef,
    Token,
    from_lexeme,
    is_sentinel,
    to_lexeme,
)

log = get_logger(__name__)

InputTokens = Union[str, Sequence[str]]


class Branch:
    """One candidate execution path (an interpreter state)."""

    def __init__(self, state: StateRef, path: Optional[List[Event]] = None, position: int = 0):
        self.current_state = state
        self.path: List[Event] = path or []
        self.position = position
        self.accepted = False
        self.terminated = False

    @property
    def live(self) -> bool:
        return not (self.accepted or self.terminated)

    def advance(self, event: Event) -> None:
        self.path.append(event)
        self.current_state = event.destination
        self.position += 1

    def spawn(self, event: Event) -> "Branch":
        return Branch(event.destination, self.path + [event], self.position + 1)

    def to_answer(self) -> Answer:
        return Answer(ending_state=self.current_state, path=list(self.path))

    def __repr__(self) -> str:
        flags = "".join(f for f, on in (("A", self.accepted), ("T", self.terminated)) if on)
        return f"Branch({to_lexeme(self.current_state)!r}, steps={len(self.path)}, flags={flags or '-'})"


class Resolution(NamedTuple):
    """Outcome of looking up a token in a state's transition table."""
    destinations: List[StateRef]
    defined: bool


def pick_by_weight(destinations: Destinations, rng) -> StateRef:
    """
    Weighted choice: draw uniformly in [0, total) and walk the entries in
    declaration order until the draw falls inside an entry's span.
    """
    entries = list(destinations.items())
    if not entries:
        raise ValueError("Cannot choose from an empty destination set")
    if len(entries) == 1:
        return entries[0][0]

    total = sum(weight for _, weight in entries)
    value = rng.random() * total
    for dest, weight in entries:
        if value < weight:
            return dest
        value -= weight
    # float rounding can leave value == remaining weight
    return entries[-1][0]


class Interpreter:
    """
    Single-use runner for one Program. `rng` needs a random() method,
    `prompt` backs $pause and `echo` backs $log.
    """

    def __init__(
        self,
        program: Program,
        options: Optional[RunOptions] = None,
        rng=None,
        prompt: Optional[Callable[[str], str]] = None,
        echo: Optional[Callable[[str], None]] = None,
    ):
        self.program = program
        self.options = options or RunOptions()
        self.rng = rng if rng is not None else random.Random(self.options.seed)
        self.prompt = prompt or input
        self.echo = echo or print
        self.steps = 0
        self.branches: List[Branch] = []
        self._exploring = False

    # --- Drivers ---

    def run(self, input: Optional[InputTokens] = None) -> List[Branch]:
        """Run to completion; returns every branch in creation order."""
        tokens = self._tokenize(input)
        log.info("run_started", mode=self.program.mode.value, start=self.program.start,
                 tokens=None if tokens is None else len(tokens))

        if self.program.mode == Mode.DFA:
            self._run_dfa(tokens)
        else:
            self._run_nfa(tokens)

        log.info("run_finished", steps=self.steps, branches=len(self.branches),
                 accepted=sum(1 for b in self.branches if b.accepted))
        return self.branches

    def answers(self) -> List[Answer]:
        return [b.to_answer() for b in self.branches if b.accepted]

    def _run_dfa(self, tokens: Optional[List[Token]]) -> None:
        if tokens is None:
            raise MissingInput()

        branch = self._register(Branch(self.program.start))
        for token in tokens:
            if not branch.live:
                break
            self.step(token, branch)

        if not branch.terminated:
            branch.accepted = self.program.is_accept(branch.current_state)
            branch.terminated = True

    def _run_nfa(self, tokens: Optional[List[Token]]) -> None:
        self._exploring = tokens is None
        frontier = [self._register(Branch(self.program.start))]

        while frontier:
            next_frontier: List[Branch] = []
            for branch in frontier:
                if is_sentinel(branch.current_state):
                    branch.terminated = True
                    continue

                if tokens is None:
                    candidates = list(self.program.transitions(branch.current_state)) or [Sentinel.NULL]
                elif branch.position >= len(tokens):
                    branch.accepted = self.program.is_accept(branch.current_state)
                    branch.terminated = True
                    continue
                else:
                    candidates = [tokens[branch.position]]

                for token in candidates:
                    next_frontier.extend(self.step(token, branch))
                    if branch.terminated:
                        break
                # children carry on; the parent is never advanced directly
                branch.terminated = True

            frontier = [b for b in next_frontier if b.live]

    # --- Step procedure ---

    def step(self, token: Token, branch: Branch) -> List[Branch]:
        """
        Apply one token to one branch. Returns the branches that continue:
        the same branch in DFA mode, the spawned children in NFA mode.
        """
        self._tick()
        self._check_token(token)
        self._run_commands(branch.current_state)

        state = branch.current_state
        if is_sentinel(state):
            branch.terminated = True
            return []

        if self.program.is_accept(state):
            if self.options.term_on_accept:
                branch.accepted = True
                branch.terminated = True
                return []
            if self._exploring:
                branch.accepted = True

        resolution = self.resolve(state, token)
        if not resolution.defined and self.program.mode == Mode.DFA and not self.options.auto_null:
            raise UndefinedTransition(state, to_lexeme(token))

        if self.program.mode == Mode.DFA:
            event = Event(state=state, token=token, destination=resolution.destinations[0])
            log.debug("step", state=to_lexeme(state), token=to_lexeme(token),
                      destination=to_lexeme(event.destination))
            branch.advance(event)
            return [branch]

        children = []
        for dest in resolution.destinations:
            event = Event(state=state, token=token, destination=dest)
            child = self._register(branch.spawn(event))
            log.debug("branch_spawned", state=to_lexeme(state), token=to_lexeme(token),
                      destination=to_lexeme(dest), branch=len(self.branches) - 1)
            children.append(child)
        return children

    def resolve(self, state: StateRef, token: Token) -> Resolution:
        destinations = self.program.transitions(state).get(token)
        if destinations is None:
            return Resolution([Sentinel.NULL], defined=False)
        if self.program.mode == Mode.DFA:
            return Resolution([pick_by_weight(destinations, self.rng)], defined=True)
        return Resolution(list(destinations), defined=True)

    def execute(self, command: Command) -> None:
        if command.name == "log":
            if not self.options.extra_quiet:
                self.echo(" ".join(command.args))
        elif command.name == "pause":
            self.prompt("")
        else:
            raise UnknownCommand(command.name, command.args)

    # --- Helpers ---

    def _tick(self) -> None:
        if self.steps >= self.options.max_steps:
            raise StepLimitExceeded(self.options.max_steps)
        self.steps += 1

    def _check_token(self, token: Token) -> None:
        if self.options.ignore_lang_check or is_sentinel(token):
            return
        if token not in self.program.alphabet:
            raise UnknownToken(token, self.program.alphabet)

    def _run_commands(self, state: StateRef) -> None:
        if is_sentinel(state):
            return
        for command in self.program.commands.get(state, []):
            self.execute(command)

    def _register(self, branch: Branch) -> Branch:
        self.branches.append(branch)
        return branch

    @staticmethod
    def _tokenize(input: Optional[InputTokens]) -> Optional[List[Token]]:
        if input is None:
            return None
        if isinstance(input, str):
            return list(input)
        return [from_lexeme(t) for t in input]


def interpret(
    program: Program,
    input: Optional[InputTokens] = None,
    options: Optional[RunOptions] = None,
    rng=None,
    prompt: Optional[Callable[[str], str]] = None,
    echo: Optional[Callable[[str], None]] = None,
) -> List[Answer]:
    """Run `program` and return the accepted answers in branch-creation order."""
    interpreter = Interpreter(program, options, rng=rng, prompt=prompt, echo=echo)
    interpreter.run(input)
    return interpreter.answers()
