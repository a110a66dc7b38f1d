import random

import pytest

from fsalang import (
    Event,
    Interpreter,
    MissingInput,
    RunOptions,
    Sentinel,
    StepLimitExceeded,
    UndefinedTransition,
    UnknownCommand,
    UnknownToken,
    interpret,
    parse,
    pick_by_weight,
)
from conftest import FixedRandom

WEIGHTED_SOURCE = """\
start = S0
accept = [B]

S0:
\ta\t[3-A, B]
A:
B:
"""

DIAMOND_SOURCE = """\
start = S0
accept = [D]
mode = NFA

S0:
\ta\t[B, C]
B:
\tb\tD
C:
\tc\tD
D:
"""

CHOICE_SOURCE = """\
start = S0
accept = [S1]
mode = NFA

S0:
\ta\t[S0, S1]
S1:
\tb\tS1
"""


def run(program, input=None, **options):
    interpreter = Interpreter(program, RunOptions(**options), rng=random.Random(0))
    interpreter.run(input)
    return interpreter


# --- 1. DFA runs ---
@pytest.mark.parametrize("input, ending, accepted", [
    ("01", "S1", True),
    ("1", "S1", True),
    ("11", "S0", False),
    ("0110", "S0", False),
    ("", "S0", False),
])
def test_parity(parity_program, input, ending, accepted):
    interpreter = run(parity_program, input)
    assert len(interpreter.branches) == 1
    branch = interpreter.branches[0]
    assert branch.current_state == ending
    assert branch.accepted is accepted
    assert branch.terminated is True
    assert len(branch.path) == len(input)


def test_dfa_path_records_every_event(parity_program):
    answers = interpret(parity_program, "01")
    assert len(answers) == 1
    assert answers[0].ending_state == "S1"
    assert answers[0].path == [
        Event(state="S0", token="0", destination="S0"),
        Event(state="S0", token="1", destination="S1"),
    ]
    assert answers[0].string == "01"


def test_rejected_dfa_has_no_answers(parity_program):
    assert interpret(parity_program, "11") == []


def test_dfa_without_input(parity_program):
    with pytest.raises(MissingInput):
        interpret(parity_program)


def test_token_sequence_input():
    program = parse("start = S0\naccept = [S1]\n\nS0:\n\tab\tS1\nS1:\n\tc\tS0\n")
    answers = interpret(program, ["ab", "c", "ab"])
    assert [e.token for e in answers[0].path] == ["ab", "c", "ab"]
    with pytest.raises(UnknownToken):
        interpret(program, "ab")


# --- 2. Missing transitions and unknown tokens ---
def test_undefined_transition(partial_program):
    with pytest.raises(UndefinedTransition) as exc:
        interpret(partial_program, "01")
    assert exc.value.state == "S0"
    assert exc.value.token == "1"


def test_auto_null_sends_branch_to_null(partial_program):
    interpreter = run(partial_program, "010", auto_null=True)
    branch = interpreter.branches[0]
    assert branch.current_state is Sentinel.NULL
    assert branch.accepted is False
    assert branch.path[-1] == Event(state="S0", token="1", destination=Sentinel.NULL)
    # the trailing '0' never moves the branch out of null
    assert len(branch.path) == 2


def test_unknown_token(parity_program):
    with pytest.raises(UnknownToken) as exc:
        interpret(parity_program, "012")
    assert exc.value.token == "2"
    assert exc.value.alphabet == ["0", "1"]


def test_ignore_lang_check_falls_through_to_transition_lookup(parity_program):
    with pytest.raises(UndefinedTransition):
        interpret(parity_program, "2", RunOptions(ignore_lang_check=True))
    interpreter = run(parity_program, "2", ignore_lang_check=True, auto_null=True)
    assert interpreter.branches[0].current_state is Sentinel.NULL


# --- 3. Weighted choice ---
@pytest.mark.parametrize("draw, expected", [
    (0.0, "A"),
    (0.74, "A"),
    (0.75, "B"),
    (0.999, "B"),
])
def test_pick_by_weight_spans(draw, expected):
    assert pick_by_weight({"A": 3.0, "B": 1.0}, FixedRandom(draw)) == expected


def test_single_destination_draws_nothing():
    rng = FixedRandom(0.5)
    assert pick_by_weight({"A": 1.0}, rng) == "A"
    assert rng.calls == 0


def test_pick_by_weight_ratio():
    rng = random.Random(42)
    draws = [pick_by_weight({"A": 3.0, "B": 1.0}, rng) for _ in range(20000)]
    ratio = draws.count("A") / draws.count("B")
    assert 2.7 < ratio < 3.3


def test_dfa_resolves_weighted_set_with_injected_rng():
    program = parse(WEIGHTED_SOURCE)
    assert interpret(program, "a", rng=FixedRandom(0.9))[0].ending_state == "B"
    assert interpret(program, "a", rng=FixedRandom(0.1)) == []


def test_seed_makes_runs_reproducible():
    program = parse(WEIGHTED_SOURCE)
    options = RunOptions(seed=7)
    first = [len(interpret(program, "a", options)) for _ in range(20)]
    second = [len(interpret(program, "a", options)) for _ in range(20)]
    assert first == second


@pytest.mark.parametrize("seed", [0, 1, 7, 42, 2024])
@pytest.mark.parametrize("input", ["01", "11", "0110", ""])
def test_single_destination_dfa_ignores_random_source(parity_program, seed, input):
    expected = interpret(parity_program, input, rng=FixedRandom(0.0))
    assert interpret(parity_program, input, rng=random.Random(seed)) == expected
    assert interpret(parity_program, input, RunOptions(seed=seed)) == expected


# --- 4. NFA exploration ---
def test_fork_yields_one_answer_per_destination(fork_program):
    answers = interpret(fork_program)
    assert sorted(a.ending_state for a in answers) == ["S1", "S2"]
    for answer in answers:
        assert answer.path[0].state == "S0"
        assert answer.path[0].token == "a"
        assert answer.string == "a"


def test_diamond_reaches_accept_state_twice():
    answers = interpret(parse(DIAMOND_SOURCE))
    assert [a.ending_state for a in answers] == ["D", "D"]
    assert {a.string for a in answers} == {"ab", "ac"}


def test_accept_state_with_outgoing_transitions():
    program = parse("start = S0\naccept = [S1]\nmode = NFA\n\nS0:\n\ta\tS1\nS1:\n\tb\tS2\nS2:\n")
    answers = interpret(program)
    assert len(answers) == 1
    assert answers[0].ending_state == "S1"


def test_term_on_accept_stops_self_loop():
    program = parse("start = S0\naccept = [S0]\nmode = NFA\n\nS0:\n\ta\tS0\n")
    with pytest.raises(StepLimitExceeded) as exc:
        interpret(program, options=RunOptions(max_steps=50))
    assert exc.value.limit == 50

    answers = interpret(program, options=RunOptions(term_on_accept=True))
    assert len(answers) == 1
    assert answers[0].ending_state == "S0"
    assert answers[0].path == []


def test_nfa_with_input_follows_the_string():
    program = parse(CHOICE_SOURCE)
    answers = interpret(program, "aab")
    assert len(answers) == 1
    assert answers[0].path == [
        Event(state="S0", token="a", destination="S0"),
        Event(state="S0", token="a", destination="S1"),
        Event(state="S1", token="b", destination="S1"),
    ]


def test_nfa_with_input_rejects_when_no_branch_ends_accepting():
    program = parse(CHOICE_SOURCE)
    assert interpret(program, "ba") == []


def test_branches_include_rejected_paths(fork_program):
    interpreter = run(fork_program)
    assert len(interpreter.branches) > 2
    assert all(b.terminated or b.accepted for b in interpreter.branches)


# --- 5. Commands ---
def test_log_command(recorder):
    program = parse("start = S0\naccept = [S0]\n\nS0:\n\t$log(hello, world)\n\ta\tS0\n")
    interpret(program, "aa", echo=recorder)
    assert recorder.lines == ["hello world", "hello world"]


def test_extra_quiet_silences_log(recorder):
    program = parse("start = S0\naccept = [S0]\n\nS0:\n\t$log(hello)\n\ta\tS0\n")
    interpret(program, "a", RunOptions(extra_quiet=True), echo=recorder)
    assert recorder.lines == []


def test_pause_command_prompts(recorder):
    program = parse("start = S0\naccept = [S1]\n\nS0:\n\t$pause()\n\ta\tS1\nS1:\n")
    answers = interpret(program, "a", prompt=recorder)
    assert recorder.lines == [""]
    assert len(answers) == 1


def test_unknown_command():
    program = parse("start = S0\naccept = [S0]\n\nS0:\n\t$explode(now)\n\ta\tS0\n")
    with pytest.raises(UnknownCommand) as exc:
        interpret(program, "a")
    assert exc.value.command == "explode"
    assert exc.value.arguments == ["now"]
    assert "$explode(now)" in str(exc.value)


# --- 6. Step limits and early acceptance ---
def test_dfa_step_limit(parity_program):
    with pytest.raises(StepLimitExceeded):
        interpret(parity_program, "0" * 11, RunOptions(max_steps=10))
    assert len(interpret(parity_program, "0" * 9 + "1", RunOptions(max_steps=10))) == 1


def test_dfa_term_on_accept(parity_program):
    answers = interpret(parity_program, "11", RunOptions(term_on_accept=True))
    assert len(answers) == 1
    assert answers[0].ending_state == "S1"
    assert answers[0].string == "1"
