import random

import pytest

from fsalang import parse

# Accepts strings with an odd number of 1s
PARITY_SOURCE = """\
# parity of ones
lang = [0, 1]
start = S0
accept = [S1]
mode = DFA

S0:
\t0\tS0
\t1\tS1
S1:
\t0\tS1
\t1\tS0
"""

# S0 has no transition on '1'
PARTIAL_SOURCE = """\
lang = [0, 1]
start = S0
accept = [S1]
mode = DFA

S0:
\t0\tS0
S1:
\t0\tS1
\t1\tS0
"""

FORK_SOURCE = """\
start = S0
accept = [S1, S2]
mode = NFA

S0:
\ta\t[1-S1, 1-S2]
S1:
S2:
"""


class FixedRandom:
    """random.Random stand-in that always draws the same value."""

    def __init__(self, value: float):
        self.value = value
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.value


class Recorder:
    """Collects $log output / $pause prompts."""

    def __init__(self):
        self.lines = []

    def __call__(self, text: str = "") -> str:
        self.lines.append(text)
        return ""


@pytest.fixture
def parity_program():
    return parse(PARITY_SOURCE)


@pytest.fixture
def partial_program():
    return parse(PARTIAL_SOURCE)


@pytest.fixture
def fork_program():
    return parse(FORK_SOURCE)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def source_file(tmp_path):
    def _write(text: str, name: str = "automaton.dfa"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write
