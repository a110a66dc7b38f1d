"""
Exception hierarchy for fsalang.
Parse/validation errors come from model producers, the rest from the interpreter.
"""

from typing import Optional


class FSAError(Exception):
    """Base class for every error raised by fsalang."""
    pass


class ParseError(FSAError):
    """Raised when a DSL line is malformed."""

    def __init__(self, reason: str, line: Optional[int] = None, source: Optional[str] = None):
        self.reason = reason
        self.line = line
        self.source = source
        if line is None:
            message = reason
        else:
            message = f"line {line}: {reason}"
            if source is not None:
                message += f"\n    {source}"
        super().__init__(message)


class ValidationError(FSAError):
    """Raised when a well-formed program is semantically inconsistent."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class GraphImportError(FSAError):
    """Raised when a state-diagram JSON object has the wrong shape."""
    pass


class InterpreterError(FSAError):
    """Base class for runtime failures during interpretation."""
    pass


class MissingInput(InterpreterError):
    """Raised when a DFA run is started without an input string."""

    def __init__(self):
        super().__init__("No input string supplied (DFA mode requires one)")


class UnknownToken(InterpreterError):
    def __init__(self, token, alphabet):
        self.token = token
        self.alphabet = list(alphabet)
        super().__init__(
            f"Received token '{token}' which does not exist in language "
            f"[{', '.join(self.alphabet)}]"
        )


class UndefinedTransition(InterpreterError):
    def __init__(self, state, token):
        self.state = state
        self.token = token
        super().__init__(f"No transition defined from state '{state}' on token '{token}'")


class UnknownCommand(InterpreterError):
    def __init__(self, command: str, args):
        self.command = command
        self.arguments = list(args)
        super().__init__(f"Unknown command \"{command}\" in \"${command}({', '.join(self.arguments)})\"")


class StepLimitExceeded(InterpreterError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Step limit of {limit} exceeded (runaway branching?)")
