"""Error handling for the oxa language. Only OxaErrors should be encountered during running: if another type of error
is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Static errors (scan, parse, resolve) are accumulated per phase and raised together as a StaticErrors; runtime errors
are single-shot and carry the call stack active at the point of failure.
"""

import sys
from enum import IntEnum

from termcolor import colored

from oxa.syntax.tokens import TokenType


class ExitCode(IntEnum):
    """Process exit status for each failure class, so calling scripts can tell them apart."""
    OK = 0
    INTERNAL = 1
    SYNTAX = 65
    RESOLUTION = 66
    RUNTIME = 70
    IO = 74
    INTERRUPT = 130


class OxaError(Exception):
    """Base of every error the interpreter reports to the user."""
    exit_code = ExitCode.INTERNAL

    def __init__(self, msg, line=None, internal=False):
        super().__init__(msg)
        self.msg = msg
        self.line = line
        self.internal = internal

    def __str__(self):
        return self.msg


class StaticError(OxaError):
    """Error found before evaluation. where is the location suffix: '', " at end" or " at 'lexeme'"."""

    def __init__(self, msg, line, where=""):
        super().__init__(msg, line)
        self.where = where

    @classmethod
    def at(cls, token, msg):
        """Builds an error located at token."""
        if token.type is TokenType.EOF:
            return cls(msg, token.line, " at end")
        return cls(msg, token.line, f" at '{token.lexeme}'")

    def __str__(self):
        return f"[line {self.line}] Error{self.where}: {self.msg}"


class ScanError(StaticError):
    """Unterminated string or comment, or an unrecognized character."""
    exit_code = ExitCode.SYNTAX


class ParseError(StaticError):
    """Unexpected or missing token, or an invalid assignment target."""
    exit_code = ExitCode.SYNTAX


class ResolveError(StaticError):
    """Misuse of a binding construct detected by the resolver."""
    exit_code = ExitCode.RESOLUTION


class StaticErrors(OxaError):
    """All the errors collected by one static phase. The pipeline never advances past a phase that raised this."""

    def __init__(self, errors):
        super().__init__(f"{len(errors)} error(s)", errors[0].line)
        self.errors = list(errors)
        self.exit_code = max(error.exit_code for error in self.errors)

    def __str__(self):
        return "\n".join(str(error) for error in self.errors)


class OxaRuntimeError(OxaError):
    """Error raised while evaluating. token may be None when there is no source location (e.g. stack overflow)."""
    exit_code = ExitCode.RUNTIME

    def __init__(self, token, msg):
        super().__init__(msg, token.line if token is not None else None)
        self.token = token
        self.trace = []  # "[line n] in f()" entries, innermost first; filled in by the interpreter


class ErrorHandler:
    """Context manager that will silently suppress Python errors and report oxa errors instead."""
    ERROR = "red"
    TRACE_LIMIT = 16  # deepest stack traces are cut in the middle past this many frames

    def __init__(self, fatal=True, color=True, stream=None):
        self.fatal = fatal
        self.color = color
        self.stream = stream
        self.path = None
        self.exit_code = ExitCode.OK

    def register_file(self, path):
        """Registers the path of the program being run, used in the headers of runtime diagnostics."""
        self.path = path

    def _paint(self, text, color=None):
        if not self.color:
            return text
        return colored(text, color, attrs=["bold"])

    def _write(self, text):
        print(text, file=self.stream if self.stream is not None else sys.stderr)

    def format(self, error):
        """Returns the diagnostic text for error."""
        if isinstance(error, StaticErrors):
            return "\n".join(self.format(sub_error) for sub_error in error.errors)

        if isinstance(error, StaticError):
            return f"[line {error.line}] " + self._paint("Error", ErrorHandler.ERROR) + f"{error.where}: {error.msg}"

        if isinstance(error, OxaRuntimeError):
            header = self._paint("error: ", ErrorHandler.ERROR)
            if self.path:
                header = self._paint(f"{self.path}: ") + header
            lines = [header + error.msg]

            trace = error.trace
            if len(trace) > ErrorHandler.TRACE_LIMIT:
                half = ErrorHandler.TRACE_LIMIT // 2
                skipped = len(trace) - 2 * half
                trace = trace[:half] + [f"... {skipped} more frame(s) ..."] + trace[-half:]
            lines.extend(trace)
            return "\n".join(lines)

        prefix = self._paint("[internal] ", ErrorHandler.ERROR) if error.internal else ""
        return prefix + self._paint("error: ", ErrorHandler.ERROR) + error.msg

    def throw(self, error):
        """Reports error. Exits with the error's exit code if this handler is fatal."""
        self._write(self.format(error))
        self.exit_code = error.exit_code

        if self.fatal:
            sys.exit(int(error.exit_code))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            error = OxaError("keyboard interrupt")
            error.exit_code = ExitCode.INTERRUPT
            self.throw(error)
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            error = OxaRuntimeError(None, "Stack overflow.")
            self.throw(error)
        elif exc_type is not None and issubclass(exc_type, OxaError):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(OxaError(f"unknown error: '{exc_type.__name__}: {exc_val}'", internal=True))
            do_exit = True

        return not do_exit
