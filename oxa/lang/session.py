"""Session control for the oxa language. Drives the scan -> parse -> resolve -> evaluate pipeline, either in command line
mode (one entry at a time, state kept between entries) or file interpretation mode.
"""

import logging

from oxa.interpreter import Interpreter
from oxa.lang.error import ExitCode, OxaError, StaticErrors
from oxa.resolver import Resolver
from oxa.runtime import stringify
from oxa.syntax.parser import Parser
from oxa.syntax.printer import AstPrinter
from oxa.syntax.scanner import Scanner
from oxa.syntax.tokens import TokenType


logger = logging.getLogger(__name__)


class Session:
    """Governs an oxa session: one interpreter, hence one global environment, for its whole lifetime."""
    SH_FILE = "<in>"          # command-line interpreter filename
    RECURSION_LIMIT = 10000   # host recursion limit main sets, bounds how deep oxa calls can nest

    def __init__(self, error_handler, path, cmd_line, out=None):
        self.error_handler = error_handler
        self.error_handler.register_file(path)

        self.path = path            # used for error messages
        self.cmd_line = cmd_line    # whether or not in command-line mode

        self.interpreter = Interpreter(out)
        self.to_exec = []    # list of (statements, bare) waiting for run: bare if the entry is a bare expression
        self.results = []    # stringified values of bare expressions, in command-line mode

        # errors end a script run but only the current entry in command-line mode
        self.error_handler.fatal = not cmd_line

        if path != Session.SH_FILE:
            try:
                with open(path, "r", encoding="utf-8") as file:
                    source = file.read()
            except (OSError, UnicodeDecodeError):
                error = OxaError(f"'{path}' could not be opened")
                error.exit_code = ExitCode.IO
                raise error

            self.add(source)

        elif not cmd_line:
            raise OxaError("'<in>' is a reserved filename")

    @staticmethod
    def preprocess_line(line, add_to_prev=""):
        """Preprocesses a line from the command line. add_to_prev is the text of the unfinished entry so far, if any.
        Returns the updated entry and whether or not it still needs a continuation line: unbalanced braces or
        parentheses, or an unterminated string or block comment. Must be called before add.
        """
        line = (add_to_prev + "\n" + line if add_to_prev else line).rstrip()

        scanner = Scanner(line)
        tokens = scanner.scan_tokens()
        if any(error.msg.startswith("Unterminated") for error in scanner.errors):
            return line, True

        balance = 0
        for token in tokens:
            if token.type in (TokenType.LEFT_BRACE, TokenType.LEFT_PAREN):
                balance += 1
            elif token.type in (TokenType.RIGHT_BRACE, TokenType.RIGHT_PAREN):
                balance -= 1
        return line, balance > 0

    def add(self, source, line_num=1):
        """Scans, parses and resolves source, then queues it. Nothing is evaluated until run is called. Raises
        StaticErrors, holding every error of the first phase that failed.
        """
        scanner = Scanner(source, line_num)
        tokens = scanner.scan_tokens()

        parser = Parser(tokens, repl=self.cmd_line)
        statements = parser.parse()

        # lexical and syntax errors are reported together: the parser still ran on what the scanner could produce
        errors = scanner.errors + parser.errors
        if errors:
            raise StaticErrors(sorted(errors, key=lambda error: error.line))

        resolver = Resolver()
        locals_ = resolver.resolve(statements)
        if resolver.errors:
            raise StaticErrors(resolver.errors)

        self.interpreter.resolve(locals_)
        self.to_exec.append((statements, parser.bare_expression))
        logger.debug("queued %d statement(s) from %s:%d", len(statements), self.path, line_num)

    def run(self):
        """Runs this session's queued statements. Will raise the first runtime error encountered; the queue is
        cleared either way so a failed entry is never run twice.
        """
        try:
            while self.to_exec:
                statements, bare = self.to_exec.pop(0)
                value = self.interpreter.interpret(statements)
                if bare:
                    self.results.append(stringify(value))
        finally:
            self.to_exec = []

    def pop(self):
        """Returns the oldest unread bare expression result."""
        return self.results.pop(0)

    def dump(self):
        """Returns the queued statements in parenthesized prefix form instead of running them."""
        printer = AstPrinter()
        return [printer.print(stmt) for statements, __ in self.to_exec for stmt in statements]
