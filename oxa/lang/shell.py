"""Interactive mode for the oxa interpreter, built on cmd. Every line that cmd does not recognize as a shell command is
oxa source; entries left open (unbalanced braces or parentheses, unterminated strings or comments) keep collecting
lines under the continuation prompt.
"""

import cmd


class Shell(cmd.Cmd):
    """oxa interactive shell. State lives in the session, so definitions persist from one entry to the next."""
    intro = "oxa interpreter :: Python backend\nType 'help' for more information, 'exit' or Ctrl-D to leave."
    primary_prompt = "> "
    continuation_prompt = ". "
    prompt = primary_prompt

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sess = sess

        self.line_num = 0       # lines read so far, used to number diagnostics
        self._pending = ""      # text of an entry still waiting for its continuation lines
        self._entry_line = 1    # line the pending entry started on

    def default(self, line):
        """Feeds one line of oxa source to the session, running the entry once it is complete."""
        with self.sess.error_handler:  # non-fatal: reports the error and keeps the loop alive
            self.line_num += 1
            if not self._pending:
                self._entry_line = self.line_num

            entry, incomplete = self.sess.preprocess_line(line, self._pending)
            if incomplete:
                self._pending = entry
                self.prompt = self.continuation_prompt
                return

            self._pending = ""
            self.prompt = self.primary_prompt

            self.sess.add(entry, self._entry_line)
            self.sess.run()
            while self.sess.results:
                print(self.sess.pop(), file=self.stdout)

    def do_help(self, arg):
        """Prints a short introduction to the language."""
        if arg:
            return self.default(f"help {arg}")
        print("Welcome to the oxa interpreter!\n\n"
              "oxa is a small dynamically typed scripting language with first-class functions,\n"
              "closures and classes. Statements end with ';' and a bare expression prints its\n"
              "value.\n\n"
              "Try it out by typing 'var greeting = \"hello\";', then 'greeting + \" world\"'.\n"
              "Entries with unclosed braces or parentheses continue on the next line.",
              file=self.stdout)

    def emptyline(self):
        """An empty line does nothing (cmd would repeat the last entry)."""
        return ""

    def do_EOF(self, arg):
        """Leaves the shell on Ctrl-D."""
        if arg:
            return self.default(f"EOF {arg}")
        print(file=self.stdout)
        return True

    def do_exit(self, arg):
        """Leaves the shell."""
        if arg:  # oxa source that starts with the word, e.g. "exit = 2;"
            return self.default(f"exit {arg}")
        return True
