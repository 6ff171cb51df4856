"""Uses the oxa pipeline to interpret .oxa files or run in command-line mode. Also uses the error handling context
manager, which maps every failure class to its own exit code. Called from the oxa executable script.

Python version must be >=3.7, because error reporting and the AST rely on insertion-ordered dicts and dataclasses.
"""

import argparse
import logging
import sys

from oxa.lang.error import ErrorHandler
from oxa.lang.session import Session
from oxa.lang.shell import Shell


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="oxa", description="oxa scripting language interpreter")
    parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
    parser.add_argument("--print-ast", action="store_true",
                        help="print the parsed program in prefix notation instead of running it")
    parser.add_argument("--no-color", action="store_true", help="do not highlight diagnostics")
    parser.add_argument("-v", "--verbose", action="store_true", help="log each pipeline phase to stderr")
    parser.add_argument("--recursion-limit", type=int, default=Session.RECURSION_LIMIT,
                        help="host recursion limit, bounds how deeply oxa calls may nest "
                             "(default: %(default)s)")
    return parser.parse_args(argv)


def main(argv=None):
    """Runs oxa interpreter. Called from oxa executable script."""
    assert sys.version_info >= (3, 7), "oxa cannot be run with python < 3.7"

    args = parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    sys.setrecursionlimit(args.recursion_limit)

    with ErrorHandler(color=not args.no_color) as error_handler:
        if args.file is not None:
            sess = Session(error_handler, args.file, cmd_line=False)
            if args.print_ast:
                for line in sess.dump():
                    print(line)
            else:
                sess.run()

        else:
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True)).cmdloop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
