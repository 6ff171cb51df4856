"""Native functions predefined in every interpreter's global environment."""

import time

from oxa.runtime import NativeFunction


def _clock(interpreter, arguments):
    """Seconds since the epoch, as a number. Useful for timing scripts."""
    return time.time()


NATIVES = [
    NativeFunction("clock", 0, _clock),
]


def install(environment):
    """Defines every native function in environment (normally the global one)."""
    for native in NATIVES:
        environment.define(native.name, native)
