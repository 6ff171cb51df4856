"""Environment chain: one record per scope, linked to the environment it was created in.

Environments are shared, not owned: every closure created inside an environment keeps a reference to it, so it lives as
long as the longest-lived closure that captured it, and assigning to a captured variable is visible to all of them.
"""

from oxa.lang.error import OxaRuntimeError


class Environment:
    """Bindings of one scope. enclosing is None only for the global environment."""

    def __init__(self, enclosing=None):
        self.values = {}
        self.enclosing = enclosing

    def define(self, name, value):
        """Binds name in this environment, overwriting any previous binding (globals may be redeclared)."""
        self.values[name] = value

    def get(self, name):
        """Late-bound lookup of token name along the whole chain. Used for globals."""
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                return environment.values[name.lexeme]
            environment = environment.enclosing

        raise OxaRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name, value):
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                environment.values[name.lexeme] = value
                return
            environment = environment.enclosing

        raise OxaRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def ancestor(self, distance):
        """Environment exactly distance links up the chain (0 is self)."""
        environment = self
        for _ in range(distance):
            environment = environment.enclosing
        return environment

    def get_at(self, distance, name):
        """Reads a resolved local: name is a str, and is guaranteed to be bound at that distance."""
        return self.ancestor(distance).values[name]

    def assign_at(self, distance, name, value):
        self.ancestor(distance).values[name.lexeme] = value

    def __repr__(self):
        depth = 0
        environment = self.enclosing
        while environment is not None:
            depth += 1
            environment = environment.enclosing
        return f"Environment(depth={depth}, names={sorted(self.values)})"
