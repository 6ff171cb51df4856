"""Runtime value and object model for the oxa language.

Values are plain Python objects:

```
nil       -> None
boolean   -> bool
number    -> float         ; always double precision, there is no integer type
string    -> str
callable  -> OxaFunction | NativeFunction | OxaClass
instance  -> OxaInstance
```

Method and field lookup on instances is an explicit two-step contract (see OxaInstance.get): the field map first, then
the method table of the class and its superclass chain. Nothing here relies on Python attribute lookup.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from oxa.environment import Environment
from oxa.lang.error import OxaRuntimeError
from oxa.syntax import ast
from oxa.syntax.tokens import format_number


@dataclass
class Returned:
    """Completion of a statement that executed `return`. Statement executors hand it up unchanged until it reaches the
    enclosing call boundary; any other statement completes with None.
    """
    value: object = None


def is_truthy(value):
    """nil and false are falsy, everything else (including 0 and "") is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(left, right):
    """Structural equality for nil/booleans/numbers/strings, identity for everything else. Values of different kinds
    are never equal (true != 1).
    """
    if type(left) is not type(right):
        return False
    if isinstance(left, (bool, float, str)) or left is None:
        return left == right
    return left is right


def stringify(value):
    """Text printed for value by the print statement and the interactive shell."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return str(value)


class OxaCallable(ABC):
    """Anything that can appear before a call's parentheses."""
    name = None

    @abstractmethod
    def arity(self):
        """Exact number of arguments call expects."""

    @abstractmethod
    def call(self, interpreter, arguments):
        """Runs the callable with already evaluated arguments and returns its value. Arity is checked by the caller."""


class OxaFunction(OxaCallable):
    """User function or method: a declaration plus the environment it was created in (its closure)."""

    def __init__(self, declaration, closure, is_initializer=False):
        self.declaration = declaration  # ast.Function or ast.Lambda
        self.closure = closure
        self.is_initializer = is_initializer
        self.name = declaration.name.lexeme if isinstance(declaration, ast.Function) else None

    def bind(self, instance):
        """Returns a copy of this method whose closure binds `this` to instance."""
        environment = Environment(self.closure)
        environment.define("this", instance)
        return OxaFunction(self.declaration, environment, self.is_initializer)

    def arity(self):
        return len(self.declaration.params)

    def call(self, interpreter, arguments):
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)

        completion = interpreter.execute_block(self.declaration.body, environment)

        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if completion is not None:
            return completion.value
        return None

    def __str__(self):
        if self.name is None:
            return "<fn>"
        return f"<fn {self.name}>"


class NativeFunction(OxaCallable):
    """Host-provided function. function receives (interpreter, arguments) like OxaCallable.call."""

    def __init__(self, name, arity, function):
        self.name = name
        self._arity = arity
        self.function = function

    def arity(self):
        return self._arity

    def call(self, interpreter, arguments):
        return self.function(interpreter, arguments)

    def __str__(self):
        return "<native fn>"


class OxaClass(OxaCallable):
    """Class object. Calling it constructs an instance and runs the initializer, if there is one in the chain."""
    INITIALIZER = "init"

    def __init__(self, name, superclass, methods):
        self.name = name
        self.superclass = superclass  # shared with every other subclass, never copied
        self.methods = methods

    def find_method(self, name):
        """Walks this class then its superclass chain, stopping at the first match. Returns None if not found."""
        klass = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self):
        initializer = self.find_method(OxaClass.INITIALIZER)
        return initializer.arity() if initializer is not None else 0

    def call(self, interpreter, arguments):
        instance = OxaInstance(self)

        initializer = self.find_method(OxaClass.INITIALIZER)
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)

        return instance

    def __str__(self):
        return self.name


class OxaInstance:
    """Instance of an OxaClass. Fields are not declared: they appear on first assignment."""

    def __init__(self, klass):
        self.klass = klass
        self.fields = {}

    def get(self, name):
        """Field named by token name if there is one, else the method of that name bound to this instance."""
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)

        raise OxaRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name, value):
        """Always writes a field, even if a method of the same name exists."""
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"{self.klass.name} instance"
