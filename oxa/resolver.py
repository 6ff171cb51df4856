"""Static resolution pass for the oxa language.

Walks the whole program once, before any of it runs, keeping a stack of lexical scopes (name: whether or not its
initializer has finished). For every Variable, Assign, This and Super node it records how many scopes separate the use
from the declaration, so the Interpreter can walk exactly that many environments instead of searching by name. Nodes
left out of the map were not found in any local scope and are looked up in the global environment at runtime; globals
are deliberately late-bound so top-level declarations may refer to each other before they are defined.

The global scope itself is never pushed: redeclaring a global is allowed, redeclaring a local is an error.
"""

import logging
from enum import Enum, auto

from oxa.lang.error import ResolveError
from oxa.syntax import ast


logger = logging.getLogger(__name__)


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    INITIALIZER = auto()
    METHOD = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


class Resolver:
    """Resolves one program. resolve returns the {node: depth} map; check self.errors before evaluating anything."""

    def __init__(self):
        self.scopes = []
        self.locals = {}
        self.errors = []

        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    def resolve(self, statements):
        for stmt in statements:
            self._resolve_stmt(stmt)

        logger.debug("resolved %d local reference(s), %d error(s)", len(self.locals), len(self.errors))
        return self.locals

    # statements

    def _resolve_stmt(self, stmt):
        if isinstance(stmt, ast.Block):
            self._begin_scope()
            self.resolve(stmt.statements)
            self._end_scope()

        elif isinstance(stmt, ast.Var):
            self._declare(stmt.name)
            if stmt.initializer is not None:
                self._resolve_expr(stmt.initializer)
            self._define(stmt.name)

        elif isinstance(stmt, ast.Function):
            # defined before the body is resolved, so the function can call itself
            self._declare(stmt.name)
            self._define(stmt.name)
            self._resolve_function(stmt, FunctionType.FUNCTION)

        elif isinstance(stmt, ast.Class):
            self._resolve_class(stmt)

        elif isinstance(stmt, (ast.Expression, ast.Print)):
            self._resolve_expr(stmt.expression)

        elif isinstance(stmt, ast.If):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self._resolve_stmt(stmt.else_branch)

        elif isinstance(stmt, ast.While):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.body)

        elif isinstance(stmt, ast.Return):
            if self.current_function is FunctionType.NONE:
                self._error(stmt.keyword, "Can't return from top-level code.")

            if stmt.value is not None:
                if self.current_function is FunctionType.INITIALIZER:
                    self._error(stmt.keyword, "Can't return a value from an initializer.")
                self._resolve_expr(stmt.value)

        else:
            raise TypeError(f"cannot resolve statement node {type(stmt).__name__}")

    def _resolve_class(self, stmt):
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self._declare(stmt.name)
        self._define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self._error(stmt.superclass.name, "A class can't inherit from itself.")

            self.current_class = ClassType.SUBCLASS
            self._resolve_expr(stmt.superclass)

            self._begin_scope()
            self.scopes[-1]["super"] = True

        self._begin_scope()
        self.scopes[-1]["this"] = True

        for method in stmt.methods:
            function_type = FunctionType.METHOD
            if method.name.lexeme == "init":
                function_type = FunctionType.INITIALIZER
            self._resolve_function(method, function_type)

        self._end_scope()
        if stmt.superclass is not None:
            self._end_scope()

        self.current_class = enclosing_class

    def _resolve_function(self, function, function_type):
        """Resolves an ast.Function or ast.Lambda body in a new scope holding its parameters."""
        enclosing_function = self.current_function
        self.current_function = function_type

        self._begin_scope()
        for param in function.params:
            self._declare(param)
            self._define(param)
        self.resolve(function.body)
        self._end_scope()

        self.current_function = enclosing_function

    # expressions

    def _resolve_expr(self, expr):
        if isinstance(expr, ast.Variable):
            if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
                self._error(expr.name, "Can't read local variable in its own initializer.")
            self._resolve_local(expr, expr.name.lexeme)

        elif isinstance(expr, ast.Assign):
            self._resolve_expr(expr.value)
            self._resolve_local(expr, expr.name.lexeme)

        elif isinstance(expr, (ast.Binary, ast.Logical)):
            self._resolve_expr(expr.left)
            self._resolve_expr(expr.right)

        elif isinstance(expr, ast.Call):
            self._resolve_expr(expr.callee)
            for argument in expr.arguments:
                self._resolve_expr(argument)

        elif isinstance(expr, ast.Get):
            self._resolve_expr(expr.object)

        elif isinstance(expr, ast.Set):
            self._resolve_expr(expr.value)
            self._resolve_expr(expr.object)

        elif isinstance(expr, ast.Grouping):
            self._resolve_expr(expr.expression)

        elif isinstance(expr, ast.Unary):
            self._resolve_expr(expr.right)

        elif isinstance(expr, ast.Literal):
            pass

        elif isinstance(expr, ast.Lambda):
            self._resolve_function(expr, FunctionType.FUNCTION)

        elif isinstance(expr, ast.This):
            if self.current_class is ClassType.NONE:
                self._error(expr.keyword, "Can't use 'this' outside of a class.")
                return
            self._resolve_local(expr, "this")

        elif isinstance(expr, ast.Super):
            if self.current_class is ClassType.NONE:
                self._error(expr.keyword, "Can't use 'super' outside of a class.")
            elif self.current_class is not ClassType.SUBCLASS:
                self._error(expr.keyword, "Can't use 'super' in a class with no superclass.")
            self._resolve_local(expr, "super")

        else:
            raise TypeError(f"cannot resolve expression node {type(expr).__name__}")

    # scopes

    def _begin_scope(self):
        self.scopes.append({})

    def _end_scope(self):
        self.scopes.pop()

    def _declare(self, name):
        if not self.scopes:
            return

        scope = self.scopes[-1]
        if name.lexeme in scope:
            self._error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def _define(self, name):
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def _resolve_local(self, expr, name):
        for depth, scope in enumerate(reversed(self.scopes)):
            if name in scope:
                self.locals[expr] = depth
                return

    def _error(self, token, msg):
        self.errors.append(ResolveError.at(token, msg))
