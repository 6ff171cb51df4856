"""Prints oxa syntax trees in parenthesized prefix (Polish) notation, e.g. `1 + 2 * 3` becomes `(+ 1 (* 2 3))`.

Used by `oxa --print-ast` and to compare parses structurally. Like every other pass it is one exhaustive branch per node
kind, so a node kind missing here raises instead of printing something wrong.
"""

from oxa.syntax import ast
from oxa.syntax.tokens import format_number


class AstPrinter:
    """Stateless printer: print accepts either an expression or a statement node."""

    def print(self, node):
        if isinstance(node, ast.Stmt):
            return self._stmt(node)
        return self._expr(node)

    def _parenthesize(self, name, *parts):
        return "(" + " ".join([name, *parts]) + ")"

    def _body(self, statements):
        return [self._stmt(stmt) for stmt in statements]

    def _params(self, params):
        return "(" + " ".join(param.lexeme for param in params) + ")"

    def _literal(self, value):
        if value is None:
            return "nil"
        if value is True:
            return "true"
        if value is False:
            return "false"
        if isinstance(value, str):
            return f'"{value}"'
        return format_number(value)

    def _expr(self, expr):
        if isinstance(expr, ast.Literal):
            return self._literal(expr.value)
        elif isinstance(expr, ast.Grouping):
            return self._parenthesize("group", self._expr(expr.expression))
        elif isinstance(expr, ast.Unary):
            return self._parenthesize(expr.operator.lexeme, self._expr(expr.right))
        elif isinstance(expr, (ast.Binary, ast.Logical)):
            return self._parenthesize(expr.operator.lexeme, self._expr(expr.left), self._expr(expr.right))
        elif isinstance(expr, ast.Variable):
            return expr.name.lexeme
        elif isinstance(expr, ast.Assign):
            return self._parenthesize("=", expr.name.lexeme, self._expr(expr.value))
        elif isinstance(expr, ast.Call):
            return self._parenthesize("call", self._expr(expr.callee), *map(self._expr, expr.arguments))
        elif isinstance(expr, ast.Get):
            return self._parenthesize(".", self._expr(expr.object), expr.name.lexeme)
        elif isinstance(expr, ast.Set):
            return self._parenthesize("=", self._parenthesize(".", self._expr(expr.object), expr.name.lexeme),
                                      self._expr(expr.value))
        elif isinstance(expr, ast.This):
            return "this"
        elif isinstance(expr, ast.Super):
            return self._parenthesize("super", expr.method.lexeme)
        elif isinstance(expr, ast.Lambda):
            return self._parenthesize("fun", self._params(expr.params), *self._body(expr.body))
        raise TypeError(f"cannot print expression node {type(expr).__name__}")

    def _stmt(self, stmt):
        if isinstance(stmt, ast.Expression):
            return self._parenthesize(";", self._expr(stmt.expression))
        elif isinstance(stmt, ast.Print):
            return self._parenthesize("print", self._expr(stmt.expression))
        elif isinstance(stmt, ast.Var):
            if stmt.initializer is None:
                return self._parenthesize("var", stmt.name.lexeme)
            return self._parenthesize("var", stmt.name.lexeme, self._expr(stmt.initializer))
        elif isinstance(stmt, ast.Block):
            return self._parenthesize("block", *self._body(stmt.statements))
        elif isinstance(stmt, ast.If):
            parts = [self._expr(stmt.condition), self._stmt(stmt.then_branch)]
            if stmt.else_branch is not None:
                parts.append(self._stmt(stmt.else_branch))
            return self._parenthesize("if", *parts)
        elif isinstance(stmt, ast.While):
            return self._parenthesize("while", self._expr(stmt.condition), self._stmt(stmt.body))
        elif isinstance(stmt, ast.Function):
            return self._parenthesize("fun", stmt.name.lexeme, self._params(stmt.params), *self._body(stmt.body))
        elif isinstance(stmt, ast.Return):
            if stmt.value is None:
                return "(return)"
            return self._parenthesize("return", self._expr(stmt.value))
        elif isinstance(stmt, ast.Class):
            parts = [stmt.name.lexeme]
            if stmt.superclass is not None:
                parts += ["<", stmt.superclass.name.lexeme]
            return self._parenthesize("class", *parts, *map(self._stmt, stmt.methods))
        raise TypeError(f"cannot print statement node {type(stmt).__name__}")
