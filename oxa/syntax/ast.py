"""Abstract syntax tree node catalog for the oxa language.

Nodes are tagged variants: every consumer (Parser, Resolver, Interpreter, AstPrinter) branches on the concrete node
class rather than through a visitor. Nodes compare and hash by identity (eq=False), because the Resolver keys its depth
map on the node itself: two references to the same name in different scopes must resolve independently.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from oxa.syntax.tokens import Token


class Expr:
    """Superclass of every expression node."""


class Stmt:
    """Superclass of every statement node."""


# expressions

@dataclass(eq=False)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(eq=False)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Call(Expr):
    callee: Expr
    paren: Token  # closing parenthesis, locates runtime errors
    arguments: List[Expr] = field(default_factory=list)


@dataclass(eq=False)
class Get(Expr):
    object: Expr
    name: Token


@dataclass(eq=False)
class Grouping(Expr):
    expression: Expr


@dataclass(eq=False)
class Lambda(Expr):
    """Anonymous function literal: fun (params) { body }."""
    keyword: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(eq=False)
class Literal(Expr):
    value: object


@dataclass(eq=False)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr


@dataclass(eq=False)
class Super(Expr):
    keyword: Token
    method: Token


@dataclass(eq=False)
class This(Expr):
    keyword: Token


@dataclass(eq=False)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(eq=False)
class Variable(Expr):
    name: Token


# statements

@dataclass(eq=False)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(eq=False)
class Function(Stmt):
    """Named function declaration, also used for methods inside a class body."""
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(eq=False)
class Class(Stmt):
    name: Token
    superclass: Optional[Variable]
    methods: List[Function]


@dataclass(eq=False)
class Expression(Stmt):
    expression: Expr


@dataclass(eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None


@dataclass(eq=False)
class Print(Stmt):
    expression: Expr


@dataclass(eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr] = None


@dataclass(eq=False)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr] = None


@dataclass(eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt
