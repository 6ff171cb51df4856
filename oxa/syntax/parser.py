"""Recursive-descent parser for the oxa language: turns the Scanner's tokens into a list of statement nodes.

Syntactic grammar, one method per rule:

```
<program>     ::= <declaration>* EOF
<declaration> ::= "class" IDENTIFIER ("<" IDENTIFIER)? "{" <function>* "}"
                | "fun" <function>
                | "var" IDENTIFIER ("=" <expression>)? ";"
                | <statement>
<function>    ::= IDENTIFIER "(" <params>? ")" <block>
<statement>   ::= <expr_stmt> | <for_stmt> | <if_stmt> | <print_stmt> | <return_stmt> | <while_stmt> | <block>
<for_stmt>    ::= "for" "(" (<var_decl> | <expr_stmt> | ";") <expression>? ";" <expression>? ")" <statement>
                                                      ; desugared into Block/While, there is no For node
<expression>  ::= <assignment>
<assignment>  ::= (<call> ".")? IDENTIFIER "=" <assignment> | <logic_or>      ; right-associative
<logic_or>    ::= <logic_and> ("or" <logic_and>)*
<logic_and>   ::= <equality> ("and" <equality>)*
<equality>    ::= <comparison> (("!=" | "==") <comparison>)*
<comparison>  ::= <term> ((">" | ">=" | "<" | "<=") <term>)*
<term>        ::= <factor> (("-" | "+") <factor>)*
<factor>      ::= <unary> (("/" | "*") <unary>)*
<unary>       ::= ("!" | "-") <unary> | <call>
<call>        ::= <primary> ("(" <arguments>? ")" | "." IDENTIFIER)*
<primary>     ::= "true" | "false" | "nil" | "this" | NUMBER | STRING | IDENTIFIER | "(" <expression> ")"
                | "super" "." IDENTIFIER | "fun" "(" <params>? ")" <block>
```

On a syntax error the parser records it, then synchronizes by discarding tokens up to a likely statement boundary, so
there is one report per genuine mistake rather than one per token.
"""

import logging

from oxa.lang.error import ParseError
from oxa.syntax import ast
from oxa.syntax.tokens import TokenType


logger = logging.getLogger(__name__)


class Parser:
    """Parses one program (a script, or one interactive entry if repl)."""
    MAX_ARGS = 255
    STATEMENT_START = {
        TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.FOR, TokenType.IF, TokenType.WHILE,
        TokenType.PRINT, TokenType.RETURN,
    }

    def __init__(self, tokens, repl=False):
        self.tokens = tokens
        self.current = 0
        self.errors = []

        self.repl = repl                # in repl mode, a trailing expression may omit its ";"
        self.bare_expression = False    # whether or not the last top-level statement did

    def parse(self):
        """Returns the list of statements that parsed. Check self.errors before using them."""
        statements = []
        while not self._is_at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)

        # only a top-level expression left without its ";" has a value to echo
        if self.repl and not self.errors and statements and isinstance(statements[-1], ast.Expression):
            self.bare_expression = self.tokens[-2].type is not TokenType.SEMICOLON

        logger.debug("parsed %d statement(s), %d error(s)", len(statements), len(self.errors))
        return statements

    # declarations

    def _declaration(self):
        try:
            if self._match(TokenType.CLASS):
                return self._class_declaration()
            if self._check(TokenType.FUN) and self._check_next(TokenType.IDENTIFIER):
                self._advance()
                return self._function("function")
            if self._match(TokenType.VAR):
                return self._var_declaration()
            return self._statement()

        except ParseError:
            self._synchronize()
            return None

    def _class_declaration(self):
        name = self._consume(TokenType.IDENTIFIER, "Expect class name.")

        superclass = None
        if self._match(TokenType.LESS):
            self._consume(TokenType.IDENTIFIER, "Expect superclass name.")
            superclass = ast.Variable(self._previous())

        self._consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")

        methods = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            methods.append(self._function("method"))

        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return ast.Class(name, superclass, methods)

    def _function(self, kind):
        name = self._consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        params, body = self._function_rest(kind)
        return ast.Function(name, params, body)

    def _function_rest(self, kind):
        """Parameter list and body, shared by declarations, methods and lambdas."""
        self._consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")

        params = []
        if not self._check(TokenType.RIGHT_PAREN):
            params.append(self._consume(TokenType.IDENTIFIER, "Expect parameter name."))
            while self._match(TokenType.COMMA):
                if len(params) >= Parser.MAX_ARGS:
                    self._error(self._peek(), f"Can't have more than {Parser.MAX_ARGS} parameters.")
                params.append(self._consume(TokenType.IDENTIFIER, "Expect parameter name."))

        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        self._consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        return params, self._block()

    def _var_declaration(self):
        name = self._consume(TokenType.IDENTIFIER, "Expect variable name.")

        initializer = None
        if self._match(TokenType.EQUAL):
            initializer = self._expression()

        self._consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return ast.Var(name, initializer)

    # statements

    def _statement(self):
        if self._match(TokenType.FOR):
            return self._for_statement()
        if self._match(TokenType.IF):
            return self._if_statement()
        if self._match(TokenType.PRINT):
            return self._print_statement()
        if self._match(TokenType.RETURN):
            return self._return_statement()
        if self._match(TokenType.WHILE):
            return self._while_statement()
        if self._match(TokenType.LEFT_BRACE):
            return ast.Block(self._block())
        return self._expression_statement()

    def _for_statement(self):
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._match(TokenType.VAR):
            initializer = self._var_declaration()
        else:
            initializer = self._expression_statement()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self._check(TokenType.RIGHT_PAREN):
            increment = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self._statement()

        if increment is not None:
            body = ast.Block([body, ast.Expression(increment)])
        if condition is None:
            condition = ast.Literal(True)
        body = ast.While(condition, body)
        if initializer is not None:
            body = ast.Block([initializer, body])

        return body

    def _if_statement(self):
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self._statement()
        else_branch = self._statement() if self._match(TokenType.ELSE) else None
        return ast.If(condition, then_branch, else_branch)

    def _print_statement(self):
        value = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return ast.Print(value)

    def _return_statement(self):
        keyword = self._previous()
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._expression()

        self._consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return ast.Return(keyword, value)

    def _while_statement(self):
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        return ast.While(condition, self._statement())

    def _block(self):
        statements = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)

        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def _expression_statement(self):
        expr = self._expression()

        if self.repl and self._is_at_end():
            return ast.Expression(expr)

        self._consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return ast.Expression(expr)

    # expressions

    def _expression(self):
        return self._assignment()

    def _assignment(self):
        expr = self._or()

        if self._match(TokenType.EQUAL):
            equals = self._previous()
            value = self._assignment()

            if isinstance(expr, ast.Variable):
                return ast.Assign(expr.name, value)
            elif isinstance(expr, ast.Get):
                return ast.Set(expr.object, expr.name, value)

            self._error(equals, "Invalid assignment target.")  # reported, but no need to synchronize

        return expr

    def _or(self):
        expr = self._and()
        while self._match(TokenType.OR):
            operator = self._previous()
            expr = ast.Logical(expr, operator, self._and())
        return expr

    def _and(self):
        expr = self._equality()
        while self._match(TokenType.AND):
            operator = self._previous()
            expr = ast.Logical(expr, operator, self._equality())
        return expr

    def _binary(self, operand, *types):
        """Left-associative binary rule: operand ((types) operand)*"""
        expr = operand()
        while self._match(*types):
            operator = self._previous()
            expr = ast.Binary(expr, operator, operand())
        return expr

    def _equality(self):
        return self._binary(self._comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def _comparison(self):
        return self._binary(self._term, TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS,
                            TokenType.LESS_EQUAL)

    def _term(self):
        return self._binary(self._factor, TokenType.MINUS, TokenType.PLUS)

    def _factor(self):
        return self._binary(self._unary, TokenType.SLASH, TokenType.STAR)

    def _unary(self):
        if self._match(TokenType.BANG, TokenType.MINUS):
            operator = self._previous()
            return ast.Unary(operator, self._unary())
        return self._call()

    def _call(self):
        expr = self._primary()

        while True:
            if self._match(TokenType.LEFT_PAREN):
                expr = self._finish_call(expr)
            elif self._match(TokenType.DOT):
                name = self._consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = ast.Get(expr, name)
            else:
                break

        return expr

    def _finish_call(self, callee):
        arguments = []
        if not self._check(TokenType.RIGHT_PAREN):
            arguments.append(self._expression())
            while self._match(TokenType.COMMA):
                if len(arguments) >= Parser.MAX_ARGS:
                    self._error(self._peek(), f"Can't have more than {Parser.MAX_ARGS} arguments.")
                arguments.append(self._expression())

        paren = self._consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return ast.Call(callee, paren, arguments)

    def _primary(self):
        if self._match(TokenType.FALSE):
            return ast.Literal(False)
        if self._match(TokenType.TRUE):
            return ast.Literal(True)
        if self._match(TokenType.NIL):
            return ast.Literal(None)

        if self._match(TokenType.NUMBER, TokenType.STRING):
            return ast.Literal(self._previous().literal)

        if self._match(TokenType.SUPER):
            keyword = self._previous()
            self._consume(TokenType.DOT, "Expect '.' after 'super'.")
            method = self._consume(TokenType.IDENTIFIER, "Expect superclass method name.")
            return ast.Super(keyword, method)

        if self._match(TokenType.THIS):
            return ast.This(self._previous())

        if self._match(TokenType.IDENTIFIER):
            return ast.Variable(self._previous())

        if self._match(TokenType.FUN):
            keyword = self._previous()
            params, body = self._function_rest("fun")
            return ast.Lambda(keyword, params, body)

        if self._match(TokenType.LEFT_PAREN):
            expr = self._expression()
            self._consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return ast.Grouping(expr)

        raise self._error(self._peek(), "Expect expression.")

    # token helpers

    def _match(self, *types):
        for token_type in types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    def _consume(self, token_type, msg):
        if self._check(token_type):
            return self._advance()
        raise self._error(self._peek(), msg)

    def _check(self, token_type):
        if self._is_at_end():
            return False
        return self._peek().type is token_type

    def _check_next(self, token_type):
        if self._is_at_end():
            return False
        return self.tokens[self.current + 1].type is token_type

    def _advance(self):
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _is_at_end(self):
        return self._peek().type is TokenType.EOF

    def _peek(self):
        return self.tokens[self.current]

    def _previous(self):
        return self.tokens[self.current - 1]

    def _error(self, token, msg):
        """Records a ParseError at token and returns it; callers raise it when they need to unwind."""
        error = ParseError.at(token, msg)
        self.errors.append(error)
        return error

    def _synchronize(self):
        self._advance()

        while not self._is_at_end():
            if self._previous().type is TokenType.SEMICOLON:
                return
            if self._peek().type in Parser.STATEMENT_START:
                return
            self._advance()
