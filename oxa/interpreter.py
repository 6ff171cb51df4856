"""oxa tree-walking interpreter.

Basic program flow (driven by lang/session.py):
    1. Scanner: source text -> tokens (see syntax/scanner.py)
    2. Parser: tokens -> statement nodes (see syntax/parser.py)
    3. Resolver: walks the nodes once and computes the scope depth of every local variable use (see resolver.py)
    4. Interpreter: evaluates the nodes directly against the environment chain, using the resolver's depths to jump
       straight to the right environment. No bytecode, no separate VM.

Every phase reports all its errors before the next one starts; evaluation only ever sees programs that scanned, parsed
and resolved cleanly.
"""

import logging
from collections import namedtuple

from oxa import natives
from oxa.environment import Environment
from oxa.lang.error import OxaRuntimeError
from oxa.runtime import OxaCallable, OxaClass, OxaFunction, OxaInstance, Returned, is_equal, is_truthy, stringify
from oxa.syntax import ast
from oxa.syntax.tokens import TokenType


logger = logging.getLogger(__name__)

Frame = namedtuple("Frame", "name line")  # one active call: callee name, line of the call site


class Interpreter:
    """Evaluator state for one running program: the global environment, the current environment, the resolver's depth
    map and the call stack. Interpreters share nothing, so independent programs can run side by side.
    """

    def __init__(self, out=None):
        self.globals = Environment()
        self.environment = self.globals
        self.locals = {}   # node: scope depth, accumulated from every resolved program
        self.frames = []   # active calls, outermost first
        self.out = out     # where print writes (None is sys.stdout)

        natives.install(self.globals)

    def resolve(self, locals_):
        """Adds a Resolver's output to the depth map. Entries are never removed: functions and classes declared by an
        earlier program (shell entry) keep running its nodes, so the map grows with the total source resolved in this
        interpreter's lifetime.
        """
        self.locals.update(locals_)

    def interpret(self, statements):
        """Executes statements in order. Returns the value of the last statement if it is an expression statement
        (used by the shell to echo bare expressions), else None. Runtime errors abort the run and are re-raised with
        the call stack attached; global state is left as far as the run got.
        """
        value = None
        try:
            for stmt in statements:
                value = None
                if isinstance(stmt, ast.Expression):
                    value = self.evaluate(stmt.expression)
                else:
                    self.execute(stmt)

        except RecursionError:
            error = OxaRuntimeError(None, "Stack overflow.")
            self._unwind(error)
            raise error from None

        except OxaRuntimeError as error:
            self._unwind(error)
            raise

        return value

    def _unwind(self, error):
        """Attaches the call stack to error, then resets to the global environment."""
        if error.line is None and self.frames:
            error.line = self.frames[-1].line

        line = error.line
        trace = []
        for frame in reversed(self.frames):
            trace.append(f"[line {line}] in {frame.name}()")
            line = frame.line
        trace.append(f"[line {line}] in script")
        error.trace = trace

        logger.debug("runtime error at depth %d: %s", len(self.frames), error.msg)
        self.frames = []
        self.environment = self.globals

    # statements

    def execute(self, stmt):
        """Executes stmt. Returns a Returned completion if a return statement ran, else None."""
        if isinstance(stmt, ast.Expression):
            self.evaluate(stmt.expression)

        elif isinstance(stmt, ast.Print):
            value = self.evaluate(stmt.expression)
            print(stringify(value), file=self.out)

        elif isinstance(stmt, ast.Var):
            value = None
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer)
            self.environment.define(stmt.name.lexeme, value)

        elif isinstance(stmt, ast.Block):
            return self.execute_block(stmt.statements, Environment(self.environment))

        elif isinstance(stmt, ast.If):
            if is_truthy(self.evaluate(stmt.condition)):
                return self.execute(stmt.then_branch)
            elif stmt.else_branch is not None:
                return self.execute(stmt.else_branch)

        elif isinstance(stmt, ast.While):
            while is_truthy(self.evaluate(stmt.condition)):
                completion = self.execute(stmt.body)
                if completion is not None:
                    return completion

        elif isinstance(stmt, ast.Function):
            function = OxaFunction(stmt, self.environment)
            self.environment.define(stmt.name.lexeme, function)

        elif isinstance(stmt, ast.Return):
            value = None
            if stmt.value is not None:
                value = self.evaluate(stmt.value)
            return Returned(value)

        elif isinstance(stmt, ast.Class):
            self._execute_class(stmt)

        else:
            raise TypeError(f"cannot execute statement node {type(stmt).__name__}")

        return None

    def execute_block(self, statements, environment):
        """Executes statements in environment, then restores the current environment whatever happens. Stops at, and
        returns, the first Returned completion.
        """
        previous = self.environment
        try:
            self.environment = environment
            for stmt in statements:
                completion = self.execute(stmt)
                if completion is not None:
                    return completion
        finally:
            self.environment = previous
        return None

    def _execute_class(self, stmt):
        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, OxaClass):
                raise OxaRuntimeError(stmt.superclass.name, "Superclass must be a class.")

        self.environment.define(stmt.name.lexeme, None)

        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.define("super", superclass)

        methods = {}
        for method in stmt.methods:
            is_initializer = method.name.lexeme == OxaClass.INITIALIZER
            methods[method.name.lexeme] = OxaFunction(method, self.environment, is_initializer)

        klass = OxaClass(stmt.name.lexeme, superclass, methods)

        if superclass is not None:
            self.environment = self.environment.enclosing

        self.environment.assign(stmt.name, klass)

    # expressions

    def evaluate(self, expr):
        if isinstance(expr, ast.Literal):
            return expr.value

        elif isinstance(expr, ast.Variable):
            return self._look_up_variable(expr.name, expr)

        elif isinstance(expr, ast.Binary):
            return self._binary(expr)

        elif isinstance(expr, ast.Call):
            return self._call(expr)

        elif isinstance(expr, ast.Grouping):
            return self.evaluate(expr.expression)

        elif isinstance(expr, ast.Logical):
            left = self.evaluate(expr.left)
            if expr.operator.type is TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)

        elif isinstance(expr, ast.Unary):
            right = self.evaluate(expr.right)
            if expr.operator.type is TokenType.MINUS:
                self._check_number_operand(expr.operator, right)
                return -right
            return not is_truthy(right)

        elif isinstance(expr, ast.Assign):
            value = self.evaluate(expr.value)
            distance = self.locals.get(expr)
            if distance is not None:
                self.environment.assign_at(distance, expr.name, value)
            else:
                self.globals.assign(expr.name, value)
            return value

        elif isinstance(expr, ast.Get):
            obj = self.evaluate(expr.object)
            if isinstance(obj, OxaInstance):
                return obj.get(expr.name)
            raise OxaRuntimeError(expr.name, "Only instances have properties.")

        elif isinstance(expr, ast.Set):
            obj = self.evaluate(expr.object)
            if not isinstance(obj, OxaInstance):
                raise OxaRuntimeError(expr.name, "Only instances have fields.")
            value = self.evaluate(expr.value)
            obj.set(expr.name, value)
            return value

        elif isinstance(expr, ast.This):
            return self._look_up_variable(expr.keyword, expr)

        elif isinstance(expr, ast.Super):
            return self._super(expr)

        elif isinstance(expr, ast.Lambda):
            return OxaFunction(expr, self.environment)

        raise TypeError(f"cannot evaluate expression node {type(expr).__name__}")

    def _look_up_variable(self, name, expr):
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def _binary(self, expr):
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        operator = expr.operator
        op = operator.type

        if op is TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if op is TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if op is TokenType.PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise OxaRuntimeError(operator, "Operands must be two numbers or two strings.")

        self._check_number_operands(operator, left, right)

        if op is TokenType.MINUS:
            return left - right
        if op is TokenType.STAR:
            return left * right
        if op is TokenType.SLASH:
            if right == 0.0:
                raise OxaRuntimeError(operator, "Division by zero.")
            return left / right
        if op is TokenType.GREATER:
            return left > right
        if op is TokenType.GREATER_EQUAL:
            return left >= right
        if op is TokenType.LESS:
            return left < right
        if op is TokenType.LESS_EQUAL:
            return left <= right

        raise TypeError(f"unknown binary operator {operator.lexeme}")

    def _call(self, expr):
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, OxaCallable):
            raise OxaRuntimeError(expr.paren, "Can only call functions and classes.")

        if len(arguments) != callee.arity():
            raise OxaRuntimeError(expr.paren, f"Expected {callee.arity()} arguments but got {len(arguments)}.")

        # popped only on a normal return: after an error the stack is kept for the trace until _unwind
        self.frames.append(Frame(callee.name or "fun", expr.paren.line))
        result = callee.call(self, arguments)
        self.frames.pop()
        return result

    def _super(self, expr):
        distance = self.locals[expr]
        superclass = self.environment.get_at(distance, "super")
        # "this" is always bound in the scope just inside the one binding "super"
        instance = self.environment.get_at(distance - 1, "this")

        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise OxaRuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")
        return method.bind(instance)

    @staticmethod
    def _check_number_operand(operator, operand):
        if not isinstance(operand, float):
            raise OxaRuntimeError(operator, "Operand must be a number.")

    @staticmethod
    def _check_number_operands(operator, left, right):
        if not isinstance(left, float) or not isinstance(right, float):
            raise OxaRuntimeError(operator, "Operands must be numbers.")
