import io
import unittest

from oxa.interpreter import Interpreter
from oxa.lang.error import ErrorHandler, OxaRuntimeError
from oxa.lang.session import Session


def session():
    out = io.StringIO()
    sess = Session(ErrorHandler(stream=io.StringIO(), color=False), Session.SH_FILE, cmd_line=True, out=out)
    return sess, out


def run(source):
    """Runs source in a fresh interpreter and returns the printed lines."""
    sess, out = session()
    sess.add(source)
    sess.run()
    return out.getvalue().splitlines()


class InterpreterTestCase(unittest.TestCase):

    def test_programs(self):
        should_pass = {
            "print 1 + 2 * 3; print (1 + 2) * 3;": ["7", "9"],
            "print 7 / 2; print 10 - 2 - 3; print -(-4);": ["3.5", "5", "4"],
            "print 0.1 + 0.2; print 123.456; print 100;": ["0.30000000000000004", "123.456", "100"],
            "print -0; print 0 * -1; print -0 + 0;": ["-0", "-0", "0"],
            'print "a" + "b"; print "";': ["ab", ""],
            "print 1 < 2; print 2 <= 2; print 3 > 4; print 4 >= 5;": ["true", "true", "false", "false"],
            'print nil or "x"; print 0 and "y"; print false and boom; print true or boom;':
                ["x", "y", "false", "true"],
            'print !nil; print !0; print !"";': ["true", "false", "false"],
            'print nil == nil; print nil == false; print 1 == 1; print "a" == "a"; print 1 == "1";':
                ["true", "false", "true", "true", "false"],
            "print true != false; print 1 != 1;": ["true", "false"],
            "class A {} var a = A(); var b = A(); print a == a; print a == b;": ["true", "false"],
            'var x = "outer"; { var x = "inner"; print x; } print x;': ["inner", "outer"],
            "var a; print a; a = 1; print a; print a = 2;": ["nil", "1", "2"],
            "if (0) print 1; else print 2; if (nil) print 3; else print 4;": ["1", "4"],
            "var s = 0; for (var i = 1; i <= 4; i = i + 1) s = s + i; print s;": ["10"],
            "var n = 3; while (n > 0) n = n - 1; print n;": ["0"],
            "fun f() {} print f(); print f;": ["nil", "<fn f>"],
            "print fun () {}; print clock;": ["<fn>", "<native fn>"],
            "class A {} print A; print A();": ["A", "A instance"],
            "print clock == clock; print clock() > 0;": ["true", "true"],
            "fun fib(n) { if (n < 2) return n; return fib(n - 1) + fib(n - 2); } print fib(15);": ["610"],
            "fun a() { return b(); } fun b() { return \"b\"; } print a();": ["b"],
            "fun f() { while (true) { for (;;) { { return \"out\"; } } } } print f();": ["out"],
        }
        for case, expected in should_pass.items():
            self.assertEqual(expected, run(case), case)

    def test_closures(self):
        source = """
        fun makeCounter() {
          var count = 0;
          fun counter() {
            count = count + 1;
            return count;
          }
          return counter;
        }
        var a = makeCounter();
        print a();
        print a();
        print a();
        var b = makeCounter();
        print b();
        """
        self.assertEqual(["1", "2", "3", "1"], run(source))

    def test_shared_closure_state(self):
        source = """
        var get;
        var set;
        fun make() {
          var v = 1;
          fun g() { return v; }
          fun s(x) { v = x; }
          get = g;
          set = s;
        }
        make();
        set(42);
        print get();
        """
        self.assertEqual(["42"], run(source))

    def test_static_binding(self):
        source = """
        var a = "global";
        {
          fun showA() {
            print a;
          }
          showA();
          var a = "block";
          showA();
        }
        """
        self.assertEqual(["global", "global"], run(source))

    def test_lambdas(self):
        source = """
        var twice = fun (f, x) { return f(f(x)); };
        print twice(fun (n) { return n * 2; }, 3);
        """
        self.assertEqual(["12"], run(source))

    def test_classes(self):
        source = """
        class Base {
          m() { return "base " + this.name; }
        }
        class Derived < Base {
          init(name) { this.name = name; }
          m() { return "derived/" + super.m(); }
        }
        print Derived("d").m();
        """
        self.assertEqual(["derived/base d"], run(source))

    def test_super_is_static(self):
        source = """
        class A { method() { print "A method"; } }
        class B < A {
          method() { print "B method"; }
          test() { super.method(); }
        }
        class C < B {}
        C().test();
        """
        self.assertEqual(["A method"], run(source))

    def test_initializer(self):
        source = """
        class A {
          init() {
            this.x = 1;
            return;
          }
        }
        var a = A();
        print a.init() == a;
        print a.x;
        """
        self.assertEqual(["true", "1"], run(source))

    def test_fields_and_methods(self):
        source = """
        class A {
          init(n) { this.n = n; }
          get() { return this.n; }
          m() { return "method"; }
        }
        var a = A(5);
        var g = a.get;
        print g();
        print a.m();
        a.m = "field";
        print a.m;
        """
        self.assertEqual(["5", "method", "field"], run(source))

    def test_runtime_errors(self):
        should_fail = {
            "print undeclared;": "Undefined variable 'undeclared'.",
            "undeclared = 1;": "Undefined variable 'undeclared'.",
            '"a" - 1;': "Operands must be numbers.",
            '1 < "a";': "Operands must be numbers.",
            '"a" + 1;': "Operands must be two numbers or two strings.",
            '-"a";': "Operand must be a number.",
            '"not fn"();': "Can only call functions and classes.",
            "fun f(a) {} f();": "Expected 1 arguments but got 0.",
            "class A {} A(1);": "Expected 0 arguments but got 1.",
            "1 / 0;": "Division by zero.",
            "var x = 1; x.y;": "Only instances have properties.",
            "var x = 1; x.y = 2;": "Only instances have fields.",
            "class A {} A().missing;": "Undefined property 'missing'.",
            "var NotClass = 1; class B < NotClass {}": "Superclass must be a class.",
            "class A {} class B < A { m() { return super.nope; } } B().m();": "Undefined property 'nope'.",
        }
        for case, expected in should_fail.items():
            with self.assertRaises(OxaRuntimeError, msg=case) as cm:
                run(case)
            self.assertEqual(expected, cm.exception.msg, case)

    def test_error_line(self):
        with self.assertRaises(OxaRuntimeError) as cm:
            run("var a = 1;\n\nprint a + nil;")
        self.assertEqual(3, cm.exception.line)

    def test_call_trace(self):
        source = (
            "fun inner() { return 1 + nil; }\n"
            "fun outer() { return inner(); }\n"
            "outer();\n"
        )
        with self.assertRaises(OxaRuntimeError) as cm:
            run(source)
        self.assertEqual(["[line 1] in inner()", "[line 2] in outer()", "[line 3] in script"], cm.exception.trace)

    def test_stack_overflow(self):
        with self.assertRaises(OxaRuntimeError) as cm:
            run("fun f() { f(); }\nf();")
        self.assertEqual("Stack overflow.", cm.exception.msg)
        self.assertEqual("[line 1] in f()", cm.exception.trace[0])
        self.assertEqual("[line 2] in script", cm.exception.trace[-1])

    def test_state_after_error(self):
        sess, out = session()
        sess.add("var a = 1; { var b = 2; a = 2; print nil + 1; }")
        with self.assertRaises(OxaRuntimeError):
            sess.run()

        interpreter = sess.interpreter
        self.assertIs(interpreter.globals, interpreter.environment)
        self.assertEqual([], interpreter.frames)

        sess.add("print a;")
        sess.run()
        self.assertEqual(["2"], out.getvalue().splitlines())

    def test_interpret_returns_last_expression(self):
        sess, __ = session()
        sess.add("var a = 4;")
        sess.add("a * 2;")
        statements, __ = sess.to_exec[-1]
        sess.to_exec.pop()
        sess.run()

        self.assertEqual(8.0, sess.interpreter.interpret(statements))

    def test_independent_interpreters(self):
        first, __ = session()
        second, second_out = session()

        first.add("var shared = 1;")
        first.run()
        second.add("print shared;")
        with self.assertRaises(OxaRuntimeError):
            second.run()
        self.assertEqual("", second_out.getvalue())

    def test_natives_installed(self):
        self.assertIn("clock", Interpreter().globals.values)


if __name__ == '__main__':
    unittest.main()
