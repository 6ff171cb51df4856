import unittest

from oxa.resolver import Resolver
from oxa.syntax.parser import Parser
from oxa.syntax.scanner import Scanner


def resolve(source):
    parser = Parser(Scanner(source).scan_tokens())
    statements = parser.parse()
    assert not parser.errors, [str(error) for error in parser.errors]

    resolver = Resolver()
    locals_ = resolver.resolve(statements)
    return resolver, statements, locals_


class ResolverTestCase(unittest.TestCase):

    def test_errors(self):
        should_fail = {
            "{ var a = a; }": "[line 1] Error at 'a': Can't read local variable in its own initializer.",
            "{ var a = 1; { var a = a; } }": "[line 1] Error at 'a': Can't read local variable in its own initializer.",
            "{ var a = 1; var a = 2; }": "[line 1] Error at 'a': Already a variable with this name in this scope.",
            "fun f(a, a) {}": "[line 1] Error at 'a': Already a variable with this name in this scope.",
            "return 1;": "[line 1] Error at 'return': Can't return from top-level code.",
            "print this;": "[line 1] Error at 'this': Can't use 'this' outside of a class.",
            "fun f() { return this; }": "[line 1] Error at 'this': Can't use 'this' outside of a class.",
            "print super.m;": "[line 1] Error at 'super': Can't use 'super' outside of a class.",
            "class A { m() { return super.m(); } }":
                "[line 1] Error at 'super': Can't use 'super' in a class with no superclass.",
            "class A < A {}": "[line 1] Error at 'A': A class can't inherit from itself.",
            "class A { init() { return 1; } }":
                "[line 1] Error at 'return': Can't return a value from an initializer.",
        }
        for case, expected in should_fail.items():
            resolver, __, __ = resolve(case)
            self.assertEqual([expected], [str(error) for error in resolver.errors], case)

    def test_valid(self):
        should_pass = [
            "var a = 1; var a = 2;",
            "var a = a;",
            "class A { init() { return; } }",
            "fun f() { return 1; }",
            "class A < B {}",
            "class A { m() { return fun () { return this; }; } }",
            "class A < B { m() { return fun () { return super.m; }; } }",
            "fun outer() { fun inner() { return 1; } return inner; }",
            "{ var a = 1; { var a = 2; } }",
        ]
        for case in should_pass:
            resolver, __, __ = resolve(case)
            self.assertEqual([], resolver.errors, case)

    def test_reports_every_error(self):
        resolver, __, __ = resolve("return 1;\nprint this;\n{ var a; var a; }")
        self.assertEqual([1, 2, 3], [error.line for error in resolver.errors])

    def test_depths(self):
        source = (
            "var g = 1;\n"
            "{\n"
            "  var a = 1;\n"
            "  {\n"
            "    print a;\n"
            "    print g;\n"
            "  }\n"
            "}\n"
        )
        __, statements, locals_ = resolve(source)
        inner = statements[1].statements[1].statements

        self.assertEqual(1, locals_[inner[0].expression])
        self.assertNotIn(inner[1].expression, locals_)

    def test_function_depths(self):
        __, statements, locals_ = resolve("fun f(x) { return x; }")
        self.assertEqual(0, locals_[statements[0].body[0].value])

        __, statements, locals_ = resolve("fun f(x) { fun g() { return x; } }")
        inner = statements[0].body[0]
        self.assertEqual(1, locals_[inner.body[0].value])

    def test_this_and_super_depths(self):
        __, statements, locals_ = resolve("class A < B { m() { return this; } n() { return super.n; } }")
        m, n = statements[0].methods

        self.assertEqual(1, locals_[m.body[0].value])          # method scope, then "this"
        self.assertEqual(2, locals_[n.body[0].value])          # method scope, "this", then "super"

    def test_same_name_resolves_per_node(self):
        __, statements, locals_ = resolve("{ var a = 1; print a; { var a = 2; print a; } }")
        outer = statements[0].statements[1].expression
        inner = statements[0].statements[2].statements[1].expression

        self.assertEqual(0, locals_[outer])
        self.assertEqual(0, locals_[inner])
        self.assertIsNot(outer, inner)

    def test_assignment_depth(self):
        __, statements, locals_ = resolve("{ var a; fun f() { a = 1; } }")
        assign = statements[0].statements[1].body[0].expression
        self.assertEqual(1, locals_[assign])


if __name__ == '__main__':
    unittest.main()
