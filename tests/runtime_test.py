import unittest

from oxa.lang.error import OxaRuntimeError
from oxa.runtime import NativeFunction, OxaClass, OxaInstance, is_equal, is_truthy, stringify
from oxa.syntax.tokens import Token, TokenType


def name(lexeme):
    return Token(TokenType.IDENTIFIER, lexeme, None, 1)


def native(arity):
    return NativeFunction("native", arity, lambda interpreter, arguments: None)


class ValuesTestCase(unittest.TestCase):

    def test_truthiness(self):
        should_be_false = [None, False]
        should_be_true = [True, 0.0, 1.0, "", "false", native(0)]

        for case in should_be_false:
            self.assertFalse(is_truthy(case), case)
        for case in should_be_true:
            self.assertTrue(is_truthy(case), case)

    def test_equality(self):
        instance = OxaInstance(OxaClass("A", None, {}))
        should_be_equal = [
            (None, None), (True, True), (1.0, 1.0), ("a", "a"), (instance, instance),
        ]
        should_differ = [
            (None, False), (True, 1.0), (False, 0.0), (1.0, "1"), ("", None),
            (instance, OxaInstance(instance.klass)), (native(0), native(0)),
        ]

        for left, right in should_be_equal:
            self.assertTrue(is_equal(left, right), (left, right))
        for left, right in should_differ:
            self.assertFalse(is_equal(left, right), (left, right))

    def test_stringify(self):
        cases = [
            (None, "nil"),
            (True, "true"),
            (False, "false"),
            (7.0, "7"),
            (-3.0, "-3"),
            (-0.0, "-0"),
            (0.0, "0"),
            (2.5, "2.5"),
            (0.1 + 0.2, "0.30000000000000004"),
            (1e20, "1e+20"),
            ("text", "text"),
            (native(0), "<native fn>"),
            (OxaClass("Point", None, {}), "Point"),
            (OxaInstance(OxaClass("Point", None, {})), "Point instance"),
        ]
        for value, expected in cases:
            self.assertEqual(expected, stringify(value), expected)

    def test_number_round_trip(self):
        for value in [0.1, 1 / 3, 123456.789, 1e-7, 2.0 ** 53, -42.0, 1e300]:
            self.assertEqual(value, float(stringify(value)), value)


class ObjectModelTestCase(unittest.TestCase):

    def test_find_method_chain(self):
        base_m, base_n, derived_m = native(0), native(1), native(2)
        base = OxaClass("Base", None, {"m": base_m, "n": base_n})
        derived = OxaClass("Derived", base, {"m": derived_m})
        leaf = OxaClass("Leaf", derived, {})

        self.assertIs(derived_m, leaf.find_method("m"))
        self.assertIs(base_n, leaf.find_method("n"))
        self.assertIs(base_m, base.find_method("m"))
        self.assertIsNone(leaf.find_method("missing"))

    def test_class_arity(self):
        self.assertEqual(0, OxaClass("A", None, {}).arity())
        base = OxaClass("Base", None, {OxaClass.INITIALIZER: native(2)})
        self.assertEqual(2, OxaClass("Derived", base, {}).arity())

    def test_fields(self):
        instance = OxaInstance(OxaClass("A", None, {"m": native(0)}))
        instance.set(name("x"), 1.0)
        self.assertEqual(1.0, instance.get(name("x")))

        # fields shadow methods of the same name
        instance.set(name("m"), "field")
        self.assertEqual("field", instance.get(name("m")))
        self.assertIn("m", instance.klass.methods)

    def test_undefined_property(self):
        instance = OxaInstance(OxaClass("A", None, {}))
        with self.assertRaises(OxaRuntimeError) as cm:
            instance.get(name("nope"))
        self.assertEqual("Undefined property 'nope'.", cm.exception.msg)


if __name__ == '__main__':
    unittest.main()
