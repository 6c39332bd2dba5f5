"""
Expression evaluator and binding environment tests

Tests the restricted expression language, inline define declarations and
the capability seam for substituting another evaluator.
"""

import pytest

from directivepp.lib.preprocessor import Preprocessor
from directivepp.lib.evaluator import ExpressionEvaluator
from directivepp.lib.bindings import BindingEnvironment
from directivepp.lib.errors import EvaluationError


@pytest.fixture
def evaluator():
    return ExpressionEvaluator()


class TestEvaluateEntryPoint:
    """Preprocessor.evaluate against runtime defines"""

    def test_string_concatenation(self):
        """Quoted version string is built from a define"""
        assert Preprocessor.evaluate({"VERSION": "1.0"}, "'\"' + VERSION + '\";'") == '"1.0";'

    def test_define_is_a_string(self):
        """Adding a number to a string define fails"""
        with pytest.raises(EvaluationError) as excinfo:
            Preprocessor.evaluate({"VERSION": "1.0"}, "VERSION + 1")
        assert "TypeError" in excinfo.value.reason
        assert excinfo.value.expression == "VERSION + 1"

    def test_no_defines(self):
        """defines may be None"""
        assert Preprocessor.evaluate(None, "1 + 1") == 2

    def test_unbound_name(self):
        """Unbound names fail"""
        with pytest.raises(EvaluationError) as excinfo:
            Preprocessor.evaluate({}, "MISSING")
        assert "NameError" in str(excinfo.value)


class TestOperators:
    """Arithmetic, comparison and boolean operators"""

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("2 ** 10", 1024),
            ("7 // 2", 3),
            ("7 % 4", 3),
            ("-3 + +1", -2),
            ("~0", -1),
            ("1 << 4 | 1", 17),
            ("1 < 2 < 3", True),
            ("1 < 3 < 2", False),
            ("'a' in 'abc'", True),
            ("'z' not in 'abc'", True),
            ("None is null", True),
            ("'yes' if 1 else 'no'", "yes"),
            ("'' or 'fallback'", "fallback"),
            ("not ''", True),
        ],
    )
    def test_expression(self, evaluator, expression, expected):
        assert evaluator.evaluate(expression, {}) == expected

    def test_and_short_circuits(self, evaluator):
        """The right operand is not evaluated once the result is known"""
        assert evaluator.evaluate("0 and missing", {}) == 0
        assert evaluator.evaluate("1 or missing", {}) == 1

    def test_division_by_zero(self, evaluator):
        with pytest.raises(EvaluationError) as excinfo:
            evaluator.evaluate("1 / 0", {})
        assert "ZeroDivisionError" in excinfo.value.reason


class TestValues:
    """Literals, containers, f-strings and calls"""

    def test_containers(self, evaluator):
        assert evaluator.evaluate("[1, 2][1]", {}) == 2
        assert evaluator.evaluate("{'a': 1}['a']", {}) == 1
        assert evaluator.evaluate("(1, 2)", {}) == (1, 2)
        assert evaluator.evaluate("'abcdef'[1:3]", {}) == "bc"
        assert evaluator.evaluate("'abcdef'[::-1]", {}) == "fedcba"

    def test_fstring(self, evaluator):
        """f-strings with conversions and format specs"""
        assert evaluator.evaluate("f'v{VERSION}'", {"VERSION": "1.0"}) == "v1.0"
        assert evaluator.evaluate("f'{2 + 3:03d}'", {}) == "005"
        assert evaluator.evaluate("f'{NAME!r}'", {"NAME": "x"}) == "'x'"

    def test_builtins(self, evaluator):
        assert evaluator.evaluate("len('abc')", {}) == 3
        assert evaluator.evaluate("int('4') + 1", {}) == 5
        assert evaluator.evaluate("max(1, 5, 3)", {}) == 5
        assert evaluator.evaluate("true and not false", {}) is True

    def test_bindings_shadow_builtins(self, evaluator):
        """A define named like a builtin wins"""
        assert evaluator.evaluate("len", {"len": "short"}) == "short"

    def test_methods_of_values(self, evaluator):
        """Public methods of strings and containers may be called"""
        assert evaluator.evaluate("VERSION.split('.')[0]", {"VERSION": "1.2"}) == "1"
        assert evaluator.evaluate("'abc'.upper()", {}) == "ABC"
        assert evaluator.evaluate("'-'.join(['a', 'b'])", {}) == "a-b"

    def test_lambda(self, evaluator):
        assert evaluator.evaluate("(lambda x, y: x + y)(1, 2)", {}) == 3

    def test_wrong_argument_count(self, evaluator):
        with pytest.raises(EvaluationError):
            evaluator.evaluate("(lambda x: x)(1, 2)", {})


class TestRestrictions:
    """Constructs outside the expression subset"""

    @pytest.mark.parametrize(
        "expression",
        [
            "__import__('os')",
            "VERSION.__class__",
            "'{0.__class__}'.format(1)",
            "str.mro()",
            "[x for x in 'ab']",
            "(lambda *args: args)()",
            "open('/etc/passwd')",
        ],
    )
    def test_rejected(self, evaluator, expression):
        with pytest.raises(EvaluationError):
            evaluator.evaluate(expression, {"VERSION": "1.0"})

    def test_syntax_error(self, evaluator):
        with pytest.raises(EvaluationError) as excinfo:
            evaluator.evaluate("1 +", {})
        assert excinfo.value.reason.startswith("invalid syntax")

    def test_statement_is_not_an_expression(self, evaluator):
        with pytest.raises(EvaluationError):
            evaluator.evaluate("X = 1", {})

    @pytest.mark.parametrize(
        "statement",
        ["import os", "while True: pass", "for x in 'ab': pass", "del X"],
    )
    def test_statement_check_rejects(self, evaluator, statement):
        with pytest.raises(EvaluationError):
            evaluator.statement_check(statement)


class TestDeclarations:
    """Inline define statements"""

    def test_assignments(self, evaluator):
        scope = {}
        evaluator.execute("A = B = 2; C: int = A + B", scope)
        assert scope == {"A": 2, "B": 2, "C": 4}

    def test_augmented_assignment(self, evaluator):
        scope = {"N": 1}
        evaluator.execute("N += 2", scope)
        assert scope["N"] == 3

    def test_augmented_assignment_unbound(self, evaluator):
        with pytest.raises(EvaluationError):
            evaluator.execute("N += 2", {})

    def test_attribute_target_rejected(self, evaluator):
        with pytest.raises(EvaluationError):
            evaluator.execute("X.y = 1", {"X": "a"})

    def test_recursive_function(self, evaluator):
        """Functions may call themselves"""
        scope = {}
        evaluator.execute("def fact(n): return 1 if n <= 1 else n * fact(n - 1)", scope)
        assert evaluator.evaluate("fact(5)", scope) == 120

    def test_function_with_docstring(self, evaluator):
        scope = {}
        evaluator.execute('def twice(x):\n    "Double x"\n    return x * 2', scope)
        assert evaluator.evaluate("twice(4)", scope) == 8

    def test_function_needs_single_return(self, evaluator):
        with pytest.raises(EvaluationError):
            evaluator.execute("def f(x):\n    y = x\n    return y", {})


class TestBindingEnvironment:
    """Runtime defines and ordered inline defines"""

    def test_defines_coerced(self):
        env = BindingEnvironment({"N": 3, "FLAG": True})
        assert env.defines == {"N": "3", "FLAG": "True"}
        assert env.is_defined("N")
        assert not env.is_defined("M")

    def test_inline_defines_replayed_in_order(self):
        env = BindingEnvironment({"VERSION": "1.0"})
        env.define_append("N = 1")
        env.define_append("N += 2")
        env.define_append("BUILD = VERSION + '.' + str(N)")
        assert env.evaluate("BUILD") == "1.0.3"
        assert env.evaluate("N") == 3

    def test_inline_defines_do_not_touch_runtime_defines(self):
        env = BindingEnvironment({"VERSION": "1.0"})
        env.define_append("VERSION = '2.0'")
        assert env.evaluate("VERSION") == "2.0"
        assert env.defines["VERSION"] == "1.0"
        assert not env.is_defined("N")

    def test_malformed_define_rejected_early(self):
        env = BindingEnvironment()
        with pytest.raises(EvaluationError):
            env.define_append("import os")
        assert env.inline == []

    def test_inline_clear(self):
        env = BindingEnvironment()
        env.define_append("X = 1")
        env.inline_clear()
        with pytest.raises(EvaluationError):
            env.evaluate("X")


class UpperEvaluator:
    """Evaluator returning the expression text upper-cased"""

    def __init__(self):
        self.checked = []

    def evaluate(self, expression, bindings):
        return expression.upper()

    def execute(self, statement, bindings):
        bindings[statement] = True

    def statement_check(self, statement):
        self.checked.append(statement)


class TestEvaluatorCapability:
    """A substitute evaluator plugs into the engine"""

    def test_custom_evaluator(self):
        evaluator = UpperEvaluator()
        source = "// #define anything\n// #put hello world\n"
        pp = Preprocessor(source, evaluator=evaluator)
        assert pp.process({}) == "HELLO WORLD\n"
        assert evaluator.checked == ["anything"]
