"""
Restricted expression evaluator for #if, #elif, #put and #define

Expressions use Python expression syntax but are interpreted node by node
over the `ast` tree, never handed to eval(). Only a side-effect-free subset
is accepted:

- literals: str, int, float, bool, None, tuples, lists, dicts, f-strings
- names bound by runtime and inline defines, plus a few pure builtins
- arithmetic, unary, boolean (short-circuit) and comparison operators
- conditional expressions, subscripts and slices
- public attributes of plain values, calls of bound callables
- lambda with positional parameters

Inline #define declarations may additionally be assignments to plain names
(chained, augmented or annotated), single-expression `def` functions, or bare
expressions.

Example:
    >>> ExpressionEvaluator().evaluate("'\"' + VERSION + '\";'", {"VERSION": "1.0"})
    '"1.0";'
"""

import ast
import operator
from typing import Any, Callable, Dict, List, Protocol

from .errors import EvaluationError


class Evaluator(Protocol):
    """Expression evaluation capability consumed by BindingEnvironment"""

    def evaluate(self, expression: str, bindings: Dict[str, Any]) -> Any: ...

    def execute(self, statement: str, bindings: Dict[str, Any]) -> None: ...

    def statement_check(self, statement: str) -> None: ...


BINARY_OPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
    ast.LShift: operator.lshift,
    ast.RShift: operator.rshift,
    ast.BitOr: operator.or_,
    ast.BitAnd: operator.and_,
    ast.BitXor: operator.xor,
}

UNARY_OPS: Dict[type, Callable[[Any], Any]] = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Invert: operator.invert,
}

COMPARE_OPS: Dict[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
}

BUILTINS: Dict[str, Any] = {
    'str': str,
    'int': int,
    'float': float,
    'bool': bool,
    'len': len,
    'min': min,
    'max': max,
    'abs': abs,
    'round': round,
    'sorted': sorted,
    'true': True,
    'false': False,
    'null': None,
}

# Values whose public attributes may be read
ATTRIBUTE_TYPES = (str, int, float, list, tuple, dict)

# Attributes that would reach object internals through format strings
BLOCKED_ATTRIBUTES = frozenset({'format', 'format_map'})

EVALUATION_FAILURES = (
    ArithmeticError,
    AttributeError,
    IndexError,
    KeyError,
    NameError,
    RecursionError,
    TypeError,
    ValueError,
)


class ExpressionEvaluator:
    """
    Interprets the restricted expression language over Python's ast

    Every failure (syntax, unbound name, unsupported construct, runtime
    error of an operator) surfaces as EvaluationError carrying the
    expression text.
    """

    def evaluate(self, expression: str, bindings: Dict[str, Any]) -> Any:
        """
        Evaluate an expression against bindings

        Args:
            expression: Expression source text
            bindings: Names visible to the expression (not modified)

        Returns:
            The expression's value

        Raises:
            EvaluationError: If the expression is malformed or fails
        """
        tree = self.source_parse(expression, 'eval')
        try:
            return self.node_eval(tree.body, bindings)
        except EVALUATION_FAILURES as e:
            raise EvaluationError(expression, f"{type(e).__name__}: {e}") from e

    def execute(self, statement: str, bindings: Dict[str, Any]) -> None:
        """
        Execute an inline define declaration, updating bindings in place

        Args:
            statement: Declaration source text (one or more `;`-separated statements)
            bindings: Namespace receiving the declared names

        Raises:
            EvaluationError: If the declaration is malformed or fails
        """
        tree = self.source_parse(statement, 'exec')
        try:
            for node in tree.body:
                self.statement_exec(node, bindings)
        except EVALUATION_FAILURES as e:
            raise EvaluationError(statement, f"{type(e).__name__}: {e}") from e

    def statement_check(self, statement: str) -> None:
        """Raise EvaluationError if statement is not a supported declaration"""
        tree = self.source_parse(statement, 'exec')
        for node in tree.body:
            if not isinstance(node, (ast.Assign, ast.AugAssign, ast.AnnAssign, ast.FunctionDef, ast.Expr)):
                raise EvaluationError(statement, f"unsupported statement {type(node).__name__}")

    def source_parse(self, text: str, mode: str) -> Any:
        try:
            return ast.parse(text.strip(), mode=mode)
        except SyntaxError as e:
            raise EvaluationError(text, f"invalid syntax ({e.msg})") from e

    def statement_exec(self, node: ast.stmt, scope: Dict[str, Any]) -> None:
        """Execute one declaration statement"""
        if isinstance(node, ast.Assign):
            value = self.node_eval(node.value, scope)
            for target in node.targets:
                scope[self.target_name(target)] = value
        elif isinstance(node, ast.AnnAssign):
            if node.value is None:
                raise ValueError("annotated declaration without a value")
            scope[self.target_name(node.target)] = self.node_eval(node.value, scope)
        elif isinstance(node, ast.AugAssign):
            name = self.target_name(node.target)
            if name not in scope:
                raise NameError(f"name '{name}' is not defined")
            scope[name] = self.binop_apply(node.op, scope[name], self.node_eval(node.value, scope))
        elif isinstance(node, ast.FunctionDef):
            scope[node.name] = self.function_make(node, scope)
        elif isinstance(node, ast.Expr):
            self.node_eval(node.value, scope)
        else:
            raise ValueError(f"unsupported statement {type(node).__name__}")

    def target_name(self, target: ast.expr) -> str:
        if not isinstance(target, ast.Name):
            raise ValueError("only plain names can be defined")
        return target.id

    def binop_apply(self, op: ast.operator, left: Any, right: Any) -> Any:
        handler = BINARY_OPS.get(type(op))
        if handler is None:
            raise ValueError(f"unsupported operator {type(op).__name__}")
        return handler(left, right)

    def node_eval(self, node: ast.AST, scope: Dict[str, Any]) -> Any:
        """
        Evaluate a single expression node

        Args:
            node: Expression node
            scope: Visible names

        Returns:
            The node's value

        Raises:
            ValueError: For constructs outside the supported subset
            NameError: For unbound names
        """
        if isinstance(node, ast.Constant):
            return node.value

        if isinstance(node, ast.Name):
            if node.id in scope:
                return scope[node.id]
            if node.id in BUILTINS:
                return BUILTINS[node.id]
            raise NameError(f"name '{node.id}' is not defined")

        if isinstance(node, ast.BinOp):
            return self.binop_apply(node.op, self.node_eval(node.left, scope), self.node_eval(node.right, scope))

        if isinstance(node, ast.UnaryOp):
            return UNARY_OPS[type(node.op)](self.node_eval(node.operand, scope))

        if isinstance(node, ast.BoolOp):
            # Short-circuit like Python: return the deciding operand
            value = None
            for operand in node.values:
                value = self.node_eval(operand, scope)
                if isinstance(node.op, ast.And) and not value:
                    return value
                if isinstance(node.op, ast.Or) and value:
                    return value
            return value

        if isinstance(node, ast.Compare):
            left = self.node_eval(node.left, scope)
            for op, comparator in zip(node.ops, node.comparators):
                right = self.node_eval(comparator, scope)
                if not COMPARE_OPS[type(op)](left, right):
                    return False
                left = right
            return True

        if isinstance(node, ast.IfExp):
            if self.node_eval(node.test, scope):
                return self.node_eval(node.body, scope)
            return self.node_eval(node.orelse, scope)

        if isinstance(node, ast.Tuple):
            return tuple(self.node_eval(element, scope) for element in node.elts)

        if isinstance(node, ast.List):
            return [self.node_eval(element, scope) for element in node.elts]

        if isinstance(node, ast.Dict):
            if any(key is None for key in node.keys):
                raise ValueError("dict unpacking is not supported")
            return {
                self.node_eval(key, scope): self.node_eval(value, scope)
                for key, value in zip(node.keys, node.values)
            }

        if isinstance(node, ast.JoinedStr):
            return ''.join(self.fstringPart_eval(part, scope) for part in node.values)

        if isinstance(node, ast.Subscript):
            return self.node_eval(node.value, scope)[self.node_eval(node.slice, scope)]

        if isinstance(node, ast.Slice):
            return slice(
                self.node_eval(node.lower, scope) if node.lower else None,
                self.node_eval(node.upper, scope) if node.upper else None,
                self.node_eval(node.step, scope) if node.step else None,
            )

        if isinstance(node, ast.Attribute):
            value = self.node_eval(node.value, scope)
            if (
                node.attr.startswith('_')
                or node.attr in BLOCKED_ATTRIBUTES
                or not isinstance(value, ATTRIBUTE_TYPES)
            ):
                raise ValueError(f"attribute '{node.attr}' is not accessible")
            return getattr(value, node.attr)

        if isinstance(node, ast.Call):
            func = self.node_eval(node.func, scope)
            if not callable(func):
                raise TypeError(f"'{type(func).__name__}' object is not callable")
            if any(isinstance(arg, ast.Starred) for arg in node.args):
                raise ValueError("argument unpacking is not supported")
            if any(keyword.arg is None for keyword in node.keywords):
                raise ValueError("keyword unpacking is not supported")
            args = [self.node_eval(arg, scope) for arg in node.args]
            kwargs = {keyword.arg: self.node_eval(keyword.value, scope) for keyword in node.keywords}
            return func(*args, **kwargs)

        if isinstance(node, ast.Lambda):
            return self.callable_make(node.args, node.body, scope, '<lambda>')

        raise ValueError(f"unsupported expression element {type(node).__name__}")

    def fstringPart_eval(self, part: ast.AST, scope: Dict[str, Any]) -> str:
        if isinstance(part, ast.Constant):
            return str(part.value)
        if not isinstance(part, ast.FormattedValue):
            raise ValueError(f"unsupported f-string element {type(part).__name__}")
        value = self.node_eval(part.value, scope)
        if part.conversion == ord('r'):
            value = repr(value)
        elif part.conversion == ord('a'):
            value = ascii(value)
        elif part.conversion == ord('s'):
            value = str(value)
        spec = self.node_eval(part.format_spec, scope) if part.format_spec else ''
        return format(value, spec)

    def function_make(self, node: ast.FunctionDef, scope: Dict[str, Any]) -> Callable[..., Any]:
        """Turn `def name(params): return expr` into a callable"""
        body: List[ast.stmt] = list(node.body)
        if (
            body
            and isinstance(body[0], ast.Expr)
            and isinstance(body[0].value, ast.Constant)
            and isinstance(body[0].value.value, str)
        ):
            body = body[1:]  # docstring
        if node.decorator_list or len(body) != 1 or not isinstance(body[0], ast.Return):
            raise ValueError(f"function '{node.name}' must consist of a single return statement")
        result = body[0].value if body[0].value is not None else ast.Constant(value=None)
        return self.callable_make(node.args, result, scope, node.name)

    def callable_make(
        self, arguments: ast.arguments, body: ast.expr, scope: Dict[str, Any], name: str
    ) -> Callable[..., Any]:
        """
        Build a closure evaluating body with positional parameters bound

        Names are resolved in scope at call time, so functions may call
        themselves or functions declared after them.
        """
        if (
            arguments.posonlyargs
            or arguments.vararg
            or arguments.kwonlyargs
            or arguments.kwarg
            or arguments.defaults
        ):
            raise ValueError(f"'{name}' may only declare plain positional parameters")
        params = [arg.arg for arg in arguments.args]

        def call(*args: Any) -> Any:
            if len(args) != len(params):
                raise TypeError(f"{name}() takes {len(params)} arguments but {len(args)} were given")
            local = dict(scope)
            local.update(zip(params, args))
            return self.node_eval(body, local)

        call.__name__ = name
        return call
