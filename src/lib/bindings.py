"""
Binding environment for expression evaluation

Holds the runtime defines supplied to process() and the ordered inline
definitions collected from #define directives.
"""

from typing import Any, Dict, List, Mapping, Optional

from .evaluator import Evaluator, ExpressionEvaluator
from .log import LOG


class BindingEnvironment:
    """
    Runtime defines plus accumulated inline defines

    Bindings visible to an evaluation are built fresh every time: first the
    runtime defines (each bound to its string value), then every inline
    define replayed in declaration order, so later declarations may
    reference and shadow earlier names. Nothing leaks between evaluations
    except through the declarations themselves.

    Attributes:
        evaluator: Expression evaluation capability
        defines: Runtime defines (name -> string value)
        inline: Inline define declarations in declaration order
    """

    def __init__(
        self,
        defines: Optional[Mapping[str, Any]] = None,
        evaluator: Optional[Evaluator] = None,
    ) -> None:
        self.evaluator: Evaluator = evaluator if evaluator is not None else ExpressionEvaluator()
        self.defines: Dict[str, str] = {}
        self.inline: List[str] = []
        self.defines_set(defines or {})

    def defines_set(self, defines: Mapping[str, Any]) -> None:
        """Replace the runtime defines, coercing every value to its string"""
        self.defines = {str(name): str(value) for name, value in defines.items()}

    def is_defined(self, name: str) -> bool:
        """Whether name is a runtime define, regardless of its value"""
        return name in self.defines

    def define_append(self, declaration: str) -> None:
        """
        Append an inline define

        The declaration is syntax-checked now so that a malformed #define is
        reported at its own directive, but it is only executed when a later
        expression is evaluated.

        Raises:
            EvaluationError: If the declaration is not a supported statement
        """
        self.evaluator.statement_check(declaration)
        self.inline.append(declaration)
        LOG(f"Inline define #{len(self.inline)}: {declaration}", level=3)

    def inline_clear(self) -> None:
        """Forget all inline defines"""
        self.inline = []

    def bindings_build(self) -> Dict[str, Any]:
        """Build the namespace for one evaluation"""
        bindings: Dict[str, Any] = dict(self.defines)
        for declaration in self.inline:
            self.evaluator.execute(declaration, bindings)
        return bindings

    def evaluate(self, expression: str) -> Any:
        """
        Evaluate expression against runtime and inline defines

        Raises:
            EvaluationError: If any inline define or the expression fails
        """
        return self.evaluator.evaluate(expression, self.bindings_build())
