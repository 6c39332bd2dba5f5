"""
directivepp - Comment-directive preprocessor

Conditional compilation, includes and value substitution driven by
`// #directive` lines.
"""

__version__ = "1.0.0"

from .preprocessor import Preprocessor
from .directives import DirectiveRegistry
from .bindings import BindingEnvironment
from .evaluator import ExpressionEvaluator
from .includes import IncludeResolver
from .stack import ConditionalStack
from .trace import Tracer
from .errors import (
    PreprocessorError,
    DirectiveSyntaxError,
    UnexpectedDirectiveError,
    UnbalancedConditionalError,
    IncludeResolutionError,
    EvaluationError,
)
from .log import LOG, state_connectToLogger

__all__ = [
    "Preprocessor",
    "DirectiveRegistry",
    "BindingEnvironment",
    "ExpressionEvaluator",
    "IncludeResolver",
    "ConditionalStack",
    "Tracer",
    "PreprocessorError",
    "DirectiveSyntaxError",
    "UnexpectedDirectiveError",
    "UnbalancedConditionalError",
    "IncludeResolutionError",
    "EvaluationError",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
