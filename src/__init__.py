"""
directivepp - Comment-directive preprocessor

Resolves `// #ifdef`, `// #include`, `// #put` and friends embedded in line
comments into a single flattened document.
"""

__version__ = "1.0.0"
__author__ = "Rudolph Pienaar"
__email__ = "rudolph.pienaar@gmail.com"

from .lib import (
    Preprocessor,
    DirectiveRegistry,
    PreprocessorError,
    DirectiveSyntaxError,
    UnexpectedDirectiveError,
    UnbalancedConditionalError,
    IncludeResolutionError,
    EvaluationError,
    LOG,
    state_connectToLogger,
)

__all__ = [
    "Preprocessor",
    "DirectiveRegistry",
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
