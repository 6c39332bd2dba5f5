"""
Models package for directivepp

Contains data structures and type definitions for the processing pipeline.
"""

from .state import ProcessState, pipeline
from .directives import DirectiveSpec, DirectiveCategory, DIRECTIVE_KEYWORDS
from .frames import DirectiveMatch, ConditionalFrame, IncludeResult

__all__ = [
    "ProcessState",
    "pipeline",
    "DirectiveSpec",
    "DirectiveCategory",
    "DIRECTIVE_KEYWORDS",
    "DirectiveMatch",
    "ConditionalFrame",
    "IncludeResult",
]
