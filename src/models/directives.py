"""
Directive specification and metadata models

Defines the structure and categories of comment directives for
argument parsing, dispatch, and registry management.
"""

import re
from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, List, Tuple


class DirectiveCategory(Enum):
    """
    Categories of comment directives

    Used for organization, dispatch and trace output.
    """
    INCLUDE = "include"          # #include, #include_once
    CONDITIONAL = "conditional"  # #if, #ifdef, #ifndef
    TERMINATOR = "terminator"    # #elif, #else, #endif
    SUBSTITUTION = "substitution"  # #put
    BINDING = "binding"          # #define


@dataclass
class DirectiveSpec:
    """
    Specification for a comment directive

    Defines metadata, the keyword-specific argument grammar, and the
    handler for a directive. Used by DirectiveRegistry to manage the
    fixed directive set.

    Attributes:
        name: Directive keyword (without the `// #` marker)
        category: Category for organization
        description: Human-readable description
        pattern: Argument clause grammar, matched right after the keyword
        handler: Processing function (match, clause, preprocessor, state) -> None
        examples: Example usage strings
    """
    name: str
    category: DirectiveCategory
    description: str
    pattern: re.Pattern
    handler: Callable
    examples: List[str] = field(default_factory=list)

    def clause_match(self, source: str, pos: int) -> "re.Match[str] | None":
        """
        Match the argument clause anchored at pos

        Args:
            source: Current source buffer
            pos: Offset just past the directive keyword

        Returns:
            Match object or None if the clause is malformed
        """
        return self.pattern.match(source, pos)


# Keywords in match priority order: longer keywords sharing a prefix come first
DIRECTIVE_KEYWORDS: Tuple[str, ...] = (
    'include_once',
    'include',
    'ifndef',
    'ifdef',
    'if',
    'elif',
    'else',
    'endif',
    'put',
    'define',
)


def keyword_is(name: str) -> bool:
    """Check if a name is a directive keyword"""
    return name in DIRECTIVE_KEYWORDS
