"""
Scanner-specific data models

Type-safe structures for directive matches, conditional frames and
include resolution results.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List


@dataclass
class DirectiveMatch:
    """
    Result of finding a directive marker in the source buffer

    Returned by Preprocessor.directive_find() when a `// #keyword` marker is
    located. Offsets refer to the buffer at the time of the match.

    Attributes:
        keyword: The directive keyword (e.g., "include", "ifdef", "put")
        start: Offset where the directive starts (including its indent)
        end: Offset just past the keyword
        indent: Leading whitespace captured before the marker

    Example:
        For source "  // #put VERSION\\n" at position 0:
        DirectiveMatch(keyword="put", start=0, end=9, indent="  ")
    """
    keyword: str
    start: int
    end: int
    indent: str = ""


@dataclass
class ConditionalFrame:
    """
    Pending if/ifdef/ifndef/elif/else decision on the conditional stack

    Attributes:
        keyword: Directive that opened the frame (for diagnostics)
        decision: Whether the guarded body is kept
        blockStart: Offset of the opening directive; replacement text is
                    spliced back in here
        contentStart: Offset immediately after the opening directive line;
                      the guarded body begins here
        lead: Line terminator of the opening directive, re-emitted in
              line-preserving mode (empty for frames opened by elif/else,
              whose line is owned by the preceding frame)
        taken: Whether any branch of this if/elif/else chain has been kept
               (or the chain sits inside an excluded region)

    Example:
        For "// #ifdef X\\nbody\\n// #endif\\n" with X undefined:
        ConditionalFrame(keyword="ifdef", decision=False, blockStart=0,
                         contentStart=12, lead="\\n", taken=False)
    """
    keyword: str
    decision: bool
    blockStart: int
    contentStart: int
    lead: str = ""
    taken: bool = False

    def asDict(self) -> Dict[str, object]:
        """Frame contents for trace output"""
        return asdict(self)


@dataclass
class IncludeResult:
    """
    Result of resolving an include argument

    Returned by IncludeResolver.resolve().

    Attributes:
        key: The literal path or glob pattern as written in the directive
        content: Loaded (and, for globs, concatenated) content
        paths: Paths the content was read from, in concatenation order
               (empty on a cache hit)
        cached: Whether the content came from the include cache
        isGlob: Whether key was expanded as a glob pattern
    """
    key: str
    content: str
    paths: List[str] = field(default_factory=list)
    cached: bool = False
    isGlob: bool = False
