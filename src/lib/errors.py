"""
Error taxonomy for directive processing

Every error aborts Preprocessor.process() at the point of detection and
carries enough context (directive keyword, offset, bounded source excerpt)
to locate the fault.
"""

from typing import Optional


class PreprocessorError(Exception):
    """
    Base class for all directive processing failures

    Attributes:
        kind: Directive keyword involved, if any
        offset: Buffer offset of the directive, if known
        excerpt: Bounded source text starting at offset
    """

    summary = "Preprocessing failed"

    def __init__(
        self,
        message: Optional[str] = None,
        kind: Optional[str] = None,
        offset: Optional[int] = None,
        excerpt: str = "",
    ) -> None:
        self.kind = kind
        self.offset = offset
        self.excerpt = excerpt
        self.detail = message
        super().__init__(self.message_make())

    def message_make(self) -> str:
        """Explicit detail, or the summary with kind and excerpt"""
        if self.detail is not None:
            return self.detail
        label = f"{self.summary} #{self.kind}" if self.kind else self.summary
        return f"{label}: {self.excerpt}..." if self.excerpt else label

    def context_attach(self, kind: str, offset: int, excerpt: str) -> "PreprocessorError":
        """
        Attach directive location to an error raised below the scanner

        Collaborators (evaluator, include resolver, conditional stack) do not know where in the
        buffer they were invoked from; the scanner fills that in before the
        error leaves process().

        Returns:
            self, for use in a raise statement
        """
        if self.offset is not None:
            return self
        self.kind = kind
        self.offset = offset
        self.excerpt = excerpt
        if self.detail is None:
            self.args = (self.message_make(),)
        else:
            self.args = (f"{self.detail} in #{kind} @ {offset}: {excerpt}...",)
        return self


class DirectiveSyntaxError(PreprocessorError):
    """Directive keyword matched but its argument clause is malformed"""

    summary = "Illegal"


class UnexpectedDirectiveError(PreprocessorError):
    """#else, #elif or #endif with no open conditional"""

    summary = "Unexpected"


class UnbalancedConditionalError(PreprocessorError):
    """Conditional opened but never closed"""

    summary = "Unterminated"


class IncludeResolutionError(PreprocessorError):
    """Include path or glob could not be read"""

    summary = "Failed to resolve include"

    def __init__(self, path: str, reason: str = "", **kwargs) -> None:
        self.path = path
        message = f"File not found: {path}" + (f" ({reason})" if reason else "")
        super().__init__(message, **kwargs)


class EvaluationError(PreprocessorError):
    """Expression evaluation failed or raised"""

    summary = "Failed to evaluate"

    def __init__(self, expression: str, reason: str = "", **kwargs) -> None:
        self.expression = expression
        self.reason = reason
        message = f"{self.summary} '{expression}'" + (f": {reason}" if reason else "")
        super().__init__(message, **kwargs)
