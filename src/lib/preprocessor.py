"""
Directive scanner and rewriter

Resolves `// #directive` lines embedded in a document into a single
flattened output document.

The scanner works in one left-to-right pass over a mutable buffer:
1. Find: locate the next `// #keyword` marker at or after the scan cursor
2. Parse: match the keyword-specific argument clause at the marker
3. Dispatch: the directive handler splices the buffer and repositions
   the cursor (see lib/directives.py)
4. Verify: after the last marker, every conditional must be closed

Key features:
- Nested #if/#ifdef/#ifndef/#elif/#else/#endif via a conditional stack
- #include / #include_once of literal paths and glob patterns
- #put expression substitution and #define inline bindings
- Line-preserving mode keeping every line number of the input stable

Example:
    >>> pp = Preprocessor("// #ifdef DEBUG\\nlog();\\n// #endif\\nrun();\\n")
    >>> pp.process({})
    'run();\\n'
    >>> pp.process({"DEBUG": "1"})
    'log();\\nrun();\\n'
"""

from typing import Any, Callable, Mapping, Optional, Type, Union

from ..config import appsettings, AppSettings
from ..models.frames import DirectiveMatch
from ..models.state import ProcessState, pipeline
from .bindings import BindingEnvironment
from .directives import DirectiveRegistry, MARKER
from .errors import (
    PreprocessorError,
    DirectiveSyntaxError,
    UnbalancedConditionalError,
    UnexpectedDirectiveError,
    EvaluationError,
    IncludeResolutionError,
)
from .evaluator import Evaluator
from .includes import IncludeResolver, FileAccess, GlobMatcher
from .log import LOG, state_connectToLogger
from .stack import ConditionalStack
from .trace import Tracer


class Preprocessor:
    """
    Directive processing engine for one source document

    The include cache and the inline defines live on the instance and
    persist across process() calls; construct a fresh Preprocessor (or call
    includes_clear() / bindings.inline_clear()) for isolated runs.

    Every process() call appends the #define declarations it meets to
    bindings.inline again, so running the same source twice replays each
    declaration twice. Call bindings.inline_clear() between runs of a source
    that declares with augmented assignment (`N += 1`) or that is processed
    many times.
    """

    def __init__(
        self,
        source: Union[str, bytes],
        base_dir_or_includes: Optional[Union[str, Mapping[str, str]]] = None,
        *,
        base_directory: Optional[str] = None,
        preserve_line_numbers: Optional[bool] = None,
        includes: Optional[Mapping[str, str]] = None,
        file_access: Optional[FileAccess] = None,
        glob_matcher: Optional[GlobMatcher] = None,
        evaluator: Optional[Evaluator] = None,
        error_source_ahead: Optional[int] = None,
        settings: Optional[AppSettings] = None,
    ) -> None:
        """
        Initialize the engine with source text

        Args:
            source: Document to process (bytes are decoded with the configured encoding)
            base_dir_or_includes: Either the include base directory or a
                mapping of preloaded includes by path
            base_directory: Include base directory (overrides the positional form)
            preserve_line_numbers: Line-preserving substitution mode
            includes: Preloaded includes by path, seeding the include cache
            file_access: File-access capability (defaults to the local filesystem)
            glob_matcher: Glob-expansion capability (defaults to the local filesystem)
            evaluator: Expression evaluation capability
            error_source_ahead: Source characters embedded in error messages
            settings: AppSettings supplying defaults (defaults to the singleton)

        Attributes:
            source: Source text (never modified by process())
            base_dir: Include base directory
            preserve_line_numbers: Line-preserving mode flag
            error_source_ahead: Error excerpt length
            verbosity: Logging verbosity for process() calls
            registry: DirectiveRegistry with argument grammars and handlers
            resolver: IncludeResolver owning the include cache
            bindings: BindingEnvironment owning runtime and inline defines
            tracer: Tracer of the current (or last) process() call
        """
        self.settings = settings if settings is not None else appsettings
        if isinstance(source, bytes):
            source = source.decode(self.settings.encoding)
        self.source = str(source)

        preloaded = dict(includes or {})
        base_dir = base_directory
        if isinstance(base_dir_or_includes, str):
            base_dir = base_dir if base_dir is not None else base_dir_or_includes
        elif base_dir_or_includes is not None:
            preloaded = {**base_dir_or_includes, **preloaded}

        self.base_dir = base_dir if base_dir is not None else self.settings.base_directory
        self.preserve_line_numbers = (
            preserve_line_numbers
            if preserve_line_numbers is not None
            else self.settings.preserve_line_numbers
        )
        self.error_source_ahead = (
            error_source_ahead if error_source_ahead is not None else self.settings.error_source_ahead
        )
        self.verbosity = self.settings.verbosity

        self.registry = DirectiveRegistry()
        self.resolver = IncludeResolver(
            base_dir=self.base_dir,
            includes=preloaded,
            file_access=file_access,
            glob_matcher=glob_matcher,
            encoding=self.settings.encoding,
            separator_newline=self.settings.glob_separator_newline,
        )
        self.bindings = BindingEnvironment(evaluator=evaluator)
        self.tracer = Tracer()

    @staticmethod
    def evaluate(defines: Optional[Mapping[str, Any]], expression: str) -> Any:
        """
        Evaluate an expression against runtime defines only

        Example:
            >>> Preprocessor.evaluate({"VERSION": "1.0"}, "'\\"' + VERSION + '\\";'")
            '"1.0";'
        """
        return BindingEnvironment(defines or {}).evaluate(expression)

    @property
    def includes(self) -> Mapping[str, str]:
        """The include cache, path or pattern as written -> content"""
        return self.resolver.cache

    def includes_clear(self) -> None:
        """Forget loaded includes, keeping the preloaded ones"""
        self.resolver.cache_clear()

    def process(
        self,
        defines: Optional[Mapping[str, Any]] = None,
        verbose: Optional[Callable[[str], Any]] = None,
    ) -> str:
        """
        Resolve every directive in the source

        Args:
            defines: Runtime defines, name -> value (values are used as strings)
            verbose: Optional observer called with each trace event

        Returns:
            The fully resolved document

        Raises:
            DirectiveSyntaxError: A directive's argument clause is malformed
            UnexpectedDirectiveError: #elif/#else/#endif without an open conditional
            UnbalancedConditionalError: A conditional is never closed
            IncludeResolutionError: An include cannot be read
            EvaluationError: An expression or inline define fails
        """
        state = ProcessState.state_createFromDefines(
            source=self.source,
            defines=defines,
            verbosity=self.verbosity,
            preserveLineNumbers=self.preserve_line_numbers,
            stack=ConditionalStack(),
        )
        state_connectToLogger(state)
        self.tracer = Tracer(verbose)

        LOG(f"Processing {len(state.source)} characters", level=2)
        final = pipeline(state, self.defines_normalize, self.directives_resolve, self.stack_verify)
        LOG(f"Resolved {final.directiveCount} directives, {len(final.source)} characters out", level=2)
        return final.source

    def defines_normalize(self, inputstate: ProcessState) -> ProcessState:
        """Install the runtime defines of this call in the binding environment"""
        state = inputstate.copy()
        self.bindings.defines_set(state.defines)
        state.defines = dict(self.bindings.defines)
        self.tracer.defines(state.defines)
        return state

    def directives_resolve(self, inputstate: ProcessState) -> ProcessState:
        """
        Scan for directives and apply each one until none is left

        Returns:
            ProcessState with the rewritten source and the final stack
        """
        state = inputstate.copy()

        while True:
            match = self.directive_find(state.source, state.cursor)
            if match is None:
                break

            state.directiveCount += 1
            self.tracer.directive(match)

            spec = self.registry.spec_get(match.keyword)
            clause = spec.clause_match(state.source, match.end)
            if clause is None:
                raise self.error(DirectiveSyntaxError, match, state)

            try:
                spec.handler(match, clause, self, state)
            except (EvaluationError, IncludeResolutionError, UnexpectedDirectiveError) as e:
                e.context_attach(match.keyword, match.start, self.excerpt_make(state.source, match.start))
                raise
            self.tracer.resume(state.cursor)

        return state

    def stack_verify(self, inputstate: ProcessState) -> ProcessState:
        """
        Fail if a conditional was left open

        Raises:
            UnbalancedConditionalError: Naming the innermost open conditional
        """
        state = inputstate.copy()
        frame = state.stack.peek()
        if frame is not None:
            self.tracer.unclosed(frame)
            raise UnbalancedConditionalError(
                kind=frame.keyword,
                offset=frame.blockStart,
                excerpt=self.excerpt_make(state.source, frame.blockStart),
            )
        return state

    def directive_find(self, source: str, position: int) -> Optional[DirectiveMatch]:
        """
        Find the next directive marker at or after position

        Args:
            source: Current source buffer
            position: Scan cursor

        Returns:
            DirectiveMatch, or None if no marker is left

        Example:
            For source "a();\\n  // #put X\\n" at position 0:
            Returns DirectiveMatch(keyword="put", start=5, end=14, indent="  ")
        """
        match = MARKER.search(source, position)
        if match is None:
            return None
        return DirectiveMatch(
            keyword=match.group('keyword'),
            start=match.start(),
            end=match.end(),
            indent=match.group('indent'),
        )

    def buffer_splice(self, state: ProcessState, start: int, end: int, text: str) -> None:
        """Replace state.source[start:end] with text"""
        state.source = state.source[:start] + text + state.source[end:]

    def excerpt_make(self, source: str, offset: int) -> str:
        return source[offset:offset + self.error_source_ahead]

    def error(
        self, error_class: Type[PreprocessorError], match: DirectiveMatch, state: ProcessState
    ) -> PreprocessorError:
        """
        Build a directive error with source context

        Args:
            error_class: PreprocessorError subclass to instantiate
            match: Offending directive
            state: Current process state

        Returns:
            The error, for the caller to raise

        Example message:
            Illegal #include: // #include missing-quotes.js...
        """
        return error_class(
            kind=match.keyword,
            offset=match.start,
            excerpt=self.excerpt_make(state.source, match.start),
        )

    def __repr__(self) -> str:
        return "Preprocessor"

    __str__ = __repr__
