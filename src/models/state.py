"""
Process state model and pipeline helper

Defines ProcessState dataclass for the functional pipeline pattern and
the pipeline() helper for composing processing stages.
"""

from typing import Any, Optional, Type, TypeVar, Dict, Callable, Set, TYPE_CHECKING
from dataclasses import dataclass, field

# Forward reference for type hint - avoid circular import
if TYPE_CHECKING:
    from ..lib.stack import ConditionalStack


PS = TypeVar("PS", bound="ProcessState")


@dataclass
class ProcessState:
    """
    State container for a single Preprocessor.process() call (state bus pattern).

    This dataclass carries the mutable document and scan bookkeeping through
    the processing pipeline, with each stage updating the fields it owns.

    Pipeline stages and their state updates:
        - Initial: source, defines, verbosity, preserveLineNumbers
        - defines_normalize: defines (stringified values)
        - directives_resolve: source, cursor, stack, included
        - stack_verify: (no additions, terminal stage)

    Attributes:
        source: The source buffer being rewritten in place
        defines: Runtime defines for this call (name -> string value)
        verbosity: Logging verbosity level (0-3)
        preserveLineNumbers: Line-preserving substitution mode
        cursor: Offset at which directive scanning resumes
        stack: Open conditional frames, innermost last
        included: Include keys already spliced during this call (once-semantics)
        directiveCount: Number of directives processed
    """

    source: str = field(default="")
    defines: Dict[str, str] = field(default_factory=dict)
    verbosity: int = field(default=1)
    preserveLineNumbers: bool = field(default=False)

    cursor: int = field(default=0)
    stack: Optional["ConditionalStack"] = field(default=None)
    included: Set[str] = field(default_factory=set)
    directiveCount: int = field(default=0)

    @classmethod
    def state_createFromDefines(
        cls: Type["ProcessState"],
        source: str,
        defines: Optional[Dict[str, Any]],
        verbosity: int,
        preserveLineNumbers: bool,
        stack: Optional["ConditionalStack"] = None,
    ) -> "ProcessState":
        """
        Create the initial ProcessState for one process() call.

        Args:
            source: Document text to process
            defines: Runtime defines supplied by the caller (may be None)
            verbosity: Logging verbosity level
            preserveLineNumbers: Whether line-preserving mode is active
            stack: Empty conditional stack for this call

        Returns:
            ProcessState with an empty stack and the cursor at buffer start
        """
        return cls(
            source=source,
            defines=dict(defines or {}),
            verbosity=verbosity,
            preserveLineNumbers=preserveLineNumbers,
            stack=stack,
        )

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProcessState instance.

        Returns:
            A new ProcessState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProcessState, *stages: Callable[[ProcessState], ProcessState]
) -> ProcessState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProcessState) -> ProcessState that receives
    the output of the previous stage and returns a new state.

    Args:
        initial_state: Starting ProcessState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final ProcessState after all transformations

    Example:
        final_state = pipeline(
            initial_state,
            defines_normalize,
            directives_resolve,
            stack_verify
        )

    This is equivalent to:
        stack_verify(directives_resolve(defines_normalize(initial_state)))

    But reads left-to-right instead of inside-out.
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
