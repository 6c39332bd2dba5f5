"""
Conditional stack for nested #if/#ifdef/#ifndef ... #endif blocks
"""

from typing import Iterator, List, Optional

from ..models.frames import ConditionalFrame
from .errors import UnexpectedDirectiveError


class ConditionalStack:
    """
    Last-in-first-out container of open conditional frames

    Pure state: decisions are made by the directive handlers, the stack
    only checks for emptiness.
    """

    def __init__(self) -> None:
        self.frames: List[ConditionalFrame] = []

    def push(self, frame: ConditionalFrame) -> None:
        self.frames.append(frame)

    def pop(self) -> ConditionalFrame:
        """
        Remove and return the innermost frame

        Raises:
            UnexpectedDirectiveError: If no conditional is open
        """
        if not self.frames:
            raise UnexpectedDirectiveError()
        return self.frames.pop()

    def peek(self) -> Optional[ConditionalFrame]:
        return self.frames[-1] if self.frames else None

    @property
    def active(self) -> bool:
        """Whether text at the current position survives every open frame"""
        return all(frame.decision for frame in self.frames)

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[ConditionalFrame]:
        return iter(self.frames)
