"""
Structured trace of scanning decisions

Every event is a single line handed to the optional observer passed to
Preprocessor.process() and, at verbosity 3, to the log. Events describing
a directive are indented by two spaces under the directive's own event.

Example trace for "// #ifdef UNDEFINED\\ntest();\\n// #endif\\n":
    Defines: {}
    ifdef @ 0-9
      test: UNDEFINED
      value: False
      push: {"keyword": "ifdef", "decision": false, "blockStart": 0, ...}
      continue at 20
    endif @ 28-37
      pop: {"keyword": "ifdef", "decision": false, "blockStart": 0, ...}
      excl: [test();\\n]
      continue at 0
"""

import json
from typing import Any, Callable, Mapping, Optional

from ..models.frames import ConditionalFrame, DirectiveMatch, IncludeResult
from .log import LOG
from .text import newlines_show


class Tracer:
    """
    Formats trace events and forwards them to an observer and the log

    Attributes:
        observer: Callable receiving each event string, or None
    """

    def __init__(self, observer: Optional[Callable[[str], Any]] = None) -> None:
        self.observer = observer if callable(observer) else None

    def emit(self, event: str) -> None:
        LOG(event, level=3)
        if self.observer is not None:
            self.observer(event)

    def defines(self, defines: Mapping[str, str]) -> None:
        self.emit(f"Defines: {json.dumps(dict(defines))}")

    def directive(self, match: DirectiveMatch) -> None:
        self.emit(f"{match.keyword} @ {match.start}-{match.end}")

    def detail(self, label: str, value: Any) -> None:
        self.emit(f"  {label}: {value}")

    def push(self, frame: ConditionalFrame) -> None:
        self.detail("push", json.dumps(frame.asDict()))

    def pop(self, frame: ConditionalFrame) -> None:
        self.detail("pop", json.dumps(frame.asDict()))

    def body(self, kept: bool, text: str) -> None:
        self.detail("incl" if kept else "excl", newlines_show(text))

    def include(self, result: IncludeResult) -> None:
        if result.cached:
            self.detail("cache", f"hit {result.key}")
        else:
            self.detail("cache", f"miss {result.key} -> {', '.join(result.paths) or '(no matches)'}")

    def resume(self, offset: int) -> None:
        self.emit(f"  continue at {offset}")

    def unclosed(self, frame: ConditionalFrame) -> None:
        self.emit(f"Still on stack: {json.dumps(frame.asDict())}")
