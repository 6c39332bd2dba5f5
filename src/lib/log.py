"""
Loguru logging gated by the verbosity of the running process() call

The ProcessState of the current call is published in a ContextVar so that
any module can log through LOG() without being handed the state. A message
is emitted only when the state's verbosity reaches the message's level:

    1 = normal
    2 = verbose (start and end of each process() call)
    3 = debug (include cache, inline defines, every trace event)

Usage:
    from directivepp.lib.log import LOG, state_connectToLogger

    state_connectToLogger(state)
    LOG(f"Resolved {state.directiveCount} directives", level=2)
"""

import sys
from contextvars import ContextVar
from typing import Any, Optional, TextIO

from loguru import logger

_process_state: ContextVar[Optional[Any]] = ContextVar('process_state', default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<magenta>{extra[component]}</magenta> "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)


def logger_configure(sink: TextIO = sys.stderr, level: str = "DEBUG") -> int:
    """
    Replace loguru's default handler with the directivepp format

    Args:
        sink: Stream receiving log lines
        level: Minimum loguru level of the handler

    Returns:
        Handler id, for logger.remove()
    """
    logger.remove()
    logger.configure(extra={"component": "directivepp"})
    return logger.add(sink, format=logger_format, level=level)


logger_configure()


def state_connectToLogger(state: Any) -> None:
    """
    Publish the state of a process() call to LOG()

    Args:
        state: ProcessState (anything with a `verbosity` attribute)
    """
    _process_state.set(state)


def verbosity_get() -> int:
    """Verbosity of the connected state, 0 when none is connected"""
    state = _process_state.get()
    return getattr(state, 'verbosity', 0) if state is not None else 0


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message when the connected state's verbosity is at least level

    Args:
        message: Text to log
        level: Verbosity required (1=normal, 2=verbose, 3=debug)
        **kwargs: Passed on to loguru (e.g. formatting arguments)

    Example:
        LOG("ifdef @ 0-9", level=3)
    """
    if verbosity_get() >= level:
        logger.opt(depth=1).debug(message, **kwargs)
