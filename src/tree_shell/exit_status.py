"""
Exit Status - the currency every executor component returns

A status is either an ordinary integer exit code or the distinguished
ShellSignal.TERMINATE value produced by the exit/quit built-ins.

Example:
    >>> is_terminate(ShellSignal.TERMINATE)
    True
    >>> to_exit_code(ShellSignal.TERMINATE)
    156
    >>> to_exit_code(-1)
    255
"""
from enum import Enum
from typing import Union

from .constants import TERMINATE_EXIT_CODE


class ShellSignal(Enum):
    """Outcomes that are not numeric exit codes"""
    TERMINATE = 'terminate'

    def __repr__(self):
        return f"ShellSignal.{self.name}"


Status = Union[int, ShellSignal]


def is_terminate(status: Status) -> bool:
    """True if the status asks the driver to end the session"""
    return status is ShellSignal.TERMINATE


def to_exit_code(status: Status) -> int:
    """
    Convert a status into something os._exit() accepts.

    Used by forked branches (pipe/parallel children) which can only report
    back through their exit code. TERMINATE collapses into a nonzero code,
    negative sentinels wrap into 0..255 like the kernel would.
    """
    if is_terminate(status):
        return TERMINATE_EXIT_CODE
    return status & 0xFF
