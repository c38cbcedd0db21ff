"""
Shell Environment - the process environment table (NAME -> VALUE)

This module provides the one piece of mutable state the executor touches:
the environment table owned by the orchestrating process for the whole
session. Assignments (X=1) and the cd built-in write to it; external
programs receive it as their environment at exec time.

Architecture:
    - ShellEnvironment: dict-based storage, passed BY REFERENCE to every
      built-in and spawn call
    - Forked children get a copy-on-fork snapshot for free; nothing in a
      child ever writes back to the parent's table

Example:
    >>> env = ShellEnvironment({'HOME': '/root'})
    >>> env.assign('X=1')
    ('X', '1')
    >>> env.get('X')
    '1'
    >>> env.get('missing', 'default')
    'default'
"""
import os
from typing import Dict, Mapping, Optional, Tuple

from .constants import ASSIGNMENT_SEPARATOR


class ShellEnvironment:
    """
    Session-wide environment table.

    Stores variables set by assignment leaves and cd, and provides them
    to word materialization ($NAME) and to execvpe().
    """

    def __init__(self, variables: Optional[Mapping[str, str]] = None):
        """
        Initialize environment table

        Args:
            variables: Initial contents (copied, never aliased)
        """
        self._variables: Dict[str, str] = dict(variables or {})

    @classmethod
    def from_process(cls) -> 'ShellEnvironment':
        """Snapshot of the host process environment"""
        return cls(os.environ)

    def set(self, name: str, value: str) -> None:
        """Bind name in the table; cd uses it for PWD and OLDPWD"""
        self._variables[name] = value

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Look a name up at materialization time.

        Word.materialize() passes '' as default, so an unset $NAME expands
        to nothing instead of failing.
        """
        return self._variables.get(name, default)

    def assign(self, text: str) -> Tuple[str, str]:
        """
        Install a NAME=VALUE assignment.

        Splits on the FIRST separator, so X=a=b sets X to 'a=b'.

        Args:
            text: Assignment text, must contain the separator

        Returns:
            (name, value) tuple that was stored
        """
        name, sep, value = text.partition(ASSIGNMENT_SEPARATOR)
        if not sep:
            raise ValueError(f"Not an assignment: {text!r}")
        self._variables[name] = value
        return name, value

    def as_dict(self) -> Dict[str, str]:
        """Copy suitable for os.execvpe()"""
        return dict(self._variables)

    def __contains__(self, name: str) -> bool:
        return name in self._variables

    def __len__(self) -> int:
        return len(self._variables)

    def __repr__(self) -> str:
        return f"ShellEnvironment({len(self._variables)} variables)"
