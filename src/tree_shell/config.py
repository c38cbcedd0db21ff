"""
Shell configuration

ShellConfig is passed into the executor, runner and driver constructors.
Defaults live in constants.py; from_environ() lets a deployment override
them without touching code.
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_PROMPT,
    ENV_LOG_LEVEL,
    ENV_PROMPT,
    ENV_STRICT_ASSIGNMENTS,
)

_FALSE_VALUES = {'0', 'false', 'no', 'off'}


@dataclass
class ShellConfig:
    """
    Tunables for one shell session.

    Attributes:
        strict_assignments: Only NAME=VALUE with an identifier NAME counts as
            an assignment. False restores plain "contains '='" detection.
        prompt: Printed before each line when reading from a terminal
        log_level: Level name for logging.basicConfig() in the CLI
    """
    strict_assignments: bool = True
    prompt: str = DEFAULT_PROMPT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> 'ShellConfig':
        """Build config from TREE_SHELL_* variables (missing ones keep defaults)"""
        environ = os.environ if environ is None else environ
        config = cls()

        strict = environ.get(ENV_STRICT_ASSIGNMENTS)
        if strict is not None:
            config.strict_assignments = strict.strip().lower() not in _FALSE_VALUES

        if ENV_PROMPT in environ:
            config.prompt = environ[ENV_PROMPT]

        level = environ.get(ENV_LOG_LEVEL)
        if level:
            config.log_level = level.strip().upper()

        return config
