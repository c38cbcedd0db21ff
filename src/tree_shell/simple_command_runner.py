"""
Simple Command Runner - executes ONE leaf of the command tree

ARCHITECTURE:
This is the leaf-level execution strategy, complementary to the combinators
(which handle the binary operator nodes).

Position in hierarchy:
    CommandExecutor
       ├── Combinators (;  &&  ||  |  &)
       └── SimpleCommandRunner ← THIS CLASS
              ↓
           ProcessLauncher (fork / redirect / exec / wait)

DISPATCH ORDER (on the materialized verb):
    1. Assignment?   NAME=VALUE → install in environment table → 0
    2. cd?           chdir in THIS process → 0 / 1
    3. exit / quit?  → ShellSignal.TERMINATE
    4. External      fork → child: redirect + exec → parent: wait → status

Built-ins (1-3) NEVER fork: a forked child's environment or directory
change would be invisible to the orchestrating process.
"""
import logging
import os
from typing import List, Optional

from .command_tree import SimpleCommand
from .config import ShellConfig
from .constants import (
    ASSIGNMENT_PATTERN,
    ASSIGNMENT_SEPARATOR,
    CHANGE_DIRECTORY_BUILTIN,
    EXIT_BUILTINS,
    FAILURE_STATUS,
    SETUP_FAILURE_STATUS,
    SUCCESS_STATUS,
)
from .exit_status import ShellSignal, Status
from .process_launcher import ProcessLauncher, report
from .shell_environment import ShellEnvironment


class SimpleCommandRunner:
    """
    Leaf executor.

    RESPONSIBILITIES:
    - Environment assignments and the cd/exit/quit built-ins, in-process
    - External commands in a forked child with redirections applied
    - Mapping the child's termination to a status
    """

    def __init__(self, environment: ShellEnvironment,
                 launcher: ProcessLauncher,
                 config: Optional[ShellConfig] = None,
                 logger: logging.Logger = None):
        """
        Initialize runner.

        Args:
            environment: Session environment table (shared by reference)
            launcher: Process launcher used for external commands
            config: Shell configuration (assignment detection rule)
            logger: Logger instance
        """
        self.environment = environment
        self.launcher = launcher
        self.config = config or ShellConfig()
        self.logger = logger or logging.getLogger('SimpleCommandRunner')

    def run(self, command: SimpleCommand, nesting_level: int = 0) -> Status:
        """
        Execute a simple command.

        Args:
            command: Leaf command
            nesting_level: Depth in the tree (diagnostics only)

        Returns:
            Exit status, or ShellSignal.TERMINATE for exit/quit
        """
        verb = command.verb.materialize(self.environment)
        self.logger.debug(f"[level {nesting_level}] Simple command: {command!r}")

        if self.is_assignment(verb):
            name, value = self.environment.assign(verb)
            self.logger.debug(f"Set variable: {name}={value}")
            return SUCCESS_STATUS

        if verb == CHANGE_DIRECTORY_BUILTIN:
            return self._change_directory(command)

        if verb in EXIT_BUILTINS:
            self.logger.info(f"'{verb}' requested session termination")
            return ShellSignal.TERMINATE

        return self._run_external(command)

    def is_assignment(self, verb: str) -> bool:
        """
        Decide whether the verb is an environment assignment.

        Strict mode (default) requires an identifier before '=', so a program
        such as ./configure=x is still executed. Loose mode accepts any verb
        containing the separator.
        """
        if self.config.strict_assignments:
            return ASSIGNMENT_PATTERN.match(verb) is not None
        return ASSIGNMENT_SEPARATOR in verb

    # ========================================================================
    # BUILT-INS
    # ========================================================================

    def _change_directory(self, command: SimpleCommand) -> int:
        """
        cd [DIR]

        With no argument, goes to $HOME from the environment table.
        Failures return 1 without a diagnostic.
        """
        if command.arguments:
            target = command.arguments[0].materialize(self.environment)
        elif 'HOME' in self.environment:
            target = self.environment.get('HOME')
        else:
            self.logger.debug("cd: HOME not set")
            return FAILURE_STATUS

        previous = os.getcwd()
        try:
            os.chdir(target)
        except OSError as e:
            self.logger.debug(f"cd {target!r} failed: {e}")
            return FAILURE_STATUS

        self.environment.set('OLDPWD', previous)
        self.environment.set('PWD', os.getcwd())
        self.logger.debug(f"Changed directory to {os.getcwd()}")
        return SUCCESS_STATUS

    # ========================================================================
    # EXTERNAL COMMANDS
    # ========================================================================

    def _run_external(self, command: SimpleCommand) -> int:
        try:
            pid = self.launcher.spawn(lambda: self._child_main(command))
        except OSError as e:
            self.logger.error(f"Cannot fork for {command!r}: {e}")
            report(f"fork: {e.strerror}")
            return SETUP_FAILURE_STATUS

        return self.launcher.wait(pid)

    def _child_main(self, command: SimpleCommand) -> int:
        """Runs in the forked child: redirect, then replace the image"""
        try:
            self.launcher.apply_redirections(command, self.environment)
        except OSError as e:
            report(f"{e.filename}: {e.strerror}")
            return SETUP_FAILURE_STATUS

        argv: List[str] = command.argv(self.environment)
        return self.launcher.exec_program(argv, self.environment)
