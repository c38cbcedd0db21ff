"""
Shell - read-execute driver (thin layer)

ARCHITECTURE:
This is the TOP-LEVEL ENTRY POINT for running command lines.
It is a THIN ORCHESTRATOR: parsing is delegated to command_parser, execution
to CommandExecutor.

    USER / CLI
       ↓
    Shell (this class) ← DRIVER
       ├── parse_command_line()  ← text → tree
       └── CommandExecutor       ← tree → status

RESPONSIBILITIES:
1. Parse each line, report syntax errors (status 2) and keep going
2. Execute the tree at nesting level 0
3. Stop the read loop as soon as a line returns ShellSignal.TERMINATE
4. Remember the last numeric status (exit code of the session)

DATA FLOW:
    run(stream) →
        for line in stream:
            1. run_line(line) → status (last_status updated)
            2. TERMINATE? → stop
        return last_status
"""
import logging
import sys
from typing import Optional, TextIO

from .command_executor import CommandExecutor
from .command_parser import CommandSyntaxError, parse_command_line
from .command_tree import format_tree
from .config import ShellConfig
from .constants import SUCCESS_STATUS, SYNTAX_ERROR_STATUS
from .exit_status import Status, is_terminate
from .process_launcher import report
from .shell_environment import ShellEnvironment


class Shell:
    """
    Session driver.

    Example:
        shell = Shell()
        status = shell.run_line("true && echo ok")   # prints ok, status == 0
    """

    def __init__(self, config: Optional[ShellConfig] = None,
                 environment: Optional[ShellEnvironment] = None,
                 logger: logging.Logger = None):
        self.config = config or ShellConfig()
        self.logger = logger or logging.getLogger('Shell')
        self.executor = CommandExecutor(environment=environment, config=self.config)
        self.last_status = SUCCESS_STATUS

    @property
    def environment(self) -> ShellEnvironment:
        return self.executor.environment

    def run_line(self, line: str) -> Status:
        """
        Parse and execute one command line.

        Updates last_status: the line's status, or for a line ending in
        exit/quit the status of the last command that ran before it.

        Returns:
            Status of the line (0 for a blank line, 2 for a syntax error)
        """
        try:
            tree = parse_command_line(line)
        except CommandSyntaxError as e:
            report(f"syntax error: {e}")
            self.last_status = SYNTAX_ERROR_STATUS
            return SYNTAX_ERROR_STATUS

        if tree is None:
            return SUCCESS_STATUS

        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"Command tree:\n{format_tree(tree)}")

        self.executor.last_status = self.last_status
        status = self.executor.execute(tree, 0)
        self.last_status = self.executor.last_status
        return status

    def run(self, stream: TextIO = None, interactive: Optional[bool] = None) -> int:
        """
        Read-execute loop.

        Args:
            stream: Input lines (default: sys.stdin)
            interactive: Print the prompt (default: stream is a terminal)

        Returns:
            Last numeric status observed before EOF or exit/quit
        """
        stream = stream or sys.stdin
        if interactive is None:
            interactive = stream.isatty()

        while True:
            if interactive:
                sys.stdout.write(self.config.prompt)
                sys.stdout.flush()

            line = stream.readline()
            if not line:
                break

            status = self.run_line(line)
            if is_terminate(status):
                self.logger.info("Session terminated by exit/quit")
                break

        return self.last_status
