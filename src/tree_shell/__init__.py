"""
tree_shell - command-tree executor

Main components:
- CommandExecutor: Recursive dispatcher over the command tree
- SimpleCommandRunner: Built-ins, assignments and external commands
- Combinators: ; && || | & control operators
- ProcessLauncher: fork/redirect/exec/wait (single execution point)
- ShellEnvironment: Session environment table
- Shell: Read-execute driver
"""

from .command_executor import CommandExecutor
from .command_parser import CommandSyntaxError, parse_command_line
from .command_tree import (
    Binary,
    CommandNode,
    Leaf,
    Operator,
    Redirect,
    SimpleCommand,
    Word,
    WordPart,
    validate_tree,
)
from .config import ShellConfig
from .exit_status import ShellSignal, Status, is_terminate
from .process_launcher import ProcessLauncher
from .shell import Shell
from .shell_environment import ShellEnvironment
from .simple_command_runner import SimpleCommandRunner

__all__ = [
    'Binary',
    'CommandExecutor',
    'CommandNode',
    'CommandSyntaxError',
    'Leaf',
    'Operator',
    'ProcessLauncher',
    'Redirect',
    'Shell',
    'ShellConfig',
    'ShellEnvironment',
    'ShellSignal',
    'SimpleCommand',
    'SimpleCommandRunner',
    'Status',
    'Word',
    'WordPart',
    'is_terminate',
    'parse_command_line',
    'validate_tree',
]
