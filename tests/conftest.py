"""
Shared fixtures for the tree_shell test suite.

Tests run REAL processes (echo, true, false, printf, wc, cat, sh, sleep),
always inside a per-test temporary working directory.
"""
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from tree_shell.command_executor import CommandExecutor
from tree_shell.command_parser import parse_command_line
from tree_shell.command_tree import Leaf, SimpleCommand
from tree_shell.process_launcher import ProcessLauncher
from tree_shell.shell_environment import ShellEnvironment

logging.basicConfig(
    level=logging.INFO,
    format='%(levelname)s - %(name)s - %(message)s'
)


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Temporary cwd, restored after the test (cd tests rely on this)"""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def environment():
    return ShellEnvironment.from_process()


@pytest.fixture
def launcher():
    return ProcessLauncher()


@pytest.fixture
def executor(environment, launcher):
    return CommandExecutor(environment=environment, launcher=launcher)


@pytest.fixture
def run(executor, workdir):
    """Parse a command line and execute it at nesting level 0"""
    def _run(line):
        return executor.execute(parse_command_line(line), 0)
    return _run


@pytest.fixture
def leaf():
    """Build a Leaf from literal strings: leaf('echo', 'hi', output_redirect=...)"""
    def _leaf(verb, *arguments, **redirects):
        return Leaf(SimpleCommand.from_strings(verb, *arguments, **redirects))
    return _leaf
