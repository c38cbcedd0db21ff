"""
Combinators - control operators joining two subtrees

    SequentialCombinator      left ; right     unconditional, serial
    ConditionalAndCombinator  left && right    right only if left == 0
    ConditionalOrCombinator   left || right    right only if left != 0
    PipeCombinator            left | right     concurrent, one channel
    ParallelCombinator        left & right     concurrent, no coupling

Every combinator recurses back into the executor for its subtrees.

ORDERING:
- Serial combinators finish the left side (processes reaped, descriptors
  closed) before the right side starts.
- Pipe/Parallel fork BOTH children before waiting on either; the only
  guarantee is the join barrier: run() returns after both terminated.

TERMINATE:
- Serial combinators short-circuit on ShellSignal.TERMINATE and return it.
- Pipe/Parallel run their sides in forked children, which can only report an
  exit code; a TERMINATE inside a branch ends that branch, never the session.
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .command_tree import CommandNode
from .constants import FAILURE_STATUS, SETUP_FAILURE_STATUS, SUCCESS_STATUS
from .exit_status import Status, is_terminate, to_exit_code
from .process_launcher import STDIN_FD, STDOUT_FD, ProcessLauncher, report

# execute(node, nesting_level) -> Status
ExecuteFn = Callable[[CommandNode, int], Status]


class Combinator(ABC):
    """
    Base class for binary control operators.

    Args:
        execute: Executor entry point used for recursion into subtrees
        launcher: Process launcher (only the concurrent combinators fork)
        logger: Logger instance
    """

    def __init__(self, execute: ExecuteFn, launcher: ProcessLauncher,
                 logger: logging.Logger = None):
        self.execute = execute
        self.launcher = launcher
        self.logger = logger or logging.getLogger(type(self).__name__)

    @abstractmethod
    def run(self, left: CommandNode, right: CommandNode, nesting_level: int) -> Status:
        """Execute both sides according to the operator and return one status"""
        pass


# ============================================================================
# SERIAL COMBINATORS
# ============================================================================

class SequentialCombinator(Combinator):
    """left ; right"""

    def run(self, left, right, nesting_level):
        status = self.execute(left, nesting_level + 1)
        if is_terminate(status):
            return status
        return self.execute(right, nesting_level + 1)


class ConditionalAndCombinator(Combinator):
    """
    left && right

    A skipped right side leaves the left's (nonzero) status as the result.
    """

    def run(self, left, right, nesting_level):
        status = self.execute(left, nesting_level + 1)
        if is_terminate(status):
            return status

        if status == SUCCESS_STATUS:
            return self.execute(right, nesting_level + 1)

        self.logger.debug(f"Left side failed ({status}), skipping right side")
        return status


class ConditionalOrCombinator(Combinator):
    """left || right"""

    def run(self, left, right, nesting_level):
        status = self.execute(left, nesting_level + 1)
        if is_terminate(status):
            return status

        if status != SUCCESS_STATUS:
            return self.execute(right, nesting_level + 1)

        self.logger.debug("Left side succeeded, skipping right side")
        return SUCCESS_STATUS


# ============================================================================
# CONCURRENT COMBINATORS
# ============================================================================

class PipeCombinator(Combinator):
    """
    left | right

    Creates one channel and forks two children:
    - left child:  stdout → write end, executes left subtree, exits with its status
    - right child: stdin  ← read end, executes right subtree, exits with its status

    The orchestrator closes BOTH ends right after forking (otherwise the reader
    never sees end-of-stream), then waits left first, right second.

    Returns the RIGHT child's status. The left status is discarded on purpose:
    last-stage-wins, as in conventional pipelines.
    """

    def run(self, left, right, nesting_level):
        try:
            read_fd, write_fd = self.launcher.create_channel()
        except OSError as e:
            self.logger.error(f"Cannot create pipe: {e}")
            report(f"pipe: {e.strerror}")
            return SETUP_FAILURE_STATUS

        left_pid: Optional[int] = None
        right_pid: Optional[int] = None
        try:
            left_pid = self.launcher.spawn(
                lambda: self._run_side(left, write_fd, STDOUT_FD, read_fd, write_fd, nesting_level))
            right_pid = self.launcher.spawn(
                lambda: self._run_side(right, read_fd, STDIN_FD, read_fd, write_fd, nesting_level))
        except OSError as e:
            self.logger.error(f"Cannot fork pipe stage: {e}")
            report(f"fork: {e.strerror}")
        finally:
            self.launcher.close_all(read_fd, write_fd)

        if left_pid is not None:
            left_status = self.launcher.wait(left_pid)
            self.logger.debug(f"Pipe left side finished with {left_status} (ignored)")

        if right_pid is None:
            return SETUP_FAILURE_STATUS
        return self.launcher.wait(right_pid)

    def _run_side(self, node: CommandNode, channel_fd: int, standard_fd: int,
                  read_fd: int, write_fd: int, nesting_level: int) -> int:
        """Child side: bind one channel end onto a standard stream, run the subtree"""
        self.launcher.bind(channel_fd, standard_fd, read_fd, write_fd)
        return to_exit_code(self.execute(node, nesting_level + 1))


class ParallelCombinator(Combinator):
    """
    left & right

    Both subtrees run simultaneously in their own children. Both are waited
    on (no zombies). Success only if BOTH exited with 0.
    """

    def run(self, left, right, nesting_level):
        pids = []
        try:
            for node in (left, right):
                pids.append(self.launcher.spawn(
                    lambda node=node: to_exit_code(self.execute(node, nesting_level + 1))))
        except OSError as e:
            self.logger.error(f"Cannot fork parallel branch: {e}")
            report(f"fork: {e.strerror}")

        statuses = [self.launcher.wait(pid) for pid in pids]
        self.logger.debug(f"Parallel branches finished with {statuses}")

        if len(statuses) == 2 and all(s == SUCCESS_STATUS for s in statuses):
            return SUCCESS_STATUS
        return FAILURE_STATUS
