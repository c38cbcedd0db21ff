"""
Process Launcher - Single point for all process operations

ARCHITECTURE:
This is the SINGLE PROCESS EXECUTION POINT for the entire tree_shell package.
ALL os.fork()/os.waitpid()/os.pipe()/os.dup2()/os.execvpe() calls go
through this class.

Position in hierarchy:
    CommandExecutor
       ├── SimpleCommandRunner
       └── PipeCombinator / ParallelCombinator
              ↓
           ProcessLauncher ← THIS CLASS (SINGLE POINT)
              ↓
           os.fork() / os.waitpid() / os.execvpe()

RESPONSIBILITIES:
1. Fork children and guarantee a child NEVER returns into the caller's stack
2. Wait for a child and map its raw wait status to a shell status
3. Create pipe channels and bind descriptors onto standard streams
4. Apply file redirections inside a child (stdin/stdout/stderr)
5. Replace the process image, reporting exec failures
6. Statistics: count forks/execs/waits/pipes (debugging and tests)

NOT RESPONSIBLE FOR:
- Deciding WHAT runs in a child (done by the runner/combinators)
- Built-ins (done by SimpleCommandRunner, never forked)

CHILD LIFECYCLE:
    spawn(child_main) →
        1. Flush stdio (no duplicated buffers after fork)
        2. os.fork()
        3. Child: SIGPIPE back to default (the interpreter ignores it and
           exec keeps ignored signals), code = child_main() → flush → os._exit(code)
           Any exception is logged with traceback, exit code 1
        4. Parent: return pid
"""
import logging
import os
import signal
import sys
from contextlib import suppress
from typing import Callable, List, Tuple

from .command_tree import SimpleCommand
from .constants import (
    COMMAND_NOT_EXECUTABLE_STATUS,
    COMMAND_NOT_FOUND_STATUS,
    DIAGNOSTIC_PREFIX,
    FAILURE_STATUS,
    REDIRECT_FILE_MODE,
    SIGNALED_STATUS,
)
from .shell_environment import ShellEnvironment

STDIN_FD = 0
STDOUT_FD = 1
STDERR_FD = 2


def report(message: str) -> None:
    """Write a human-readable diagnostic to the current stderr"""
    print(f"{DIAGNOSTIC_PREFIX}: {message}", file=sys.stderr, flush=True)


def _flush_stdio() -> None:
    for stream in (sys.stdout, sys.stderr):
        with suppress(OSError, ValueError):
            stream.flush()


class ProcessLauncher:
    """
    Single point for process creation and descriptor plumbing.
    """

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger('ProcessLauncher')

        # Execution statistics (parent side only)
        self.stats = {
            'fork': 0,
            'exec': 0,
            'wait': 0,
            'pipe': 0,
        }

    # ========================================================================
    # FORK / WAIT
    # ========================================================================

    def spawn(self, child_main: Callable[[], int]) -> int:
        """
        Fork a child that runs child_main() and exits with its result.

        Args:
            child_main: Callable executed ONLY in the child, returns exit code

        Returns:
            Child pid (in the parent)

        Raises:
            OSError: If fork fails
        """
        _flush_stdio()
        pid = os.fork()

        if pid == 0:
            self._run_child(child_main)

        self.stats['fork'] += 1
        self.logger.debug(f"Forked child {pid}")
        return pid

    def _run_child(self, child_main: Callable[[], int]) -> None:
        """Child side of spawn(): never returns"""
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)
        code = FAILURE_STATUS
        try:
            code = child_main()
        except Exception:
            self.logger.exception(f"Unhandled error in child {os.getpid()}")
        finally:
            _flush_stdio()
            os._exit(code)

    def wait(self, pid: int) -> int:
        """
        Block until child pid terminates.

        Returns:
            Exit code on normal termination, SIGNALED_STATUS if killed by a signal
        """
        _, raw_status = os.waitpid(pid, 0)
        self.stats['wait'] += 1

        if os.WIFEXITED(raw_status):
            status = os.WEXITSTATUS(raw_status)
            self.logger.debug(f"Child {pid} exited with {status}")
            return status

        if os.WIFSIGNALED(raw_status):
            self.logger.debug(f"Child {pid} killed by signal {os.WTERMSIG(raw_status)}")

        return SIGNALED_STATUS

    # ========================================================================
    # DESCRIPTORS
    # ========================================================================

    def create_channel(self) -> Tuple[int, int]:
        """
        Create an anonymous pipe.

        Returns:
            (read_fd, write_fd)

        Raises:
            OSError: If the pipe cannot be created
        """
        read_fd, write_fd = os.pipe()
        self.stats['pipe'] += 1
        self.logger.debug(f"Created channel r={read_fd} w={write_fd}")
        return read_fd, write_fd

    @staticmethod
    def bind(fd: int, standard_fd: int, *to_close: int) -> None:
        """
        Rebind a standard stream to fd, then close the given descriptors.

        Example: bind(write_fd, STDOUT_FD, read_fd, write_fd)
        """
        os.dup2(fd, standard_fd)
        for extra in to_close:
            if extra != standard_fd:
                os.close(extra)

    @staticmethod
    def close_all(*fds: int) -> None:
        for fd in fds:
            os.close(fd)

    # ========================================================================
    # REDIRECTION (child side)
    # ========================================================================

    def apply_redirections(self, command: SimpleCommand, environment: ShellEnvironment) -> None:
        """
        Bind stdin/stdout/stderr to the command's redirect targets.

        Same-path output and error targets are opened ONCE and the descriptor
        is duplicated onto both streams, so the second open cannot truncate
        what the first stream already wrote.

        Raises:
            OSError: If a target cannot be opened (filename is set on the error)
        """
        opened: List[int] = []
        try:
            if command.input_redirect is not None:
                path = command.input_redirect.materialize(environment)
                fd = os.open(path, os.O_RDONLY)
                opened.append(fd)
                os.dup2(fd, STDIN_FD)

            output = command.output_redirect
            error = command.error_redirect
            output_path = output.target.materialize(environment) if output else None
            error_path = error.target.materialize(environment) if error else None

            if output_path is not None and output_path == error_path:
                fd = self._open_for_writing(output_path, output.append)
                opened.append(fd)
                os.dup2(fd, STDOUT_FD)
                os.dup2(fd, STDERR_FD)
            else:
                if output_path is not None:
                    fd = self._open_for_writing(output_path, output.append)
                    opened.append(fd)
                    os.dup2(fd, STDOUT_FD)
                if error_path is not None:
                    fd = self._open_for_writing(error_path, error.append)
                    opened.append(fd)
                    os.dup2(fd, STDERR_FD)
        finally:
            # Setup descriptors must not leak into the new program image
            for fd in opened:
                if fd > STDERR_FD:
                    os.close(fd)

    @staticmethod
    def _open_for_writing(path: str, append: bool) -> int:
        flags = os.O_WRONLY | os.O_CREAT | (os.O_APPEND if append else os.O_TRUNC)
        return os.open(path, flags, REDIRECT_FILE_MODE)

    # ========================================================================
    # EXEC (child side)
    # ========================================================================

    def exec_program(self, argv: List[str], environment: ShellEnvironment) -> int:
        """
        Replace the process image with argv[0], searched on the table's PATH.

        Returns ONLY on failure, with the exit code the child should use.
        """
        self.stats['exec'] += 1
        if not argv or not argv[0]:
            report("empty command")
            return COMMAND_NOT_FOUND_STATUS

        try:
            os.execvpe(argv[0], argv, environment.as_dict())
        except FileNotFoundError:
            report(f"{argv[0]}: command not found")
            return COMMAND_NOT_FOUND_STATUS
        except PermissionError as e:
            report(f"{argv[0]}: {e.strerror}")
            return COMMAND_NOT_EXECUTABLE_STATUS
        except OSError as e:
            report(f"Execution failed for '{argv[0]}': {e.strerror}")
            return FAILURE_STATUS
