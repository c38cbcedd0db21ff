"""
Command Executor - recursive dispatcher over the command tree

ARCHITECTURE:
    execute(node, nesting_level)
        ↓
    Leaf   → SimpleCommandRunner.run(command)
    Binary → combinator for node.op
        ├─ SEQUENTIAL      → SequentialCombinator
        ├─ CONDITIONAL_AND → ConditionalAndCombinator
        ├─ CONDITIONAL_OR  → ConditionalOrCombinator
        ├─ PIPE            → PipeCombinator
        └─ PARALLEL        → ParallelCombinator
                 ↓
             execute(subtree, nesting_level + 1)   (recursion)

RESPONSIBILITIES:
- Route each node to the right runner/combinator
- Own the session components (environment table, launcher, runner)
- Return an int status or ShellSignal.TERMINATE, unchanged
- Reject top-level trees that reuse a node (validate_tree)
- Remember the last numeric status (what exit/quit reports)

NOT responsible for:
- Parsing (command_parser / the caller builds the tree)
- Read-execute loop (Shell)

nesting_level is logged and passed down; beyond the top-level tree check
it never changes how commands run.
"""
import logging
from typing import Dict, Optional

from .combinators import (
    Combinator,
    ConditionalAndCombinator,
    ConditionalOrCombinator,
    ParallelCombinator,
    PipeCombinator,
    SequentialCombinator,
)
from .command_tree import Binary, CommandNode, Leaf, Operator, validate_tree
from .config import ShellConfig
from .constants import SUCCESS_STATUS
from .exit_status import Status, is_terminate
from .process_launcher import ProcessLauncher
from .shell_environment import ShellEnvironment
from .simple_command_runner import SimpleCommandRunner


class CommandExecutor:
    """
    Command tree executor.

    This is the CORE orchestrator that:
    1. Dispatches leaves to the SimpleCommandRunner
    2. Dispatches binary nodes to the matching combinator
    3. Propagates statuses (including TERMINATE) back to the caller
    """

    def __init__(self, environment: Optional[ShellEnvironment] = None,
                 config: Optional[ShellConfig] = None,
                 launcher: Optional[ProcessLauncher] = None,
                 logger: logging.Logger = None):
        """
        Initialize CommandExecutor.

        Args:
            environment: Session environment table (default: snapshot of os.environ)
            config: Shell configuration
            launcher: Process launcher (shared by runner and combinators)
            logger: Logger instance
        """
        self.environment = environment if environment is not None else ShellEnvironment.from_process()
        self.config = config or ShellConfig()
        self.launcher = launcher or ProcessLauncher()
        self.logger = logger or logging.getLogger('CommandExecutor')
        self.last_status = SUCCESS_STATUS

        self.runner = SimpleCommandRunner(
            environment=self.environment,
            launcher=self.launcher,
            config=self.config,
        )

        self.combinators: Dict[Operator, Combinator] = {
            Operator.SEQUENTIAL: SequentialCombinator(self.execute, self.launcher),
            Operator.CONDITIONAL_AND: ConditionalAndCombinator(self.execute, self.launcher),
            Operator.CONDITIONAL_OR: ConditionalOrCombinator(self.execute, self.launcher),
            Operator.PIPE: PipeCombinator(self.execute, self.launcher),
            Operator.PARALLEL: ParallelCombinator(self.execute, self.launcher),
        }

        self.logger.info("CommandExecutor initialized")

    # ========================================================================
    # MAIN EXECUTION ENTRY POINT
    # ========================================================================

    def execute(self, node: CommandNode, nesting_level: int = 0) -> Status:
        """
        Execute a command tree node.

        Every numeric status produced along the way is recorded in
        last_status, so a TERMINATE can still report the status of the
        command that ran before exit/quit.

        Args:
            node: Leaf or Binary node
            nesting_level: Recursion depth (diagnostics only)

        Returns:
            Exit status, or ShellSignal.TERMINATE

        Raises:
            TypeError: Unknown node type
            ValueError: Binary node without a registered operator, or a
                top-level tree that reuses a node
        """
        if isinstance(node, Leaf):
            status = self.runner.run(node.command, nesting_level)

        elif isinstance(node, Binary):
            if nesting_level == 0:
                validate_tree(node)

            combinator = self.combinators.get(node.op)
            if combinator is None:
                raise ValueError(f"No combinator for operator {node.op!r}")

            self.logger.debug(f"[level {nesting_level}] {node.op.name}: {node!r}")
            status = combinator.run(node.left, node.right, nesting_level)
            self.logger.debug(f"[level {nesting_level}] {node.op.name} -> {status!r}")

        else:
            raise TypeError(f"Unknown command tree node: {type(node)}")

        if not is_terminate(status):
            self.last_status = status
        return status
