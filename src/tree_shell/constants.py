"""
Constants and configuration for the tree_shell executor
"""
import re

# ============================================================================
# BUILT-INS
# ============================================================================
# Commands that MUST run inside the orchestrating process.
# A forked child's chdir/exit is invisible to the parent.

CHANGE_DIRECTORY_BUILTIN = 'cd'

EXIT_BUILTINS = frozenset({
    'exit',
    'quit',
})

# ============================================================================
# ASSIGNMENTS
# ============================================================================

ASSIGNMENT_SEPARATOR = '='

# Strict form: NAME=VALUE where NAME is a valid identifier
ASSIGNMENT_PATTERN = re.compile(r'^([A-Za-z_][A-Za-z0-9_]*)=(.*)$', re.DOTALL)

# ============================================================================
# REDIRECTION
# ============================================================================

# rw-r--r--
REDIRECT_FILE_MODE = 0o644

# ============================================================================
# EXIT STATUS CONVENTIONS
# ============================================================================

SUCCESS_STATUS = 0
FAILURE_STATUS = 1

# Child died from a signal. Negative, so no exit code can collide with it.
SIGNALED_STATUS = -1

# execvpe() failures
COMMAND_NOT_FOUND_STATUS = 127
COMMAND_NOT_EXECUTABLE_STATUS = 126

# os.pipe()/os.fork() failed in the orchestrator, or a redirect could not be opened
SETUP_FAILURE_STATUS = 1

# Exit code used by a forked branch whose subtree asked to end the session
TERMINATE_EXIT_CODE = 156

# Parse errors reported by the driver
SYNTAX_ERROR_STATUS = 2

# ============================================================================
# DIAGNOSTICS / CONFIG
# ============================================================================

DIAGNOSTIC_PREFIX = 'tree_shell'

ENV_STRICT_ASSIGNMENTS = 'TREE_SHELL_STRICT_ASSIGNMENTS'
ENV_PROMPT = 'TREE_SHELL_PROMPT'
ENV_LOG_LEVEL = 'TREE_SHELL_LOG_LEVEL'

DEFAULT_PROMPT = '$ '
DEFAULT_LOG_LEVEL = 'WARNING'
