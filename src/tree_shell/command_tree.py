"""
Command Tree - immutable data model consumed by the executor

============================================================================
NODE TYPES
============================================================================

    Leaf(SimpleCommand)            - operator NONE, no children
    Binary(op, left, right)        - op in SEQUENTIAL, PARALLEL,
                                     CONDITIONAL_AND, CONDITIONAL_OR, PIPE

    SimpleCommand                  - verb + arguments + optional redirects
    Redirect                       - target word + its own append flag
    Word / WordPart                - lazily materialized text token

============================================================================
INVARIANTS
============================================================================

- A Leaf has no children; a Binary node has exactly two non-null children
  and op != NONE (checked at construction).
- No cycles, no shared sub-nodes (checked by validate_tree()).
- Nothing is mutated during execution: all nodes are frozen dataclasses
  holding tuples.

============================================================================
USAGE
============================================================================

    >>> tree = Binary(Operator.PIPE,
    ...               Leaf(SimpleCommand.from_strings('printf', 'hi')),
    ...               Leaf(SimpleCommand.from_strings('wc', '-c')))
    >>> print(format_tree(tree))
    PIPE (|):
      Leaf: printf hi
      Leaf: wc -c
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .shell_environment import ShellEnvironment


# ============================================================================
# OPERATORS
# ============================================================================

class Operator(Enum):
    """Operator tag of a tree node"""
    NONE = auto()               # Leaf
    SEQUENTIAL = auto()         # ;
    PARALLEL = auto()           # &
    CONDITIONAL_AND = auto()    # &&
    CONDITIONAL_OR = auto()     # ||
    PIPE = auto()               # |


OPERATOR_SYMBOLS = {
    Operator.SEQUENTIAL: ';',
    Operator.PARALLEL: '&',
    Operator.CONDITIONAL_AND: '&&',
    Operator.CONDITIONAL_OR: '||',
    Operator.PIPE: '|',
}


# ============================================================================
# WORDS
# ============================================================================

@dataclass(frozen=True)
class WordPart:
    """
    One fragment of a word.

    Either literal text, or (expand=True) the NAME of an environment
    variable whose value is substituted at materialization time.
    """
    text: str
    expand: bool = False

    def __repr__(self):
        if self.expand:
            return f"${{{self.text}}}"
        return self.text


@dataclass(frozen=True)
class Word:
    """
    Opaque text token, materialized on demand.

    Example: "$HOME/out.txt" -> (WordPart('HOME', expand=True), WordPart('/out.txt'))
    """
    parts: Tuple[WordPart, ...]

    @classmethod
    def literal(cls, text: str) -> 'Word':
        return cls((WordPart(text),))

    def materialize(self, environment: Optional['ShellEnvironment'] = None) -> str:
        """
        Join the parts into a string

        Args:
            environment: Table used for variable parts (unset -> '')

        Returns:
            Materialized text
        """
        chunks = []
        for part in self.parts:
            if not part.expand:
                chunks.append(part.text)
            elif environment is not None:
                chunks.append(environment.get(part.text, '') or '')
        return ''.join(chunks)

    def __repr__(self):
        return ''.join(repr(p) for p in self.parts)


# ============================================================================
# SIMPLE COMMAND
# ============================================================================

@dataclass(frozen=True)
class Redirect:
    """
    Output-side redirection target.

    Examples:
        > file     - Redirect(file, append=False)
        >> file    - Redirect(file, append=True)
    """
    target: Word
    append: bool = False

    def __repr__(self):
        return f"{'>>' if self.append else '>'}{self.target!r}"


@dataclass(frozen=True)
class SimpleCommand:
    """
    One program invocation or built-in with optional I/O redirection.

    Example: grep -r pattern src < in.txt > out.txt 2>> err.txt
    """
    verb: Word
    arguments: Tuple[Word, ...] = ()
    input_redirect: Optional[Word] = None
    output_redirect: Optional[Redirect] = None
    error_redirect: Optional[Redirect] = None

    @classmethod
    def from_strings(cls, verb: str, *arguments: str, **redirects) -> 'SimpleCommand':
        """Convenience constructor from plain literal strings"""
        return cls(
            verb=Word.literal(verb),
            arguments=tuple(Word.literal(a) for a in arguments),
            **redirects
        )

    def argv(self, environment: Optional['ShellEnvironment'] = None) -> List[str]:
        """Argument vector: verb followed by the arguments, order preserved"""
        return [self.verb.materialize(environment)] + [
            arg.materialize(environment) for arg in self.arguments
        ]

    def __repr__(self):
        parts = [repr(self.verb)] + [repr(a) for a in self.arguments]
        if self.input_redirect is not None:
            parts.append(f"<{self.input_redirect!r}")
        if self.output_redirect is not None:
            parts.append(repr(self.output_redirect))
        if self.error_redirect is not None:
            parts.append(f"2{self.error_redirect!r}")
        return ' '.join(parts)


# ============================================================================
# TREE NODES
# ============================================================================

class CommandNode:
    """Base class for tree nodes"""

    @property
    def op(self) -> Operator:
        raise NotImplementedError


@dataclass(frozen=True)
class Leaf(CommandNode):
    command: SimpleCommand

    @property
    def op(self) -> Operator:
        return Operator.NONE

    def __repr__(self):
        return f"Cmd({self.command!r})"


@dataclass(frozen=True)
class Binary(CommandNode):
    """Two subtrees joined by a control operator"""
    operator: Operator
    left: CommandNode
    right: CommandNode

    def __post_init__(self):
        if self.operator is Operator.NONE or not isinstance(self.operator, Operator):
            raise ValueError(f"Binary node needs a control operator, got {self.operator!r}")
        if not isinstance(self.left, CommandNode) or not isinstance(self.right, CommandNode):
            raise ValueError("Binary node needs two non-null CommandNode children")

    @property
    def op(self) -> Operator:
        return self.operator

    def __repr__(self):
        return f"({self.left!r} {OPERATOR_SYMBOLS[self.operator]} {self.right!r})"


# ============================================================================
# TREE UTILITIES
# ============================================================================

def validate_tree(node: CommandNode) -> None:
    """
    Check that no node is reachable twice (no cycles, no shared sub-nodes).

    Raises:
        ValueError: If a node is shared or the tree contains a foreign object
    """
    seen = set()
    stack = [node]
    while stack:
        current = stack.pop()
        if not isinstance(current, CommandNode):
            raise ValueError(f"Not a command node: {current!r}")
        if id(current) in seen:
            raise ValueError(f"Node reachable more than once: {current!r}")
        seen.add(id(current))
        if isinstance(current, Binary):
            stack.append(current.right)
            stack.append(current.left)


def format_tree(node: CommandNode, indent: int = 0) -> str:
    """
    Render the tree as an indented outline.

    Useful for debug logging and understanding command structure.
    """
    prefix = "  " * indent
    if isinstance(node, Leaf):
        return f"{prefix}Leaf: {node.command!r}"
    if isinstance(node, Binary):
        lines = [f"{prefix}{node.operator.name} ({OPERATOR_SYMBOLS[node.operator]}):",
                 format_tree(node.left, indent + 1),
                 format_tree(node.right, indent + 1)]
        return '\n'.join(lines)
    return f"{prefix}Unknown node: {type(node)}"
