"""
Command Parser - turns one input line into a command tree

The executor never parses; this module is the parsing collaborator used by
the Shell driver and by the tests to build trees from text.

============================================================================
USAGE
============================================================================

    >>> from tree_shell.command_parser import parse_command_line
    >>> tree = parse_command_line("printf hi | wc -c > out.txt")
    >>> tree
    (Cmd(printf hi) | Cmd(wc -c >out.txt))
    >>> parse_command_line("   ") is None
    True

============================================================================
TOKEN TYPES
============================================================================

    WORD          - command, argument, filename ($NAME kept as a variable part)
    SEMICOLON     - ;
    NEWLINE       - \\n (acts like ;)
    PARALLEL      - &
    AND           - &&
    OR            - ||
    PIPE          - |
    REDIRECT_IN   - <
    REDIRECT_OUT  - >, >>
    REDIRECT_ERR  - 2>, 2>>
    REDIRECT_ALL  - &>, &>>   (stdout AND stderr, same target)
    EOF           - End of input

============================================================================
GRAMMAR (precedence lowest to highest, all left-associative)
============================================================================

    sequence  → parallel ((';' | '\\n') parallel)*
    parallel  → and_or ('&' and_or)*
    and_or    → pipeline (('&&' | '||') pipeline)*
    pipeline  → simple ('|' simple)*
    simple    → (WORD | redirect)+          first WORD is the verb
    redirect  → ('<' | '>' | '>>' | '2>' | '2>>' | '&>' | '&>>') WORD

============================================================================
LIMITATIONS
============================================================================

- No subshells, groups, heredocs, command substitution or globbing
- A trailing '&' (background job) is a syntax error: job control is not supported
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import List, Optional

from .command_tree import Binary, CommandNode, Leaf, Operator, Redirect, SimpleCommand, Word, WordPart


class CommandSyntaxError(SyntaxError):
    """Raised when a command line cannot be turned into a tree"""
    pass


# ============================================================================
# TOKEN TYPES
# ============================================================================

class TokenType(Enum):
    """Token types for the command lexer"""
    WORD = auto()

    SEMICOLON = auto()      # ;
    NEWLINE = auto()        # \n
    PARALLEL = auto()       # &
    AND = auto()            # &&
    OR = auto()             # ||
    PIPE = auto()           # |

    REDIRECT_IN = auto()    # <
    REDIRECT_OUT = auto()   # > or >>
    REDIRECT_ERR = auto()   # 2> or 2>>
    REDIRECT_ALL = auto()   # &> or &>>

    EOF = auto()


@dataclass
class Token:
    """Token with type, raw value, position and (for WORD) the parsed word"""
    type: TokenType
    value: str
    pos: int
    word: Optional[Word] = None

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, pos={self.pos})"


# Longest operators first
_OPERATORS = [
    ('&&', TokenType.AND),
    ('||', TokenType.OR),
    ('&>>', TokenType.REDIRECT_ALL),
    ('&>', TokenType.REDIRECT_ALL),
    ('2>>', TokenType.REDIRECT_ERR),
    ('2>', TokenType.REDIRECT_ERR),
    ('>>', TokenType.REDIRECT_OUT),
    ('>', TokenType.REDIRECT_OUT),
    ('<', TokenType.REDIRECT_IN),
    ('|', TokenType.PIPE),
    ('&', TokenType.PARALLEL),
    (';', TokenType.SEMICOLON),
    ('\n', TokenType.NEWLINE),
]

_WORD_BREAK = ' \t\n|;&<>'


# ============================================================================
# LEXER - TOKENIZATION
# ============================================================================

class CommandLexer:
    """
    Lexer for command lines.

    Handles:
    - Quotes (single = literal, double = grouping with $ expansion)
    - Escapes (\\)
    - $NAME and ${NAME} variable references
    - Operators and redirects
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.length = len(text)

    def tokenize(self) -> List[Token]:
        """Tokenize input into list of tokens"""
        tokens = []

        while self.pos < self.length:
            if self._current() in ' \t':
                self.pos += 1
                continue

            token = self._try_operator()
            if token is None:
                token = self._read_word()
            tokens.append(token)

        tokens.append(Token(TokenType.EOF, '', self.pos))
        return tokens

    def _current(self) -> str:
        if self.pos >= self.length:
            return ''
        return self.text[self.pos]

    def _peek(self, offset: int = 1) -> str:
        pos = self.pos + offset
        if pos >= self.length:
            return ''
        return self.text[pos]

    def _try_operator(self) -> Optional[Token]:
        for symbol, token_type in _OPERATORS:
            if self.text.startswith(symbol, self.pos):
                token = Token(token_type, symbol, self.pos)
                self.pos += len(symbol)
                return token
        return None

    def _read_word(self) -> Token:
        """
        Read one word, splitting it into literal and variable parts.

        Stops at unquoted whitespace or operator characters.
        """
        start = self.pos
        parts: List[WordPart] = []
        literal: List[str] = []

        def flush():
            if literal:
                parts.append(WordPart(''.join(literal)))
                literal.clear()

        while self.pos < self.length:
            char = self._current()

            if char in _WORD_BREAK:
                break

            if char == '\\':
                self.pos += 1
                if self.pos < self.length:
                    literal.append(self._current())
                    self.pos += 1
                continue

            if char == "'":
                end = self.text.find("'", self.pos + 1)
                if end == -1:
                    raise CommandSyntaxError(f"Unterminated single quote at pos {self.pos}")
                literal.append(self.text[self.pos + 1:end])
                self.pos = end + 1
                continue

            if char == '"':
                self._read_double_quoted(parts, literal, flush)
                continue

            if char == '$':
                name = self._read_variable()
                if name is None:
                    literal.append('$')
                else:
                    flush()
                    parts.append(WordPart(name, expand=True))
                continue

            literal.append(char)
            self.pos += 1

        flush()
        if not parts:
            # Empty quoted word: "" or ''
            parts.append(WordPart(''))
        return Token(TokenType.WORD, self.text[start:self.pos], start, Word(tuple(parts)))

    def _read_double_quoted(self, parts, literal, flush) -> None:
        opening = self.pos
        self.pos += 1
        while True:
            if self.pos >= self.length:
                raise CommandSyntaxError(f"Unterminated double quote at pos {opening}")
            char = self._current()
            if char == '"':
                self.pos += 1
                return
            if char == '\\' and self._peek() in ('"', '\\', '$'):
                literal.append(self._peek())
                self.pos += 2
                continue
            if char == '$':
                name = self._read_variable()
                if name is None:
                    literal.append('$')
                else:
                    flush()
                    parts.append(WordPart(name, expand=True))
                continue
            literal.append(char)
            self.pos += 1

    def _read_variable(self) -> Optional[str]:
        """
        Read $NAME or ${NAME} starting at '$'.

        Returns:
            Variable name (position advanced past it), or None if '$' is literal
            (position advanced past the '$' only)
        """
        self.pos += 1
        if self._current() == '{':
            end = self.text.find('}', self.pos)
            if end == -1:
                raise CommandSyntaxError(f"Unterminated ${{ at pos {self.pos - 1}")
            name = self.text[self.pos + 1:end]
            if not _is_identifier(name):
                raise CommandSyntaxError(f"Bad substitution: ${{{name}}}")
            self.pos = end + 1
            return name

        start = self.pos
        if not (self._current().isalpha() or self._current() == '_'):
            return None
        while self._current() and (self._current().isalnum() or self._current() == '_'):
            self.pos += 1
        return self.text[start:self.pos]


def _is_identifier(name: str) -> bool:
    return bool(name) and (name[0].isalpha() or name[0] == '_') and all(
        c.isalnum() or c == '_' for c in name)


# ============================================================================
# PARSER - TREE CONSTRUCTION
# ============================================================================

_BINARY_LEVELS = {
    TokenType.PARALLEL: Operator.PARALLEL,
    TokenType.AND: Operator.CONDITIONAL_AND,
    TokenType.OR: Operator.CONDITIONAL_OR,
    TokenType.PIPE: Operator.PIPE,
}

_REDIRECT_TYPES = (
    TokenType.REDIRECT_IN,
    TokenType.REDIRECT_OUT,
    TokenType.REDIRECT_ERR,
    TokenType.REDIRECT_ALL,
)

_SEPARATORS = (TokenType.SEMICOLON, TokenType.NEWLINE)


class CommandParser:
    """
    Parser for command lines - builds Leaf/Binary trees.

    See the module docstring for the grammar.
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def parse(self) -> Optional[CommandNode]:
        """Parse tokens into a tree (None for blank input)"""
        self._skip_separators()
        if self._current().type == TokenType.EOF:
            return None

        node = self._parse_sequence()
        if self._current().type != TokenType.EOF:
            token = self._current()
            raise CommandSyntaxError(f"Unexpected {token.value!r} at pos {token.pos}")
        return node

    def _current(self) -> Token:
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _consume(self, expected_type: Optional[TokenType] = None) -> Token:
        token = self._current()
        if expected_type and token.type != expected_type:
            raise CommandSyntaxError(
                f"Expected {expected_type.name}, got {token.type.name} at pos {token.pos}")
        self.pos += 1
        return token

    def _skip_separators(self) -> None:
        while self._current().type in _SEPARATORS:
            self._consume()

    def _parse_sequence(self) -> CommandNode:
        left = self._parse_binary(TokenType.PARALLEL)

        while self._current().type in _SEPARATORS:
            self._skip_separators()
            if self._current().type == TokenType.EOF:
                break
            right = self._parse_binary(TokenType.PARALLEL)
            left = Binary(Operator.SEQUENTIAL, left, right)

        return left

    def _parse_binary(self, level: TokenType) -> CommandNode:
        """
        Parse one left-associative precedence level.

        parallel → and_or → pipeline → simple
        """
        if level == TokenType.PARALLEL:
            operators, parse_operand = (TokenType.PARALLEL,), lambda: self._parse_binary(TokenType.AND)
        elif level == TokenType.AND:
            operators, parse_operand = (TokenType.AND, TokenType.OR), lambda: self._parse_binary(TokenType.PIPE)
        else:
            operators, parse_operand = (TokenType.PIPE,), self._parse_simple_command

        left = parse_operand()
        while self._current().type in operators:
            token = self._consume()
            right = parse_operand()
            left = Binary(_BINARY_LEVELS[token.type], left, right)
        return left

    def _parse_simple_command(self) -> CommandNode:
        """
        Parse simple command with redirects.

        Redirects can appear anywhere: cmd arg > file arg2 2> err
        """
        words: List[Word] = []
        input_redirect = None
        output_redirect = None
        error_redirect = None

        while True:
            token_type = self._current().type
            if token_type == TokenType.WORD:
                words.append(self._consume().word)
            elif token_type in _REDIRECT_TYPES:
                redirect = self._consume()
                target = self._consume_target(redirect)
                append = redirect.value.endswith('>>')

                if redirect.type == TokenType.REDIRECT_IN:
                    input_redirect = target
                elif redirect.type == TokenType.REDIRECT_OUT:
                    output_redirect = Redirect(target, append)
                elif redirect.type == TokenType.REDIRECT_ERR:
                    error_redirect = Redirect(target, append)
                else:
                    # Same Word for both streams: the runner opens it once
                    output_redirect = Redirect(target, append)
                    error_redirect = Redirect(target, append)
            else:
                break

        if not words:
            token = self._current()
            raise CommandSyntaxError(f"Expected command at pos {token.pos}, got {token.type.name}")

        return Leaf(SimpleCommand(
            verb=words[0],
            arguments=tuple(words[1:]),
            input_redirect=input_redirect,
            output_redirect=output_redirect,
            error_redirect=error_redirect,
        ))

    def _consume_target(self, redirect: Token) -> Word:
        if self._current().type != TokenType.WORD:
            raise CommandSyntaxError(f"Missing target for {redirect.value!r} at pos {redirect.pos}")
        return self._consume().word


# ============================================================================
# PUBLIC API
# ============================================================================

def parse_command_line(text: str) -> Optional[CommandNode]:
    """
    Parse a command line into a tree.

    Args:
        text: Raw input line (may contain newlines)

    Returns:
        Tree root, or None if the line holds no command

    Raises:
        CommandSyntaxError: Malformed input
    """
    tokens = CommandLexer(text).tokenize()
    return CommandParser(tokens).parse()
