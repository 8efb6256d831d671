"""
MiniLang Parser — tree-sitter front end.

MiniLang is C-shaped (``type name = expr;``, ``type f(type a) { ... }``,
``if`` / ``while`` / ``for``), so the tree-sitter C grammar gives us a
typed, error-recovering parse tree for it.  This module wraps that engine:

  • Token vocabulary (tree-sitter node-kind codes → MiniLang symbolic names)
  • Token transcript extraction (``<SYMBOLIC_NAME, lexeme, line>``)
  • Error reporting through a two-channel listener interface
  • Small node helpers shared with the semantic analyzer
"""

import re
import logging
from bisect import bisect_left
from typing import List, Optional, Iterator
from dataclasses import dataclass, field

import tree_sitter_c as tsc
from tree_sitter import Language, Parser, Node, Tree

logger = logging.getLogger(__name__)

MINILANG_LANGUAGE = Language(tsc.language())
_parser = Parser(MINILANG_LANGUAGE)

# Nodes rendered as a single token even though tree-sitter gives them children
_ATOMIC_KINDS = {"string_literal", "char_literal"}

# Hidden channel: never part of the token stream
_HIDDEN_KINDS = {"comment"}

# Regions whose characters are exempt from the alphabet check
_LITERAL_KINDS = {"string_literal", "char_literal", "comment"}

# Top-level items a MiniLang program may contain
_TOP_LEVEL_KINDS = {"declaration", "function_definition", "comment", "ERROR"}

_LEGAL_CHAR = re.compile(r"""[A-Za-z0-9_\s+\-*/%=<>!&|(){}\[\];,."']""")

_SYMBOLIC_NAMES = {
    "primitive_type": "KEYWORD",
    "type_identifier": "KEYWORD",
    "identifier": "IDENTIFIER",
    "number_literal": "NUMBER",
    "string_literal": "STRING",
    "char_literal": "CHAR",
    "true": "BOOLEAN",
    "false": "BOOLEAN",
    "if": "IF",
    "else": "ELSE",
    "while": "WHILE",
    "for": "FOR",
    "return": "RETURN",
    "(": "LPAREN",
    ")": "RPAREN",
    "{": "LBRACE",
    "}": "RBRACE",
    "[": "LBRACKET",
    "]": "RBRACKET",
    ";": "SEMICOLON",
    ",": "COMMA",
    "=": "ASSIGN",
    "+": "PLUS",
    "-": "MINUS",
    "*": "MULTIPLY",
    "/": "DIVIDE",
    "%": "MODULO",
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS",
    "<=": "LESS_EQUAL",
    ">": "GREATER",
    ">=": "GREATER_EQUAL",
    "&&": "AND",
    "||": "OR",
    "!": "NOT",
    "++": "INCREMENT",
    "--": "DECREMENT",
    "+=": "PLUS_ASSIGN",
    "-=": "MINUS_ASSIGN",
    "*=": "MULTIPLY_ASSIGN",
    "/=": "DIVIDE_ASSIGN",
}


# ═══════════════════════════════════════════════════════════════════════
#  Tokens
# ═══════════════════════════════════════════════════════════════════════

class Vocabulary:
    """Maps integer token codes (tree-sitter kind ids) to symbolic names."""

    def __init__(self, language: Language = MINILANG_LANGUAGE):
        self.language = language

    def symbolic_name(self, code: int) -> str:
        kind = self.language.node_kind_for_id(code)
        if kind is None:
            return "UNKNOWN"
        return _SYMBOLIC_NAMES.get(kind, kind.upper())


@dataclass(frozen=True)
class Token:
    """A single lexical unit of the source."""
    symbolic_name: str
    lexeme: str
    line: int               # 1-indexed
    column: int = 0         # 0-indexed, like tree-sitter points
    code: int = 0           # tree-sitter kind id

    def __str__(self):
        return f"<{self.symbolic_name}, {self.lexeme}, {self.line}>"


def make_token(node: Node, source: bytes, vocabulary: "Vocabulary") -> Token:
    return Token(
        symbolic_name=vocabulary.symbolic_name(node.kind_id),
        lexeme=node_text(node, source),
        line=node.start_point[0] + 1,
        column=node.start_point[1],
        code=node.kind_id,
    )


def format_tokens(tokens: List[Token]) -> str:
    """Render a token transcript, one token per line."""
    return "".join(f"{tok}\n" for tok in tokens)


# ═══════════════════════════════════════════════════════════════════════
#  Node helpers
# ═══════════════════════════════════════════════════════════════════════

def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def is_token_node(node: Node) -> bool:
    """True for nodes the walk treats as terminals."""
    return node.child_count == 0 or node.type in _ATOMIC_KINDS


def iter_token_nodes(node: Node) -> Iterator[Node]:
    """Yield the terminal nodes under ``node`` in source order.

    Comments, zero-width (missing) nodes and childless ERROR nodes are
    skipped, so the result matches what a lexer would hand the parser.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type in _HIDDEN_KINDS or current.start_byte == current.end_byte:
            continue
        if is_token_node(current):
            if current.type != "ERROR":
                yield current
            continue
        stack.extend(reversed(current.children))


def compact_text(node: Optional[Node], source: bytes) -> str:
    """Token lexemes of ``node`` concatenated without whitespace."""
    if node is None:
        return ""
    return "".join(node_text(tok, source) for tok in iter_token_nodes(node))


def walk_all(node: Node):
    """Yield all descendant nodes (pre-order), including ``node``."""
    cursor = node.walk()
    visited = False
    while True:
        if not visited:
            yield cursor.node
        if not visited and cursor.goto_first_child():
            visited = False
            continue
        if cursor.goto_next_sibling():
            visited = False
            continue
        if cursor.goto_parent():
            visited = True
            continue
        break


def find_identifier(node: Optional[Node]) -> Optional[Node]:
    """Follow nested ``declarator`` fields down to the declared identifier."""
    current = node
    while current is not None:
        if current.type == "identifier":
            return current
        current = current.child_by_field_name("declarator")
    return None


# ═══════════════════════════════════════════════════════════════════════
#  Error listener contract
# ═══════════════════════════════════════════════════════════════════════

class ParseErrorListener:
    """Receives errors found while parsing.

    Channel 1 carries lexer-level errors, optionally keyed by an integer
    offending-symbol code.  Channel 2 carries parser-level errors keyed by
    the offending token.
    """

    def syntax_error(self, line: int, column: int, message: str,
                     offending_symbol: Optional[int] = None):
        pass

    def parser_error(self, offending_token: Optional[Token], line: int,
                     column: int, message: str):
        pass


@dataclass
class ParseResult:
    """Output of the parsing engine: source, tree and pre-walk token stream."""
    source: bytes
    tree: Tree
    tokens: List[Token] = field(default_factory=list)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def token_transcript(self) -> str:
        return format_tokens(self.tokens)


# ═══════════════════════════════════════════════════════════════════════
#  Parser
# ═══════════════════════════════════════════════════════════════════════

class MiniLangParser:
    """Parse MiniLang source and forward its errors to listeners."""

    def __init__(self, detailed_errors: bool = False):
        self.detailed_errors = detailed_errors
        self.vocabulary = Vocabulary()
        self._listeners: List[ParseErrorListener] = []

    def add_error_listener(self, listener: ParseErrorListener):
        self._listeners.append(listener)

    def remove_error_listeners(self):
        self._listeners = []

    def parse(self, source) -> ParseResult:
        if isinstance(source, str):
            source = source.encode("utf-8")
        tree = _parser.parse(source)
        tokens = [make_token(n, source, self.vocabulary)
                  for n in iter_token_nodes(tree.root_node)]
        result = ParseResult(source=source, tree=tree, tokens=tokens)
        logger.debug("Parsed %d bytes into %d tokens (has_error=%s)",
                     len(source), len(tokens), tree.root_node.has_error)

        masked = self._mask_literals(tree.root_node, source)
        self._report_illegal_characters(masked)
        self._report_tree_errors(result, masked)
        return result

    # ────────────────────────────────────────────────────────────────
    #  Lexical errors
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def _mask_literals(root: Node, source: bytes) -> bytes:
        """Blank out string/char literals and comments, keeping offsets and newlines."""
        masked = bytearray(source)
        for node in walk_all(root):
            if node.type not in _LITERAL_KINDS:
                continue
            for i in range(node.start_byte, node.end_byte):
                if masked[i] != 0x0A:
                    masked[i] = 0x20
        return bytes(masked)

    def _report_illegal_characters(self, masked: bytes):
        lines = masked.decode("utf-8", errors="replace").split("\n")
        for row, text in enumerate(lines):
            for col, ch in enumerate(text):
                if _LEGAL_CHAR.match(ch):
                    continue
                message = f"token recognition error at: '{ch}' (illegal character)"
                symbol = ord(ch) if self.detailed_errors else None
                self._emit_syntax_error(row + 1, col, message, symbol)

    # ────────────────────────────────────────────────────────────────
    #  Syntax errors
    # ────────────────────────────────────────────────────────────────

    def _report_tree_errors(self, result: ParseResult, masked: bytes):
        root = result.root
        for child in root.children:
            if child.type in _TOP_LEVEL_KINDS or child.is_missing:
                continue
            if self._has_illegal_chars(child, masked):
                continue
            self._emit_parser_error(
                child, result.source,
                f"unsupported construct '{child.type}' at top level",
            )

        if not root.has_error:
            return

        token_nodes = list(iter_token_nodes(root))
        token_starts = [n.start_byte for n in token_nodes]

        stack = [root]
        while stack:
            node = stack.pop()
            if node.is_missing:
                # First real token at or after the insertion point
                i = bisect_left(token_starts, node.start_byte)
                at = node_text(token_nodes[i], result.source) if i < len(token_nodes) else "<EOF>"
                self._emit_parser_error(
                    node, result.source, f"missing '{node.type}' at '{at}'",
                )
                continue
            if node.type == "ERROR":
                # Outermost ERROR only; lexical errors inside were already reported
                if not self._has_illegal_chars(node, masked):
                    self._emit_parser_error(
                        node, result.source,
                        f"extraneous input '{compact_text(node, result.source)}'",
                    )
                continue
            if node.has_error:
                stack.extend(reversed(node.children))

    @staticmethod
    def _has_illegal_chars(node: Node, masked: bytes) -> bool:
        text = masked[node.start_byte:node.end_byte].decode("utf-8", errors="replace")
        return any(not _LEGAL_CHAR.match(ch) for ch in text)

    def _emit_syntax_error(self, line: int, column: int, message: str,
                           offending_symbol: Optional[int] = None):
        for listener in self._listeners:
            listener.syntax_error(line, column, message, offending_symbol)

    def _emit_parser_error(self, node: Node, source: bytes, message: str):
        offending = None
        tokens = list(iter_token_nodes(node))
        if tokens:
            offending = make_token(tokens[0], source, self.vocabulary)
        line, column = node.start_point[0] + 1, node.start_point[1]
        for listener in self._listeners:
            listener.parser_error(offending, line, column, message)

