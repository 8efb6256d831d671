"""
Diagnostics Sink

Collects every lexical, syntax and semantic issue found during one
analysis pass, in detection order.  Two parser channels feed it:

  • ``syntax_error``  — lexer-level, (line, column, message[, symbol])
  • ``parser_error``  — parser-level, (offending_token, line, column, message)

and the semantic analyzer adds its own findings via ``semantic_error``.
Nothing here ever stops the pass.
"""

import logging
from enum import Enum
from typing import Iterator, List, Optional

from pydantic import BaseModel

from minilang.tree_parser import ParseErrorListener, Token

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    LEXICAL = "lexical"
    SYNTAX = "syntax"
    SYNTAX_DETAILED = "syntax-detailed"
    SEMANTIC = "semantic"


_LABELS = {
    Severity.LEXICAL: "Lexical Error",
    Severity.SYNTAX: "Syntax Error",
    Severity.SYNTAX_DETAILED: "Detailed Syntax Error",
    Severity.SEMANTIC: "Semantic Error",
}


class Diagnostic(BaseModel):
    severity: Severity
    line: int
    column: Optional[int] = None
    message: str
    offending_token: Optional[str] = None
    offending_symbol: Optional[int] = None

    def render(self) -> str:
        where = f"Line {self.line}"
        if self.column is not None:
            where += f", Position {self.column}"
        text = f"[{_LABELS[self.severity]}] {where}: {self.message}"
        if self.severity == Severity.SYNTAX_DETAILED:
            text += f" (Offending symbol: {self.offending_symbol})"
        return text

    def __str__(self):
        return self.render()


class DiagnosticsSink(ParseErrorListener):
    """Append-only, ordered log of diagnostics for one pass."""

    def __init__(self):
        self._diagnostics: List[Diagnostic] = []

    def record(self, diagnostic: Diagnostic):
        self._diagnostics.append(diagnostic)
        logger.debug("Diagnostic: %s", diagnostic.render())

    # ────────────────────────────────────────────────────────────────
    #  Listener channels
    # ────────────────────────────────────────────────────────────────

    def syntax_error(self, line: int, column: int, message: str,
                     offending_symbol: Optional[int] = None):
        if offending_symbol is not None:
            severity = Severity.SYNTAX_DETAILED
        elif "illegal character" in message:
            severity = Severity.LEXICAL
        else:
            severity = Severity.SYNTAX
        self.record(Diagnostic(
            severity=severity, line=line, column=column,
            message=message, offending_symbol=offending_symbol,
        ))

    def parser_error(self, offending_token: Optional[Token], line: int,
                     column: int, message: str):
        self.record(Diagnostic(
            severity=Severity.SYNTAX, line=line, column=column, message=message,
            offending_token=offending_token.lexeme if offending_token else None,
        ))

    def semantic_error(self, line: int, column: Optional[int], message: str):
        self.record(Diagnostic(
            severity=Severity.SEMANTIC, line=line, column=column, message=message,
        ))

    # ────────────────────────────────────────────────────────────────
    #  Queries
    # ────────────────────────────────────────────────────────────────

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._diagnostics)

    def __len__(self):
        return len(self._diagnostics)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def messages(self) -> List[str]:
        return [d.render() for d in self._diagnostics]

    def by_severity(self, *severities: Severity) -> List[Diagnostic]:
        wanted = set(severities)
        return [d for d in self._diagnostics if d.severity in wanted]

    def has_errors(self) -> bool:
        return bool(self._diagnostics)

    def summary(self) -> dict:
        counts = {s.value: 0 for s in Severity}
        for d in self._diagnostics:
            counts[d.severity.value] += 1
        return counts
