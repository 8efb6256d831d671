"""
Symbol Tables

Three logical tables live for the duration of one analysis pass:

  • globals   — global variable records, unique by name
  • functions — function signatures, unique by canonical key
  • locals    — names declared in the block currently being walked

Local scoping is flat: entering any block clears the local table rather
than pushing a new frame, so names from an enclosing block are forgotten
once an inner block starts.
"""

import logging
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

GLOBAL = "global"
LOCAL = "local"


# ═══════════════════════════════════════════════════════════════════════
#  Data types
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VariableRecord:
    """A declared variable (global or local)."""
    declared_type: str
    name: str
    initializer: Optional[str] = None
    scope: str = GLOBAL     # GLOBAL | LOCAL
    line: int = 0           # 1-indexed

    def render(self) -> str:
        text = f"{self.declared_type} {self.name}"
        if self.initializer:
            text += f" = {self.initializer}"
        return text


@dataclass
class FunctionSignature:
    """Name plus ordered (type, name) parameter pairs."""
    name: str
    parameters: List[Tuple[str, str]] = field(default_factory=list)
    line: int = 0

    @property
    def parameter_text(self) -> str:
        return ", ".join(f"{ptype} {pname}".strip() for ptype, pname in self.parameters)

    @property
    def key(self) -> str:
        return canonical_key(self.name, self.parameter_text)


def canonical_key(name: str, parameter_text: str) -> str:
    """``name(type name, ...)`` for declarations, ``name(arg, ...)`` for calls."""
    return f"{name}({parameter_text})"


# ═══════════════════════════════════════════════════════════════════════
#  Tables
# ═══════════════════════════════════════════════════════════════════════

class VariableTable:
    """Insertion-ordered variable records, unique by name."""

    def __init__(self):
        self._records: Dict[str, VariableRecord] = {}

    def add(self, record: VariableRecord) -> bool:
        """Insert ``record``; False if the name is already taken."""
        if record.name in self._records:
            return False
        self._records[record.name] = record
        return True

    def names(self) -> List[str]:
        return list(self._records)

    def clear(self):
        self._records.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._records

    def __len__(self):
        return len(self._records)


class FunctionTable:
    """Registered function signatures keyed by canonical key."""

    def __init__(self):
        self._signatures: Dict[str, FunctionSignature] = {}

    def add(self, signature: FunctionSignature) -> bool:
        if signature.key in self._signatures:
            return False
        self._signatures[signature.key] = signature
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._signatures

    def __len__(self):
        return len(self._signatures)


class SymbolTables:
    """All symbol state owned by one analysis pass."""

    def __init__(self):
        self.globals = VariableTable()
        self.functions = FunctionTable()
        self.locals = VariableTable()

    def enter_block(self):
        """Start tracking a new block; previously live local names are dropped."""
        if len(self.locals):
            logger.debug("Block entered, dropping locals: %s", self.locals.names())
        self.locals.clear()

    def declare(self, record: VariableRecord) -> bool:
        table = self.globals if record.scope == GLOBAL else self.locals
        return table.add(record)
