"""
Report Assembler

Accumulates the four text reports written at the end of a pass
(global variables, functions, local variables, control structures) plus
the post-walk token transcript.  Components append while the tree is
walked; nothing is validated here.
"""

from typing import Dict, List, Tuple
from dataclasses import dataclass, field

from minilang.symbols import VariableRecord
from minilang.tree_parser import Token, format_tokens

ENTRY = "entry"
ITERATIVE = "iterative"
RECURSIVE = "recursive"

CONTROL_KINDS = ("if", "while", "for")


@dataclass(frozen=True)
class ControlStructureEntry:
    kind: str               # "if" | "while" | "for"
    source_text: str
    line: int = 0

    def render(self) -> str:
        return f"{self.kind.capitalize()} statement: {self.source_text}"


@dataclass
class FunctionReport:
    """Everything the function listing says about one declaration."""
    name: str
    classification: str     # ENTRY | ITERATIVE | RECURSIVE
    return_type: str
    parameters: str
    local_variables: List[Tuple[str, str, str]] = field(default_factory=list)
    control_structures: List[str] = field(default_factory=list)

    def render(self) -> str:
        local_vars = "".join(f"{t} {n} = {v}\n" for t, n, v in self.local_variables)
        controls = "".join(f"{c}\n" for c in self.control_structures)
        return (
            f"Function: {self.name}\n"
            f"Type: {self.classification}\n"
            f"Return Type: {self.return_type}\n"
            f"Parameters: {self.parameters}\n"
            f"Local Variables:\n{local_vars}\n"
            f"Control Structures:\n{controls}\n\n"
        )


class ReportAssembler:
    """Pure accumulator for one pass's output artifacts."""

    def __init__(self):
        self.global_records: List[VariableRecord] = []
        self.local_records: List[VariableRecord] = []
        self.function_reports: List[FunctionReport] = []
        self.control_entries: List[ControlStructureEntry] = []
        self.token_records: List[Token] = []

    def add_global(self, record: VariableRecord):
        self.global_records.append(record)

    def add_local(self, record: VariableRecord):
        self.local_records.append(record)

    def add_function(self, report: FunctionReport):
        self.function_reports.append(report)

    def add_control_structure(self, entry: ControlStructureEntry):
        self.control_entries.append(entry)

    def add_token(self, token: Token):
        self.token_records.append(token)

    # ────────────────────────────────────────────────────────────────
    #  Rendered reports
    # ────────────────────────────────────────────────────────────────

    @property
    def global_variables(self) -> str:
        return "".join(f"{r.render()}\n" for r in self.global_records)

    @property
    def local_variables(self) -> str:
        return "".join(f"{r.render()}\n" for r in self.local_records)

    @property
    def functions(self) -> str:
        return "".join(r.render() for r in self.function_reports)

    @property
    def control_structures(self) -> str:
        return "".join(f"{e.render()}\n" for e in self.control_entries)

    @property
    def tokens(self) -> str:
        return format_tokens(self.token_records)

    def as_dict(self) -> Dict[str, str]:
        return {
            "globals": self.global_variables,
            "functions": self.functions,
            "locals": self.local_variables,
            "control": self.control_structures,
            "tokens": self.tokens,
        }
