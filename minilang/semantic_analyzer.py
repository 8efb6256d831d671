"""
Semantic Analyzer — single-pass visitor over the MiniLang parse tree.

One depth-first, left-to-right walk drives four analyses that share the
symbol tables and append to the report assembler as they go:

  • Declaration analysis  — duplicate globals/locals, literal type checks
  • Function analysis     — signatures, classification, per-function inventory
  • Control structures    — flat ``<Kind> statement: <text>`` transcript
  • Call sites            — calls looked up by canonical text key

Every finding is reported and the walk continues; nothing here is fatal.
The checks are deliberately textual: recursion is a substring test on the
body text, and call sites match signatures by their literal argument text.
"""

import re
import logging
from typing import List, Optional, Tuple

from tree_sitter import Node

from minilang.diagnostics import DiagnosticsSink
from minilang.reports import (
    ReportAssembler, FunctionReport, ControlStructureEntry,
    CONTROL_KINDS, ENTRY, ITERATIVE, RECURSIVE,
)
from minilang.symbols import (
    SymbolTables, VariableRecord, FunctionSignature, canonical_key, GLOBAL, LOCAL,
)
from minilang.tree_parser import (
    Vocabulary, compact_text, node_text, find_identifier, is_token_node, make_token,
)

logger = logging.getLogger(__name__)

# Parent kinds that decide a declaration's scope
_GLOBAL_PARENTS = {"translation_unit"}
_LOCAL_PARENTS = {"compound_statement"}

_CONTROL_NODE_KINDS = {f"{kind}_statement": kind for kind in CONTROL_KINDS}

_INT_LITERAL = re.compile(r"^[+-]?\d+$")
_INT_MIN, _INT_MAX = -2 ** 31, 2 ** 31 - 1
_FLOAT_LITERAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


class SemanticAnalyzer:
    """Walks one parse tree and owns all per-pass tables and reports."""

    def __init__(self, source: bytes, diagnostics: DiagnosticsSink,
                 entry_point: str = "main", vocabulary: Optional[Vocabulary] = None):
        self.source = source
        self.diagnostics = diagnostics
        self.entry_point = entry_point
        self.vocabulary = vocabulary or Vocabulary()
        self.symbols = SymbolTables()
        self.reports = ReportAssembler()

    def analyze(self, root: Node) -> ReportAssembler:
        self.visit(root)
        logger.info(
            "Analysis complete: %d globals, %d functions, %d locals, "
            "%d control structures, %d diagnostics",
            len(self.reports.global_records), len(self.reports.function_reports),
            len(self.reports.local_records), len(self.reports.control_entries),
            len(self.diagnostics),
        )
        return self.reports

    # ────────────────────────────────────────────────────────────────
    #  Dispatch
    # ────────────────────────────────────────────────────────────────

    def visit(self, root: Node):
        """Pre-order walk on an explicit stack.

        A ``visit_<kind>`` handler runs before the node's children are
        walked, so nesting depth is bounded by memory, not the call stack.
        """
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "comment" or node.is_missing:
                continue
            if is_token_node(node):
                self.visit_terminal(node)
                continue
            handler = getattr(self, f"visit_{node.type}", None)
            if handler is not None:
                handler(node)
            stack.extend(reversed(node.children))

    def visit_terminal(self, node: Node):
        if node.type == "ERROR" or node.start_byte == node.end_byte:
            return
        self.reports.add_token(make_token(node, self.source, self.vocabulary))

    # ────────────────────────────────────────────────────────────────
    #  Blocks & declarations
    # ────────────────────────────────────────────────────────────────

    def visit_compound_statement(self, node: Node):
        self.symbols.enter_block()

    def visit_declaration(self, node: Node):
        declared_type = self._type_text(node)
        parent_kind = node.parent.type if node.parent is not None else None
        if parent_kind in _GLOBAL_PARENTS:
            scope = GLOBAL
        elif parent_kind in _LOCAL_PARENTS:
            scope = LOCAL
        else:
            scope = None  # e.g. a for-loop initializer: type check only

        for name_node, value_node in self._variable_declarators(node):
            self._declare_variable(declared_type, name_node, value_node, scope)

    def _declare_variable(self, declared_type: str, name_node: Node,
                          value_node: Optional[Node], scope: Optional[str]):
        name = node_text(name_node, self.source)
        initializer = compact_text(value_node, self.source) if value_node is not None else None

        if scope is not None:
            record = VariableRecord(
                declared_type=declared_type, name=name, initializer=initializer,
                scope=scope, line=name_node.start_point[0] + 1,
            )
            if not self.symbols.declare(record):
                if scope == GLOBAL:
                    self._semantic_error(name_node, f"Global variable '{name}' is already defined.")
                else:
                    self._semantic_error(
                        name_node, f"Local variable '{name}' is already defined in this block.")
                return

            if scope == GLOBAL:
                self.reports.add_global(record)
            else:
                self.reports.add_local(record)

        if initializer is not None and not self._initializer_matches(declared_type, initializer):
            self._semantic_error(
                name_node,
                f"Incompatible type for variable '{name}': "
                f"'{initializer}' is not a {declared_type} value.",
            )

    @staticmethod
    def _initializer_matches(declared_type: str, initializer: str) -> bool:
        """Literal-shape check only; expressions and other types always pass."""
        if declared_type == "int":
            # 32-bit signed range
            return bool(_INT_LITERAL.match(initializer)) and _INT_MIN <= int(initializer) <= _INT_MAX
        if declared_type in ("double", "float"):
            return bool(_FLOAT_LITERAL.match(initializer))
        if declared_type == "string":
            return initializer.startswith('"')
        return True

    def _variable_declarators(self, declaration: Node) -> List[Tuple[Node, Optional[Node]]]:
        """(identifier, initializer) pairs; prototypes and other declarators are skipped."""
        pairs = []
        for declarator in declaration.children_by_field_name("declarator"):
            value = None
            target = declarator
            if declarator.type == "init_declarator":
                target = declarator.child_by_field_name("declarator")
                value = declarator.child_by_field_name("value")
            if target is not None and target.type == "identifier":
                pairs.append((target, value))
        return pairs

    # ────────────────────────────────────────────────────────────────
    #  Functions
    # ────────────────────────────────────────────────────────────────

    def visit_function_definition(self, node: Node):
        declarator = node.child_by_field_name("declarator")
        name_node = find_identifier(declarator)
        if declarator is None or declarator.type != "function_declarator" or name_node is None:
            logger.debug("Skipping function definition without a plain name at line %d",
                         node.start_point[0] + 1)
            return

        name = node_text(name_node, self.source)
        body = node.child_by_field_name("body")
        return_type = self._type_text(node)
        classification = self._classify(name, body)

        signature = FunctionSignature(
            name=name,
            parameters=self._extract_parameters(declarator.child_by_field_name("parameters")),
            line=name_node.start_point[0] + 1,
        )

        if not self.symbols.functions.add(signature):
            self._semantic_error(
                name_node,
                f"Function '{name}' with parameters '{signature.parameter_text}' is already defined.",
            )
        else:
            statements = self._direct_statements(body)
            self.reports.add_function(FunctionReport(
                name=name,
                classification=classification,
                return_type=return_type,
                parameters=signature.parameter_text,
                local_variables=self._local_inventory(statements),
                control_structures=[
                    self._control_entry(s).render()
                    for s in statements if s.type in _CONTROL_NODE_KINDS
                ],
            ))
            logger.debug("Function %s classified as %s", signature.key, classification)

    def _classify(self, name: str, body: Optional[Node]) -> str:
        if name == self.entry_point:
            return ENTRY
        # Substring test: also matches the name inside strings or longer identifiers
        if body is not None and name in compact_text(body, self.source):
            return RECURSIVE
        return ITERATIVE

    def _extract_parameters(self, parameter_list: Optional[Node]) -> List[Tuple[str, str]]:
        parameters = []
        if parameter_list is None:
            return parameters
        for param in parameter_list.named_children:
            if param.type != "parameter_declaration":
                continue
            param_type = self._type_text(param)
            ident = find_identifier(param.child_by_field_name("declarator"))
            param_name = node_text(ident, self.source) if ident is not None else ""
            # Checked against whatever block was walked last (flat scoping)
            if param_name and param_name in self.symbols.locals:
                self._semantic_error(
                    ident, f"Parameter '{param_name}' conflicts with a local variable.")
            parameters.append((param_type, param_name))
        return parameters

    @staticmethod
    def _direct_statements(body: Optional[Node]) -> List[Node]:
        if body is None:
            return []
        return [child for child in body.named_children if child.type != "comment"]

    def _local_inventory(self, statements: List[Node]) -> List[Tuple[str, str, str]]:
        inventory = []
        for statement in statements:
            if statement.type != "declaration":
                continue
            declared_type = self._type_text(statement)
            for name_node, value_node in self._variable_declarators(statement):
                value = compact_text(value_node, self.source) if value_node is not None else "null"
                inventory.append((declared_type, node_text(name_node, self.source), value))
        return inventory

    # ────────────────────────────────────────────────────────────────
    #  Control structures
    # ────────────────────────────────────────────────────────────────

    def _control_entry(self, node: Node) -> ControlStructureEntry:
        return ControlStructureEntry(
            kind=_CONTROL_NODE_KINDS[node.type],
            source_text=compact_text(node, self.source),
            line=node.start_point[0] + 1,
        )

    def _visit_control_structure(self, node: Node):
        self.reports.add_control_structure(self._control_entry(node))

    visit_if_statement = _visit_control_structure
    visit_while_statement = _visit_control_structure
    visit_for_statement = _visit_control_structure

    # ────────────────────────────────────────────────────────────────
    #  Call sites
    # ────────────────────────────────────────────────────────────────

    def visit_call_expression(self, node: Node):
        callee = node.child_by_field_name("function")
        if callee is not None and callee.type == "identifier":
            name = node_text(callee, self.source)
            arguments = self._argument_text(node.child_by_field_name("arguments"))
            if canonical_key(name, arguments) not in self.symbols.functions:
                self._semantic_error(
                    callee, f"Function '{name}' with arguments '{arguments}' is not defined.")

    def _argument_text(self, argument_list: Optional[Node]) -> str:
        if argument_list is None:
            return ""
        return ", ".join(
            compact_text(arg, self.source)
            for arg in argument_list.named_children if arg.type != "comment"
        )

    # ────────────────────────────────────────────────────────────────
    #  Helpers
    # ────────────────────────────────────────────────────────────────

    def _type_text(self, node: Node) -> str:
        return compact_text(node.child_by_field_name("type"), self.source) or "unknown"

    def _semantic_error(self, node: Node, message: str):
        self.diagnostics.semantic_error(node.start_point[0] + 1, node.start_point[1], message)
