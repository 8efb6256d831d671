"""
Semantic analyzer tests.

Covers:
  1. Global/local declarations, duplicates and literal type checks
  2. Flat per-block scoping
  3. Function signatures, classification and per-function inventory
  4. Control-structure transcript
  5. Call-site lookup by canonical text key
  6. End-to-end behaviour on a small program
"""

import os
import sys
import unittest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from minilang.config import AnalyzerConfig
from minilang.diagnostics import Severity
from minilang.processor import analyze_source
from minilang.reports import CONTROL_KINDS


def _semantic(result, fragment: str = ""):
    return [d for d in result.diagnostics.by_severity(Severity.SEMANTIC)
            if fragment in d.message]


class TestGlobalDeclarations(unittest.TestCase):

    def test_distinct_globals_in_order(self):
        result = analyze_source('int a = 1;\ndouble b = 2.5;\nstring c = "x";\nbool d;\n')
        self.assertEqual(
            result.reports.global_variables,
            'int a = 1\ndouble b = 2.5\nstring c = "x"\nbool d\n',
        )
        self.assertEqual(_semantic(result), [])

    def test_duplicate_global(self):
        result = analyze_source("int x = 1;\nint x = 2;\n")
        dups = _semantic(result, "already defined")
        self.assertEqual(len(dups), 1)
        self.assertIn("Global variable 'x'", dups[0].message)
        self.assertEqual(dups[0].line, 2)
        self.assertEqual(result.reports.global_variables, "int x = 1\n")

    def test_incompatible_int_still_recorded(self):
        result = analyze_source('int x = "5";\n')
        self.assertEqual(len(_semantic(result, "Incompatible type")), 1)
        self.assertEqual(result.reports.global_variables, 'int x = "5"\n')

    def test_literal_checks_per_type(self):
        result = analyze_source(
            'int ok1 = -7;\n'
            'double ok2 = 3.14;\n'
            'double ok3 = 2;\n'
            'string ok4 = "hi";\n'
            'double bad1 = "x";\n'
            'string bad2 = 5;\n'
            'int bad3 = 1.5;\n'
            'bool unchecked = 42;\n'
        )
        flagged = sorted(d.message.split("'")[1] for d in _semantic(result, "Incompatible type"))
        self.assertEqual(flagged, ["bad1", "bad2", "bad3"])
        self.assertEqual(len(result.reports.global_records), 8)

    def test_int_literal_outside_32_bit_range(self):
        result = analyze_source(
            "int big = 99999999999;\nint top = 2147483647;\nint low = -2147483648;\n"
            "int over = 2147483648;\n")
        flagged = sorted(d.message.split("'")[1] for d in _semantic(result, "Incompatible type"))
        self.assertEqual(flagged, ["big", "over"])

    def test_expression_initializer_is_not_a_literal(self):
        result = analyze_source("int x = 2 + 3;\n")
        self.assertEqual(len(_semantic(result, "Incompatible type")), 1)
        self.assertEqual(result.reports.global_variables, "int x = 2+3\n")


class TestLocalDeclarations(unittest.TestCase):

    def test_locals_reported(self):
        result = analyze_source("void f() { int y = 1; string s; }\n")
        self.assertEqual(result.reports.local_variables, "int y = 1\nstring s\n")
        self.assertEqual(result.reports.global_variables, "")

    def test_duplicate_local_in_same_block(self):
        result = analyze_source("void f() { int y = 1; int y = 2; }\n")
        dups = _semantic(result, "already defined in this block")
        self.assertEqual(len(dups), 1)
        self.assertEqual(result.reports.local_variables, "int y = 1\n")

    def test_same_name_in_sibling_functions(self):
        result = analyze_source("void f() { int y = 1; }\nvoid g() { int y = 2; }\n")
        self.assertEqual(_semantic(result, "already defined"), [])
        self.assertEqual(result.reports.local_variables, "int y = 1\nint y = 2\n")

    def test_flat_scoping_forgets_outer_names_after_inner_block(self):
        result = analyze_source(
            "void f() { int a = 1; if (a > 0) { int b = 2; } int a = 3; }\n")
        self.assertEqual(_semantic(result, "already defined"), [])
        self.assertEqual([r.name for r in result.reports.local_records], ["a", "b", "a"])

    def test_for_initializer_is_neither_global_nor_local(self):
        result = analyze_source(
            "void f() { for (int i = 0; i < 3; i = i + 1) { } }\n")
        self.assertEqual(result.reports.local_records, [])
        self.assertEqual(result.reports.global_records, [])

    def test_local_incompatible_type(self):
        result = analyze_source('void f() { int n = "a"; }\n')
        self.assertEqual(len(_semantic(result, "Incompatible type for variable 'n'")), 1)
        self.assertEqual(result.reports.local_variables, 'int n = "a"\n')


class TestFunctions(unittest.TestCase):

    def _only_function(self, source: str, config: AnalyzerConfig = None):
        result = analyze_source(source, config)
        self.assertEqual(len(result.reports.function_reports), 1)
        return result.reports.function_reports[0]

    def test_recursive(self):
        fn = self._only_function(
            "int fact(int n) { if (n <= 1) { return 1; } return n * fact(n - 1); }\n")
        self.assertEqual(fn.classification, "recursive")

    def test_iterative(self):
        fn = self._only_function(
            "int countdown(int n) { while (n > 0) { n = n - 1; } return n; }\n")
        self.assertEqual(fn.classification, "iterative")

    def test_entry_point_wins(self):
        fn = self._only_function("int main() { main(); return 0; }\n")
        self.assertEqual(fn.classification, "entry")

    def test_custom_entry_point(self):
        fn = self._only_function(
            "void start() { }\n", AnalyzerConfig(entry_point="start"))
        self.assertEqual(fn.classification, "entry")

    def test_name_inside_string_counts_as_recursion(self):
        fn = self._only_function('void greet() { string s = "greet"; }\n')
        self.assertEqual(fn.classification, "recursive")

    def test_signature_and_return_type(self):
        fn = self._only_function("string join(string a, int n) { return a; }\n")
        self.assertEqual(fn.name, "join")
        self.assertEqual(fn.return_type, "string")
        self.assertEqual(fn.parameters, "string a, int n")

    def test_duplicate_signature(self):
        result = analyze_source(
            "int twice(int v) { return v + v; }\n"
            "int twice(int v) { return v * 2; }\n")
        dups = _semantic(result, "already defined")
        self.assertEqual(len(dups), 1)
        self.assertIn("Function 'twice' with parameters 'int v'", dups[0].message)
        self.assertEqual(len(result.reports.function_reports), 1)
        self.assertEqual(result.reports.functions.count("Function: twice"), 1)

    def test_overload_with_different_parameters(self):
        result = analyze_source(
            "int twice(int v) { return v + v; }\n"
            "int twice(double v) { return 2; }\n")
        self.assertEqual(_semantic(result, "already defined"), [])
        self.assertEqual(len(result.reports.function_reports), 2)

    def test_local_inventory_uses_direct_statements(self):
        fn = self._only_function(
            "void f() { int a = 1; int b; if (a > 0) { int hidden = 2; } }\n")
        self.assertEqual(fn.local_variables, [("int", "a", "1"), ("int", "b", "null")])

    def test_inventory_keeps_duplicates(self):
        fn = self._only_function("void f() { int y = 1; int y = 2; }\n")
        self.assertEqual(fn.local_variables, [("int", "y", "1"), ("int", "y", "2")])

    def test_control_inventory_uses_direct_statements(self):
        fn = self._only_function(
            "void f() { while (1) { if (2 > 1) { } } for (;;) { } }\n")
        self.assertEqual(
            fn.control_structures,
            ["While statement: while(1){if(2>1){}}", "For statement: for(;;){}"],
        )

    def test_parameter_conflicts_with_live_local(self):
        result = analyze_source("void f() { int x = 1; }\nvoid g(int x) { }\n")
        conflicts = _semantic(result, "conflicts with a local variable")
        self.assertEqual(len(conflicts), 1)
        self.assertIn("Parameter 'x'", conflicts[0].message)

    def test_parameter_without_live_local(self):
        result = analyze_source("void g(int x) { int y = 1; }\n")
        self.assertEqual(_semantic(result, "conflicts"), [])


class TestControlStructures(unittest.TestCase):

    def test_every_construct_is_logged_in_walk_order(self):
        result = analyze_source(
            "void f() { while (1) { if (2 > 1) { } } }\n"
            "void g() { for (;;) { } }\n")
        self.assertEqual(
            result.reports.control_structures,
            "While statement: while(1){if(2>1){}}\n"
            "If statement: if(2>1){}\n"
            "For statement: for(;;){}\n",
        )

    def test_function_inventory_does_not_duplicate_log(self):
        result = analyze_source("int main() { if (1) { } return 0; }\n")
        self.assertEqual(result.reports.control_structures, "If statement: if(1){}\n")

    def test_if_else_text(self):
        result = analyze_source("void f() { if (1) { } else { } }\n")
        self.assertEqual(result.reports.control_structures, "If statement: if(1){}else{}\n")


    def test_every_control_kind_is_logged(self):
        result = analyze_source(
            "void f() { if (1) { } while (1) { } for (;;) { } }\n")
        self.assertEqual(
            [e.kind for e in result.reports.control_entries], list(CONTROL_KINDS))


class TestCallSites(unittest.TestCase):

    def test_undefined_function(self):
        result = analyze_source("void tick() { }\nint main() { tick(); missing(); return 0; }\n")
        undefined = _semantic(result, "is not defined")
        self.assertEqual(len(undefined), 1)
        self.assertIn("Function 'missing'", undefined[0].message)

    def test_exact_key_match_is_silent(self):
        result = analyze_source("void tick() { }\nint main() { tick(); return 0; }\n")
        self.assertEqual(_semantic(result), [])

    def test_call_before_declaration_misses(self):
        result = analyze_source("int main() { later(); return 0; }\nvoid later() { }\n")
        self.assertEqual(len(_semantic(result, "'later'")), 1)

    def test_arguments_are_compared_as_text(self):
        result = analyze_source(
            "int add(int a, int b) { return a + b; }\n"
            "int main() { add(1, 2); return 0; }\n")
        undefined = _semantic(result, "is not defined")
        self.assertEqual(len(undefined), 1)
        self.assertIn("with arguments '1, 2'", undefined[0].message)

    def test_call_in_global_initializer(self):
        result = analyze_source("int x = seed();\n")
        self.assertEqual(len(_semantic(result, "Function 'seed'")), 1)


class TestEndToEnd(unittest.TestCase):

    SOURCE = (
        "int counter = 0;\n"
        "int main(int a, int b) { if (a > b) { counter = a; } return 0; }\n"
    )

    def setUp(self):
        self.result = analyze_source(self.SOURCE)

    def test_no_lexical_or_syntax_errors(self):
        self.assertEqual(self.result.diagnostics.by_severity(
            Severity.LEXICAL, Severity.SYNTAX, Severity.SYNTAX_DETAILED), [])
        self.assertEqual(len(self.result.diagnostics), 0)

    def test_reports(self):
        reports = self.result.reports
        self.assertEqual(reports.global_variables, "int counter = 0\n")
        self.assertEqual(len(reports.function_reports), 1)
        self.assertEqual(reports.function_reports[0].classification, "entry")
        self.assertEqual(reports.control_structures, "If statement: if(a>b){counter=a;}\n")
        self.assertEqual(reports.local_variables, "")

    def test_function_block(self):
        self.assertEqual(
            self.result.reports.functions,
            "Function: main\n"
            "Type: entry\n"
            "Return Type: int\n"
            "Parameters: int a, int b\n"
            "Local Variables:\n"
            "\n"
            "Control Structures:\n"
            "If statement: if(a>b){counter=a;}\n"
            "\n\n",
        )

    def test_post_walk_tokens_match_pre_walk(self):
        self.assertEqual(self.result.reports.tokens, self.result.pre_walk_tokens)
        self.assertTrue(self.result.reports.tokens.startswith("<KEYWORD, int, 1>\n"))

    def test_walk_survives_syntax_errors(self):
        result = analyze_source("int good = 1;\nint @bad = 2;\nint main() { return 0; }\n")
        self.assertGreaterEqual(len(result.diagnostics.by_severity(Severity.LEXICAL)), 1)
        self.assertIn("int good = 1\n", result.reports.global_variables)

class TestDeepInput(unittest.TestCase):

    def test_long_initializer_expression(self):
        terms = "+".join(["1"] * 1000)
        result = analyze_source(f"int x = {terms};\n")
        self.assertEqual(len(result.reports.global_records), 1)
        self.assertEqual(result.reports.global_records[0].initializer, terms)
        self.assertEqual(len(_semantic(result, "Incompatible type")), 1)
        self.assertEqual(len(result.reports.tokens.splitlines()), 1999 + 4)

    def test_deeply_nested_blocks(self):
        depth = 300
        source = "int main() { " + "if (1) { " * depth + "}" * depth + " return 0; }\n"
        result = analyze_source(source)
        self.assertEqual(len(result.diagnostics), 0)
        self.assertEqual(len(result.reports.control_entries), depth)
        self.assertEqual(result.reports.function_reports[0].classification, "entry")
        self.assertEqual(result.reports.tokens, result.pre_walk_tokens)


if __name__ == "__main__":
    unittest.main()
