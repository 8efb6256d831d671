"""
MiniLang Analyzer — MCP Server

Exposes the semantic analyzer as Model Context Protocol tools:

  1. analyze_program  — analyze a MiniLang file and write all report files
  2. analyze_source   — analyze MiniLang text held in memory
  3. get_report       — return one report from the last analysis
  4. list_diagnostics — list diagnostics from the last analysis, by severity
"""

from mcp.server.fastmcp import FastMCP
import os
import sys

# Ensure the minilang package is importable
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from minilang.config import AnalyzerConfig
from minilang.diagnostics import Severity
from minilang.processor import AnalysisResult, analyze_source as run_analysis, process_file

# ═══════════════════════════════════════════════════════════════════════
#  Server Setup
# ═══════════════════════════════════════════════════════════════════════

mcp = FastMCP("MiniLang Analyzer")

# Most recent analysis, shared by get_report / list_diagnostics
last_result = None
_REPORT_NAMES = ("globals", "functions", "locals", "control", "tokens", "errors")


def _summarize(result: AnalysisResult, title: str) -> str:
    """Markdown summary of one analysis pass."""
    counts = result.diagnostics.summary()
    reports = result.reports

    summary = f"## {title}\n\n"
    summary += "| Metric | Count |\n|--------|-------|\n"
    summary += f"| Global variables | {len(reports.global_records)} |\n"
    summary += f"| Functions | {len(reports.function_reports)} |\n"
    summary += f"| Local variables | {len(reports.local_records)} |\n"
    summary += f"| Control structures | {len(reports.control_entries)} |\n"
    for severity in Severity:
        summary += f"| {severity.value} diagnostics | {counts[severity.value]} |\n"

    if reports.function_reports:
        summary += "\n### Functions\n\n"
        for fn in reports.function_reports:
            summary += f"- `{fn.name}({fn.parameters})` → {fn.return_type} ({fn.classification})\n"

    messages = result.diagnostics.messages()
    if messages:
        summary += "\n### Diagnostics\n\n"
        summary += "".join(f"- {m}\n" for m in messages)
    return summary


# ═══════════════════════════════════════════════════════════════════════
#  Tool 1 — Analyze Program
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def analyze_program(source_path: str, output_dir: str = "", entry_point: str = "main") -> str:
    """
    Analyzes a MiniLang source file and writes the token, variable, function,
    control-structure and error reports.

    Args:
        source_path: Path to the MiniLang source file.
        output_dir:  Directory for the report files.  Defaults to the
                     directory containing the source file.
        entry_point: Name of the program entry function.
    """
    global last_result

    if not os.path.isfile(source_path):
        return f"Error: Source file not found at {source_path}"

    config = AnalyzerConfig(
        source_path=source_path,
        output_dir=output_dir or os.path.dirname(os.path.abspath(source_path)),
        entry_point=entry_point,
    )
    try:
        result = process_file(config, echo=False)
    except OSError as e:
        return f"Error: Failed to write reports to {config.output_dir}: {e}"
    if result is None:
        return f"Error: Could not analyze {source_path}"

    last_result = result
    return _summarize(result, f"Analysis — `{source_path}`") + f"\nReports written to `{config.output_dir}`.\n"


# ═══════════════════════════════════════════════════════════════════════
#  Tool 2 — Analyze Source
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def analyze_source(source: str, entry_point: str = "main") -> str:
    """
    Analyzes MiniLang source text without touching the file system.

    Args:
        source:      The MiniLang program text.
        entry_point: Name of the program entry function.
    """
    global last_result

    last_result = run_analysis(source, AnalyzerConfig(entry_point=entry_point))
    return _summarize(last_result, "Analysis — inline source")


# ═══════════════════════════════════════════════════════════════════════
#  Tool 3 — Get Report
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def get_report(report: str) -> str:
    """
    Returns one report from the most recent analysis.

    Args:
        report: One of 'globals', 'functions', 'locals', 'control',
                'tokens' or 'errors'.
    """
    if last_result is None:
        return "Error: Nothing analyzed yet. Call analyze_program or analyze_source first."

    name = report.strip().lower()
    if name not in _REPORT_NAMES:
        return f"Error: Unknown report '{report}'. Available: {', '.join(_REPORT_NAMES)}"

    if name == "errors":
        content = "".join(f"{m}\n" for m in last_result.diagnostics.messages())
    else:
        content = last_result.reports.as_dict()[name]
    return content or f"(the {name} report is empty)"


# ═══════════════════════════════════════════════════════════════════════
#  Tool 4 — List Diagnostics
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def list_diagnostics(severity: str = "") -> str:
    """
    Lists diagnostics from the most recent analysis.

    Args:
        severity: Optional filter: 'lexical', 'syntax', 'syntax-detailed'
                  or 'semantic'.  Empty lists everything.
    """
    if last_result is None:
        return "Error: Nothing analyzed yet. Call analyze_program or analyze_source first."

    if severity.strip():
        try:
            wanted = Severity(severity.strip().lower())
        except ValueError:
            choices = ", ".join(s.value for s in Severity)
            return f"Error: Unknown severity '{severity}'. Available: {choices}"
        diagnostics = last_result.diagnostics.by_severity(wanted)
    else:
        diagnostics = last_result.errors

    if not diagnostics:
        return "No diagnostics."
    result = f"**{len(diagnostics)} diagnostic(s)**:\n\n"
    for d in diagnostics:
        result += f"- {d.render()}\n"
    return result


if __name__ == "__main__":
    mcp.run()
