"""
MiniLang Processor — runs one complete analysis pass.

  1. Read the source (a missing file is the only fatal condition)
  2. Parse it, feeding lexical/syntax errors into the diagnostics sink
  3. Write the pre-walk token transcript
  4. Walk the tree with the semantic analyzer
  5. Print and persist the diagnostics log
  6. Write the post-walk token transcript and the four reports

``analyze_source`` does steps 2 and 4 without touching the file system.
"""

import os
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from minilang.config import AnalyzerConfig
from minilang.diagnostics import Diagnostic, DiagnosticsSink
from minilang.reports import ReportAssembler
from minilang.semantic_analyzer import SemanticAnalyzer
from minilang.tree_parser import MiniLangParser, ParseResult

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything one pass produced."""
    parse: ParseResult
    diagnostics: DiagnosticsSink
    reports: ReportAssembler

    @property
    def pre_walk_tokens(self) -> str:
        return self.parse.token_transcript()

    @property
    def errors(self) -> List[Diagnostic]:
        return self.diagnostics.diagnostics

    def artifacts(self, config: AnalyzerConfig) -> Dict[str, str]:
        """File name → content for every report written after the walk."""
        return {
            config.tokens_file: self.reports.tokens,
            config.global_variables_file: self.reports.global_variables,
            config.functions_file: self.reports.functions,
            config.local_variables_file: self.reports.local_variables,
            config.control_structures_file: self.reports.control_structures,
        }


def _parse(source, config: AnalyzerConfig):
    diagnostics = DiagnosticsSink()
    parser = MiniLangParser(detailed_errors=config.detailed_errors)
    parser.remove_error_listeners()
    parser.add_error_listener(diagnostics)
    return parser, parser.parse(source), diagnostics


def _walk(parser: MiniLangParser, parsed: ParseResult, diagnostics: DiagnosticsSink,
          config: AnalyzerConfig) -> AnalysisResult:
    analyzer = SemanticAnalyzer(
        parsed.source, diagnostics,
        entry_point=config.entry_point, vocabulary=parser.vocabulary,
    )
    reports = analyzer.analyze(parsed.root)
    return AnalysisResult(parse=parsed, diagnostics=diagnostics, reports=reports)


def analyze_source(source, config: Optional[AnalyzerConfig] = None) -> AnalysisResult:
    """Parse and analyze ``source`` (str or bytes) in memory."""
    config = config or AnalyzerConfig()
    parser, parsed, diagnostics = _parse(source, config)
    return _walk(parser, parsed, diagnostics, config)


def process_file(config: Optional[AnalyzerConfig] = None,
                 echo: bool = True) -> Optional[AnalysisResult]:
    """Run the full pass for ``config.source_path`` and write every artifact.

    Returns None when the source file is missing.  With ``echo`` the
    diagnostics log (or the missing-file message) is printed to stdout.
    """
    config = config or AnalyzerConfig()

    if not os.path.isfile(config.source_path):
        if echo:
            print(f"Error: the file {config.source_path} does not exist.")
        logger.error("Source file not found: %s", config.source_path)
        return None

    with open(config.source_path, "r", encoding="utf-8", errors="replace") as f:
        source = f.read()

    os.makedirs(config.output_dir, exist_ok=True)

    parser, parsed, diagnostics = _parse(source, config)
    _write_text(config.output_path(config.tokens_file), parsed.token_transcript())

    result = _walk(parser, parsed, diagnostics, config)

    if echo:
        print("Errors and warnings:")
        for message in diagnostics.messages():
            print(message)

    save_diagnostics(diagnostics, config.output_path(config.errors_file))

    for file_name, content in result.artifacts(config).items():
        _write_text(config.output_path(file_name), content)

    return result


def save_diagnostics(diagnostics: DiagnosticsSink, path: str) -> bool:
    """Write one diagnostic per line; failures are reported, never raised."""
    try:
        with open(path, "w", encoding="utf-8") as f:
            for message in diagnostics.messages():
                f.write(message + "\n")
    except OSError as e:
        logger.error("Failed to write diagnostics to %s: %s", path, e)
        print(f"Error saving the file: {e}")
        return False
    logger.info("Wrote %d diagnostics to %s", len(diagnostics), path)
    return True


def _write_text(path: str, content: str):
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    logger.info("Wrote %s (%d bytes)", path, len(content))
