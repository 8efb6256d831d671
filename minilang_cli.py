"""
MiniLang Analyzer — command line entry point.

    python minilang_cli.py                     # analyzes ./program.mini
    python minilang_cli.py prog.mini -o out    # reports go to ./out
    python minilang_cli.py --config analyzer.json -v
"""

import argparse
import logging
import os
import sys

sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from minilang.config import AnalyzerConfig
from minilang.processor import process_file


def build_config(args: argparse.Namespace) -> AnalyzerConfig:
    config = AnalyzerConfig.from_file(args.config) if args.config else AnalyzerConfig()
    overrides = {}
    if args.source:
        overrides["source_path"] = args.source
    if args.output_dir:
        overrides["output_dir"] = args.output_dir
    if args.entry_point:
        overrides["entry_point"] = args.entry_point
    if args.detailed_errors:
        overrides["detailed_errors"] = True
    return config.model_copy(update=overrides)


def main(argv=None) -> int:
    arg_parser = argparse.ArgumentParser(
        description="Semantic analysis and reports for MiniLang programs.")
    arg_parser.add_argument("source", nargs="?", help="MiniLang source file (default: program.mini)")
    arg_parser.add_argument("-o", "--output-dir", help="directory for the report files")
    arg_parser.add_argument("--config", help="JSON configuration file")
    arg_parser.add_argument("--entry-point", help="name of the program entry function")
    arg_parser.add_argument("--detailed-errors", action="store_true",
                            help="embed raw offending-symbol codes in lexer errors")
    arg_parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = arg_parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s:%(levelname)s:%(message)s",
    )

    result = process_file(build_config(args))
    return 0 if result is not None else 1


if __name__ == "__main__":
    sys.exit(main())
