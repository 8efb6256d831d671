"""
Analyzer configuration.

Defaults reproduce the classic layout: read ``program.mini`` from the
working directory and write every artifact next to it.  A JSON file can
override any field, e.g.::

    {"source_path": "examples/loop.mini", "output_dir": "out", "entry_point": "start"}
"""

import json
import logging
import os

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class AnalyzerConfig(BaseModel):
    source_path: str = "program.mini"
    output_dir: str = "."
    entry_point: str = "main"
    detailed_errors: bool = False

    tokens_file: str = "tokens.txt"
    errors_file: str = "errors.txt"
    global_variables_file: str = "globalVariables.txt"
    functions_file: str = "functions.txt"
    local_variables_file: str = "localVariables.txt"
    control_structures_file: str = "controlStructures.txt"

    def output_path(self, file_name: str) -> str:
        return os.path.join(self.output_dir, file_name)

    @classmethod
    def from_file(cls, path: str) -> "AnalyzerConfig":
        """Load a JSON config, falling back to defaults on any problem."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.error("Config file not found: %s", path)
            return cls()
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in %s: %s", path, e)
            return cls()

        if not isinstance(data, dict):
            logger.error("Config %s must be a JSON object, got %s", path, type(data).__name__)
            return cls()

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.error("Invalid config in %s: %s", path, e)
            return cls()
