"""
Lint engine backed by flake8 (pyflakes + pycodestyle).

Config format (.lintrc.yaml):

    max-line-length: 100
    rules:
      F401: error
      W: off
      E501: [warn]

Rule keys are flake8 code prefixes and the longest matching prefix wins. A
value is a severity (0/1/2 or off/warn/error), or a list whose first item is
the severity. Codes no configured rule matches fall back to DEFAULT_RULES:
syntax errors and undefined names block (the usual E9,F63,F7,F82 gate),
everything else warns. E999 is always severity 2.
"""
import logging
import subprocess
import sys
from typing import Any, Dict, Optional

from ..core.enums import LintSeverity
from ..core.exceptions import LintEngineError
from ..core.models import LintMessage, LintReport
from .base import LintEngine


SEVERITY_NAMES = {
    'off': LintSeverity.OFF,
    'warn': LintSeverity.WARNING,
    'warning': LintSeverity.WARNING,
    'error': LintSeverity.ERROR,
}

SYNTAX_ERROR_CODE = "E999"


def parse_severity(value: Any) -> int:
    """Normalize a rule setting to 0, 1 or 2"""
    if isinstance(value, (list, tuple)):
        if not value:
            return int(LintSeverity.OFF)
        value = value[0]

    if isinstance(value, str):
        if value.lower() not in SEVERITY_NAMES:
            raise ValueError(f"Unknown lint severity: {value}")
        return int(SEVERITY_NAMES[value.lower()])

    severity = int(value)
    if severity not in (0, 1, 2):
        raise ValueError(f"Lint severity must be 0, 1 or 2, got {severity}")
    return severity


class Flake8Linter(LintEngine):
    """Runs `python -m flake8 -` on each file's content"""

    DEFAULT_RULES = {
        'E9': 2,
        'F63': 2,
        'F7': 2,
        'F82': 2,
        '': 1,
    }
    DEFAULT_MAX_LINE_LENGTH = 120
    OUTPUT_FORMAT = "%(row)d:%(col)d:%(code)s:%(text)s"

    def __init__(self, python: str = sys.executable, timeout: float = 60):
        """
        Initialize flake8 linter.

        Args:
            python: Interpreter that has flake8 installed
            timeout: Seconds allowed per file
        """
        self.python = python
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def rules_for(self, config: Dict[str, Any]) -> Dict[str, int]:
        rules = dict(self.DEFAULT_RULES)
        for prefix, setting in ((config or {}).get('rules') or {}).items():
            rules[str(prefix).upper()] = parse_severity(setting)
        return rules

    def command(self, filename: str, config: Dict[str, Any]) -> list:
        max_line_length = (config or {}).get('max-line-length', self.DEFAULT_MAX_LINE_LENGTH)
        return [
            self.python, "-m", "flake8",
            "--isolated",
            f"--format={self.OUTPUT_FORMAT}",
            f"--max-line-length={int(max_line_length)}",
            f"--stdin-display-name={filename}",
            "-",
        ]

    def lint(self, content: str, filename: str, config: Dict[str, Any]) -> LintReport:
        rules = self.rules_for(config)
        cmd = self.command(filename, config)

        try:
            result = subprocess.run(
                cmd, input=content, capture_output=True, text=True, timeout=self.timeout
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise LintEngineError(f"Cannot run flake8 on {filename}: {e}") from e

        # flake8 exits 1 when it found violations
        if result.returncode not in (0, 1):
            raise LintEngineError(
                f"flake8 failed on {filename} with exit code {result.returncode}: "
                f"{result.stderr.strip()}"
            )

        report = LintReport(file=filename)
        for line in result.stdout.splitlines():
            message = self._parse_line(line, rules)
            if message is not None and message.severity != LintSeverity.OFF:
                report.messages.append(message)

        report.messages.sort(key=lambda m: (m.line, m.column))
        return report

    def _parse_line(self, line: str, rules: Dict[str, int]) -> Optional[LintMessage]:
        parts = line.split(':', 3)
        if len(parts) != 4:
            self.logger.debug(f"Ignoring unexpected flake8 output: {line}")
            return None

        row, col, code, text = parts
        try:
            line_number, column = int(row), int(col)
        except ValueError:
            self.logger.debug(f"Ignoring unexpected flake8 output: {line}")
            return None

        return LintMessage(
            line=line_number,
            column=column,
            message=text.strip(),
            rule=code,
            severity=self._severity(code, rules)
        )

    @staticmethod
    def _severity(code: str, rules: Dict[str, int]) -> int:
        if code == SYNTAX_ERROR_CODE:
            return int(LintSeverity.ERROR)
        matches = [prefix for prefix in rules if code.startswith(prefix)]
        return rules[max(matches, key=len)]
