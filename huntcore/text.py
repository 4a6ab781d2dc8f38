"""
Text unit: regular expression rules matched against raw file content.

Each file is evaluated by its own task on a thread pool and every task
returns exactly one list of findings, so the collected result does not
depend on the order tasks finish in.
"""

import bisect
import fnmatch
import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Pattern, Sequence, Tuple

from huntcore.engine import Finding, Location, Rule, Unit, UnitType

logger = logging.getLogger(__name__)

SKIP_DIRS = {'node_modules', '.git', 'vendor', 'dist', 'build', '.next', '__pycache__',
             'bower_components', 'jspm_packages', 'third_party', 'third-party',
             '.bundle', '.venv', 'venv'}


class MatchType(Enum):
    REGULAR = "regular"
    OR_MATCH = "or"
    NOT_MATCH = "not"
    AND_MATCH = "and"


@dataclass
class TextRule(Rule):
    id: str
    type: MatchType
    expressions: List[Pattern] = field(default_factory=list)


@dataclass
class TextFile:
    display_name: str
    content: str
    physical_path: Optional[str] = None
    _newlines: List[int] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        self._newlines = [m.start() for m in re.finditer('\n', self.content)]

    def find_line_and_column(self, offset: int) -> Tuple[int, int]:
        """Map a character offset to a 1-based line and 0-based column."""
        line_index = bisect.bisect_left(self._newlines, offset)
        line_start = self._newlines[line_index - 1] + 1 if line_index > 0 else 0
        return line_index + 1, offset - line_start


def new_finding(rule_id: str, filename: str, line: int, column: int) -> Finding:
    return Finding(
        id=rule_id,
        source_location=Location(filename=filename, line=line, column=column),
    )


def _findings_from_matches(matches: Iterable[re.Match], file: TextFile,
                           rule: TextRule) -> List[Finding]:
    findings = []
    for match in matches:
        line, column = file.find_line_and_column(match.start())
        findings.append(new_finding(rule.id, file.display_name, line, column))
    return findings


def eval_regular(rule: TextRule, file: TextFile) -> List[Finding]:
    """Every match of every expression is a finding."""
    findings: List[Finding] = []
    for expression in rule.expressions:
        findings.extend(_findings_from_matches(expression.finditer(file.content), file, rule))
    return findings


def eval_not_match(rule: TextRule, file: TextFile) -> List[Finding]:
    """Every expression that matches nowhere in the file is a finding at 0:0."""
    findings: List[Finding] = []
    for expression in rule.expressions:
        if expression.search(file.content) is None:
            findings.append(new_finding(rule.id, file.display_name, 0, 0))
    return findings


def eval_and_match(rule: TextRule, file: TextFile) -> List[Finding]:
    """Findings of all expressions, only if every expression matches."""
    findings: List[Finding] = []
    for expression in rule.expressions:
        found = _findings_from_matches(expression.finditer(file.content), file, rule)
        if not found:
            return []
        findings.extend(found)
    return findings


EVALUATORS = {
    MatchType.REGULAR: eval_regular,
    MatchType.OR_MATCH: eval_regular,
    MatchType.NOT_MATCH: eval_not_match,
    MatchType.AND_MATCH: eval_and_match,
}


@dataclass
class TextUnit(Unit):
    files: List[TextFile] = field(default_factory=list)
    max_workers: Optional[int] = None

    def type(self) -> UnitType:
        return UnitType.PROGRAM_TEXT

    def eval(self, rule: Rule) -> List[Finding]:
        # The rule isn't a TextRule, so we just bail out.
        if not isinstance(rule, TextRule) or not self.files:
            return []

        evaluate: Callable[[TextRule, TextFile], List[Finding]] = EVALUATORS[rule.type]
        findings: List[Finding] = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(evaluate, rule, f): f for f in self.files}
            for future in as_completed(futures):
                file_findings = future.result()
                logger.debug("%s: rule %s matched %d times",
                             futures[future].display_name, rule.id, len(file_findings))
                findings.extend(file_findings)
        return findings


def read_file(file_path: str) -> Optional[str]:
    # latin-1 accepts any byte, so it goes last.
    for encoding in ['utf-8', 'cp1252', 'latin-1']:
        try:
            with open(file_path, 'r', encoding=encoding) as f:
                return f.read()
        except (UnicodeDecodeError, PermissionError):
            continue
    return None


def read_text_file(file_path: str, base_dir: Optional[str] = None) -> Optional[TextFile]:
    """Read file_path, naming it relative to base_dir when given."""
    content = read_file(file_path)
    if content is None:
        logger.warning("%s: could not decode file, skipping", file_path)
        return None
    display_name = file_path
    if base_dir:
        display_name = os.path.relpath(file_path, base_dir)
    return TextFile(display_name=display_name, content=content, physical_path=file_path)


def should_exclude(file_path: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        if fnmatch.fnmatch(file_path, pattern):
            return True
        if pattern.endswith('/') and pattern.rstrip('/') in Path(file_path).parts:
            return True
    return False


def collect_paths(target: str, extensions: Iterable[str],
                  exclude: Sequence[str] = ()) -> List[str]:
    """List the files to scan under target, which may be a single file."""
    target_path = Path(target)
    if target_path.is_file():
        return [] if should_exclude(str(target_path), exclude) else [str(target_path)]

    extensions = {e.lower() for e in extensions}
    paths = []
    for root, dirs, filenames in os.walk(str(target_path)):
        dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRS)
        for fname in sorted(filenames):
            fp = os.path.join(root, fname)
            if Path(fp).suffix.lower() not in extensions:
                continue
            if should_exclude(fp, exclude):
                continue
            paths.append(fp)
    return paths


def load_text_files(target: str, extensions: Iterable[str],
                    exclude: Sequence[str] = ()) -> List[TextFile]:
    base_dir = target if Path(target).is_dir() else os.path.dirname(target)
    files = []
    for fp in collect_paths(target, extensions, exclude):
        text_file = read_text_file(fp, base_dir)
        if text_file is not None:
            files.append(text_file)
    return files
