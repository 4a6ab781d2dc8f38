"""Unit evaluating IR analyzers."""

import logging
from dataclasses import dataclass, field
from typing import List

from huntcore import analysis
from huntcore.engine import Finding, Rule, Unit, UnitType
from huntcore.ir import File

logger = logging.getLogger(__name__)


@dataclass
class SemanticUnit(Unit):
    files: List[File] = field(default_factory=list)

    def type(self) -> UnitType:
        return UnitType.SEMANTIC

    def eval(self, rule: Rule) -> List[Finding]:
        # Text rules and other strategies are not ours to evaluate.
        if not isinstance(rule, analysis.Analyzer):
            return []

        findings: List[Finding] = []
        for file in self.files:
            issues = analysis.run(rule, file)
            logger.debug("%s: %s reported %d issues", file.name, rule.id, len(issues))
            findings.extend(issue.to_finding() for issue in issues)
        return findings
