"""
Finding model and the rule/unit dispatch contract.

A unit evaluates rules against one representation of the scanned code
(raw text, IR, ...). Units accept any rule and return no findings for
rules they do not understand.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class UnitType(Enum):
    PROGRAM_TEXT = "program-text"
    SEMANTIC = "semantic"


@dataclass
class Location:
    filename: str
    line: int
    column: int
    start_offset: Optional[int] = None
    end_offset: Optional[int] = None


@dataclass
class Finding:
    """One located report of a potential vulnerability."""
    id: str
    source_location: Location

    def to_dict(self) -> dict:
        loc = self.source_location
        data = {
            "id": self.id,
            "file": loc.filename,
            "line": loc.line,
            "column": loc.column,
        }
        if loc.start_offset is not None:
            data["start_offset"] = loc.start_offset
            data["end_offset"] = loc.end_offset
        return data


class Rule(ABC):
    """Marker base for everything a Unit can evaluate."""

    id: str


class Unit(ABC):

    @abstractmethod
    def type(self) -> UnitType:
        ...

    @abstractmethod
    def eval(self, rule: Rule) -> List[Finding]:
        ...


def sort_findings(findings: Iterable[Finding]) -> List[Finding]:
    return sorted(findings, key=lambda f: (
        f.source_location.filename, f.source_location.line,
        f.source_location.column, f.id,
    ))


def run(units: Iterable[Unit], rules: Iterable[Rule]) -> List[Finding]:
    """Evaluate every rule on every unit."""
    units = list(units)
    findings: List[Finding] = []
    for rule in rules:
        for unit in units:
            found = unit.eval(rule)
            if found:
                logger.debug("rule %s: %d findings on %s unit",
                             rule.id, len(found), unit.type().value)
            findings.extend(found)
    return sort_findings(findings)
