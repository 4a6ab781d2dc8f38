"""Analyzer framework over the IR."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from huntcore.engine import Finding, Location, Rule
from huntcore.ir import File, Value


@dataclass
class Issue:
    """An analyzer report, located by the span of the offending syntax."""
    filename: str
    start_offset: int
    end_offset: int
    line: int
    column: int
    rule_id: str = ""

    def to_finding(self) -> Finding:
        return Finding(
            id=self.rule_id,
            source_location=Location(
                filename=self.filename,
                line=self.line,
                column=self.column,
                start_offset=self.start_offset,
                end_offset=self.end_offset,
            ),
        )


@dataclass
class Pass:
    """State of one analyzer run over one file."""
    file: File
    issues: List[Issue] = field(default_factory=list)

    def report(self, rule_id: str, value: Value):
        """Report value, located by the span of the syntax it was lowered from."""
        start, end = value.pos(), value.end()
        self.issues.append(Issue(
            filename=self.file.name,
            start_offset=start.offset,
            end_offset=end.offset,
            line=start.line,
            column=start.column,
            rule_id=rule_id,
        ))


class Analyzer(Rule):
    """An IR based detector."""

    id: str = ""

    @abstractmethod
    def run(self, pass_: Pass):
        ...


class ArgumentPredicate(ABC):
    """Decides whether a single value is safe to use."""

    @abstractmethod
    def run(self, value: Value) -> bool:
        ...


def run(analyzer: Analyzer, file: File) -> List[Issue]:
    pass_ = Pass(file)
    analyzer.run(pass_)
    return pass_.issues
