"""Call-site analyzer tests."""

import pytest

from huntcore import analysis, call
from huntcore.analysis import Issue
from huntcore.predicates import AnyArgument, ConstantArgument


class FakeArgValue(analysis.ArgumentPredicate):

    def __init__(self, return_value: bool):
        self.return_value = return_value
        self.seen = []

    def run(self, value):
        self.seen.append(value)
        return self.return_value


SRC = """function f() { eval("console.log('eval')") }"""


@pytest.mark.parametrize("name, analyzer, expected", [
    (
        "MatchArguments",
        call.Analyzer(name="eval", args_index=1, arg_value=FakeArgValue(False)),
        [Issue(filename="MatchArguments", start_offset=15, end_offset=42, line=1, column=15)],
    ),
    (
        "NotMatchArguments",
        call.Analyzer(name="eval", args_index=1, arg_value=FakeArgValue(True)),
        [],
    ),
    (
        "NotMatchFunctionName",
        call.Analyzer(name="fs.readFile", args_index=1, arg_value=FakeArgValue(True)),
        [],
    ),
    (
        "NotMatchFunctionNameUnsafe",
        call.Analyzer(name="fs.readFile", args_index=1, arg_value=FakeArgValue(False)),
        [],
    ),
])
def test_analyzer_call(lower, name, analyzer, expected):
    file = lower(SRC, name)
    assert analysis.run(analyzer, file) == expected


def test_missing_argument_reports_nothing(lower):
    file = lower(SRC)
    predicate = FakeArgValue(False)
    analyzer = call.Analyzer(name="eval", args_index=2, arg_value=predicate)
    assert analysis.run(analyzer, file) == []
    assert predicate.seen == []


def test_zero_index_reports_nothing(lower):
    file = lower(SRC)
    analyzer = call.Analyzer(name="eval", args_index=0, arg_value=FakeArgValue(False))
    assert analysis.run(analyzer, file) == []


def test_predicate_receives_selected_argument(lower):
    file = lower('function f() { setTimeout(cb, "100") }')
    predicate = FakeArgValue(True)
    analyzer = call.Analyzer(name="setTimeout", args_index=2, arg_value=predicate)
    analysis.run(analyzer, file)
    assert len(predicate.seen) == 1
    assert predicate.seen[0].value == '"100"'


def test_issue_carries_rule_id(lower):
    file = lower(SRC)
    analyzer = call.Analyzer(id="HC-1", name="eval", args_index=1, arg_value=AnyArgument())
    [issue] = analysis.run(analyzer, file)
    assert issue.rule_id == "HC-1"
    finding = issue.to_finding()
    assert finding.id == "HC-1"
    assert finding.source_location.start_offset == 15
    assert finding.source_location.end_offset == 42


def test_import_alias_is_resolved(lower):
    src = (
        "const cp = require('child_process');\n"
        "function run(cmd) { cp.exec(cmd) }\n"
    )
    file = lower(src)
    analyzer = call.Analyzer(name="child_process.exec", args_index=1,
                             arg_value=ConstantArgument())
    [issue] = analysis.run(analyzer, file)
    assert issue.line == 2
    assert issue.column == 20


def test_non_import_selector_uses_identifier(lower):
    file = lower("function f(p) { fs.readFile(p) }")
    analyzer = call.Analyzer(name="fs.readFile", args_index=1, arg_value=AnyArgument())
    assert len(analysis.run(analyzer, file)) == 1


def test_every_matching_call_is_reported(lower):
    src = (
        "function a(x) { eval(x) }\n"
        "function b() { eval('1 + 1') }\n"
        "eval(window.name)\n"
    )
    file = lower(src)
    analyzer = call.Analyzer(name="eval", args_index=1, arg_value=ConstantArgument())
    issues = analysis.run(analyzer, file)
    assert sorted(i.line for i in issues) == [1, 3]


def test_analyzer_keeps_no_state_between_runs(lower):
    analyzer = call.Analyzer(name="eval", args_index=1, arg_value=AnyArgument())
    first = analysis.run(analyzer, lower(SRC, "one.js"))
    second = analysis.run(analyzer, lower(SRC, "two.js"))
    assert [i.filename for i in first] == ["one.js"]
    assert [i.filename for i in second] == ["two.js"]


@pytest.mark.parametrize("src", [
    "var code = 'safe';\nfunction f(code) { eval(code) }",
    "function f() { var c = 'ls'; function g(c) { eval(c) } }",
    "function h(req, res) { res.status(500).send('x'); eval(req.query.x) }",
    "(function () { eval(location.hash) })();",
])
def test_caller_controlled_argument_is_reported(lower, src):
    analyzer = call.Analyzer(name="eval", args_index=1, arg_value=ConstantArgument())
    assert len(analysis.run(analyzer, lower(src))) == 1
