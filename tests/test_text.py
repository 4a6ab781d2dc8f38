"""Tests for the text unit and file loading."""

import re

import pytest

from huntcore.call import Analyzer
from huntcore.engine import UnitType
from huntcore.predicates import AnyArgument
from huntcore.text import (
    MatchType, TextFile, TextRule, TextUnit, collect_paths, load_text_files,
    should_exclude,
)


def _rule(match_type, *patterns):
    return TextRule(id="R1", type=match_type, expressions=[re.compile(p) for p in patterns])


def _locations(findings):
    return sorted((f.source_location.filename, f.source_location.line,
                   f.source_location.column) for f in findings)


def test_or_match_one_finding_per_matching_file():
    files = [
        TextFile("a.js", "// TODO: fix"),
        TextFile("b.js", "const ok = true;"),
        TextFile("c.js", "x = 1;\n// TODO"),
    ]
    findings = TextUnit(files=files, max_workers=3).eval(_rule(MatchType.OR_MATCH, "TODO"))
    assert _locations(findings) == [("a.js", 1, 3), ("c.js", 2, 3)]


def test_and_match_needs_every_expression():
    files = [TextFile("a.js", "password = input")]
    rule = _rule(MatchType.AND_MATCH, "password", "md5")
    assert TextUnit(files=files).eval(rule) == []


def test_and_match_is_decided_per_file():
    files = [
        TextFile("both.js", "password = md5(x)"),
        TextFile("first.js", "password = x"),
        TextFile("second.js", "md5(x)"),
        TextFile("both2.js", "md5(password)"),
    ]
    rule = _rule(MatchType.AND_MATCH, "password", "md5")
    for _ in range(20):
        findings = TextUnit(files=files, max_workers=4).eval(rule)
        assert _locations(findings) == [
            ("both.js", 1, 0), ("both.js", 1, 11),
            ("both2.js", 1, 0), ("both2.js", 1, 4),
        ]


def test_not_match_reports_missing_expressions():
    files = [
        TextFile("strict.js", "'use strict';\nrun()"),
        TextFile("loose.js", "run()"),
    ]
    rule = _rule(MatchType.NOT_MATCH, "use strict", "run")
    findings = TextUnit(files=files).eval(rule)
    assert _locations(findings) == [("loose.js", 0, 0)]


def test_regular_reports_every_match():
    files = [TextFile("a.js", "eval(a);\neval(b);")]
    findings = TextUnit(files=files).eval(_rule(MatchType.REGULAR, r"eval\("))
    assert _locations(findings) == [("a.js", 1, 0), ("a.js", 2, 0)]
    assert {f.id for f in findings} == {"R1"}


def test_other_rules_are_ignored():
    unit = TextUnit(files=[TextFile("a.js", "eval(x)")])
    rule = Analyzer(name="eval", args_index=1, arg_value=AnyArgument())
    assert unit.eval(rule) == []
    assert unit.type() == UnitType.PROGRAM_TEXT


def test_no_files():
    assert TextUnit().eval(_rule(MatchType.REGULAR, "x")) == []


@pytest.mark.parametrize("offset, expected", [
    (0, (1, 0)),
    (3, (1, 3)),
    (4, (2, 0)),
    (6, (2, 2)),
    (7, (3, 0)),
])
def test_find_line_and_column(offset, expected):
    f = TextFile("a.js", "abc\nde\nf")
    assert f.find_line_and_column(offset) == expected


def test_should_exclude():
    assert should_exclude("src/test/a.js", ["test/"])
    assert should_exclude("src/a.spec.js", ["*.spec.js"])
    assert not should_exclude("src/a.js", ["test/", "*.spec.js"])


def test_collect_paths(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "src" / "b.js").write_text("b")
    (tmp_path / "a.mjs").write_text("a")
    (tmp_path / "README.md").write_text("r")
    (tmp_path / "node_modules" / "dep.js").write_text("d")

    paths = collect_paths(str(tmp_path), [".js", ".mjs"])
    assert [p[len(str(tmp_path)) + 1:] for p in paths] == ["a.mjs", "src/b.js"]


def test_load_text_files(tmp_path):
    (tmp_path / "app.js").write_text("eval(x)\n", encoding="utf-8")
    (tmp_path / "latin.js").write_bytes("// caf\xe9\n".encode("latin-1"))

    files = load_text_files(str(tmp_path), [".js"])
    assert [f.display_name for f in files] == ["app.js", "latin.js"]
    assert files[0].content == "eval(x)\n"
    assert files[0].physical_path == str(tmp_path / "app.js")
    assert files[1].content == "// caf\xe9\n"


def test_windows_encoded_file(tmp_path):
    (tmp_path / "quotes.js").write_bytes(b"// \x93quoted\x94\n")
    [f] = load_text_files(str(tmp_path), [".js"])
    assert f.content == "// “quoted”\n"
