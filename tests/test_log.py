from __future__ import annotations

from typing import List

import pytest

from litescript.passes.log import LogCallExpander
from litescript.types import UnbalancedDelimiter
from litescript.utils import js_string
from tests.support.harness import Case, verify_case

LOG_CASES: List[Case] = [
    Case("no-args", "log()", "console.log()"),
    Case("single-identifier", "log(total)", "console.log('total =>', total)"),
    Case("single-double-literal", 'log("done")', 'console.log("done")'),
    Case("single-single-literal", "log('done')", "console.log('done')"),
    Case("single-template-literal", "log(`n=${n}`)", "console.log(`n=${n}`)"),
    Case("single-expression", "log(a + 1)", "console.log('a + 1 =>', a + 1)"),
    Case("labelled", 'log("n:", n)', 'console.log("n:", n)'),
    Case("literal-not-first", 'log(n, "items")', 'console.log(n, "items")'),
    Case(
        "all-variables",
        "log(a, b, c)",
        "console.log('a =>', a, '\\nb =>', b, '\\nc =>', c)",
    ),
    Case(
        "label-escaping",
        "log(obj['k'])",
        "console.log('obj[\\'k\\'] =>', obj['k'])",
    ),
    Case(
        "nested-call-arg",
        "log(f(a, b))",
        "console.log('f(a, b) =>', f(a, b))",
    ),
    Case(
        "string-with-paren",
        'log(")", x)',
        'console.log(")", x)',
    ),
    Case(
        "two-calls-one-line",
        "log(a); log(b)",
        "console.log('a =>', a); console.log('b =>', b)",
    ),
    Case(
        "nested-log",
        "log(log(x))",
        "console.log('console.log(\\'x =>\\', x) =>', console.log('x =>', x))",
    ),
    Case(
        "multiline-args",
        "log(a,\n    b)",
        "console.log('a =>', a, '\\nb =>', b)",
    ),
    Case("console-log-untouched", "console.log(x)", "console.log(x)"),
    Case("optional-member-untouched", "logger?.log(x)", "logger?.log(x)"),
    Case("declaration-untouched", "function log(x) {", "function log(x) {"),
    Case("method-definition-untouched", "  log(x) {", "  log(x) {"),
    Case("name-only-untouched", "log = 1", "log = 1"),
    Case("in-string-untouched", 's = "log(x)"', 's = "log(x)"'),
    Case("in-template-body", "s = `${log(x)}`", "s = `${console.log('x =>', x)}`"),
    Case(
        "log-in-template-arg",
        "log(`v ${log(a)}`)",
        "console.log(`v ${console.log('a =>', a)}`)",
    ),
    Case("in-template-text-untouched", "s = `log(x)`", "s = `log(x)`"),
    Case("unclosed", "log(a", exc=UnbalancedDelimiter, msg="Unclosed '('"),
]


@pytest.mark.parametrize("case", LOG_CASES, ids=lambda case: case.name)
def test_log_calls(case: Case) -> None:
    verify_case(case, LogCallExpander().run)


def test_log_expansion_is_idempotent() -> None:
    stage = LogCallExpander()
    once = stage.run("log(a, b)\nlog(total)\nlog('x')\ns = `${log(y)}`")

    assert stage.run(once) == once
    assert LogCallExpander.call_starts(once) == []


def test_indented_calls_keep_layout() -> None:
    source = "function f(name) {\n    log(name)\n}"
    out = LogCallExpander().run(source)
    assert out == "function f(name) {\n    console.log('name =>', name)\n}"


@pytest.mark.parametrize(
    "text, expected",
    [
        pytest.param("plain", "'plain'", id="plain"),
        pytest.param("it's", "'it\\'s'", id="quote"),
        pytest.param("a\\b", "'a\\\\b'", id="backslash"),
        pytest.param("\nb =>", "'\\nb =>'", id="newline"),
    ],
)
def test_js_string(text: str, expected: str) -> None:
    assert js_string(text) == expected
