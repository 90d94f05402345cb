from __future__ import annotations

from typing import List

import pytest

from litescript.passes.loops import LoopSugarExpander
from litescript.transpiler import transpile
from tests.support.harness import Case, brace_balance, eval_program, src, verify_case

LOOP_CASES: List[Case] = [
    Case("repeat-number", "repeat 3", "for (let _ = 0; _ < 3; _++)"),
    Case("repeat-expression", "repeat n * 2", "for (let _ = 0; _ < n * 2; _++)"),
    Case("repeat-call-untouched", "repeat(3)", "repeat(3)"),
    Case("repeat-assignment-untouched", "repeat = 2", "repeat = 2"),
    Case("range-two-dots", "for i in 0..5", "for (let i = 0; i < 5; i++)"),
    Case("range-three-dots", "for i in 0...5", "for (let i = 0; i < 5; i++)"),
    Case("range-step", "for i in 0..10..2", "for (let i = 0; i < 10; i += 2)"),
    Case("range-identifier-bound", "for i in 1..n", "for (let i = 1; i < n; i++)"),
    Case("for-of", "for x of items", "for (let x of items)"),
    Case(
        "for-of-destructure",
        "for [k, v] of Object.entries(o)",
        "for (let [k, v] of Object.entries(o))",
    ),
    Case("for-in-object", "for key in config", "for (let key in config)"),
    Case("for-classic-untouched", "for (let i = 0; i < 3; i++)", "for (let i = 0; i < 3; i++)"),
    Case("while-bare", "while n > 0", "while (n > 0)"),
    Case("while-grouped-untouched", "while (n > 0)", "while (n > 0)"),
    Case("while-partly-grouped", "while (a) && b", "while ((a) && b)"),
    Case("keeps-brace", "for x of xs {", "for (let x of xs) {"),
    Case("keeps-comment", "repeat 2 // twice", "for (let _ = 0; _ < 2; _++) // twice"),
    Case("indented", "    while busy", "    while (busy)"),
    Case("crlf-line-ending", "repeat 2\r\n    go()", "for (let _ = 0; _ < 2; _++)\r\n    go()"),
]


@pytest.mark.parametrize("case", LOOP_CASES, ids=lambda case: case.name)
def test_loop_headers(case: Case) -> None:
    verify_case(case, LoopSugarExpander().run)


def test_loop_sugar_is_off_by_default() -> None:
    source = "for x of xs\n    use(x)"
    assert transpile(source) == source
    assert transpile(source, loops=True) == "for (let x of xs) {\n    use(x)\n}"


def test_loop_body_gets_braces() -> None:
    source = src(
        """
        total = 0
        for i in 0..5
            repeat 2
                total = total + i
        """
    )
    out = transpile(source, loops=True)

    assert out.startswith("let total = 0\nfor (let i = 0; i < 5; i++) {\n")
    assert "    for (let _ = 0; _ < 2; _++) {\n" in out
    assert brace_balance(out) == 0


@pytest.mark.node
@pytest.mark.parametrize(
    "source, names, expected",
    [
        pytest.param(
            "total = 0\nfor i in 0..5\n    total = total + i",
            ["total"],
            [10],
            id="range-sum",
        ),
        pytest.param(
            "n = 0\nrepeat 4\n    n = n + 1",
            ["n"],
            [4],
            id="repeat-count",
        ),
        pytest.param(
            "out = []\nfor [k, v] of Object.entries({a: 1, b: 2})\n    out.push(k + v)",
            ["out"],
            [["a1", "b2"]],
            id="for-of-destructure",
        ),
        pytest.param(
            "n = 3\nsteps = 0\nwhile n > 0\n    n = n - 1\n    steps = steps + 1",
            ["n", "steps"],
            [0, 3],
            id="bare-while",
        ),
    ],
)
def test_loop_programs_run(source: str, names: List[str], expected: List[object]) -> None:
    assert eval_program(source, names, loops=True) == expected
