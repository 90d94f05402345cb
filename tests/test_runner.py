from __future__ import annotations

import io
import logging
import os
import sys
import threading
from pathlib import Path
from typing import Iterator, List

import pytest

from litescript import runner
from litescript.runner import execute, load_source, main, report
from litescript.utils import (
    DEFAULT_MAX_SUGAR_PASSES,
    DEFAULT_NODE,
    default_max_passes,
    env_flag,
    node_executable,
)
from litescript.watcher import file_stamp, run_cycle, watch
from tests.support.harness import ExecutionError, UnbalancedDelimiter


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _write(tmp_path: Path, text: str, name: str = "main.ls") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def test_emit_prints_javascript(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "total = 5\nlog(total)")

    assert main([str(path), "--emit"]) == 0
    assert capsys.readouterr().out == "let total = 5\nconsole.log('total =>', total)\n"


def test_emit_with_loop_sugar(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "repeat 2\n    log('hi')")

    assert main([str(path), "--emit", "--loops"]) == 0
    out = capsys.readouterr().out
    assert out == "for (let _ = 0; _ < 2; _++) {\n    console.log('hi')\n}\n"


def test_help_exits_cleanly(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["-h"]) == 0
    assert capsys.readouterr().out.startswith("Usage: lite <input.ls>")


def test_missing_input_argument(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 1
    err = capsys.readouterr().err
    assert err.startswith("Error: No input file specified")
    assert "Usage:" in err


def test_missing_file_reports_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    missing = tmp_path / "nope.ls"

    assert main([str(missing)]) == 1
    assert f"Error: File {missing} does not exist" in capsys.readouterr().err


def test_transpile_error_reports_position(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "x = sum(arr")

    assert main([str(path), "--emit"]) == 1
    err = capsys.readouterr().err
    assert err.startswith("Error: Unclosed '('")
    assert "line 1" in err


@pytest.mark.parametrize(
    "argv, message",
    [
        pytest.param(["--bogus"], "Unknown option: --bogus", id="unknown-option"),
        pytest.param(["a.ls", "b.ls"], "Unexpected argument: b.ls", id="extra-positional"),
        pytest.param(["-w", "-"], "--watch requires a file path", id="watch-stdin"),
    ],
)
def test_bad_arguments_exit(argv: List[str], message: str) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    assert message in str(exc_info.value)


def test_verbose_logs_stages(tmp_path: Path) -> None:
    path = _write(tmp_path, "x = 1")
    main([str(path), "--emit", "-v"])

    assert logging.getLogger().level == logging.DEBUG


def test_emit_from_stdin(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO("n = [1].len"))

    assert main(["-", "--emit"]) == 0
    assert capsys.readouterr().out == "let n = [1].length\n"


# ---------------------------------------------------------------------------
# Input and error reporting
# ---------------------------------------------------------------------------


def test_load_source_reads_file(tmp_path: Path) -> None:
    path = _write(tmp_path, "x = 1\n")
    assert load_source(str(path)) == "x = 1\n"


def test_load_source_rejects_empty_stdin(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))
    with pytest.raises(SystemExit):
        load_source(None)


def test_report_includes_node_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    report(ExecutionError("Error executing main.ls", returncode=1, stderr="ReferenceError: y\n"))

    err = capsys.readouterr().err
    assert err == "Error: Error executing main.ls\nReferenceError: y\n"


def test_report_python_traceback(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("LITESCRIPT_DEBUG_PY_TRACE", "1")
    try:
        raise UnbalancedDelimiter("Unclosed '('", 1, 5)
    except UnbalancedDelimiter as exc:
        report(exc)

    err = capsys.readouterr().err
    assert "Unclosed '(' (line 1, col 5)" in err
    assert "Python traceback:" in err


# ---------------------------------------------------------------------------
# Node executor
# ---------------------------------------------------------------------------


def test_execute_without_node(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LITESCRIPT_NODE", str(tmp_path / "no-such-node"))

    with pytest.raises(ExecutionError) as exc_info:
        execute("console.log(1)", capture=True)
    assert "Could not start Node.js" in str(exc_info.value)


@pytest.mark.node
def test_execute_captures_stdout() -> None:
    assert execute("console.log(1 + 1)", capture=True) == "2\n"


@pytest.mark.node
def test_execute_failure_keeps_status_and_stderr() -> None:
    with pytest.raises(ExecutionError) as exc_info:
        execute("console.error('boom'); process.exit(3)", capture=True, filename="main.ls")

    err = exc_info.value
    assert err.returncode == 3
    assert "boom" in err.stderr
    assert str(err) == "Error executing main.ls: node exited with status 3"


@pytest.mark.node
def test_main_runs_program(tmp_path: Path, capfd: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "total = 5\nlog(total)")

    assert main([str(path)]) == 0
    assert capfd.readouterr().out == "total => 5\n"


@pytest.mark.node
def test_main_reports_runtime_failure(tmp_path: Path, capfd: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "log(missing)")

    assert main([str(path)]) == 1
    err = capfd.readouterr().err
    assert f"Error executing {path}" in err
    assert "ReferenceError" in err


# ---------------------------------------------------------------------------
# Environment helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [
        pytest.param("1", True, id="one"),
        pytest.param("TRUE", True, id="upper-true"),
        pytest.param(" yes ", True, id="padded-yes"),
        pytest.param("on", True, id="on"),
        pytest.param("0", False, id="zero"),
        pytest.param("", False, id="empty"),
        pytest.param("enabled", False, id="other-word"),
    ],
)
def test_env_flag(monkeypatch: pytest.MonkeyPatch, value: str, expected: bool) -> None:
    monkeypatch.setenv("LITESCRIPT_TEST_FLAG", value)
    assert env_flag("LITESCRIPT_TEST_FLAG") is expected


def test_env_flag_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LITESCRIPT_TEST_FLAG", raising=False)
    assert env_flag("LITESCRIPT_TEST_FLAG") is False


def test_node_executable_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LITESCRIPT_NODE", raising=False)
    assert node_executable() == DEFAULT_NODE

    monkeypatch.setenv("LITESCRIPT_NODE", " /opt/node/bin/node ")
    assert node_executable() == "/opt/node/bin/node"

    monkeypatch.setenv("LITESCRIPT_NODE", "  ")
    assert node_executable() == DEFAULT_NODE


@pytest.mark.parametrize(
    "value, expected",
    [
        pytest.param("25", 25, id="valid"),
        pytest.param("0", DEFAULT_MAX_SUGAR_PASSES, id="zero"),
        pytest.param("-4", DEFAULT_MAX_SUGAR_PASSES, id="negative"),
        pytest.param("lots", DEFAULT_MAX_SUGAR_PASSES, id="not-a-number"),
    ],
)
def test_default_max_passes(monkeypatch: pytest.MonkeyPatch, value: str, expected: int) -> None:
    monkeypatch.setenv("LITESCRIPT_MAX_SUGAR_PASSES", value)
    assert default_max_passes() == expected


# ---------------------------------------------------------------------------
# Watch mode
# ---------------------------------------------------------------------------


def test_file_stamp(tmp_path: Path) -> None:
    path = _write(tmp_path, "x = 1")

    assert file_stamp(str(path)) == (os.stat(path).st_mtime_ns, 5)
    assert file_stamp(str(tmp_path / "gone.ls")) is None


def test_watch_reruns_after_change(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "x = 1")
    stop = threading.Event()
    seen: List[str] = []

    def cycle() -> None:
        seen.append(path.read_text(encoding="utf-8"))
        if len(seen) == 1:
            path.write_text("x = 12", encoding="utf-8")
        else:
            stop.set()

    cycles = watch(str(path), cycle, poll_interval=0.01, stop=stop)

    assert cycles == 2
    assert seen == ["x = 1", "x = 12"]
    out = capsys.readouterr().out
    assert out.startswith(f"Watching {path} for changes...")
    assert out.count(f"--- Executing {path} ---") == 2


def test_watch_survives_failing_cycle(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "x = sum(arr")
    stop = threading.Event()

    def cycle() -> None:
        stop.set()
        runner.run_file(str(path), emit=True)

    assert watch(str(path), cycle, poll_interval=0.01, stop=stop) == 1
    assert "Error: Unclosed '('" in capsys.readouterr().err


def test_run_cycle_reports_success(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_cycle("main.ls", lambda: None) is True
    assert capsys.readouterr().out == "\n--- Executing main.ls ---\n"
