from __future__ import annotations

import logging
import subprocess
import sys
import traceback
from pathlib import Path
from typing import List, Optional

from .transpiler import transpile
from .types import ExecutionError, TranspileError
from .utils import debug_logging_enabled, debug_py_trace_enabled, node_executable

logger = logging.getLogger(__name__)

USAGE = """\
Usage: lite <input.ls> [options]

Options:
  -w, --watch      Watch for file changes and re-execute
  --emit           Print the generated JavaScript instead of running it
  --loops          Enable loop sugar (repeat, for-in ranges, bare while)
  -v, --verbose    Log pipeline stages to stderr
  -h, --help       Show this help message

Examples:
  lite main.ls
  lite main.ls --watch
  lite main.ls --emit
"""

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """Install a stderr handler; DEBUG with -v or LITESCRIPT_DEBUG, else WARNING."""
    level = logging.DEBUG if verbose or debug_logging_enabled() else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Otherwise a path to a UTF-8 file; FileNotFoundError when it is missing.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if not candidate.is_file():
        raise FileNotFoundError(f"File {arg} does not exist")

    return candidate.read_text(encoding="utf-8")


def execute(code: str, *, capture: bool = False, filename: Optional[str] = None) -> str:
    """Run JavaScript with Node.js (`node -`, code on stdin).

    Output streams to the terminal unless *capture* is set, in which case
    stdout is returned. Raises ExecutionError when Node.js cannot be started
    or exits non-zero.
    """
    node = node_executable()
    label = filename or "<stdin>"

    try:
        result = subprocess.run(
            [node, "-"],
            input=code,
            text=True,
            capture_output=capture,
        )
    except OSError as exc:
        raise ExecutionError(f"Could not start Node.js ({node}): {exc}") from exc

    if result.returncode != 0:
        raise ExecutionError(
            f"Error executing {label}: node exited with status {result.returncode}",
            returncode=result.returncode,
            stderr=result.stderr or "",
        )

    return result.stdout if capture else ""


def report(exc: BaseException) -> None:
    print(f"Error: {exc}", file=sys.stderr)

    if isinstance(exc, ExecutionError) and exc.stderr:
        print(exc.stderr, file=sys.stderr, end="")

    if debug_py_trace_enabled():
        print("\nPython traceback:", file=sys.stderr)
        print("".join(traceback.format_tb(exc.__traceback__)), file=sys.stderr, end="")


def run_file(path: Optional[str], *, emit: bool = False, loops: bool = False) -> None:
    """One read -> transpile -> execute (or print) cycle."""
    source = load_source(path)
    code = transpile(source, loops=loops)

    if emit:
        print(code)
        return

    execute(code, filename=path)


def main(argv: Optional[List[str]] = None) -> int:
    watch_mode = False
    emit = False
    loops = False
    verbose = False
    arg = None

    for token in sys.argv[1:] if argv is None else argv:
        if token in ("-h", "--help"):
            print(USAGE, end="")
            return 0

        if token in ("-w", "--watch"):
            watch_mode = True
            continue

        if token == "--emit":
            emit = True
            continue

        if token == "--loops":
            loops = True
            continue

        if token in ("-v", "--verbose"):
            verbose = True
            continue

        if token.startswith("-") and token != "-":
            raise SystemExit(f"Unknown option: {token}\n\n{USAGE}")

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    if arg is None:
        print("Error: No input file specified", file=sys.stderr)
        print(USAGE, file=sys.stderr, end="")
        return 1

    configure_logging(verbose)

    if watch_mode:
        from .watcher import watch

        if arg == "-":
            raise SystemExit("--watch requires a file path")

        watch(arg, lambda: run_file(arg, emit=emit, loops=loops))
        return 0

    try:
        run_file(arg, emit=emit, loops=loops)
    except (TranspileError, ExecutionError, FileNotFoundError) as exc:
        report(exc)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
