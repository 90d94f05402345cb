"""Interactive REPL for litescript, powered by prompt_toolkit.

Each entry is transpiled on its own and the generated JavaScript printed;
with `/run on` it is also executed by Node.js.
"""

from __future__ import annotations

import os
import re
import sys
import traceback
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .passes.blocks import ControlBlockNormalizer, FunctionHeaderExpander
from .passes.common import logical_lines
from .repl_highlight import LiteScriptLexer
from .runner import execute
from .transpiler import transpile
from .types import ExecutionError, TranspileError
from .utils import debug_py_trace_enabled

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/run": ("Toggle running entries with Node.js", "[on|off]"),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
}

_ON = ("on", "1", "true", "yes")
_OFF = ("off", "0", "false", "no")

_HEADER_STAGES = (FunctionHeaderExpander(), ControlBlockNormalizer())


def _is_block_header(line: str) -> bool:
    """Return True if *line* is a function or control-flow header."""
    try:
        parsed = logical_lines(line)[0]
    except TranspileError:
        return False

    if parsed.transparent:
        return False

    return any(stage.rewrite_header(parsed) is not None for stage in _HEADER_STAGES)


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )


def _toggle(arg: str, current: bool) -> bool | None:
    """New value for an on/off switch, or None when *arg* is not understood."""
    if arg.lower() in _ON:
        return True
    if arg.lower() in _OFF:
        return False
    if arg == "":
        return not current
    return None


def _handle_slash(line: str, settings: dict[str, bool]) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/run":
        value = _toggle(arg, settings["run"])
        if value is None:
            print("Usage: /run [on|off]", file=sys.stderr)
            return True

        settings["run"] = value
        print(f"Run with Node.js: {'on' if value else 'off'}")
        return True

    if cmd == "/py-traceback":
        value = _toggle(arg, debug_py_trace_enabled())
        if value is None:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        if value:
            os.environ["LITESCRIPT_DEBUG_PY_TRACE"] = "1"
        else:
            os.environ.pop("LITESCRIPT_DEBUG_PY_TRACE", None)

        state = "on" if debug_py_trace_enabled() else "off"
        print(f"Python traceback: {state}")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def _compute_indent(text: str) -> str:
    """Compute the auto-indent prefix for the next continuation line."""
    lines = text.split("\n")
    last = lines[-1]

    if _is_block_header(last):
        existing = len(last) - len(last.lstrip())
        return " " * (existing + 4)

    # Preserve indent of the last line.
    if last.strip():
        return " " * (len(last) - len(last.lstrip()))

    return ""


def _evaluate(text: str, settings: dict[str, bool]) -> None:
    try:
        code = transpile(text)
        print(code)
        if settings["run"]:
            execute(code, filename="<repl>")
    except (TranspileError, ExecutionError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if debug_py_trace_enabled():
            print("\nPython traceback:", file=sys.stderr)
            print("".join(traceback.format_tb(exc.__traceback__)), file=sys.stderr, end="")


def repl() -> None:
    """Interactive read-transpile-print loop with prompt_toolkit."""
    settings = {"run": False}

    history = InMemoryHistory()
    lexer = LiteScriptLexer()

    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        text = buf.text

        # Single line that is not a block header => accept.
        if "\n" not in text:
            if _is_block_header(text):
                buf.insert_text("\n" + _compute_indent(text))
                return

            buf.validate_and_handle()
            return

        # Multiline: an empty last line submits.
        lines = text.split("\n")
        if lines[-1].strip() == "":
            buf.text = "\n".join(lines[:-1])
            buf.cursor_position = len(buf.text)
            buf.validate_and_handle()
            return

        buf.insert_text("\n" + _compute_indent(text))

    session: PromptSession[str] = PromptSession(
        history=history,
        lexer=lexer,
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("litescript repl — Ctrl-D to exit, / for commands")

    while True:
        try:
            text = session.prompt(">>> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        if _handle_slash(text, settings):
            continue

        _evaluate(text, settings)


if __name__ == "__main__":
    repl()
