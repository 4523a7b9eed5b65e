#!/usr/bin/env python3
# ascii_gen/ui/terminal.py
"""Terminal sink for printed art and live GIF playback."""

from __future__ import annotations

from typing import Optional

from prompt_toolkit.output import Output, create_output


class TerminalSink:
    """
    Frame sink on top of a prompt_toolkit Output.
    When stdout is not a terminal prompt_toolkit hands back a plain-text
    output, so clearing becomes a no-op and frames are simply appended.
    """

    def __init__(self, output: Optional[Output] = None, hide_cursor: bool = True):
        self.output = output or create_output()
        self.hide_cursor = hide_cursor

    def clear(self) -> None:
        self.output.erase_screen()
        self.output.cursor_goto(0, 0)

    def write(self, text: str) -> None:
        self.output.write_raw(text)

    def flush(self) -> None:
        self.output.flush()

    def __enter__(self) -> "TerminalSink":
        if self.hide_cursor:
            self.output.hide_cursor()
            self.output.flush()
        return self

    def __exit__(self, *exc) -> None:
        if self.hide_cursor:
            self.output.show_cursor()
        self.output.reset_attributes()
        self.output.flush()
