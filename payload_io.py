"""
Payload I/O - reading the text to format and delivering the result.

Input:
    - stdin: interactive multi-line entry, terminated by two consecutive
      empty lines (Return pressed three times after the last line)
    - clipboard: the current clipboard text

Output:
    - stdout: the formatted text between two rules of ``width`` dashes
    - clipboard: replaces the clipboard contents

Clipboard access goes through pyperclip, which needs a platform provider
(pbcopy, xclip/xsel, wl-clipboard, or the Windows API).
"""

import logging
import sys
from typing import Iterable, List, Optional, TextIO

import pyperclip

from pretty_options import InputKind, InputSource, Options, OutputDestination

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════════

SQL_INTRO = "Enter a SQL string to be reformatted"
MD_INTRO = (
    "Enter a GitHub Flavored Markdown string to be reformatted.\n"
    "  - See https://github.github.com/gfm/ for the GFM spec"
)
INPUT_FOOTER = (
    "  - The string must not contain two (or more) consecutive newlines\n"
    "  - Press the Return key thrice to indicate when the input has terminated.\n"
)

OUTPUT_HEADER = "Formatted output:"
CLIPBOARD_CONFIRMATION = "✅ Output copied to clipboard"


class PayloadError(RuntimeError):
    """Raised when the payload cannot be read or delivered."""

    def __init__(self, phase: str, detail: object):
        super().__init__(f"{phase}: {detail}")
        self.phase = phase
        self.detail = detail


# ═══════════════════════════════════════════════════════════════════════════════
# INPUT
# ═══════════════════════════════════════════════════════════════════════════════


def print_introduction(kind: InputKind, stream: Optional[TextIO] = None) -> None:
    """Print the kind-specific prompt and the input instructions."""
    intro = SQL_INTRO if kind is InputKind.SQL else MD_INTRO
    print(f"\n{intro}", file=stream or sys.stdout)
    print(INPUT_FOOTER, file=stream or sys.stdout)


def collect_lines(lines: Iterable[str]) -> str:
    """
    Collect lines until two consecutive empty lines.

    Both terminating empty lines are dropped; whitespace inside lines is
    kept. If the input ends first, everything read so far is used.
    """
    collected: List[str] = []

    for raw_line in lines:
        line = raw_line.rstrip("\r\n")
        if line == "" and collected and collected[-1] == "":
            collected.pop()
            break
        collected.append(line)

    return "\n".join(collected)


def read_from_stdin(options: Options, stream: Optional[TextIO] = None) -> str:
    print_introduction(options.kind)
    try:
        return collect_lines(stream or sys.stdin)
    except (OSError, UnicodeDecodeError) as e:
        raise PayloadError("parsing input", e) from e


def read_from_clipboard() -> str:
    try:
        return pyperclip.paste()
    except pyperclip.PyperclipException as e:
        raise PayloadError("getting clipboard contents", e) from e


def read_payload(options: Options, stream: Optional[TextIO] = None) -> str:
    """Read the raw document from the configured source."""
    if options.input_src is InputSource.CLIPBOARD:
        payload = read_from_clipboard()
    else:
        payload = read_from_stdin(options, stream)

    logger.debug("Read %d chars from %s", len(payload), options.input_src.value)
    return payload


# ═══════════════════════════════════════════════════════════════════════════════
# OUTPUT
# ═══════════════════════════════════════════════════════════════════════════════


def print_banner(text: str, width: int, stream: Optional[TextIO] = None) -> None:
    rule = "-" * width
    print(f"{OUTPUT_HEADER}\n{rule}\n{text}\n{rule}", file=stream or sys.stdout)


def write_to_clipboard(text: str, stream: Optional[TextIO] = None) -> None:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise PayloadError("setting clipboard contents", e) from e
    print(CLIPBOARD_CONFIRMATION, file=stream or sys.stdout)


def write_payload(options: Options, text: str, stream: Optional[TextIO] = None) -> None:
    """Deliver formatted text to the configured destination."""
    logger.debug("Writing %d chars to %s", len(text), options.output_dest.value)
    if options.output_dest is OutputDestination.CLIPBOARD:
        write_to_clipboard(text, stream)
    else:
        print_banner(text, options.width, stream)
