"""
Options for make_pretty: input source, output destination, kind and layout.

The CLI parser lives here too so tests can build Options from an argv list
without touching stdin or the clipboard.
"""

import argparse
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from md_formatter import DEFAULT_WIDTH


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════


class InputSource(Enum):
    """Where the payload is read from"""

    STDIN = "stdin"
    CLIPBOARD = "clipboard"


class OutputDestination(Enum):
    """Where the formatted output goes"""

    STDOUT = "stdout"
    CLIPBOARD = "clipboard"


class InputKind(Enum):
    """Grammar of the payload"""

    MARKDOWN = "markdown"
    SQL = "sql"


# ═══════════════════════════════════════════════════════════════════════════════
# OPTIONS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Options:
    """Immutable run configuration."""

    input_src: InputSource = InputSource.STDIN
    output_dest: OutputDestination = OutputDestination.CLIPBOARD
    kind: InputKind = InputKind.MARKDOWN
    width: int = DEFAULT_WIDTH
    keep_emphasis: bool = False
    verbose: bool = False

    def __post_init__(self):
        if not isinstance(self.width, int) or self.width < 1:
            raise ValueError(f"width must be a positive integer, got {self.width!r}")

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "Options":
        return cls(
            input_src=InputSource(args.input_src),
            output_dest=OutputDestination(args.output_dest),
            kind=InputKind(args.kind),
            width=args.width,
            keep_emphasis=args.keep_emphasis,
            verbose=args.verbose,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════════════

EPILOG = """\
Inline links such as [text](https://example.com) are replaced by text[1] and
listed in a reference block after the formatted markdown. Links are matched
on the raw text: labels containing ']' and URLs containing '(' or ')' are not
extracted, and reference-style links ([text][id]) are left as written.
"""


def positive_int(value: str) -> int:
    """argparse type for --width"""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"width must be positive, got {number}")
    return number


def build_parser(version: str = "") -> argparse.ArgumentParser:
    """Build CLI parser for make_pretty."""
    parser = argparse.ArgumentParser(
        prog="make-pretty",
        description="Pretty-print GitHub Flavored Markdown or SQL from the terminal or clipboard",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-i",
        "--input-src",
        choices=[source.value for source in InputSource],
        default=InputSource.STDIN.value,
        help="The input source (default: %(default)s)",
    )
    parser.add_argument(
        "-o",
        "--output-dest",
        choices=[dest.value for dest in OutputDestination],
        default=OutputDestination.CLIPBOARD.value,
        help="The output destination (default: %(default)s)",
    )
    parser.add_argument(
        "-k",
        "--kind",
        choices=[kind.value for kind in InputKind],
        default=InputKind.MARKDOWN.value,
        help="Type of input (default: %(default)s)",
    )
    parser.add_argument(
        "-w",
        "--width",
        type=positive_int,
        default=DEFAULT_WIDTH,
        help="Max line width (default: %(default)s)",
    )
    parser.add_argument(
        "--keep-emphasis",
        action="store_true",
        help="Keep bold and italic markdown formatting (stripped by default)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging on stderr",
    )
    if version:
        parser.add_argument("--version", action="version", version=f"%(prog)s {version}")
    return parser


def parse_options(argv: Optional[List[str]] = None, version: str = "") -> Options:
    """Parse argv into Options. Exits with status 2 on invalid arguments."""
    args = build_parser(version).parse_args(argv)
    return Options.from_args(args)
