"""
make-pretty - reformat Markdown or SQL from the terminal or the clipboard

Usage:
    make-pretty                          # markdown from stdin to clipboard
    make-pretty -i clipboard -o stdout   # clipboard markdown to terminal
    make-pretty -k sql -o stdout         # SQL from stdin to terminal
    make-pretty -w 100 --keep-emphasis   # wider lines, keep bold/italic

Exit codes:
    0  success
    1  input, formatting or clipboard failure ("Problem <phase>: <detail>")
    2  invalid arguments
"""

import logging
import sys
import traceback
from typing import List, Optional, TextIO

from md_formatter import MarkdownFormatError
from payload_io import PayloadError, read_payload, write_payload
from pretty_formatter import prettify
from pretty_options import Options, parse_options

__version__ = "0.1.0"

logger = logging.getLogger("make_pretty")


# ═══════════════════════════════════════════════════════════════════════════════
# LOGGING SETUP
# ═══════════════════════════════════════════════════════════════════════════════


class LogFormatter(logging.Formatter):
    """Custom log formatter with level-based prefixes"""

    PREFIXES = {
        logging.DEBUG: "[DEBUG]",
        logging.INFO: "[INFO]",
        logging.WARNING: "[WARNING]",
        logging.ERROR: "[ERROR]",
        logging.CRITICAL: "[CRITICAL]",
    }

    def format(self, record: logging.LogRecord) -> str:
        prefix = self.PREFIXES.get(record.levelno, "[LOG]")
        return f"{prefix} {record.name}: {record.getMessage()}"


def setup_logging(verbose: bool = False):
    """Send log records from every module to stderr; stdout carries the output."""
    level = logging.DEBUG if verbose else logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(LogFormatter())
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)


# ═══════════════════════════════════════════════════════════════════════════════
# RUN
# ═══════════════════════════════════════════════════════════════════════════════


def make_pretty(options: Options, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> str:
    """Read, format and deliver one payload. Returns the formatted text."""
    raw = read_payload(options, stdin)
    output = prettify(options, raw)
    write_payload(options, output, stdout)
    return output


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with CLI argument parsing"""
    options = parse_options(argv, version=__version__)
    setup_logging(verbose=options.verbose)
    logger.debug("Options: %s", options)

    try:
        make_pretty(options)
    except (PayloadError, MarkdownFormatError) as e:
        print(f"Problem {e}", file=sys.stderr)
        if options.verbose:
            traceback.print_exc()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
