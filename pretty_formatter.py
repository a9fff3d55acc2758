"""
Pretty Formatter - chooses and sequences the formatting passes.

Markdown:  extract_links -> format_markdown -> render_links
SQL:       format_sql

Links are extracted before markdown formatting so the renderer never wraps
inside a ``(url)``, and rendered afterwards so the reference block comes
after the trimmed body.
"""

import logging
from typing import List

from link_extractor import extract_links, render_links
from md_formatter import format_markdown
from pretty_options import InputKind, Options
from sql_formatter import format_sql

logger = logging.getLogger(__name__)


def format_output(options: Options, text: str, links: List[str]) -> str:
    """Format an extracted body; ``links`` is ignored for SQL."""
    if options.kind is InputKind.SQL:
        return format_sql(text)

    markdown = format_markdown(text, options.width, options.keep_emphasis)
    return render_links(markdown, links)


def prettify(options: Options, raw: str) -> str:
    """Run the full pipeline on a raw document."""
    logger.debug("Formatting %s payload (%d chars, width=%d)", options.kind.value, len(raw), options.width)
    if options.kind is InputKind.SQL:
        return format_output(options, raw, [])

    body, links = extract_links(raw)
    return format_output(options, body, links)
