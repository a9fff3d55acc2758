"""
Link Extractor - inline hyperlink to numbered reference conversion

Turns inline links such as ``[site](https://example.com)`` into ``site[1]``
and collects the URLs, so the markdown renderer never sees a long URL it
could break across lines. ``render_links`` appends the collected URLs as a
reference block once formatting is done:

    See site one[1] and site two[2].

    [1] https://one.com
    [2] https://two.com

Limitations:
    - Matching is done on the raw text, not on the parsed markdown, so links
      inside code spans and fences are converted as well.
    - Labels containing ``]`` and URLs containing ``)`` are not supported;
      the URL ends at the first ``)``.
    - Reference-style links (``[text][id]``) and links without an
      http(s) scheme are left as written.
"""

import logging
import re
from typing import List, Tuple

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# PATTERNS
# ═══════════════════════════════════════════════════════════════════════════════

# [label](http://...) or [label](https://...), label non-empty
INLINE_LINK_RE = re.compile(r"\[([^\]]+)\]\((https?://[^\)]+)\)")

REFERENCE_FORMAT = "[{index}] {url}"


# ═══════════════════════════════════════════════════════════════════════════════
# EXTRACTION
# ═══════════════════════════════════════════════════════════════════════════════


def extract_links(markdown: str) -> Tuple[str, List[str]]:
    """
    Replace inline links with numbered placeholders.

    Each match gets its own number in left-to-right order, even when the
    same link appears several times.

    Args:
        markdown: Raw markdown text

    Returns:
        Tuple of (body with ``label[N]`` placeholders, list of URLs)
    """
    body = markdown
    links: List[str] = []

    for index, match in enumerate(INLINE_LINK_RE.finditer(markdown), 1):
        label, url = match.group(1), match.group(2)
        placeholder = f"{label}[{index}]"
        # One replacement per match so duplicates keep distinct numbers
        body = body.replace(match.group(0), placeholder, 1)
        links.append(url)

    if links:
        logger.debug("Extracted %d inline link(s)", len(links))

    return body, links


# ═══════════════════════════════════════════════════════════════════════════════
# RENDERING
# ═══════════════════════════════════════════════════════════════════════════════


def render_links(markdown: str, links: List[str]) -> str:
    """Append the ``[N] url`` reference block, if there are any links."""
    if not links:
        return markdown

    references = "\n".join(
        REFERENCE_FORMAT.format(index=index, url=url) for index, url in enumerate(links, 1)
    )
    return f"{markdown}\n\n{references}"
