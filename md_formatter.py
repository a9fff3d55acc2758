"""
MD Formatter - CommonMark re-renderer for pasted markdown
Normalizes GitHub Flavored Markdown by parsing it and printing it back as
CommonMark, wrapped to a fixed line width.

Pipeline:
    1. YAML frontmatter (``---`` ... ``---``) is split off and kept as written
    2. The body is parsed with mistletoe
    3. Bold / italic wrappers are unwrapped to their content (unless kept)
    4. The tree is rendered back to markdown with ``max_line_length=width``
    5. Frontmatter is re-attached, then the whole output is trimmed and
       ``\\[`` / ``\\]`` escapes are undone, so ``text[1]`` link
       placeholders survive the round trip

Usage:
    >>> format_markdown("This is **bold** text.")
    'This is bold text.'
    >>> format_markdown("Some *italic* text.", keep_emphasis=True)
    'Some *italic* text.'

Dependencies:
    Required: mistletoe, pyyaml
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import yaml
from mistletoe import Document
from mistletoe.markdown_renderer import MarkdownRenderer
from mistletoe.span_token import Emphasis, Strong

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════════

DEFAULT_WIDTH = 80

# Escapes the renderer may leave around link placeholders
BRACKET_UNESCAPES = ((r"\[", "["), (r"\]", "]"))

FRONTMATTER_OPEN = "---"
FRONTMATTER_CLOSE = ("---", "...")


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIG & ERRORS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FormatConfig:
    """Configuration for markdown re-rendering."""

    width: int = DEFAULT_WIDTH
    keep_emphasis: bool = False
    preserve_frontmatter: bool = True


class MarkdownFormatError(RuntimeError):
    """Raised when the parsed document cannot be rendered back to markdown."""

    phase = "reformatting input"


# ═══════════════════════════════════════════════════════════════════════════════
# FRONTMATTER SPLITTER
# ═══════════════════════════════════════════════════════════════════════════════


class FrontmatterSplitter:
    """
    Separates a leading YAML frontmatter block from the markdown body.

    CommonMark has no notion of frontmatter: ``---`` followed by ``key: value``
    lines and another ``---`` parses as a thematic break and a setext heading.
    Only blocks that load as a YAML mapping are treated as frontmatter.
    """

    @staticmethod
    def split(text: str) -> Tuple[Optional[str], str]:
        """
        Split frontmatter from text.

        Returns:
            Tuple of (frontmatter block or None, remaining markdown)
        """
        lines = text.split("\n")
        if not lines or lines[0].rstrip() != FRONTMATTER_OPEN:
            return None, text

        close_idx = 0
        for i, line in enumerate(lines[1:], 1):
            if line.strip() in FRONTMATTER_CLOSE:
                close_idx = i
                break

        if close_idx == 0:
            return None, text

        yaml_content = "\n".join(lines[1:close_idx])
        try:
            parsed = yaml.safe_load(yaml_content)
        except yaml.YAMLError:
            logger.debug("Frontmatter markers found, but content is not valid YAML")
            return None, text

        if not isinstance(parsed, dict):
            logger.debug(
                "Frontmatter parsed to %s (not mapping); treating as markdown",
                type(parsed).__name__,
            )
            return None, text

        logger.debug("Frontmatter detected: %d key(s)", len(parsed))
        frontmatter = "\n".join(lines[: close_idx + 1])
        body = "\n".join(lines[close_idx + 1 :])
        return frontmatter, body


# ═══════════════════════════════════════════════════════════════════════════════
# EMPHASIS STRIPPER
# ═══════════════════════════════════════════════════════════════════════════════


class EmphasisStripper:
    """
    Unwraps bold (Strong) and italic (Emphasis) tokens in place.

    Children are visited before their parent, so nested emphasis such as
    ``**bold *italic***`` is flattened from the inside out in a single walk.
    Each emphasis token is replaced by its children, in order, at its own
    position; every other token keeps its place.
    """

    EMPHASIS_TYPES = (Strong, Emphasis)

    def __init__(self):
        self.removed = 0

    def strip(self, token):
        """Strip emphasis below ``token`` and return it."""
        self._visit(token)
        return token

    def _visit(self, token) -> None:
        # Table header rows live outside ``children``
        header = getattr(token, "header", None)
        if header is not None:
            self._visit(header)

        children = getattr(token, "children", None)
        if not children:
            return

        flattened: List = []
        changed = False
        for child in children:
            self._visit(child)
            if isinstance(child, self.EMPHASIS_TYPES):
                flattened.extend(child.children or [])
                self.removed += 1
                changed = True
            else:
                flattened.append(child)

        if changed:
            token.children = flattened


# ═══════════════════════════════════════════════════════════════════════════════
# FORMATTER
# ═══════════════════════════════════════════════════════════════════════════════


class MarkdownFormatter:
    """Parses and re-renders markdown according to a FormatConfig."""

    def __init__(self, config: Optional[FormatConfig] = None):
        self.config = config or FormatConfig()

    def format(self, text: str) -> str:
        """Format a markdown string. Raises MarkdownFormatError on parse or render failure."""
        frontmatter: Optional[str] = None
        body = text
        if self.config.preserve_frontmatter:
            frontmatter, body = FrontmatterSplitter.split(text)

        rendered = self._render(body)
        if frontmatter is not None:
            rendered = f"{frontmatter}\n\n{rendered}" if rendered else frontmatter

        for escaped, literal in BRACKET_UNESCAPES:
            rendered = rendered.replace(escaped, literal)
        return rendered.strip()

    def _render(self, body: str) -> str:
        """Parse, optionally strip emphasis, and render back to trimmed markdown."""
        try:
            # The renderer registers its block tokens on construction, so the
            # document has to be parsed inside the context.
            with MarkdownRenderer(max_line_length=self.config.width) as renderer:
                document = Document(body)

                if not self.config.keep_emphasis:
                    stripper = EmphasisStripper()
                    stripper.strip(document)
                    if stripper.removed:
                        logger.debug("Stripped %d emphasis node(s)", stripper.removed)

                output = renderer.render(document)
        except Exception as e:
            raise MarkdownFormatError(f"{MarkdownFormatError.phase}: {e}") from e

        return output.strip()


# ═══════════════════════════════════════════════════════════════════════════════
# CONVENIENCE FUNCTION
# ═══════════════════════════════════════════════════════════════════════════════


def format_markdown(text: str, width: int = DEFAULT_WIDTH, keep_emphasis: bool = False) -> str:
    """
    Re-render markdown to CommonMark wrapped at ``width`` columns.

    Args:
        text: Markdown source
        width: Maximum line length for paragraphs
        keep_emphasis: Keep bold/italic markup instead of unwrapping it

    Returns:
        Trimmed markdown with ``\\[`` and ``\\]`` unescaped

    Raises:
        MarkdownFormatError: If rendering fails
    """
    config = FormatConfig(width=width, keep_emphasis=keep_emphasis)
    return MarkdownFormatter(config).format(text)
