"""
Tests for md_formatter module.

Tests CommonMark re-rendering, emphasis stripping and frontmatter handling.
"""

import pytest
from mistletoe import Document
from mistletoe.span_token import Emphasis, Strong

import md_formatter
from md_formatter import (
    EmphasisStripper,
    FormatConfig,
    FrontmatterSplitter,
    MarkdownFormatError,
    MarkdownFormatter,
    format_markdown,
)


# ═══════════════════════════════════════════════════════════════════════════════
# FORMAT MARKDOWN TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestFormatMarkdown:
    """Tests for main format_markdown function."""

    def test_basic_passthrough(self):
        """Already clean markdown comes back unchanged."""
        text = "# Heading\n\nThis is a paragraph."

        assert format_markdown(text, 80, True) == text

    def test_wrapping(self):
        """Paragraphs wrap at the configured width."""
        text = (
            "# Heading\n\nThis is a paragraph with a lot of text that should wrap "
            "to a new line based on the specified width."
        )

        result = format_markdown(text, 60, True)

        assert result == (
            "# Heading\n\nThis is a paragraph with a lot of text that should wrap to a\n"
            "new line based on the specified width."
        )

    def test_wrapped_lines_fit_width(self):
        """No prose line exceeds the width."""
        text = " ".join(["word"] * 60)

        result = format_markdown(text, 30, True)

        assert result.count("\n") > 0
        assert all(len(line) <= 30 for line in result.split("\n"))

    def test_empty_input(self):
        """Empty input gives empty output."""
        assert format_markdown("", 80, True) == ""

    def test_link_placeholder_survives(self):
        """Footnote placeholders are not escaped."""
        assert format_markdown("Check out this link[1].", 80, True) == "Check out this link[1]."

    def test_escaped_brackets_are_unescaped(self):
        """Backslash-escaped brackets come back as literal brackets."""
        result = format_markdown("A \\[note\\] here.", 80, True)

        assert result == "A [note] here."
        assert "\\[" not in result
        assert "\\]" not in result

    def test_other_escapes_preserved(self):
        """Escapes other than brackets are left alone."""
        result = format_markdown("Not \\*emphasis\\* at all.", 80, False)

        assert result == "Not \\*emphasis\\* at all."

    def test_output_is_trimmed(self):
        """Leading and trailing blank space is removed."""
        result = format_markdown("\n\n# Title\n\nBody text.\n\n\n", 80, True)

        assert result == result.strip()
        assert result.startswith("# Title")
        assert result.endswith("Body text.")

    def test_ordered_list(self):
        """List items keep their order and text."""
        result = format_markdown("1. Item one\n2. Item two", 80, True)

        lines = result.split("\n")
        assert len(lines) == 2
        assert lines[0].startswith("1.") and lines[0].endswith("Item one")
        assert lines[1].startswith("2.") and lines[1].endswith("Item two")

    def test_code_block_content_kept(self):
        """Code block content is not reflowed."""
        text = 'Here is some code:\n\n```\nlet x = 10;\nprintln!("x is {}", x);\n```'

        result = format_markdown(text, 80, True)

        assert result.startswith("Here is some code:")
        assert "let x = 10;\n" in result
        assert 'println!("x is {}", x);' in result


# ═══════════════════════════════════════════════════════════════════════════════
# EMPHASIS TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestEmphasisStripping:
    """Tests for bold/italic removal."""

    def test_strip_bold(self):
        assert format_markdown("This is **bold** text.", 80, False) == "This is bold text."

    def test_strip_italic(self):
        assert format_markdown("This is *italic* text.", 80, False) == "This is italic text."

    def test_strip_underscore_italic(self):
        assert format_markdown("This is _italic_ text.", 80, False) == "This is italic text."

    def test_strip_bold_and_italic(self):
        text = "This has **bold** and *italic* and ***both***."

        assert format_markdown(text, 80, False) == "This has bold and italic and both."

    def test_strip_nested_emphasis(self):
        """Nested emphasis is flattened in one pass."""
        text = "This is **bold with *nested italic* inside**."

        assert format_markdown(text, 80, False) == "This is bold with nested italic inside."

    def test_strip_inside_heading(self):
        assert format_markdown("# A **bold** title", 80, False) == "# A bold title"

    def test_strip_inside_link_text(self):
        result = format_markdown("Go [**here**](https://example.com) now.", 80, False)

        assert result == "Go [here](https://example.com) now."

    def test_strip_inside_table(self):
        """Header and body cells are both stripped."""
        text = "| **Name** | Value |\n| --- | --- |\n| *a* | 1 |"

        result = format_markdown(text, 80, False)

        assert "*" not in result
        assert "Name" in result
        assert "a" in result

    def test_keep_emphasis(self):
        """keep_emphasis leaves bold and italic markup alone."""
        text = "This is **bold** and *italic* text."

        assert format_markdown(text, 80, True) == text

    def test_strip_is_idempotent(self):
        """Formatting a stripped result again changes nothing."""
        text = "Some **bold** and *it* text,\nwith a [link](https://x.io) and ***more***."

        once = format_markdown(text, 40, False)

        assert format_markdown(once, 40, False) == once

    def test_parity_without_emphasis_markers(self):
        """Without * or _ in the input, stripping and keeping agree."""
        text = "# Title\n\nPlain paragraph with a [link](https://x.io) and `code`.\n\n- one\n- two"

        assert format_markdown(text, 50, False) == format_markdown(text, 50, True)


class TestEmphasisStripper:
    """Tests for the tree transform on its own."""

    @staticmethod
    def _span_types(token):
        found = []
        for child in getattr(token, "children", None) or []:
            found.append(type(child))
            found.extend(TestEmphasisStripper._span_types(child))
        return found

    def test_removes_emphasis_tokens(self):
        document = Document("**a** *b*\n")

        stripper = EmphasisStripper()
        stripper.strip(document)

        types = self._span_types(document)
        assert Strong not in types
        assert Emphasis not in types
        assert stripper.removed == 2

    def test_keeps_text_order(self):
        document = Document("x **a *b* c** y\n")

        EmphasisStripper().strip(document)

        paragraph = document.children[0]
        text = "".join(getattr(child, "content", "") for child in paragraph.children)
        assert text == "x a b c y"

    def test_nested_count(self):
        stripper = EmphasisStripper()
        stripper.strip(Document("**one *two* three**\n"))

        assert stripper.removed == 2

    def test_document_without_emphasis_untouched(self):
        document = Document("Just text.\n")
        before = list(document.children[0].children)

        stripper = EmphasisStripper()
        stripper.strip(document)

        assert stripper.removed == 0
        assert list(document.children[0].children) == before


# ═══════════════════════════════════════════════════════════════════════════════
# FRONTMATTER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestFrontmatter:
    """Tests for YAML frontmatter preservation."""

    def test_split_mapping(self):
        text = "---\ntitle: Notes\n---\nBody"

        frontmatter, body = FrontmatterSplitter.split(text)

        assert frontmatter == "---\ntitle: Notes\n---"
        assert body == "Body"

    def test_split_accepts_dot_terminator(self):
        frontmatter, body = FrontmatterSplitter.split("---\na: 1\n...\nBody")

        assert frontmatter == "---\na: 1\n..."
        assert body == "Body"

    def test_no_frontmatter(self):
        assert FrontmatterSplitter.split("# Title") == (None, "# Title")

    def test_unclosed_block_is_markdown(self):
        text = "---\ntitle: Notes\nBody"

        assert FrontmatterSplitter.split(text) == (None, text)

    def test_non_mapping_is_markdown(self):
        text = "---\njust a sentence\n---\nBody"

        assert FrontmatterSplitter.split(text) == (None, text)

    def test_invalid_yaml_is_markdown(self):
        text = "---\nkey: [unclosed\n---\nBody"

        assert FrontmatterSplitter.split(text) == (None, text)

    def test_format_keeps_frontmatter_verbatim(self):
        text = "---\ntitle: Notes\ntags: [a, b]\n---\n# Heading\n\nSome **bold** text."

        result = format_markdown(text, 80, False)

        assert result == "---\ntitle: Notes\ntags: [a, b]\n---\n\n# Heading\n\nSome bold text."

    def test_frontmatter_only(self):
        assert format_markdown("---\ntitle: Notes\n---\n", 80, False) == "---\ntitle: Notes\n---"

    def test_frontmatter_can_be_disabled(self, monkeypatch):
        def unexpected_split(text):
            raise AssertionError("frontmatter split should be skipped")

        monkeypatch.setattr(FrontmatterSplitter, "split", staticmethod(unexpected_split))
        config = FormatConfig(preserve_frontmatter=False)

        result = MarkdownFormatter(config).format("---\ntitle: Notes\n---\nBody")

        assert "title: Notes" in result
        assert "Body" in result

    def test_indented_marker_is_not_frontmatter(self):
        text = "  ---\ntitle: a\n---\nbody"

        assert FrontmatterSplitter.split(text) == (None, text)

    def test_indented_marker_output_is_trimmed(self):
        result = format_markdown("  ---\ntitle: a\n---\nbody", 80, False)

        assert result == result.strip()
        assert result.endswith("body")

    def test_frontmatter_output_is_trimmed(self):
        result = format_markdown("---\ntitle: Notes\n---   \n", 80, False)

        assert result == "---\ntitle: Notes\n---"

    def test_brackets_unescaped_in_frontmatter(self):
        result = format_markdown("---\ntitle: \\[x\\]\n---\nbody", 80, False)

        assert result == "---\ntitle: [x]\n---\n\nbody"
        assert "\\[" not in result
        assert "\\]" not in result


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR TESTS
# ═══════════════════════════════════════════════════════════════════════════════


def test_render_failure_raises_format_error(monkeypatch):
    def broken_render(self, token):
        raise ValueError("renderer exploded")

    monkeypatch.setattr(md_formatter.MarkdownRenderer, "render", broken_render)

    with pytest.raises(MarkdownFormatError) as excinfo:
        format_markdown("Some text", 80, False)

    assert str(excinfo.value) == "reformatting input: renderer exploded"
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_parse_failure_raises_format_error(monkeypatch):
    def broken_parse(text):
        raise IndexError("unbalanced input")

    monkeypatch.setattr(md_formatter, "Document", broken_parse)

    with pytest.raises(MarkdownFormatError) as excinfo:
        format_markdown("Some text", 80, False)

    assert str(excinfo.value) == "reformatting input: unbalanced input"
    assert isinstance(excinfo.value.__cause__, IndexError)
