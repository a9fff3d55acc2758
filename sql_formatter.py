"""
SQL Formatter - clause-per-line SQL pretty printer

Tokens come from the sqlparse lexer; the layout is the familiar
"sql-formatter" style:

    SELECT
      u.id,
      u.name
    FROM
      users u
      JOIN purchases p ON u.id = p.user_id
    WHERE
      p.total > 100;

Rules:
    - Top-level clauses (SELECT, FROM, WHERE, ...) go on their own line and
      their body is indented one level
    - Set operators (UNION, INTERSECT, ...) go on their own line, unindented
    - AND / OR / JOIN variants start a new line at the current level
    - Commas break the line, except in short groups and after LIMIT
    - Parenthesised groups and CASE blocks are indented, unless the group is
      short enough to stay on one line
    - ``;`` ends a statement and resets the indentation
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlparse import lexer
from sqlparse import tokens as T

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# KEYWORD TABLES
# ═══════════════════════════════════════════════════════════════════════════════

TOP_LEVEL_WORDS = {
    "ADD",
    "AFTER",
    "ALTER COLUMN",
    "ALTER TABLE",
    "DELETE FROM",
    "FETCH FIRST",
    "FROM",
    "GO",
    "GROUP BY",
    "HAVING",
    "INSERT INTO",
    "INSERT",
    "LIMIT",
    "MODIFY",
    "OFFSET",
    "ORDER BY",
    "RETURNING",
    "SELECT",
    "SET",
    "UPDATE",
    "VALUES",
    "WHERE",
    "WITH",
}

TOP_LEVEL_NO_INDENT_WORDS = {
    "EXCEPT",
    "INTERSECT",
    "INTERSECT ALL",
    "MINUS",
    "UNION",
    "UNION ALL",
}

NEWLINE_WORDS = {
    "AND",
    "CROSS APPLY",
    "ELSE",
    "OR",
    "OUTER APPLY",
    "WHEN",
    "XOR",
}

OPEN_WORDS = {"(", "CASE"}
CLOSE_WORDS = {")", "END"}

# Operators lexed apart from the name they prefix or join (@v, @@rowcount, #tmp, a::int)
ATTACHED_WORDS = {"@", "@@", "#", "##", "::"}

# Word pairs sqlparse lexes separately but which act as one clause word
COMPOUND_WORDS = {
    ("ALTER", "COLUMN"),
    ("ALTER", "TABLE"),
    ("DELETE", "FROM"),
    ("FETCH", "FIRST"),
    ("INSERT", "INTO"),
    ("INTERSECT", "ALL"),
}

# Words uppercased on output; identifiers and function names are left alone
RESERVED_WORDS = {
    "ADD", "AFTER", "ALL", "ALTER", "AND", "ANY", "APPLY", "AS", "ASC",
    "BETWEEN", "BY", "CASE", "COLUMN", "CREATE", "CROSS", "DEFAULT",
    "DELETE", "DESC", "DISTINCT", "DROP", "ELSE", "END", "EXCEPT", "EXISTS",
    "FALSE", "FETCH", "FIRST", "FOREIGN", "FROM", "FULL", "GO", "GROUP",
    "HAVING", "ILIKE", "IN", "INDEX", "INNER", "INSERT", "INTERSECT", "INTO",
    "IS", "JOIN", "KEY", "LEFT", "LIKE", "LIMIT", "MINUS", "MODIFY",
    "NATURAL", "NEXT", "NOT", "NULL", "NULLS", "OFFSET", "ON", "ONLY", "OR",
    "ORDER", "OUTER", "PRIMARY", "REFERENCES", "RETURNING", "RIGHT", "ROWS",
    "SELECT", "SET", "TABLE", "THEN", "TRUE", "UNION", "UNIQUE", "UPDATE",
    "USING", "VALUES", "VIEW", "WHEN", "WHERE", "WITH", "XOR",
}


# ═══════════════════════════════════════════════════════════════════════════════
# DATA MODELS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SqlFormatConfig:
    """Layout options for SQL formatting."""

    indent: str = "  "
    uppercase: bool = True
    lines_between_queries: int = 1
    inline_max_length: int = 50


@dataclass
class SqlToken:
    """A non-whitespace lexer token plus whether whitespace preceded it."""

    ttype: object
    value: str
    space_before: bool = False

    @property
    def word(self) -> str:
        """Upper-cased value with inner whitespace collapsed (``order  by`` -> ``ORDER BY``)."""
        return " ".join(self.value.split()).upper()

    @property
    def is_literal(self) -> bool:
        return self.ttype in T.String or self.ttype in T.Comment or self.ttype in T.Number

    @property
    def is_comment(self) -> bool:
        return self.ttype in T.Comment

    @property
    def is_line_comment(self) -> bool:
        return self.ttype in T.Comment.Single

    def is_word_in(self, words) -> bool:
        return not self.is_literal and self.word in words

    @property
    def is_top_level(self) -> bool:
        return self.is_word_in(TOP_LEVEL_WORDS)

    @property
    def is_top_level_no_indent(self) -> bool:
        return self.is_word_in(TOP_LEVEL_NO_INDENT_WORDS)

    @property
    def is_newline(self) -> bool:
        if self.is_literal:
            return False
        word = self.word
        return word in NEWLINE_WORDS or word == "JOIN" or word.endswith(" JOIN")

    @property
    def is_open(self) -> bool:
        return self.is_word_in(OPEN_WORDS)

    @property
    def is_close(self) -> bool:
        return self.is_word_in(CLOSE_WORDS)

    @property
    def is_reserved(self) -> bool:
        # Names (``t.desc``, function calls) keep their spelling
        if not (self.ttype in T.Keyword or self.ttype in T.Operator):
            return False
        parts = self.word.split()
        return bool(parts) and all(part in RESERVED_WORDS for part in parts)


# ═══════════════════════════════════════════════════════════════════════════════
# TOKENIZER
# ═══════════════════════════════════════════════════════════════════════════════


def tokenize_sql(sql: str) -> List[SqlToken]:
    """Lex SQL with sqlparse, dropping whitespace and merging compound clause words."""
    result: List[SqlToken] = []
    space_before = False

    for ttype, value in lexer.tokenize(sql):
        if ttype in T.Whitespace:
            space_before = True
            continue

        token = SqlToken(ttype, value, space_before)
        space_before = False

        previous = result[-1] if result else None
        if (
            previous is not None
            and not previous.is_literal
            and not token.is_literal
            and (previous.word, token.word) in COMPOUND_WORDS
        ):
            result[-1] = SqlToken(previous.ttype, f"{previous.value} {token.value}", previous.space_before)
            continue

        result.append(token)

    return result


# ═══════════════════════════════════════════════════════════════════════════════
# LAYOUT STATE
# ═══════════════════════════════════════════════════════════════════════════════


class Indentation:
    """Stack of indentation levels opened by clauses and blocks."""

    TOP_LEVEL = "top-level"
    BLOCK_LEVEL = "block-level"

    def __init__(self, indent: str):
        self.indent = indent
        self._levels: List[str] = []

    def get_indent(self) -> str:
        return self.indent * len(self._levels)

    def increase_top_level(self) -> None:
        self._levels.append(self.TOP_LEVEL)

    def increase_block_level(self) -> None:
        self._levels.append(self.BLOCK_LEVEL)

    def decrease_top_level(self) -> None:
        if self._levels and self._levels[-1] == self.TOP_LEVEL:
            self._levels.pop()

    def decrease_block_level(self) -> None:
        while self._levels:
            level = self._levels.pop()
            if level != self.TOP_LEVEL:
                break

    def reset(self) -> None:
        self._levels = []


class InlineBlock:
    """
    Tracks parenthesised groups short enough to stay on one line.

    A group is inline when its text fits in ``max_length`` characters and it
    contains no clause word, comment or statement separator.
    """

    def __init__(self, max_length: int):
        self.max_length = max_length
        self.level = 0

    def begin_if_possible(self, tokens: List[SqlToken], index: int) -> None:
        if self.level == 0 and self._is_inline_block(tokens, index):
            self.level = 1
        elif self.level > 0:
            self.level += 1
        else:
            self.level = 0

    def end(self) -> None:
        self.level -= 1

    def is_active(self) -> bool:
        return self.level > 0

    def _is_inline_block(self, tokens: List[SqlToken], index: int) -> bool:
        length = 0
        depth = 0
        for token in tokens[index:]:
            length += len(token.value) + (1 if token.space_before else 0)
            if length > self.max_length:
                return False
            if token.is_open:
                depth += 1
            elif token.is_close:
                depth -= 1
                if depth == 0:
                    return True
            if self._is_forbidden(token):
                return False
        return False

    @staticmethod
    def _is_forbidden(token: SqlToken) -> bool:
        return (
            token.is_top_level
            or token.is_top_level_no_indent
            or token.is_newline
            or token.is_comment
            or token.value == ";"
        )


# ═══════════════════════════════════════════════════════════════════════════════
# FORMATTER
# ═══════════════════════════════════════════════════════════════════════════════


def _trim_spaces_end(text: str) -> str:
    return text.rstrip(" \t")


class SqlFormatter:
    """Lays out a token stream according to a SqlFormatConfig."""

    def __init__(self, config: Optional[SqlFormatConfig] = None):
        self.config = config or SqlFormatConfig()

    def format(self, sql: str) -> str:
        """Format one or more SQL statements."""
        self.tokens = tokenize_sql(sql)
        self.indentation = Indentation(self.config.indent)
        self.inline_block = InlineBlock(self.config.inline_max_length)
        self.previous_reserved: Optional[SqlToken] = None

        query = ""
        statements = 0
        for index, token in enumerate(self.tokens):
            self.index = index

            if token.is_comment:
                query = self._format_comment(token, query)
            elif token.value == ";":
                query = self._format_query_separator(token, query)
                statements += 1
            elif token.is_top_level:
                query = self._format_top_level_word(token, query)
                self.previous_reserved = token
            elif token.is_top_level_no_indent:
                query = self._format_top_level_word_no_indent(token, query)
                self.previous_reserved = token
            elif token.is_newline:
                query = self._format_newline_word(token, query)
                self.previous_reserved = token
            elif token.is_open:
                query = self._format_opening(token, query)
            elif token.is_close:
                query = self._format_closing(token, query)
            elif token.value == ",":
                query = self._format_comma(token, query)
            elif token.value == ".":
                query = _trim_spaces_end(query) + token.value
            elif token.value in ATTACHED_WORDS:
                query = self._format_attached(token, query)
            elif token.value == ":":
                query = _trim_spaces_end(query) + token.value + " "
            else:
                query += self._show(token) + " "
                if token.is_reserved:
                    self.previous_reserved = token

        logger.debug("Formatted SQL: %d token(s), %d terminated statement(s)", len(self.tokens), statements)
        return query.strip()

    # ── Token rendering ─────────────────────────────────────────────────────

    def _show(self, token: SqlToken) -> str:
        if self.config.uppercase and token.is_reserved:
            return token.word
        if token.is_reserved:
            return " ".join(token.value.split())
        return token.value

    def _add_newline(self, query: str) -> str:
        query = _trim_spaces_end(query)
        if not query.endswith("\n"):
            query += "\n"
        return query + self.indentation.get_indent()

    def _token_look_behind(self, n: int) -> Optional[SqlToken]:
        position = self.index - n
        return self.tokens[position] if position >= 0 else None

    def _token_look_ahead(self, n: int) -> Optional[SqlToken]:
        position = self.index + n
        return self.tokens[position] if position < len(self.tokens) else None

    # ── Layout rules ────────────────────────────────────────────────────────

    def _format_top_level_word(self, token: SqlToken, query: str) -> str:
        self.indentation.decrease_top_level()
        query = self._add_newline(query)
        self.indentation.increase_top_level()
        query += self._show(token)
        return self._add_newline(query)

    def _format_top_level_word_no_indent(self, token: SqlToken, query: str) -> str:
        self.indentation.decrease_top_level()
        query = self._add_newline(query) + self._show(token)
        return self._add_newline(query)

    def _format_newline_word(self, token: SqlToken, query: str) -> str:
        before = self._token_look_behind(2)
        if token.word == "AND" and before is not None and before.word == "BETWEEN":
            return query + self._show(token) + " "
        return self._add_newline(query) + self._show(token) + " "

    def _format_opening(self, token: SqlToken, query: str) -> str:
        previous = self._token_look_behind(1)
        keep_space = token.space_before or (
            previous is not None and (previous.is_open or previous.is_line_comment)
        )
        last_line = query.rsplit("\n", 1)[-1]
        # Never pull a group back onto the previous line's indentation
        if not keep_space and last_line.strip():
            query = _trim_spaces_end(query)

        query += self._show(token)
        self.inline_block.begin_if_possible(self.tokens, self.index)

        if not self.inline_block.is_active():
            self.indentation.increase_block_level()
            return self._add_newline(query)
        if token.value != "(":
            query += " "
        return query

    def _format_closing(self, token: SqlToken, query: str) -> str:
        if self.inline_block.is_active():
            self.inline_block.end()
            return _trim_spaces_end(query) + self._show(token) + " "
        self.indentation.decrease_block_level()
        return self._add_newline(query) + self._show(token) + " "

    def _format_attached(self, token: SqlToken, query: str) -> str:
        # Spacing on either side follows the source
        last_line = query.rsplit("\n", 1)[-1]
        if not token.space_before and last_line.strip():
            query = _trim_spaces_end(query)
        query += token.value
        following = self._token_look_ahead(1)
        if following is None or following.space_before:
            query += " "
        return query

    def _format_comma(self, token: SqlToken, query: str) -> str:
        query = _trim_spaces_end(query) + token.value + " "
        if self.inline_block.is_active():
            return query
        if self.previous_reserved is not None and self.previous_reserved.word == "LIMIT":
            return query
        return self._add_newline(query)

    def _format_query_separator(self, token: SqlToken, query: str) -> str:
        self.indentation.reset()
        newlines = "\n" * max(self.config.lines_between_queries, 1)
        return _trim_spaces_end(query) + token.value + newlines

    def _format_comment(self, token: SqlToken, query: str) -> str:
        comment = token.value.rstrip("\r\n")
        if token.is_line_comment:
            return self._add_newline(query + comment)
        indent = self.indentation.get_indent()
        comment = comment.replace("\n", "\n" + indent)
        return self._add_newline(self._add_newline(query) + comment)


# ═══════════════════════════════════════════════════════════════════════════════
# CONVENIENCE FUNCTION
# ═══════════════════════════════════════════════════════════════════════════════


def format_sql(sql: str) -> str:
    """Format SQL with the default layout. Placeholders are not substituted."""
    return SqlFormatter().format(sql)
