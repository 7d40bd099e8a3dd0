"""Constants used across the sexpfmt package."""

from __future__ import annotations

from .config import FormatterConfig

# Grammar
SYMBOL_SIGNS = "+-*/<>=!?$@%_&~^.:#"
QUOTE_SIGNS = (",@", "'", "`", ",")
# `#` is also a symbol character, so it only acts as a quote sign before these.
HASH_QUOTE_TARGETS = "([{'`,\""
STRING_ESCAPES = '\\"nrt'
SYMBOL_ESCAPE = "\\"
LIST_DELIMITERS = {"(": ")", "[": "]", "{": "}"}
HASH_DIRECTIVE_PREFIXES = ("#!", "#lang ")
COMMENT_MARKER = ";"
BLOCK_COMMENT_START = "#|"
BLOCK_COMMENT_END = "|#"

# Limits
DEFAULT_MAX_FILE_SIZE = FormatterConfig().max_file_size
