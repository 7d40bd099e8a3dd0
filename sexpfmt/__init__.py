"""
sexpfmt: a formatter for Scheme, Lisp and other S-expression languages.

Formatting keeps the author's line structure: a list stays on one line only if
it was written on one line, and runs of blank lines collapse to one.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    sexpfmt "src/**/*.scm"
    sexpfmt --check "src/**/*.scm"
    sexpfmt < main.scm

Library Usage:
    from sexpfmt import format_module, parse_source

    module = parse_source("(define (f x)\\n(* x x))")
    text = format_module(module.expressions, module.comments, module.position_map)
"""

from .config import ConfigError, FormatterConfig
from .exceptions import ParseError
from .formatter import (
    FormatFileError,
    check_file,
    compile_module,
    format_file,
    format_module,
    format_source,
)
from .models import BlockComment, Comment, HashDirective, List, Module, Quote, String, Symbol
from .parser import parse, parse_comments, parse_hash_directives, parse_source
from .position import Position, PositionMap

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "parse",
    "parse_comments",
    "parse_hash_directives",
    "parse_source",
    "compile_module",
    "format_module",
    "format_source",
    "format_file",
    "check_file",
    # Data models
    "BlockComment",
    "Comment",
    "HashDirective",
    "List",
    "Module",
    "Position",
    "PositionMap",
    "Quote",
    "String",
    "Symbol",
    # Configuration
    "FormatterConfig",
    # Exceptions
    "ConfigError",
    "FormatFileError",
    "ParseError",
    # Version
    "__version__",
]
