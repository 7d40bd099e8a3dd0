from __future__ import annotations

import os

import pytest
from sexpfmt.exceptions import ParseError
from sexpfmt.formatter import format_source
from sexpfmt.parser import parse, parse_comments

atheris = pytest.importorskip("atheris")

_FRAGMENTS = ["(", ")", " ", "\n", ";c", '"s"', "'", "`", ",", ",@", "#(", "foo", "#t", "\\"]


def test_parse_with_fuzzed_input():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)
    parsed = 0

    for _ in range(128):
        if provider.remaining_bytes() == 0:
            break
        source = provider.ConsumeUnicodeNoSurrogates(64)
        try:
            parse(source)
        except ParseError as error:
            assert 0 <= error.offset <= max(len(source) - 1, 0)
            error.describe(source)
        parse_comments(source)
        parsed += 1

    assert parsed  # ensure we exercised the loop


def test_format_with_fuzzed_fragments():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)

    for _ in range(64):
        if provider.remaining_bytes() == 0:
            break
        count = provider.ConsumeIntInRange(0, 24)
        source = "".join(
            _FRAGMENTS[provider.ConsumeIntInRange(0, len(_FRAGMENTS) - 1)] for _ in range(count)
        )
        try:
            formatted = format_source(source)
        except ParseError:
            continue
        assert format_source(formatted) == formatted
