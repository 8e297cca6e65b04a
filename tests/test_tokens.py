## Unit tests for scanning numeric values out of the input stream.

import io
import logging

import pytest

from mpi_hypercube.errors import InputError
from mpi_hypercube.tokens import iter_tokens, iter_values, open_input, parse_token

test_log = logging.getLogger("tests.tokens")


def values_of(data, **kwargs):
    return list(iter_values(iter_tokens(io.BytesIO(data)), logger=test_log, **kwargs))


def test_tokens_split_on_anything_non_numeric():
    data = b"3, 7;1\n-9.5 abc 2e5"
    assert list(iter_tokens(io.BytesIO(data))) == ["3", "7", "1", "-9.5", "2", "5"]


def test_token_at_end_of_file_is_kept():
    assert list(iter_tokens(io.BytesIO(b"1 2 3"))) == ["1", "2", "3"]


def test_empty_runs_are_not_tokens():
    assert list(iter_tokens(io.BytesIO(b",,  ;\n1,,2"))) == ["1", "2"]


def test_tokens_span_chunk_boundaries():
    data = b"123456 789"
    assert list(iter_tokens(io.BytesIO(data), chunk_size=4)) == ["123456", "789"]


def test_parse_token():
    assert parse_token("3") == 3.0
    assert parse_token("-0.25") == -0.25
    assert parse_token(".5") == 0.5
    assert parse_token("12..3") is None
    assert parse_token("-") is None
    assert parse_token("1-2") is None


def test_malformed_token_is_skipped(caplog):
    with caplog.at_level(logging.WARNING, logger="tests.tokens"):
        values = values_of(b"3 12..3 7 1 9")
    assert values == [3.0, 7.0, 1.0, 9.0]
    assert "skipping invalid entity (`12..3')" in caplog.text


def test_overlong_token_is_skipped(caplog):
    data = b"1 " + b"9" * 20 + b" 2"
    with caplog.at_level(logging.WARNING, logger="tests.tokens"):
        values = values_of(data, max_token_length=10)
    assert values == [1.0, 2.0]
    assert "overflowing buffer" in caplog.text


def test_values_are_lazy():
    stream = io.BytesIO(b"1 2 3 4")
    values = iter_values(iter_tokens(stream, chunk_size=2), logger=test_log)
    assert next(values) == 1.0
    assert stream.tell() < len(b"1 2 3 4")


def test_open_input_missing_file(tmp_path):
    missing = tmp_path / "nope.txt"
    with pytest.raises(InputError, match="could not open file"):
        open_input(missing)


def test_open_input_reads_bytes(write_input):
    path = write_input("4 5")
    with open_input(path) as fp:
        assert list(iter_tokens(fp)) == ["4", "5"]


def test_overlong_run_is_not_held_in_memory():
    """A five-million-digit run is cut just past the limit while scanning."""
    data = b"1 " + b"9" * 5_000_000 + b" 2"
    tokens = list(iter_tokens(io.BytesIO(data), max_token_length=4096))
    assert max(len(t) for t in tokens) <= 4097
    assert tokens[0] == "1" and tokens[-1] == "2"
    assert values_of(data) == [1.0, 2.0]


def test_overlong_run_at_end_of_file_is_skipped(caplog):
    with caplog.at_level(logging.WARNING, logger="tests.tokens"):
        values = values_of(b"5 " + b"1" * 100, max_token_length=10)
    assert values == [5.0]
    assert "more than 10 characters" in caplog.text


class FailingStream:
    def __init__(self, first=b"1 2 "):
        self.first = first

    def read(self, size=-1):
        if self.first:
            chunk, self.first = self.first, b""
            return chunk
        raise OSError(5, "Input/output error")


def test_read_error_is_an_input_error():
    tokens = iter_tokens(FailingStream())
    assert next(tokens) == "1"
    assert next(tokens) == "2"
    with pytest.raises(InputError, match="error reading input: Input/output error"):
        next(tokens)
