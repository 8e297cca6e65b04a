"""Scanning numeric values out of an arbitrary byte stream.

A token is a maximal run of the bytes ``0-9``, ``.`` and ``-``; anything else
separates tokens. Tokens that do not parse as a finite float are skipped with
a warning and never count as values.
"""

import logging
import math

from .errors import InputError

NUMERIC_BYTES = frozenset(b"0123456789.-")
DEFAULT_MAX_TOKEN_LENGTH = 4096
CHUNK_SIZE = 8192

log = logging.getLogger(__name__)


def open_input(path):
    try:
        return open(path, "rb")
    except OSError as exc:
        raise InputError(f"could not open file `{path}' for reading: {exc.strerror or exc}") from exc


def iter_tokens(stream, chunk_size=CHUNK_SIZE, max_token_length=DEFAULT_MAX_TOKEN_LENGTH):
    """Yield numeric runs from ``stream``.

    A run longer than ``max_token_length`` is cut at ``max_token_length + 1``
    bytes and the rest of it dropped, so no token held in memory grows past
    that; ``iter_values`` then skips it as overflowing.
    """
    token = bytearray()
    while True:
        try:
            chunk = stream.read(chunk_size)
        except OSError as exc:
            raise InputError(f"error reading input: {exc.strerror or exc}") from exc
        if not chunk:
            break
        for byte in chunk:
            if byte in NUMERIC_BYTES:
                if len(token) <= max_token_length:
                    token.append(byte)
            elif token:
                yield token.decode("ascii")
                token.clear()
    # A value running up to end of file is still a value
    if token:
        yield token.decode("ascii")


def parse_token(token):
    try:
        value = float(token)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def iter_values(tokens, logger=None, max_token_length=DEFAULT_MAX_TOKEN_LENGTH):
    logger = logger or log
    for token in tokens:
        if len(token) > max_token_length:
            logger.warning("skipping entity overflowing buffer (more than %d characters)", max_token_length)
            continue
        value = parse_token(token)
        if value is None:
            logger.warning("skipping invalid entity (`%s')", token)
            continue
        yield value
