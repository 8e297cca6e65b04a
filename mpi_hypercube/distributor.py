"""Distributor side: feed one value to each worker, collect the result."""

import logging
from itertools import islice

from .errors import ConfigurationError
from .group import GroupContext, worker_quota
from .tokens import DEFAULT_MAX_TOKEN_LENGTH, iter_tokens, iter_values, open_input
from .transport import ANY_SOURCE, Message, Tag, Transport

log = logging.getLogger(__name__)


def fan_out(ctx: GroupContext, transport: Transport, values, dimension: int, logger=None, rest=None):
    """Send the n-th value to rank n + 1 for every worker in the cube.

    ``values`` is consumed lazily. ``rest``, if given, is the raw token stream
    ``values`` reads from; once the quota is met only its next item is looked
    at to tell whether the input had more. Returns the values sent, in rank
    order.
    """
    logger = logger or log
    expected = worker_quota(dimension)
    if ctx.worker_count > expected:
        logger.debug("group has %d workers, only the first %d take part",
                     ctx.worker_count, expected)

    values = iter(values)
    sent = []
    for value in islice(values, expected):
        # Worker ranks start at 1, rank 0 is this process
        transport.send(len(sent) + 1, Tag.INITIAL, value)
        sent.append(value)

    if len(sent) < expected:
        raise ConfigurationError(
            f"invalid number of values on the list. Expected exactly "
            f"{expected} but got {len(sent)}."
        )

    extra = next(values if rest is None else iter(rest), None)
    if extra is not None:
        logger.warning(
            "too many numeric entities on the list. %d values were expected "
            "but there are more. Only the first %d will be taken into account",
            expected, expected,
        )
    return sent


def fan_in(transport: Transport) -> Message:
    # Every worker ends with the same value, so the first report is enough
    return transport.recv(source=ANY_SOURCE, tag=Tag.FINAL_RESULT)


def run_distributor(ctx, transport, input_path, dimension, logger=None,
                    max_token_length=DEFAULT_MAX_TOKEN_LENGTH):
    logger = logger or log
    with open_input(input_path) as fp:
        tokens = iter_tokens(fp, max_token_length=max_token_length)
        values = iter_values(tokens, logger=logger, max_token_length=max_token_length)
        fan_out(ctx, transport, values, dimension, logger=logger, rest=tokens)
    message = fan_in(transport)
    logger.debug("result %r reported by rank %d", message.value, message.source)
    return message.value


def format_result(value):
    return f"{value:f}"
