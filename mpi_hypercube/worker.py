"""Worker side of the hypercube max-reduction.

Each worker takes one value from the distributor, then runs one exchange
round per dimension: send its value to the neighbor across bit ``k``,
receive the neighbor's value, keep the larger. After round ``k`` a worker
holds the maximum over every worker whose cube-index differs from its own in
bits ``0..k`` only, so after the last round all workers agree on the global
maximum, which is reported back to the distributor.
"""

import logging
from dataclasses import dataclass

from .group import DISTRIBUTOR_RANK, GroupContext
from .topology import get_hypercube_neighbors, in_cube
from .transport import ANY_TAG, Tag, Transport

log = logging.getLogger(__name__)


@dataclass
class WorkerState:
    rank: int
    value: float
    round: int = 0

    def absorb(self, other):
        self.value = max(self.value, other)
        self.round += 1


def exchange(state, transport, neighbor):
    # Send first: the neighbor does the same, and sends never block
    transport.send(neighbor, Tag.EXCHANGE, state.value)
    message = transport.recv(source=neighbor, tag=ANY_TAG)
    state.absorb(message.value)
    return message.value


def run_worker(ctx: GroupContext, transport: Transport, dimension: int, logger=None):
    """Run the worker protocol; returns the value reported, or None if idle."""
    logger = logger or log
    if not in_cube(ctx.rank, dimension):
        logger.debug("rank %d is outside the %d-cube, staying idle", ctx.rank, dimension)
        return None

    # Receive value from the distributor process
    message = transport.recv(source=DISTRIBUTOR_RANK, tag=ANY_TAG)
    state = WorkerState(rank=ctx.rank, value=message.value)
    logger.debug("received initial value %r", state.value)

    for neighbor in get_hypercube_neighbors(ctx.rank, dimension):
        received = exchange(state, transport, neighbor)
        logger.debug("round %d: got %r from %d, value now %r",
                     state.round - 1, received, neighbor, state.value)

    transport.send(DISTRIBUTOR_RANK, Tag.FINAL_RESULT, state.value)
    logger.debug("reported %r to distributor", state.value)
    return state.value
