"""Run a whole group as threads of the current process.

Every rank gets its own thread and a ``QueueTransport`` on a shared
``LocalGroup``. Useful without an MPI launcher and for testing the protocol.
"""

import io
import logging
import threading
from dataclasses import dataclass, field

from .group import GroupContext, parse_dimension
from .runner import run_rank
from .topology import required_group_size
from .transport import LocalGroup

log = logging.getLogger(__name__)


@dataclass
class LocalRunResult:
    exit_code: int
    output: str = ""
    result: float | None = None
    worker_values: dict = field(default_factory=dict)
    errors: dict = field(default_factory=dict)


def run_local(cfg, group_size=None) -> LocalRunResult:
    size = group_size or cfg.group_size
    if size is None:
        size = required_group_size(parse_dimension(cfg.dimension))
    group = LocalGroup(size)
    out = io.StringIO()
    outcomes = {}
    errors = {}

    def rank_main(rank):
        ctx = GroupContext(rank=rank, size=size)
        try:
            outcomes[rank] = run_rank(ctx, group.transport(rank), cfg,
                                      out=out if ctx.is_distributor else io.StringIO())
        except Exception as exc:
            # A bug, not a protocol failure: stop the others instead of hanging
            log.exception("rank %d crashed", rank)
            errors[rank] = exc
            group.abort(1)

    threads = [threading.Thread(target=rank_main, args=(rank,), name=f"rank-{rank}", daemon=True)
               for rank in range(size)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    for rank, outcome in outcomes.items():
        if outcome.error is not None:
            errors[rank] = outcome.error

    if group.aborted:
        exit_code = group.exit_code
    else:
        exit_code = max((o.exit_code for o in outcomes.values()), default=0)

    distributor = outcomes.get(0)
    return LocalRunResult(
        exit_code=exit_code,
        output=out.getvalue(),
        result=distributor.value if distributor is not None else None,
        worker_values={rank: o.value for rank, o in sorted(outcomes.items()) if rank != 0},
        errors=errors,
    )
