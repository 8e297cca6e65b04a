"""Per-rank entry point shared by the MPI and in-process launchers."""

import sys
from dataclasses import dataclass

from .distributor import format_result, run_distributor
from .errors import ConfigurationError, GroupAborted, HypercubeError
from .group import GroupContext, check_group_size, parse_dimension
from .log import get_logger
from .transport import Transport
from .worker import run_worker


@dataclass
class RankOutcome:
    exit_code: int
    value: float | None = None
    error: Exception | None = None


def run_role(ctx: GroupContext, transport: Transport, cfg, out=None, logger=None):
    """Validate the run parameters and play this rank's role.

    Raises HypercubeError on any fatal condition. The distributor prints the
    result to ``out`` and returns it; workers return the value they reported.
    """
    logger = logger or get_logger(ctx)
    dimension = parse_dimension(cfg.dimension)
    check_group_size(ctx, dimension)
    transport.prepare(dimension)

    if not ctx.is_distributor:
        return run_worker(ctx, transport, dimension, logger=logger)

    if cfg.input_path is None:
        raise ConfigurationError("no input file given")
    result = run_distributor(ctx, transport, cfg.input_path, dimension,
                             logger=logger, max_token_length=cfg.max_token_length)
    print(format_result(result), file=out or sys.stdout, flush=True)
    return result


def run_rank(ctx: GroupContext, transport: Transport, cfg, out=None) -> RankOutcome:
    """Run one rank; any fatal error aborts the whole group.

    With an MPI transport the abort terminates every process and this
    function does not return on failure.
    """
    logger = get_logger(ctx)
    try:
        value = run_role(ctx, transport, cfg, out=out, logger=logger)
    except GroupAborted as exc:
        # Someone else failed and already reported why
        logger.debug("%s", exc)
        return RankOutcome(exit_code=exc.exit_code, error=exc)
    except HypercubeError as exc:
        logger.error("%s", exc)
        transport.abort(exc.exit_code)
        return RankOutcome(exit_code=exc.exit_code, error=exc)
    except Exception as exc:
        # Not a protocol failure, but the peers must not be left blocked
        logger.exception("unexpected error")
        transport.abort(1)
        return RankOutcome(exit_code=1, error=exc)
    return RankOutcome(exit_code=0, value=value)
