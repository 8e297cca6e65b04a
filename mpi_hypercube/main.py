## Entrypoint: `mpiexec -n 5 mpi-hypercube 2 values.txt`

import argparse
import logging
import sys
from pathlib import Path

from . import config as config_utils
from .errors import HypercubeError
from .group import GroupContext
from .local import run_local
from .log import setup_logging
from .runner import run_rank
from .transport import MPITransport

log = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mpi-hypercube",
        description="Maximum of a list of numbers, reduced over a hypercube of processes.",
    )
    parser.add_argument("dimension", nargs="?", metavar="DIMENSION", help="Hypercube dimension (>= 2).")
    parser.add_argument("input_path", nargs="?", metavar="INPUT_FILE", help="File to scan for numeric values.")
    parser.add_argument("--config", action="append", default=[], help="Config YAML path (may repeat).")
    parser.add_argument("--log-level", help="Diagnostics level (default WARNING).")
    parser.add_argument("--max-token-length", type=int, help="Longer numeric entities are skipped.")
    parser.add_argument("--local", action="store_true", default=None,
                        help="Run every rank as a thread of this process instead of under MPI.")
    parser.add_argument("--group-size", type=int, help="Group size for --local (default 1 + 2**DIMENSION).")
    parser.add_argument("--print-config", action="store_true", help="Print resolved config and exit.")
    return parser


def main(argv=None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    overrides = {
        "dimension": args.dimension,
        "input_path": args.input_path,
        "log_level": args.log_level,
        "max_token_length": args.max_token_length,
        "local": args.local,
        "group_size": args.group_size,
    }

    try:
        cfg = config_utils.resolve_config([Path(p) for p in args.config], overrides)
    except HypercubeError as exc:
        setup_logging()
        log.error("%s", exc)
        return exc.exit_code
    setup_logging(cfg.log_level)

    if args.print_config:
        print(config_utils.config_to_yaml(cfg), end="")
        return 0
    if cfg.dimension is None or cfg.input_path is None:
        parser.error("DIMENSION and INPUT_FILE are required")

    if cfg.local:
        try:
            result = run_local(cfg)
        except HypercubeError as exc:
            log.error("%s", exc)
            return exc.exit_code
        sys.stdout.write(result.output)
        sys.stdout.flush()
        return result.exit_code

    try:
        transport = MPITransport.from_world()
    except HypercubeError as exc:
        log.error("MPI initialization failed: %s", exc)
        return exc.exit_code
    ctx = GroupContext(rank=transport.rank, size=transport.size)
    with transport:
        outcome = run_rank(ctx, transport, cfg)
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
