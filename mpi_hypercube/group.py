from dataclasses import dataclass

from .errors import ConfigurationError
from .topology import cube_size, required_group_size

DISTRIBUTOR_RANK = 0
# MPI ranks are C ints; a 31-cube would need more than 2**31 processes
MAX_DIMENSION = 30


@dataclass(frozen=True)
class GroupContext:
    """Identity of the calling process within the group."""

    rank: int
    size: int

    @property
    def is_distributor(self) -> bool:
        return self.rank == DISTRIBUTOR_RANK

    @property
    def worker_count(self) -> int:
        return self.size - 1


def parse_dimension(text) -> int:
    if isinstance(text, bool):
        raise ConfigurationError(f"invalid dimension ({text!r})")
    if isinstance(text, int):
        dimension = text
    else:
        digits = str(text).strip()
        # plain ASCII digits only: no sign, underscores or other scripts
        if not (digits.isascii() and digits.isdecimal()):
            raise ConfigurationError(f"invalid dimension ({text!r})")
        dimension = int(digits, 10)
    if dimension < 2 or dimension > MAX_DIMENSION:
        raise ConfigurationError(f"invalid dimension ({dimension})")
    return dimension


def check_group_size(ctx: GroupContext, dimension: int) -> None:
    # 2**dimension >= size already means too few, without building the number
    if dimension >= ctx.size.bit_length():
        raise ConfigurationError(
            f"not enough slots for hypercube topology. Got {ctx.size} when "
            f"1 + 2**{dimension} processes were expected."
        )
    expected = required_group_size(dimension)
    if ctx.size < expected:
        raise ConfigurationError(
            f"not enough slots for hypercube topology. Got {ctx.size} when "
            f"{expected} processes were expected."
        )


def worker_quota(dimension: int) -> int:
    # Surplus ranks beyond the cube stay idle, so only the cube is fed.
    return cube_size(dimension)
