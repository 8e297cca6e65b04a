"""Fatal error types.

Every error here ends the whole group: the top-level runner logs it, aborts
the transport with ``exit_code`` and returns that code.
"""


class HypercubeError(Exception):
    exit_code = 1


class ConfigurationError(HypercubeError):
    """Bad dimension, group too small, wrong number of input values."""


class InputError(HypercubeError):
    """The input file could not be opened."""


class TransportError(HypercubeError):
    """A send or receive failed in the group layer."""


class GroupAborted(TransportError):
    """Another rank aborted the group while this one was blocked."""
