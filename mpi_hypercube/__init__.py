"""Distributed maximum over a hypercube of processes."""

from .errors import ConfigurationError, GroupAborted, HypercubeError, InputError, TransportError
from .group import DISTRIBUTOR_RANK, GroupContext
from .local import LocalRunResult, run_local
from .topology import get_hypercube_neighbors

__version__ = "0.1.0"
