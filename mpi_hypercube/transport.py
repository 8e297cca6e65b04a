"""Point-to-point messaging between ranks.

A message carries one float. ``send`` copies the payload and returns without
waiting for the receiver; ``recv`` blocks until a matching message arrives.
Messages between a fixed pair of ranks are received in the order they were
sent. Two implementations exist: ``MPITransport`` over mpi4py, and
``QueueTransport`` for ranks running as threads of one process.
"""

import threading
from dataclasses import dataclass
from enum import IntEnum

import numpy as np

from .errors import GroupAborted, TransportError
from .topology import cube_size

ANY_SOURCE = -1
ANY_TAG = -1


class Tag(IntEnum):
    INITIAL = 0
    EXCHANGE = 1
    FINAL_RESULT = 42


@dataclass(frozen=True)
class Message:
    source: int
    tag: int
    value: float


def bsend_slots(dimension):
    # distributor: one send per cube node; worker: one per round plus the result
    return cube_size(dimension) + dimension + 1


class Transport:
    rank = None

    def prepare(self, dimension):
        """Reserve whatever the transport needs for a run of this dimension."""

    def send(self, dest, tag, value):
        raise NotImplementedError

    def recv(self, source=ANY_SOURCE, tag=ANY_TAG) -> Message:
        raise NotImplementedError

    def abort(self, exit_code=1):
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class MPITransport(Transport):
    """Buffered sends and blocking receives on an MPI communicator."""

    def __init__(self, comm):
        # Import MPI here to avoid initializing it for in-process runs
        from mpi4py import MPI

        self._MPI = MPI
        self.comm = comm
        self.rank = comm.Get_rank()
        self.size = comm.Get_size()
        self._bsend_buf = None
        try:
            # Failures come back as MPI.Exception instead of killing the job
            comm.Set_errhandler(MPI.ERRORS_RETURN)
        except MPI.Exception as exc:
            raise TransportError(f"MPI error {exc.Get_error_code()}: {exc}") from exc

    @classmethod
    def from_world(cls):
        from mpi4py import MPI

        return cls(MPI.COMM_WORLD)

    def _error(self, exc, expr):
        return TransportError(f"MPI error {exc.Get_error_code()} (`{expr}'): {exc.Get_error_string()}")

    def prepare(self, dimension):
        MPI = self._MPI
        if self._bsend_buf is not None:
            return
        itemsize = np.dtype(np.float64).itemsize
        nbytes = bsend_slots(dimension) * (itemsize + MPI.BSEND_OVERHEAD)
        self._bsend_buf = np.empty(nbytes, dtype=np.uint8)
        try:
            MPI.Attach_buffer(self._bsend_buf)
        except MPI.Exception as exc:
            self._bsend_buf = None
            raise self._error(exc, "Attach_buffer") from exc

    def send(self, dest, tag, value):
        MPI = self._MPI
        if self._bsend_buf is None:
            raise TransportError("send buffer not attached; call prepare() first")
        data = np.array([value], dtype=np.float64)
        try:
            self.comm.Bsend([data, MPI.DOUBLE], dest=dest, tag=int(tag))
        except MPI.Exception as exc:
            raise self._error(exc, f"Bsend(dest={dest}, tag={int(tag)})") from exc

    def recv(self, source=ANY_SOURCE, tag=ANY_TAG):
        MPI = self._MPI
        data = np.empty(1, dtype=np.float64)
        status = MPI.Status()
        src = MPI.ANY_SOURCE if source == ANY_SOURCE else source
        tg = MPI.ANY_TAG if tag == ANY_TAG else int(tag)
        try:
            self.comm.Recv([data, MPI.DOUBLE], source=src, tag=tg, status=status)
        except MPI.Exception as exc:
            raise self._error(exc, f"Recv(source={source}, tag={tag})") from exc
        # A bad status is reported the same way as a failed call
        error = status.Get_error()
        if error != MPI.SUCCESS:
            raise TransportError(f"MPI error {error} (`Recv status'): {MPI.Get_error_string(error)}")
        return Message(source=status.Get_source(), tag=status.Get_tag(), value=float(data[0]))

    def abort(self, exit_code=1):
        # Does not return: every process in the communicator is terminated
        self.comm.Abort(exit_code)

    def close(self):
        if self._bsend_buf is None:
            return
        try:
            self._MPI.Detach_buffer()
        except self._MPI.Exception as exc:
            raise self._error(exc, "Detach_buffer") from exc
        finally:
            self._bsend_buf = None


class LocalGroup:
    """A group of ranks living in one process, one mailbox per rank.

    Mailboxes are unbounded, so a send is never refused or delayed. ``abort``
    wakes every blocked receiver with ``GroupAborted``.
    """

    def __init__(self, size):
        if size < 1:
            raise ValueError(f"group size must be positive, got {size}")
        self.size = size
        self.exit_code = None
        self._cond = threading.Condition()
        self._mailboxes = [[] for _ in range(size)]

    def transport(self, rank):
        if not 0 <= rank < self.size:
            raise ValueError(f"rank {rank} outside group of size {self.size}")
        return QueueTransport(self, rank)

    @property
    def aborted(self):
        return self.exit_code is not None

    def _raise_if_aborted(self):
        if self.aborted:
            err = GroupAborted(f"group aborted with status {self.exit_code}")
            err.exit_code = self.exit_code
            raise err

    def post(self, source, dest, tag, value):
        if not 0 <= dest < self.size:
            raise TransportError(f"invalid destination rank {dest} (group size {self.size})")
        message = Message(source=source, tag=int(tag), value=float(value))
        with self._cond:
            self._raise_if_aborted()
            self._mailboxes[dest].append(message)
            self._cond.notify_all()

    def _match(self, mailbox, source, tag):
        for i, message in enumerate(mailbox):
            if source != ANY_SOURCE and message.source != source:
                continue
            if tag != ANY_TAG and message.tag != tag:
                continue
            return mailbox.pop(i)
        return None

    def take(self, rank, source, tag):
        mailbox = self._mailboxes[rank]
        with self._cond:
            while True:
                self._raise_if_aborted()
                message = self._match(mailbox, source, tag)
                if message is not None:
                    return message
                self._cond.wait()

    def pending(self, rank):
        with self._cond:
            return list(self._mailboxes[rank])

    def abort(self, exit_code=1):
        with self._cond:
            if self.exit_code is None:
                self.exit_code = exit_code
            self._cond.notify_all()


class QueueTransport(Transport):
    def __init__(self, group, rank):
        self.group = group
        self.rank = rank
        self.size = group.size

    def send(self, dest, tag, value):
        self.group.post(self.rank, dest, tag, value)

    def recv(self, source=ANY_SOURCE, tag=ANY_TAG):
        return self.group.take(self.rank, source, tag)

    def abort(self, exit_code=1):
        self.group.abort(exit_code)
